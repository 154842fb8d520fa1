"""Error taxonomy for the screenshot service.

Every error carries the HTTP status code it is reported with; the message is
sent back to the caller as plain text.
"""


class ScreenshotError(Exception):
    status_code = 500


class InvalidRequestError(ScreenshotError, ValueError):
    """The request body is malformed or targets a disallowed address."""

    status_code = 400


class CapacityError(ScreenshotError, RuntimeError):
    """Too many screenshots are already in progress."""

    status_code = 400

    def __init__(self, message: str = "Too many screenshots in progress, please try again later.") -> None:
        super().__init__(message)


class ResourceError(ScreenshotError, RuntimeError):
    """The browser could not be launched, or navigation or capture failed."""

    status_code = 500

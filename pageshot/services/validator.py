"""Shape and safety checks for incoming screenshot requests.

The address block list is searched for anywhere in the raw URL text; no DNS
lookup is performed. A hostname that resolves to a private address, or an
alternate spelling of one (decimal or hex IPs, IPv6 literals), is not caught,
and a public URL whose path or query contains a blocked fragment is rejected.
Treat it as a best-effort SSRF mitigation, not as a network sandbox.
"""

import re
from typing import Any
from urllib.parse import urlparse

from pageshot.exceptions import InvalidRequestError
from pageshot.models.screenshot_request import CaptureOptions, ScreenshotRequest, Viewport

URL_SCHEME_RE = re.compile(r"^(http|https)://")

BLOCKED_URL_PATTERNS = [
    re.compile(r"localhost", re.IGNORECASE),
    re.compile(r"127\.0\.0\.1"),
    re.compile(r"10\."),
    re.compile(r"172\."),
    re.compile(r"192\.168\."),
]

VIEWPORT_NUMBER_KEYS = ("width", "height", "deviceScaleFactor")
VIEWPORT_BOOLEAN_KEYS = ("isMobile", "hasTouch", "isLandscape")
CAPTURE_FORMATS = ("png", "jpeg")
CAPTURE_BOOLEAN_KEYS = ("fullPage", "omitBackground")


def _is_number(value: Any) -> bool:
    # bool is a subclass of int but is not a number on the wire
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_blocked_url(url: str) -> bool:
    return any(pattern.search(url) for pattern in BLOCKED_URL_PATTERNS)


def validate_url(url: Any) -> str:
    """Return *url* unchanged or raise InvalidRequestError."""
    if not isinstance(url, str):
        raise InvalidRequestError("url must be a string.")
    if not URL_SCHEME_RE.match(url):
        raise InvalidRequestError(
            "url must include the http or https scheme, e.g. https://example.com"
        )
    if _is_blocked_url(url):
        raise InvalidRequestError("url points to an illegal address.")

    try:
        hostname = urlparse(url).hostname
    except ValueError:
        raise InvalidRequestError("url is malformed.")
    if not hostname:
        raise InvalidRequestError("url must include a host.")
    return url


def validate_viewport(viewport: Any) -> Viewport | None:
    if viewport is None:
        return None
    if not isinstance(viewport, dict):
        raise InvalidRequestError("viewport must be an object.")

    for key, value in viewport.items():
        if key in VIEWPORT_NUMBER_KEYS:
            if not _is_number(value):
                raise InvalidRequestError(f"viewport.{key} must be a number.")
        elif key in VIEWPORT_BOOLEAN_KEYS:
            if not isinstance(value, bool):
                raise InvalidRequestError(f"viewport.{key} must be a boolean.")
        else:
            raise InvalidRequestError(f"viewport has no property '{key}'.")

    return Viewport.model_validate(viewport)


def validate_capture_options(options: Any) -> CaptureOptions:
    """Check the recognised capture options; unknown keys are passed over."""
    if options is None:
        return CaptureOptions()
    if not isinstance(options, dict):
        raise InvalidRequestError("options must be an object.")

    for key, value in options.items():
        if key == "format":
            if value not in CAPTURE_FORMATS:
                raise InvalidRequestError("options.format must be 'png' or 'jpeg'.")
        elif key == "quality":
            if not _is_number(value) or not 1 <= value <= 100:
                raise InvalidRequestError("options.quality must be a number between 1 and 100.")
        elif key in CAPTURE_BOOLEAN_KEYS:
            if not isinstance(value, bool):
                raise InvalidRequestError(f"options.{key} must be a boolean.")

    known = {key: options[key] for key in ("format", "quality", *CAPTURE_BOOLEAN_KEYS) if key in options}
    return CaptureOptions.model_validate(known)


def validate_screenshot_request(payload: Any) -> ScreenshotRequest:
    """Validate a decoded JSON body, stopping at the first failure.

    Raises:
        InvalidRequestError: naming the first offending field.
    """
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object.")

    url = validate_url(payload.get("url"))
    viewport = validate_viewport(payload.get("viewport"))
    options = validate_capture_options(payload.get("options"))
    return ScreenshotRequest(url=url, viewport=viewport, options=options)

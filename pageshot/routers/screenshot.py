import logging

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from pageshot.exceptions import InvalidRequestError, ResourceError, ScreenshotError
from pageshot.services.artifacts import serve_and_delete
from pageshot.services.screenshot import take_screenshot
from pageshot.services.validator import validate_screenshot_request

logger = logging.getLogger(__name__)

RATE_LIMIT = "60/minute"

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


@router.post(
    "/screenshot",
    response_class=FileResponse,
    summary="Capture a screenshot of a web page",
    description=(
        "Renders `url` in a shared headless Chromium browser and returns the "
        "captured image. Optional `viewport` (width, height, "
        "deviceScaleFactor, isMobile, hasTouch, isLandscape) and `options` "
        "(format, quality, fullPage, omitBackground) control the capture.\n\n"
        "**Note:** URLs containing `localhost`, `127.0.0.1`, `10.`, `172.` or "
        "`192.168.` anywhere in their text are rejected. This is a "
        "best-effort SSRF mitigation, not a network sandbox."
    ),
    responses={
        200: {"content": {"image/png": {}, "image/jpeg": {}}},
        400: {"description": "Invalid request or too many screenshots in progress."},
        500: {"description": "Browser launch, navigation or capture failed."},
    },
)
@limiter.limit(RATE_LIMIT)
async def screenshot(request: Request) -> FileResponse:
    try:
        payload = await request.json()
    except ValueError:
        raise InvalidRequestError("Request body must be valid JSON.")

    body = validate_screenshot_request(payload)
    logger.info("Screenshot request received", extra={"url": body.url})

    try:
        artifact = await take_screenshot(body)
    except ScreenshotError:
        raise
    except Exception as exc:
        logger.error("Screenshot failed for %s: %s", body.url, exc)
        raise ResourceError(str(exc) or exc.__class__.__name__) from exc

    return serve_and_delete(artifact)

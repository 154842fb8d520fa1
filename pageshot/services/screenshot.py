"""Screenshot execution pipeline: admission, browser, capture and cleanup."""

import asyncio
import logging

from playwright.async_api import BrowserContext

from pageshot.models.screenshot_request import ScreenshotRequest
from pageshot.services import artifacts
from pageshot.services.admission import AdmissionController, admission
from pageshot.services.browser_manager import BrowserManager, browser_manager

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT_MS = 30_000
CAPTURE_TIMEOUT_MS = 30_000
CONTEXT_CLOSE_TIMEOUT_S = 10.0


async def take_screenshot(
    request: ScreenshotRequest,
    *,
    manager: BrowserManager | None = None,
    gate: AdmissionController | None = None,
) -> artifacts.Artifact:
    """Render ``request.url`` and capture it into a temporary artifact.

    Each call gets its own browser context and page, closed before returning
    regardless of outcome. The artifact is deleted here on failure; on success
    the caller owns it and must delete it after sending.

    Raises:
        CapacityError: if the admission ceiling has been reached.
        ResourceError: if the browser could not be launched.
        playwright.async_api.Error: on navigation or capture failures.
    """
    manager = manager or browser_manager
    gate = gate or admission
    options = request.options

    with gate.slot():
        async with manager.lease() as browser:
            context = await browser.new_context(**request.context_options())
            path = artifacts.generate_name(options.format)
            captured = False
            try:
                page = await context.new_page()
                await page.goto(request.url, wait_until="load", timeout=NAVIGATION_TIMEOUT_MS)
                await page.screenshot(**options.to_screenshot_kwargs(path), timeout=CAPTURE_TIMEOUT_MS)
                captured = True
            finally:
                await _close_context(context)
                if not captured:
                    artifacts.remove_file(path)

    logger.info("Captured %s into %s", request.url, path.name)
    return artifacts.Artifact(path=path, media_type=options.media_type)


async def _close_context(context: BrowserContext) -> None:
    """Close the request's context (and its page); failures are only logged."""
    try:
        await asyncio.wait_for(context.close(), timeout=CONTEXT_CLOSE_TIMEOUT_S)
    except Exception as exc:
        logger.warning("Failed to close browser context: %s", exc)

"""Lifecycle of the single shared headless Chromium instance.

The browser is launched on first demand and closed again by a background
monitor once nothing has used it for ``IDLE_TIMEOUT_S`` seconds.
"""

import asyncio
import enum
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from playwright.async_api import Browser, Playwright, async_playwright

from pageshot.exceptions import ResourceError

logger = logging.getLogger(__name__)

IDLE_TIMEOUT_S = 30.0
IDLE_CHECK_INTERVAL_S = 1.0
CLOSE_TIMEOUT_S = 10.0

LAUNCH_ARGS = [
    # --no-sandbox is required when running as root inside a container
    # (Docker drops the user namespace needed by Chromium's sandbox).
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


class BrowserState(str, enum.Enum):
    ABSENT = "absent"
    STARTING = "starting"
    READY = "ready"
    CLOSING = "closing"


class BrowserManager:
    """Owns the process-wide browser handle.

    ``starting`` and ``closing`` transitions only happen while ``_lock`` is
    held, so concurrent callers never trigger two launches and never receive a
    browser that is being torn down.
    """

    def __init__(
        self,
        *,
        idle_timeout: float = IDLE_TIMEOUT_S,
        check_interval: float = IDLE_CHECK_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.idle_timeout = idle_timeout
        self.check_interval = check_interval
        self._clock = clock
        self._lock = asyncio.Lock()
        self._state = BrowserState.ABSENT
        self._browser: Browser | None = None
        self._playwright: Playwright | None = None
        self._monitor: asyncio.Task | None = None
        self._last_activity = clock()
        self._leases = 0

    @property
    def state(self) -> BrowserState:
        return self._state

    @property
    def active_leases(self) -> int:
        return self._leases

    def _touch(self) -> None:
        self._last_activity = self._clock()

    def _is_idle(self) -> bool:
        return self._leases == 0 and self._clock() - self._last_activity > self.idle_timeout

    async def acquire(self) -> Browser:
        """Return the shared browser, launching it if necessary.

        Raises:
            ResourceError: if Chromium could not be launched.
        """
        async with self._lock:
            self._touch()
            self._ensure_monitor()

            if self._browser is not None:
                if self._browser.is_connected():
                    return self._browser
                logger.warning("Shared browser disconnected – relaunching")
                await self._close()

            return await self._launch()

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[Browser]:
        """Hold the browser for one request; the idle monitor waits for release."""
        browser = await self.acquire()
        self._leases += 1
        try:
            yield browser
        finally:
            self._leases -= 1
            self._touch()

    async def shutdown(self) -> None:
        """Stop the idle monitor and close the browser (application shutdown)."""
        if self._monitor is not None and not self._monitor.done():
            self._monitor.cancel()
            try:
                await self._monitor
            except asyncio.CancelledError:
                pass
        self._monitor = None
        async with self._lock:
            await self._close()

    # ------------------------------------------------------------------
    # Internal helpers (call with _lock held)
    # ------------------------------------------------------------------

    async def _launch(self) -> Browser:
        self._state = BrowserState.STARTING
        logger.info("Launching headless Chromium")
        playwright = None
        try:
            playwright = await async_playwright().start()
            browser = await playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)
        except Exception as exc:
            self._state = BrowserState.ABSENT
            logger.error("Browser launch failed: %s", exc)
            if playwright is not None:
                await self._stop_playwright(playwright)
            raise ResourceError(f"Browser launch failed: {exc}") from exc

        self._browser = browser
        self._playwright = playwright
        self._state = BrowserState.READY
        return browser

    async def _close(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        if browser is None:
            self._state = BrowserState.ABSENT
            return

        self._state = BrowserState.CLOSING
        try:
            await asyncio.wait_for(browser.close(), timeout=CLOSE_TIMEOUT_S)
        except Exception as exc:
            # The handle is dropped either way; a fresh browser is launched on next demand.
            logger.warning("Failed to close browser cleanly: %s", exc)
        if playwright is not None:
            await self._stop_playwright(playwright)
        self._state = BrowserState.ABSENT

    @staticmethod
    async def _stop_playwright(playwright: Playwright) -> None:
        try:
            await asyncio.wait_for(playwright.stop(), timeout=CLOSE_TIMEOUT_S)
        except Exception as exc:
            logger.warning("Failed to stop Playwright driver: %s", exc)

    def _ensure_monitor(self) -> None:
        if self._monitor is None or self._monitor.done():
            self._monitor = asyncio.create_task(self._watch_idle())

    async def _watch_idle(self) -> None:
        """Close the browser after the idle threshold, then exit."""
        while True:
            await asyncio.sleep(self.check_interval)
            if not self._is_idle():
                continue
            async with self._lock:
                # A request may have arrived while we waited for the lock.
                if not self._is_idle():
                    continue
                if self._browser is not None:
                    logger.info("Browser idle for more than %.0fs – closing", self.idle_timeout)
                await self._close()
            return


browser_manager = BrowserManager()

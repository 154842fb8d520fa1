import logging
import logging.config
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from pageshot.exceptions import ScreenshotError
from pageshot.routers.screenshot import limiter, router as screenshot_router
from pageshot.services.admission import admission
from pageshot.services.artifacts import prepare_cache_dir
from pageshot.services.browser_manager import browser_manager

logging.config.dictConfig(
    {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
        },
        "root": {"level": "INFO", "handlers": ["console"]},
    }
)

logger = logging.getLogger(__name__)

PORT = int(os.environ.get("PORT", "8181"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    cache_dir = prepare_cache_dir()
    logger.info("Writing artifacts to %s", cache_dir.resolve())
    yield
    await browser_manager.shutdown()


app = FastAPI(
    title="pageshot – Web Page Screenshot API",
    description="Renders a URL in headless Chromium and returns the captured image.",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate-limiting state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ScreenshotError)
async def screenshot_error_handler(request: Request, exc: ScreenshotError) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=exc.status_code)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return PlainTextResponse("An unexpected error occurred.", status_code=500)


app.include_router(screenshot_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    return {
        "message": "Hello from pageshot",
        "browser": browser_manager.state.value,
        "active_pages": browser_manager.active_leases,
        "in_flight": admission.in_flight,
    }


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=PORT)

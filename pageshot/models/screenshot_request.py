from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_VIEWPORT_WIDTH = 800
DEFAULT_VIEWPORT_HEIGHT = 600


class Viewport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    width: int | float | None = None
    height: int | float | None = None
    device_scale_factor: int | float | None = Field(default=None, alias="deviceScaleFactor")
    is_mobile: bool | None = Field(default=None, alias="isMobile")
    has_touch: bool | None = Field(default=None, alias="hasTouch")
    is_landscape: bool | None = Field(default=None, alias="isLandscape")

    def to_context_options(self) -> dict:
        """Translate the viewport into ``Browser.new_context()`` keyword arguments.

        Missing dimensions fall back to 800x600. ``isLandscape`` swaps the
        dimensions when the height is the larger of the two.
        """
        width = int(self.width if self.width is not None else DEFAULT_VIEWPORT_WIDTH)
        height = int(self.height if self.height is not None else DEFAULT_VIEWPORT_HEIGHT)
        if self.is_landscape and height > width:
            width, height = height, width

        options: dict = {"viewport": {"width": width, "height": height}}
        if self.device_scale_factor is not None:
            options["device_scale_factor"] = self.device_scale_factor
        if self.is_mobile is not None:
            options["is_mobile"] = self.is_mobile
        if self.has_touch is not None:
            options["has_touch"] = self.has_touch
        return options


class CaptureOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    format: Literal["png", "jpeg"] = "png"
    quality: int | float | None = None
    """JPEG quality (1–100). Ignored for PNG captures."""
    full_page: bool = Field(default=False, alias="fullPage")
    omit_background: bool = Field(default=False, alias="omitBackground")

    @property
    def media_type(self) -> str:
        return f"image/{self.format}"

    def to_screenshot_kwargs(self, path: Path) -> dict:
        """Build the ``Page.screenshot()`` keyword arguments writing to *path*."""
        kwargs = {
            "path": str(path),
            "type": self.format,
            "full_page": self.full_page,
            "omit_background": self.omit_background,
        }
        if self.format == "jpeg" and self.quality is not None:
            kwargs["quality"] = int(self.quality)
        return kwargs


class ScreenshotRequest(BaseModel):
    url: str
    viewport: Viewport | None = None
    options: CaptureOptions = Field(default_factory=CaptureOptions)

    def context_options(self) -> dict:
        if self.viewport is None:
            return {}
        return self.viewport.to_context_options()

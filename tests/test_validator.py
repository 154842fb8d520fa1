"""Tests for validator.validate_screenshot_request and its sub-validators."""

import pytest

from pageshot.exceptions import InvalidRequestError
from pageshot.services.validator import (
    validate_capture_options,
    validate_screenshot_request,
    validate_url,
    validate_viewport,
)


class TestValidateUrl:
    def test_accepts_http_and_https(self):
        assert validate_url("http://example.com") == "http://example.com"
        assert validate_url("https://example.com/path?q=1") == "https://example.com/path?q=1"

    def test_rejects_non_string(self):
        with pytest.raises(InvalidRequestError, match="url must be a string"):
            validate_url(123)

    def test_rejects_missing(self):
        with pytest.raises(InvalidRequestError, match="url must be a string"):
            validate_url(None)

    @pytest.mark.parametrize("url", ["ftp://example.com", "example.com", "javascript:alert(1)", "file:///etc/passwd"])
    def test_rejects_other_schemes(self, url):
        with pytest.raises(InvalidRequestError, match="scheme"):
            validate_url(url)

    def test_rejects_url_without_host(self):
        with pytest.raises(InvalidRequestError, match="host"):
            validate_url("http://")

    @pytest.mark.parametrize(
        "url",
        [
            "http://localhost:8000/",
            "http://127.0.0.1/",
            "http://10.0.0.1/admin",
            "http://172.16.0.5/",
            "http://192.168.1.5/",
            "https://user:pw@192.168.0.1/",
            "http://LOCALHOST/",
            "http://127.0.0.1\\@example.com/",
            "http://localhost./",
            "http://127.0.0.1./",
            "http://localhost.localdomain/",
        ],
    )
    def test_rejects_blocked_hosts(self, url):
        with pytest.raises(InvalidRequestError, match="illegal address"):
            validate_url(url)

    def test_blocked_fragment_anywhere_in_url_is_rejected(self):
        """The raw URL text is searched, so a public host is not enough."""
        with pytest.raises(InvalidRequestError, match="illegal address"):
            validate_url("http://example.com/?next=http://10.0.0.1/")

    def test_public_ip_is_allowed(self):
        assert validate_url("http://93.184.216.34/")


class TestValidateViewport:
    def test_absent_viewport(self):
        assert validate_viewport(None) is None

    def test_full_viewport(self):
        viewport = validate_viewport(
            {
                "width": 1024,
                "height": 768.5,
                "deviceScaleFactor": 2,
                "isMobile": True,
                "hasTouch": False,
                "isLandscape": True,
            }
        )
        assert viewport.width == 1024
        assert viewport.device_scale_factor == 2
        assert viewport.is_mobile is True
        assert viewport.has_touch is False

    def test_rejects_non_object(self):
        with pytest.raises(InvalidRequestError, match="viewport must be an object"):
            validate_viewport([800, 600])

    def test_rejects_string_width(self):
        with pytest.raises(InvalidRequestError, match="width"):
            validate_viewport({"width": "800"})

    def test_rejects_boolean_as_number(self):
        with pytest.raises(InvalidRequestError, match="height"):
            validate_viewport({"height": True})

    def test_rejects_number_as_boolean(self):
        with pytest.raises(InvalidRequestError, match="isMobile"):
            validate_viewport({"isMobile": 1})

    def test_rejects_unknown_key(self):
        with pytest.raises(InvalidRequestError, match="zoom"):
            validate_viewport({"zoom": 2})

    def test_checks_every_key(self):
        """A valid first key does not short-circuit the remaining checks."""
        with pytest.raises(InvalidRequestError, match="hasTouch"):
            validate_viewport({"width": 800, "hasTouch": "yes"})

    def test_reports_first_failure_only(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            validate_viewport({"width": "a", "height": "b"})
        assert "width" in str(exc_info.value)
        assert "height" not in str(exc_info.value)


class TestValidateCaptureOptions:
    def test_defaults(self):
        options = validate_capture_options(None)
        assert options.format == "png"
        assert options.quality is None
        assert options.full_page is False
        assert options.omit_background is False

    def test_jpeg_with_quality(self):
        options = validate_capture_options({"format": "jpeg", "quality": 80, "fullPage": True})
        assert options.format == "jpeg"
        assert options.quality == 80
        assert options.full_page is True

    def test_rejects_non_object(self):
        with pytest.raises(InvalidRequestError, match="options must be an object"):
            validate_capture_options("png")

    @pytest.mark.parametrize("fmt", ["gif", "PNG", "webp", 1])
    def test_rejects_unknown_format(self, fmt):
        with pytest.raises(InvalidRequestError, match="format"):
            validate_capture_options({"format": fmt})

    @pytest.mark.parametrize("quality", [0, 150, -1, "80", True])
    def test_rejects_bad_quality(self, quality):
        with pytest.raises(InvalidRequestError, match="quality"):
            validate_capture_options({"quality": quality})

    @pytest.mark.parametrize("quality", [1, 100, 55.5])
    def test_accepts_quality_bounds(self, quality):
        assert validate_capture_options({"quality": quality}).quality == quality

    def test_rejects_non_boolean_flags(self):
        with pytest.raises(InvalidRequestError, match="omitBackground"):
            validate_capture_options({"omitBackground": "true"})

    def test_ignores_unknown_keys(self):
        options = validate_capture_options({"clip": {"x": 0}, "format": "jpeg"})
        assert options.format == "jpeg"


class TestValidateScreenshotRequest:
    def test_minimal_request(self):
        request = validate_screenshot_request({"url": "http://example.com"})
        assert request.url == "http://example.com"
        assert request.viewport is None
        assert request.options.format == "png"

    def test_null_optionals_are_absent(self):
        request = validate_screenshot_request({"url": "http://example.com", "viewport": None, "options": None})
        assert request.viewport is None
        assert request.context_options() == {}

    def test_rejects_non_object_body(self):
        with pytest.raises(InvalidRequestError, match="JSON object"):
            validate_screenshot_request(["http://example.com"])

    def test_url_checked_before_viewport(self):
        with pytest.raises(InvalidRequestError, match="illegal address"):
            validate_screenshot_request({"url": "http://127.0.0.1/", "viewport": {"width": "x"}})


class TestPlaywrightMapping:
    def test_context_options_defaults_missing_dimension(self):
        request = validate_screenshot_request({"url": "http://example.com", "viewport": {"width": 1024}})
        assert request.context_options() == {"viewport": {"width": 1024, "height": 600}}

    def test_context_options_landscape_swaps(self):
        request = validate_screenshot_request(
            {"url": "http://example.com", "viewport": {"width": 375, "height": 812, "isLandscape": True}}
        )
        assert request.context_options()["viewport"] == {"width": 812, "height": 375}

    def test_context_options_device_flags(self):
        request = validate_screenshot_request(
            {"url": "http://example.com", "viewport": {"deviceScaleFactor": 3, "isMobile": True, "hasTouch": True}}
        )
        options = request.context_options()
        assert options["device_scale_factor"] == 3
        assert options["is_mobile"] is True
        assert options["has_touch"] is True

    def test_png_drops_quality(self, tmp_path):
        options = validate_capture_options({"quality": 50})
        kwargs = options.to_screenshot_kwargs(tmp_path / "a.png")
        assert "quality" not in kwargs
        assert kwargs["type"] == "png"

    def test_jpeg_keeps_quality(self, tmp_path):
        options = validate_capture_options({"format": "jpeg", "quality": 42.7, "omitBackground": True})
        kwargs = options.to_screenshot_kwargs(tmp_path / "a.jpeg")
        assert kwargs["quality"] == 42
        assert kwargs["omit_background"] is True
        assert options.media_type == "image/jpeg"

"""
Normalizer Tests
================

Data URI parsing, format sniffing and canonical RGBA decoding.
"""

import base64

import numpy as np
import pytest
from PIL import Image

from design_export.errors import InputValidationError, ProcessingError, UnsupportedFormatError
from design_export.imaging import normalizer
from design_export.imaging.normalizer import (
    EMPTY_PAYLOAD_MESSAGE,
    SVG_RASTER_AVAILABLE,
    normalize_image,
    parse_data_uri,
    rasterize_svg,
    sniff_format,
    svg_intrinsic_size,
)
from design_export.models.image import ImageFormat

from conftest import encode_image, to_data_uri


requires_cairo = pytest.mark.skipif(not SVG_RASTER_AVAILABLE, reason="cairosvg/libcairo not available")


class TestParseDataUri:
    """Tests for data URI validation."""

    def test_empty_payload(self):
        """An empty payload is rejected with the fixed message."""
        with pytest.raises(InputValidationError) as exc_info:
            parse_data_uri("data:image/png;base64,")
        assert exc_info.value.message == EMPTY_PAYLOAD_MESSAGE
        assert exc_info.value.status_code == 400

    def test_invalid_base64(self):
        with pytest.raises(InputValidationError) as exc_info:
            parse_data_uri("data:image/png;base64,!!!not-base64!!!")
        assert exc_info.value.message == EMPTY_PAYLOAD_MESSAGE

    @pytest.mark.parametrize("value", ["http://example.com/design.png", "https://cdn.example.com/a.svg"])
    def test_remote_url_rejected(self, value):
        """Remote URLs are rejected explicitly, never fetched."""
        with pytest.raises(InputValidationError) as exc_info:
            parse_data_uri(value)
        assert "Remote image URLs are not supported" in exc_info.value.message

    def test_missing_prefix(self):
        with pytest.raises(InputValidationError) as exc_info:
            parse_data_uri("iVBORw0KGgoAAAANSUhEUg==")
        assert "Invalid image format" in exc_info.value.message

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_value(self, value):
        with pytest.raises(InputValidationError) as exc_info:
            parse_data_uri(value)
        assert exc_info.value.message == "Missing required field: imageData"

    def test_mime_and_payload(self):
        parsed = parse_data_uri("data:Image/PNG;base64," + base64.b64encode(b"abc").decode())
        assert parsed.mime_type == "image/png"
        assert parsed.payload == b"abc"

    def test_stripped_padding_tolerated(self):
        parsed = parse_data_uri("data:text/plain;base64,YWI")
        assert parsed.payload == b"ab"


class TestSniffFormat:
    """Tests for byte-signature classification."""

    def test_png(self):
        assert sniff_format(encode_image(Image.new("RGBA", (2, 2)))) is ImageFormat.PNG

    def test_jpeg(self):
        assert sniff_format(encode_image(Image.new("RGB", (2, 2)), "JPEG")) is ImageFormat.JPEG

    def test_webp(self):
        assert sniff_format(encode_image(Image.new("RGB", (2, 2)), "WEBP")) is ImageFormat.WEBP

    def test_svg_variants(self, sample_svg):
        assert sniff_format(sample_svg) is ImageFormat.SVG
        assert sniff_format(b'  <svg xmlns="http://www.w3.org/2000/svg"/>') is ImageFormat.SVG
        assert sniff_format(b"\xef\xbb\xbf" + sample_svg) is ImageFormat.SVG
        assert sniff_format(b"<!DOCTYPE svg><svg/>") is ImageFormat.SVG

    def test_unknown(self):
        assert sniff_format(b"hello world") is ImageFormat.UNKNOWN
        assert sniff_format(b"<html><body/></html>") is ImageFormat.UNKNOWN


class TestNormalizeImage:
    """Tests for the full normalization path."""

    def test_png_round_trip(self, make_data_uri):
        image = normalize_image(make_data_uri(12, 7, (10, 20, 30, 128)))
        assert image.size == (12, 7)
        assert image.source_format is ImageFormat.PNG
        assert tuple(image.pixels[0, 0]) == (10, 20, 30, 128)

    def test_jpeg_gets_opaque_alpha(self, make_data_uri):
        image = normalize_image(make_data_uri(16, 16, (200, 100, 50, 255), fmt="JPEG"))
        assert image.source_format is ImageFormat.JPEG
        assert image.channels == 4
        assert np.all(image.pixels[..., 3] == 255)

    def test_pixels_read_only(self, make_data_uri):
        image = normalize_image(make_data_uri())
        assert not image.pixels.flags.writeable

    def test_corrupted_png_names_mime_type(self):
        payload = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
        with pytest.raises(UnsupportedFormatError) as exc_info:
            normalize_image(to_data_uri(payload, "image/png"))
        assert exc_info.value.mime_type == "image/png"
        assert "image/png" in exc_info.value.message
        assert exc_info.value.status_code == 400

    def test_unknown_bytes(self):
        with pytest.raises(UnsupportedFormatError):
            normalize_image(to_data_uri(b"definitely not an image", "image/png"))

    @requires_cairo
    def test_svg_mislabeled_as_png(self, sample_svg):
        """Content wins over the declared MIME type."""
        image = normalize_image(to_data_uri(sample_svg, "image/png"))
        assert image.source_format is ImageFormat.SVG
        assert image.width == 2048
        assert abs(image.height - 1024) <= 1

    @requires_cairo
    def test_svg_custom_raster_size(self, sample_svg):
        image = normalize_image(to_data_uri(sample_svg, "image/svg+xml"), svg_raster_size=400)
        assert image.width == 400
        assert abs(image.height - 200) <= 1

    @requires_cairo
    def test_malformed_svg(self):
        with pytest.raises(UnsupportedFormatError):
            normalize_image(to_data_uri(b"<svg><rect", "image/svg+xml"))

    @requires_cairo
    def test_portrait_svg_fits_by_height(self):
        svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="100" height="200"><rect width="100" height="200"/></svg>'
        image = normalize_image(to_data_uri(svg, "image/svg+xml"))
        assert image.height == 2048
        assert abs(image.width - 1024) <= 1

    @requires_cairo
    def test_very_tall_svg(self):
        svg = b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 10000"><rect width="100" height="10000"/></svg>'
        image = normalize_image(to_data_uri(svg, "image/svg+xml"))
        assert image.height == 2048
        assert abs(image.width - 20) <= 1

    def test_svg_routed_by_content(self, monkeypatch, sample_svg):
        """An SVG declared as PNG goes to the SVG rasterizer, not the raster decoder."""
        calls = []

        def _fake_rasterize(payload, size=2048, mime_type=""):
            calls.append((payload, size, mime_type))
            return Image.new("RGBA", (40, 20), (1, 2, 3, 255))

        monkeypatch.setattr(normalizer, "rasterize_svg", _fake_rasterize)
        image = normalize_image(to_data_uri(sample_svg, "image/png"), svg_raster_size=512)

        assert calls == [(sample_svg, 512, "image/png")]
        assert image.source_format is ImageFormat.SVG
        assert image.size == (40, 20)

    def test_raster_routed_to_decoder(self, monkeypatch, make_data_uri):
        def _fail(*args, **kwargs):
            raise AssertionError("raster input must not be rasterized as SVG")

        monkeypatch.setattr(normalizer, "rasterize_svg", _fail)
        assert normalize_image(make_data_uri(5, 5, mime_type="image/svg+xml")).size == (5, 5)


class TestInputPixelLimit:
    """Tests for the configured input size limit."""

    def test_over_limit(self, make_data_uri):
        with pytest.raises(InputValidationError, match="too large"):
            normalize_image(make_data_uri(12, 12), max_input_pixels=100)

    def test_at_limit(self, make_data_uri):
        assert normalize_image(make_data_uri(10, 10), max_input_pixels=100).size == (10, 10)

    def test_limit_is_not_global(self, make_data_uri):
        before = Image.MAX_IMAGE_PIXELS
        with pytest.raises(InputValidationError):
            normalize_image(make_data_uri(12, 12), max_input_pixels=100)
        assert Image.MAX_IMAGE_PIXELS == before


class FakeCairo:
    """Stands in for cairosvg.svg2png and records the sizing arguments."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def svg2png(self, bytestring=None, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        width, height = kwargs.get("output_width"), kwargs.get("output_height")
        if width:
            size = (width, width // 2)
        else:
            size = (height // 2, height)
        return encode_image(Image.new("RGBA", size, (0, 0, 0, 255)))


class TestRasterizeSvg:
    """Sizing and error mapping of the SVG rasterizer."""

    @pytest.fixture
    def fake_cairo(self, monkeypatch):
        def _install(intrinsic=(200, 100), error=None):
            fake = FakeCairo(error)
            monkeypatch.setattr(normalizer, "SVG_RASTER_AVAILABLE", True)
            monkeypatch.setattr(normalizer, "_cairosvg", fake)
            monkeypatch.setattr(normalizer, "svg_intrinsic_size", lambda payload: intrinsic)
            return fake

        return _install

    def test_landscape_renders_once_by_width(self, fake_cairo, sample_svg):
        fake = fake_cairo(intrinsic=(200, 100))
        image = rasterize_svg(sample_svg, size=2048)
        assert fake.calls == [{"output_width": 2048}]
        assert image.size == (2048, 1024)

    def test_portrait_renders_once_by_height(self, fake_cairo, sample_svg):
        fake = fake_cairo(intrinsic=(100, 10000))
        image = rasterize_svg(sample_svg, size=2048)
        assert fake.calls == [{"output_height": 2048}]
        assert image.height == 2048

    def test_resource_failure_is_processing_error(self, fake_cairo, sample_svg):
        fake_cairo(error=MemoryError())
        with pytest.raises(ProcessingError):
            rasterize_svg(sample_svg)

    def test_render_value_error_is_unsupported(self, fake_cairo, sample_svg):
        fake_cairo(error=ValueError("The SVG size is undefined"))
        with pytest.raises(UnsupportedFormatError):
            rasterize_svg(sample_svg, mime_type="image/svg+xml")

    def test_unavailable(self, monkeypatch, sample_svg):
        monkeypatch.setattr(normalizer, "SVG_RASTER_AVAILABLE", False)
        with pytest.raises(ProcessingError):
            rasterize_svg(sample_svg)

    @requires_cairo
    def test_intrinsic_size(self, sample_svg):
        assert svg_intrinsic_size(sample_svg) == (200, 100)
        viewbox_only = b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 30 60"/>'
        assert svg_intrinsic_size(viewbox_only) == (30, 60)

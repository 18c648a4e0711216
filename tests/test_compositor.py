"""
Compositor Tests
================
"""

import io

import numpy as np
import pytest
from PIL import Image

from design_export.errors import ProcessingError
from design_export.imaging.compositor import (
    composite,
    create_thumbnail,
    decode_png,
    encode_export,
    encode_png,
    normalize_to_pod_size,
)
from design_export.models.image import OutputSpec
from design_export.models.placement import CanvasPlacement


def _open(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


class TestPngCodec:

    def test_round_trip_identity(self, noisy_raster):
        decoded = decode_png(encode_png(noisy_raster))
        assert np.array_equal(decoded.pixels, noisy_raster.pixels)

    def test_decode_garbage(self):
        with pytest.raises(ProcessingError):
            decode_png(b"not a png")

    def test_export_dpi_tag(self, noisy_raster):
        result = encode_export(noisy_raster, dpi=300)
        image = _open(result.data)
        assert image.size == (32, 24)
        assert image.info["dpi"][0] == pytest.approx(300, abs=0.5)
        assert result.dimensions() == {"width": 32, "height": 24, "dpi": 300}

    def test_data_uri(self, make_raster):
        result = encode_export(make_raster())
        assert result.to_data_uri().startswith("data:image/png;base64,")


class TestComposite:
    """Tests for canvas compositing."""

    def test_design_placed_on_transparent_canvas(self, make_raster):
        result = composite(
            make_raster(10, 10, (255, 0, 0, 255)),
            CanvasPlacement(left=5, top=5, width=10, height=10),
            OutputSpec(20, 20, dpi=300),
        )
        image = _open(result.data)
        assert image.mode == "RGBA"
        assert image.size == (20, 20)
        assert image.getpixel((0, 0))[3] == 0
        assert image.getpixel((4, 10))[3] == 0
        assert image.getpixel((10, 10)) == (255, 0, 0, 255)
        assert image.getpixel((14, 14)) == (255, 0, 0, 255)
        assert image.getpixel((15, 15))[3] == 0
        assert image.info["dpi"][0] == pytest.approx(300, abs=0.5)

    def test_resizes_into_footprint(self, make_raster):
        result = composite(
            make_raster(10, 10, (0, 128, 255, 255)),
            CanvasPlacement(left=0, top=0, width=30, height=30),
            OutputSpec(40, 40),
        )
        image = _open(result.data)
        assert np.allclose(image.getpixel((15, 15)), (0, 128, 255, 255), atol=1)
        assert image.getpixel((35, 35))[3] == 0
        assert (result.width, result.height) == (40, 40)

    def test_placement_outside_canvas(self, make_raster):
        with pytest.raises(ProcessingError):
            composite(
                make_raster(),
                CanvasPlacement(left=15, top=15, width=10, height=10),
                OutputSpec(20, 20),
            )


class TestPodNormalize:

    def test_fit_and_center(self, make_raster):
        result = normalize_to_pod_size(
            make_raster(200, 100, (20, 200, 120, 255)),
            OutputSpec(450, 540),
        )
        image = _open(result.data)
        assert image.size == (450, 540)

        alpha = np.array(image)[..., 3]
        rows = np.flatnonzero(alpha.max(axis=1))
        cols = np.flatnonzero(alpha.max(axis=0))
        assert (cols[0], cols[-1]) == (9, 9 + 432 - 1)
        assert (rows[0], rows[-1]) == (162, 162 + 216 - 1)
        assert image.getpixel((225, 270))[3] == 255


class TestThumbnail:

    def test_downscales_to_bounding_box(self, make_raster):
        result = create_thumbnail(make_raster(800, 400), max_size=400)
        assert (result.width, result.height) == (400, 200)
        assert result.mime_type == "image/webp"
        assert result.to_data_uri().startswith("data:image/webp;base64,")
        assert _open(result.data).format == "WEBP"

    def test_never_enlarges(self, make_raster):
        result = create_thumbnail(make_raster(100, 50), max_size=400)
        assert (result.width, result.height) == (100, 50)

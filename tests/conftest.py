"""
Test Configuration
==================

Pytest fixtures and test configuration for the design export service.
"""

import base64
import io

import numpy as np
import pytest
from PIL import Image


SAMPLE_SVG = (
    b'<?xml version="1.0" encoding="UTF-8"?>\n'
    b'<svg xmlns="http://www.w3.org/2000/svg" width="200" height="100" viewBox="0 0 200 100">'
    b'<rect x="0" y="0" width="200" height="100" fill="#3366cc"/>'
    b"</svg>"
)


def encode_image(image: Image.Image, fmt: str = "PNG") -> bytes:
    """Encode a Pillow image to bytes."""
    with io.BytesIO() as buffer:
        image.save(buffer, format=fmt)
        return buffer.getvalue()


def to_data_uri(payload: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(payload).decode('ascii')}"


def decode_data_uri(value: str) -> Image.Image:
    """Open the image carried by a data URI returned from the API."""
    payload = base64.b64decode(value.split(",", 1)[1])
    image = Image.open(io.BytesIO(payload))
    image.load()
    return image


@pytest.fixture
def make_raster():
    """Factory for solid-color RasterImages."""
    from design_export.models.image import RasterImage

    def _make(width=10, height=10, color=(255, 0, 0, 255)):
        pixels = np.zeros((height, width, 4), dtype=np.uint8)
        pixels[...] = color
        return RasterImage(pixels=pixels)

    return _make


@pytest.fixture
def make_data_uri():
    """Factory for solid-color data URIs encoded with Pillow."""

    def _make(width=10, height=10, color=(255, 0, 0, 255), fmt="PNG", mime_type=None):
        if fmt == "JPEG":
            image = Image.new("RGB", (width, height), color[:3])
        else:
            image = Image.new("RGBA", (width, height), color)
        return to_data_uri(encode_image(image, fmt), mime_type or f"image/{fmt.lower()}")

    return _make


@pytest.fixture
def noisy_raster():
    """Seeded random RGBA image with varied alpha."""
    from design_export.models.image import RasterImage

    rng = np.random.default_rng(42)
    pixels = rng.integers(0, 256, size=(24, 32, 4), dtype=np.uint8)
    return RasterImage(pixels=pixels)


@pytest.fixture
def sample_svg():
    """A 200x100 SVG document."""
    return SAMPLE_SVG

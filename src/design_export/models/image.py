"""
Image Models
============

Internal value types passed between the export pipeline stages.

These are plain frozen dataclasses: created, transformed and discarded
within a single request. Pixel buffers are marked read-only so a stage can
never modify the buffer it was handed.
"""

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np


class ImageFormat(str, Enum):
    """Encoded format detected from the payload bytes."""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"
    SVG = "svg"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class DataUri:
    """
    Parsed `data:<mime>;base64,<payload>` string.

    Attributes:
        mime_type: Declared MIME type (may be empty or wrong)
        payload: Decoded payload bytes (never empty)
    """

    mime_type: str
    payload: bytes

    def __post_init__(self) -> None:
        if not self.payload:
            raise ValueError("payload must not be empty")

    def __repr__(self) -> str:
        return f"DataUri(mime_type={self.mime_type!r}, bytes={len(self.payload)})"


@dataclass(frozen=True, slots=True)
class RasterImage:
    """
    Decoded RGBA pixel buffer.

    Attributes:
        pixels: Array of shape (height, width, 4), dtype uint8, read-only
        source_format: Format the buffer was decoded from
    """

    pixels: np.ndarray
    source_format: ImageFormat = ImageFormat.PNG

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"pixels must be (H, W, 4), got {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"pixels must be uint8, got {self.pixels.dtype}")
        if self.pixels.shape[0] <= 0 or self.pixels.shape[1] <= 0:
            raise ValueError("width and height must be positive")
        self.pixels.setflags(write=False)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height), the order Pillow uses."""
        return self.width, self.height

    def __repr__(self) -> str:
        return (
            f"RasterImage({self.width}x{self.height}, "
            f"source={self.source_format.value})"
        )


@dataclass(frozen=True, slots=True)
class OutputSpec:
    """
    Physical output canvas requested by the caller.

    Attributes:
        width_px: Canvas width in pixels
        height_px: Canvas height in pixels
        dpi: Resolution tag written to the file (does not resample)
    """

    width_px: int
    height_px: int
    dpi: int = 300

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.width_px <= 0 or self.height_px <= 0:
            raise ValueError("output dimensions must be positive")
        if self.dpi <= 0:
            raise ValueError("dpi must be positive")


@dataclass(frozen=True, slots=True)
class ExportResult:
    """
    Encoded output artifact.

    Attributes:
        data: Encoded file bytes
        width: Pixel width of the encoded image
        height: Pixel height of the encoded image
        dpi: Declared resolution, if the format carries one
        mime_type: MIME type of `data`
    """

    data: bytes
    width: int
    height: int
    dpi: Optional[int] = None
    mime_type: str = "image/png"

    def to_data_uri(self) -> str:
        """Encode as a `data:<mime>;base64,...` string."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def dimensions(self) -> dict:
        """Export dimensions for the API response."""
        return {"width": self.width, "height": self.height, "dpi": self.dpi}

    def __repr__(self) -> str:
        return (
            f"ExportResult({self.width}x{self.height}, dpi={self.dpi}, "
            f"{self.mime_type}, {len(self.data)} bytes)"
        )

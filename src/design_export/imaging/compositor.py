"""
Compositor
==========

Produce the final print-ready artifact.

Responsibilities:
    - PNG encode/decode between Pillow and RasterImage buffers
    - Lanczos resize of the design into its computed footprint
    - Normal alpha compositing onto a fully transparent canvas
    - 300 DPI resolution tag (metadata only, pixel count is unchanged)
    - POD normalization and WebP thumbnails built on the same primitives

Every failure surfaces as ProcessingError; nothing partial is returned.
"""

import io
import logging
from typing import Optional, Union

import numpy as np
from PIL import Image, ImageFilter

from design_export.errors import ProcessingError
from design_export.models.image import ExportResult, OutputSpec, RasterImage
from design_export.models.placement import CanvasPlacement


logger = logging.getLogger(__name__)


def to_pil(image: RasterImage) -> Image.Image:
    """Wrap a RasterImage buffer as an RGBA Pillow image (copies)."""
    # (H, W, 4) uint8 arrays are read as RGBA
    return Image.fromarray(np.array(image.pixels, dtype=np.uint8))


def from_pil(image: Image.Image, source: Optional[RasterImage] = None) -> RasterImage:
    """Convert a Pillow image to a RasterImage, keeping the source format tag."""
    pixels = np.array(image.convert("RGBA"), dtype=np.uint8)
    if source is not None:
        return RasterImage(pixels=pixels, source_format=source.source_format)
    return RasterImage(pixels=pixels)


def encode_png(
    image: Union[Image.Image, RasterImage],
    dpi: Optional[int] = None,
    compress_level: int = 6,
) -> bytes:
    """
    Encode an image as RGBA PNG.

    Args:
        image: Pillow image or RasterImage
        dpi: Resolution written to the pHYs chunk (None writes none)
        compress_level: zlib level 0-9

    Returns:
        PNG file bytes
    """
    if isinstance(image, RasterImage):
        image = to_pil(image)
    elif image.mode != "RGBA":
        image = image.convert("RGBA")

    save_kwargs = {"format": "PNG", "compress_level": compress_level}
    if dpi is not None:
        save_kwargs["dpi"] = (dpi, dpi)

    with io.BytesIO() as buffer:
        image.save(buffer, **save_kwargs)
        return buffer.getvalue()


def decode_png(data: bytes) -> RasterImage:
    """
    Decode PNG bytes into a RasterImage.

    Raises:
        ProcessingError: Bytes are not a readable PNG
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return from_pil(image)
    except Exception as e:
        raise ProcessingError(f"Failed to decode PNG buffer: {e}")


def encode_export(image: RasterImage, dpi: int = 300, compress_level: int = 6) -> ExportResult:
    """
    Encode a design at its native size.

    Raises:
        ProcessingError: Encoding failed
    """
    try:
        data = encode_png(image, dpi=dpi, compress_level=compress_level)
    except Exception as e:
        raise ProcessingError(f"Failed to encode PNG: {e}")

    logger.info(f"Encoded {image.width}x{image.height} PNG ({len(data) / 1024:.1f} KB)")
    return ExportResult(data=data, width=image.width, height=image.height, dpi=dpi)


def _sharpen_rgb(image: Image.Image, radius: float) -> Image.Image:
    """Unsharp-mask the color bands only; alpha edges stay as resampled."""
    alpha = image.getchannel("A")
    rgb = image.convert("RGB").filter(
        ImageFilter.UnsharpMask(radius=radius, percent=100, threshold=2)
    )
    rgb.putalpha(alpha)
    return rgb


def composite(
    image: RasterImage,
    placement: CanvasPlacement,
    output: OutputSpec,
    compress_level: int = 6,
    sharpen_radius: float = 0.0,
) -> ExportResult:
    """
    Place a design on a transparent canvas and encode it.

    Args:
        image: Filtered design
        placement: Target rectangle on the canvas (must be contained)
        output: Canvas size and DPI tag
        compress_level: zlib level 0-9
        sharpen_radius: Unsharp mask radius after resizing (0 disables)

    Returns:
        ExportResult with PNG bytes of exactly output.width_px x output.height_px

    Raises:
        ProcessingError: Placement outside the canvas, or any resize,
            composite or encode failure
    """
    if not placement.contained_in(output.width_px, output.height_px):
        raise ProcessingError(
            f"Placement {placement.to_dict()} exceeds canvas "
            f"{output.width_px}x{output.height_px}"
        )

    try:
        design = to_pil(image)
        if design.size != (placement.width, placement.height):
            design = design.resize((placement.width, placement.height), Image.LANCZOS)
        if sharpen_radius > 0:
            design = _sharpen_rgb(design, sharpen_radius)

        canvas = Image.new("RGBA", (output.width_px, output.height_px), (0, 0, 0, 0))
        canvas.alpha_composite(design, dest=(placement.left, placement.top))

        data = encode_png(canvas, dpi=output.dpi, compress_level=compress_level)
    except Exception as e:
        raise ProcessingError(f"Failed to composite design: {e}")

    logger.info(
        f"Composited {image.width}x{image.height} -> "
        f"{placement.width}x{placement.height} at ({placement.left}, {placement.top}) "
        f"on {output.width_px}x{output.height_px} @ {output.dpi} DPI "
        f"({len(data) / 1024 / 1024:.2f} MB)"
    )
    return ExportResult(
        data=data,
        width=output.width_px,
        height=output.height_px,
        dpi=output.dpi,
    )


def normalize_to_pod_size(
    image: RasterImage,
    output: OutputSpec,
    fill_fraction: float = 0.96,
    sharpen_radius: float = 1.2,
    compress_level: int = 6,
) -> ExportResult:
    """
    Fit a design inside a POD canvas and center it.

    The design is scaled (up or down) to the largest size that fits inside
    fill_fraction of the canvas, sharpened, and centered on a transparent
    background.

    Args:
        image: Design to normalize
        output: POD canvas (e.g. 4500x5400 @ 300 DPI)
        fill_fraction: Share of each canvas axis the design may occupy
        sharpen_radius: Unsharp mask radius (0 disables)
        compress_level: zlib level 0-9

    Returns:
        ExportResult of the full canvas
    """
    scale = min(
        output.width_px * fill_fraction / image.width,
        output.height_px * fill_fraction / image.height,
    )
    width = max(1, min(output.width_px, round(image.width * scale)))
    height = max(1, min(output.height_px, round(image.height * scale)))

    placement = CanvasPlacement(
        left=(output.width_px - width) // 2,
        top=(output.height_px - height) // 2,
        width=width,
        height=height,
    )
    logger.info(
        f"POD normalize {image.width}x{image.height} -> {width}x{height} "
        f"(scale {scale:.3f})"
    )
    return composite(
        image,
        placement,
        output,
        compress_level=compress_level,
        sharpen_radius=sharpen_radius,
    )


def create_thumbnail(image: RasterImage, max_size: int = 400, quality: int = 80) -> ExportResult:
    """
    Encode a WebP thumbnail that fits inside max_size x max_size.

    Smaller images are never enlarged.

    Raises:
        ProcessingError: Resize or encode failure
    """
    try:
        thumb = to_pil(image)
        thumb.thumbnail((max_size, max_size), Image.LANCZOS)
        with io.BytesIO() as buffer:
            thumb.save(buffer, format="WEBP", quality=quality)
            data = buffer.getvalue()
    except Exception as e:
        raise ProcessingError(f"Failed to create thumbnail: {e}")

    return ExportResult(
        data=data,
        width=thumb.width,
        height=thumb.height,
        mime_type="image/webp",
    )

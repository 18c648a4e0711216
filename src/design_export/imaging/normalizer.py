"""
Image Normalizer
================

Decode an uploaded data URI into a canonical RGBA raster.

Design Rules:
    - This is the ONLY place in the codebase that decodes uploaded images
    - Format is detected from the payload bytes; the declared MIME type is
      used only when the bytes are inconclusive
    - SVG is rasterized to fit a fixed working box before anything else
    - Output is always re-encoded to PNG and read back, so downstream
      stages see one channel layout and the true pixel dimensions
    - Fails fast with typed errors; remote URLs are never fetched
"""

import base64
import binascii
import io
import logging
import re
from typing import Optional, Tuple
from xml.etree.ElementTree import ParseError

from PIL import Image

from design_export.errors import (
    InputValidationError,
    ProcessingError,
    UnsupportedFormatError,
)
from design_export.imaging.compositor import decode_png, encode_png
from design_export.models.image import DataUri, ImageFormat, RasterImage

# CairoSVG needs libcairo at runtime. Import lazily so the service can
# still start without it; SVG input then fails with a clear error.
try:
    import cairosvg as _cairosvg
    from cairosvg.helpers import node_format as _svg_node_format
    from cairosvg.parser import Tree as _SvgTree
    SVG_RASTER_AVAILABLE = True
    _SVG_IMPORT_ERROR: Optional[str] = None
except (ImportError, OSError) as e:
    _cairosvg = None
    _svg_node_format = None
    _SvgTree = None
    SVG_RASTER_AVAILABLE = False
    _SVG_IMPORT_ERROR = f"cairosvg import failed: {e}"


logger = logging.getLogger(__name__)


EMPTY_PAYLOAD_MESSAGE = "Image data is empty or corrupted."

_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w.+-]+=[\w.+-]+)*;base64,",
    re.IGNORECASE,
)
_REMOTE_URL_RE = re.compile(r"^(https?|ftp)://", re.IGNORECASE)

_SVG_MIME_TYPES = {"image/svg+xml", "image/svg"}

# How far into the payload to look for SVG markers
_SNIFF_WINDOW = 1024


def parse_data_uri(value: Optional[str]) -> DataUri:
    """
    Split a data URI into its declared MIME type and decoded payload.

    Args:
        value: String of the form data:<mime>;base64,<payload>

    Returns:
        DataUri with non-empty payload

    Raises:
        InputValidationError: Missing value, remote URL, missing prefix,
            invalid base64 or empty payload
    """
    if not value:
        raise InputValidationError("Missing required field: imageData")

    value = value.strip()

    if _REMOTE_URL_RE.match(value):
        raise InputValidationError(
            "Remote image URLs are not supported. Send the image as a base64 data URI."
        )

    match = _DATA_URI_RE.match(value)
    if match is None:
        raise InputValidationError(
            "Invalid image format. Expected base64 data URI (data:<mime>;base64,...)."
        )

    mime_type = (match.group("mime") or "").lower()
    encoded = re.sub(r"\s+", "", value[match.end():])

    # Tolerate stripped padding
    encoded += "=" * (-len(encoded) % 4)

    try:
        payload = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise InputValidationError(EMPTY_PAYLOAD_MESSAGE)

    if not payload:
        raise InputValidationError(EMPTY_PAYLOAD_MESSAGE)

    return DataUri(mime_type=mime_type, payload=payload)


def sniff_format(payload: bytes) -> ImageFormat:
    """
    Classify a payload by its byte signature.

    The declared MIME type is deliberately not consulted.

    Args:
        payload: Raw file bytes

    Returns:
        Detected ImageFormat (UNKNOWN when no signature matches)
    """
    if payload.startswith(b"\x89PNG\r\n\x1a\n"):
        return ImageFormat.PNG
    if payload.startswith(b"\xff\xd8\xff"):
        return ImageFormat.JPEG
    if len(payload) >= 12 and payload[:4] == b"RIFF" and payload[8:12] == b"WEBP":
        return ImageFormat.WEBP

    head = payload[:_SNIFF_WINDOW]
    if head.startswith(b"\xef\xbb\xbf"):
        head = head[3:]
    head = head.lstrip().lower()
    if head.startswith(b"<?xml") or head.startswith(b"<!doctype svg"):
        return ImageFormat.SVG
    if head.startswith(b"<") and b"<svg" in head:
        return ImageFormat.SVG

    return ImageFormat.UNKNOWN


def _fit_box(width: float, height: float, size: int) -> dict:
    """svg2png sizing keyword that fits width x height inside size x size."""
    if width >= height:
        return {"output_width": size}
    return {"output_height": size}


def svg_intrinsic_size(payload: bytes) -> Tuple[float, float]:
    """
    Read the document size of an SVG without rendering it.

    Plain numeric width/height are used as is; otherwise the viewBox
    supplies them. Sizes with units or percentages and no viewBox come
    back as 0.

    Raises:
        ParseError: Malformed XML
        ValueError: Forbidden XML constructs or a malformed viewBox
    """
    tree = _SvgTree(bytestring=payload)
    width, height, _ = _svg_node_format(None, tree)
    return width, height


def rasterize_svg(payload: bytes, size: int = 2048, mime_type: str = "image/svg+xml") -> Image.Image:
    """
    Render SVG bytes to an RGBA image that fits inside size x size.

    The document size is read first so the drawing is rendered once with
    its constraining side fixed to `size`. Documents whose size is only
    known after layout (units without a viewBox) are measured with a
    render at their natural size.

    Args:
        payload: SVG document bytes
        size: Side of the bounding box in pixels
        mime_type: Declared MIME type, for error messages

    Returns:
        RGBA PIL image

    Raises:
        UnsupportedFormatError: Malformed or unrenderable SVG
        ProcessingError: CairoSVG is not available, or rendering ran out
            of resources
    """
    if not SVG_RASTER_AVAILABLE:
        raise ProcessingError(f"SVG rasterization is unavailable ({_SVG_IMPORT_ERROR})")

    try:
        width, height = svg_intrinsic_size(payload)
        if width <= 0 or height <= 0:
            natural = Image.open(io.BytesIO(_cairosvg.svg2png(bytestring=payload)))
            width, height = natural.size
            logger.debug(f"SVG has no numeric size; measured {width}x{height}")

        png_bytes = _cairosvg.svg2png(bytestring=payload, **_fit_box(width, height, size))
        image = Image.open(io.BytesIO(png_bytes))
        image.load()
    except (ParseError, ValueError, TypeError, KeyError, IndexError) as e:
        raise UnsupportedFormatError(
            f"Could not rasterize SVG image ({mime_type or 'unknown type'}): {e}",
            mime_type=mime_type,
        )
    except Image.DecompressionBombError as e:
        raise InputValidationError(f"SVG is too large to render: {e}")
    except Exception as e:
        raise ProcessingError(f"SVG rendering failed: {type(e).__name__}: {e}")

    logger.info(f"Rasterized SVG ({width:g}x{height:g}) to {image.width}x{image.height}")
    return image.convert("RGBA")


def decode_raster(
    payload: bytes,
    mime_type: str = "",
    max_pixels: Optional[int] = None,
) -> Image.Image:
    """
    Decode PNG, JPEG, WebP or any other Pillow-readable raster format.

    The pixel count is read from the header and checked before any pixel
    data is decoded.

    Args:
        payload: Encoded image bytes
        mime_type: Declared MIME type, for error messages
        max_pixels: Largest accepted width * height (None disables)

    Returns:
        RGBA PIL image

    Raises:
        InputValidationError: Image exceeds max_pixels or Pillow's
            decompression-bomb limit
        UnsupportedFormatError: Bytes are not a decodable image
    """
    try:
        image = Image.open(io.BytesIO(payload))
    except Image.DecompressionBombError as e:
        raise InputValidationError(f"Image is too large to process: {e}")
    except Exception as e:
        raise UnsupportedFormatError(
            f"Unsupported or corrupted image ({mime_type or 'unknown type'}): {e}",
            mime_type=mime_type,
        )

    pixels = image.width * image.height
    if max_pixels is not None and pixels > max_pixels:
        raise InputValidationError(
            f"Image is too large to process: {image.width}x{image.height} "
            f"({pixels} pixels) exceeds the limit of {max_pixels} pixels"
        )

    try:
        image.load()
    except Exception as e:
        raise UnsupportedFormatError(
            f"Unsupported or corrupted image ({mime_type or 'unknown type'}): {e}",
            mime_type=mime_type,
        )

    return image.convert("RGBA")


def normalize_image(
    image_data: Optional[str],
    svg_raster_size: int = 2048,
    max_input_pixels: Optional[int] = None,
) -> RasterImage:
    """
    Turn a data URI into a canonical RGBA raster.

    Args:
        image_data: data:<mime>;base64,<payload> string
        svg_raster_size: Bounding box for SVG rasterization
        max_input_pixels: Largest accepted raster input (None disables)

    Returns:
        RasterImage read back from the normalized PNG

    Raises:
        InputValidationError: Bad data URI or oversized image
        UnsupportedFormatError: Payload is not a decodable image
        ProcessingError: Normalization failed after decoding
    """
    data_uri = parse_data_uri(image_data)
    detected = sniff_format(data_uri.payload)

    if detected is ImageFormat.UNKNOWN and data_uri.mime_type in _SVG_MIME_TYPES:
        detected = ImageFormat.SVG

    if detected is ImageFormat.SVG and data_uri.mime_type not in _SVG_MIME_TYPES:
        logger.info(f"Payload declared as {data_uri.mime_type or 'unknown'} is SVG; rasterizing")

    if detected is ImageFormat.SVG:
        image = rasterize_svg(data_uri.payload, svg_raster_size, data_uri.mime_type)
    else:
        image = decode_raster(data_uri.payload, data_uri.mime_type, max_pixels=max_input_pixels)

    try:
        normalized = decode_png(encode_png(image))
    except ProcessingError:
        raise
    except Exception as e:
        raise ProcessingError(f"Failed to normalize image: {e}")

    logger.info(
        f"Normalized {detected.value} input "
        f"({data_uri.mime_type or 'no mime'}, {len(data_uri.payload)} bytes) "
        f"to {normalized.width}x{normalized.height} RGBA"
    )
    return RasterImage(pixels=normalized.pixels, source_format=detected)

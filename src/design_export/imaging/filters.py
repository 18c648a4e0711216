"""
Filter Engine
=============

Parse the editor's CSS-like filter descriptor and apply it to a raster.

Parsing and application are two independent pure functions:

    spec = parse_filter("brightness(1.05) contrast(1.1)")
    filtered = apply_filter(image, spec)

Application order (fixed):
    1. brightness / saturation (only if either is not 1)
    2. contrast: out = c * in + 128 * (1 - c)
    3. invert: out = 255 - in
Every step works on RGB and clamps to [0, 255]; alpha is never touched.
sepia is parsed but not rendered.
"""

import logging
import re
from typing import Optional

import cv2
import numpy as np

from design_export.errors import ProcessingError
from design_export.models.filters import FilterSpec
from design_export.models.image import RasterImage


logger = logging.getLogger(__name__)


_TOKEN_RE = re.compile(r"([a-z-]+)\s*\(\s*([^()]*?)\s*\)", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^(\d*\.?\d+)\s*(%?)$")

_FIELD_BY_TOKEN = {
    "brightness": "brightness",
    "contrast": "contrast",
    "saturate": "saturation",
    "saturation": "saturation",
    "sepia": "sepia",
    "invert": "invert",
}

# Rec. 601 luma weights
_LUMA = np.array([0.299, 0.587, 0.114], dtype=np.float32)


def _parse_amount(raw: str) -> Optional[float]:
    match = _NUMBER_RE.match(raw)
    if match is None:
        return None
    value = float(match.group(1))
    if match.group(2):
        value /= 100.0
    return value


def parse_filter(descriptor: Optional[str]) -> FilterSpec:
    """
    Parse a filter descriptor into a FilterSpec.

    Recognized tokens: brightness(x), contrast(x), saturate(x) or
    saturation(x), sepia(x), invert(x). Arguments may be plain numbers or
    percentages. Unknown tokens and malformed arguments are ignored; the
    first occurrence of a token wins.

    Args:
        descriptor: e.g. "brightness(1.05) contrast(1.1)", "none" or empty

    Returns:
        FilterSpec (all-neutral for "none", empty or None)
    """
    if not descriptor or descriptor.strip().lower() == "none":
        return FilterSpec()

    values = {}
    for name, raw in _TOKEN_RE.findall(descriptor):
        field = _FIELD_BY_TOKEN.get(name.lower())
        if field is None or field in values:
            continue
        amount = _parse_amount(raw)
        if amount is None:
            logger.debug(f"Ignoring malformed filter argument: {name}({raw})")
            continue
        values[field] = amount

    if "invert" in values:
        values["invert"] = values["invert"] > 0

    return FilterSpec(**values)


def apply_filter(image: RasterImage, spec: FilterSpec) -> RasterImage:
    """
    Apply a FilterSpec to an image.

    The input buffer is never modified. A neutral spec returns the input
    unchanged.

    Args:
        image: RGBA raster
        spec: Parsed filter values

    Returns:
        New RasterImage with filtered RGB and the original alpha

    Raises:
        ProcessingError: Numeric failure while filtering
    """
    if spec.sepia:
        logger.debug(f"sepia({spec.sepia}) is parsed but not applied")

    if spec.is_neutral:
        return image

    try:
        rgb = image.pixels[..., :3].astype(np.float32)
        alpha = image.pixels[..., 3:]

        if spec.brightness != 1.0 or spec.saturation != 1.0:
            rgb = rgb * spec.brightness
            if spec.saturation != 1.0:
                gray = (rgb @ _LUMA)[..., np.newaxis]
                rgb = gray + (rgb - gray) * spec.saturation
            rgb = np.clip(rgb, 0.0, 255.0)

        if spec.contrast != 1.0:
            rgb = np.clip(spec.contrast * rgb + 128.0 * (1.0 - spec.contrast), 0.0, 255.0)

        if spec.invert:
            rgb = 255.0 - rgb

        pixels = np.concatenate([np.rint(rgb).astype(np.uint8), alpha], axis=2)
    except Exception as e:
        raise ProcessingError(f"Failed to apply filters: {e}")

    return RasterImage(pixels=pixels, source_format=image.source_format)


def luminosity_invert(image: RasterImage) -> RasterImage:
    """
    Invert lightness while preserving hue and saturation.

    Converts RGB to HLS, replaces L with 1 - L and converts back, so dark
    line art becomes light (and vice versa) without swapping its colors.
    Alpha is preserved.

    Raises:
        ProcessingError: Color conversion failed
    """
    try:
        rgb = image.pixels[..., :3].astype(np.float32) / 255.0
        hls = cv2.cvtColor(rgb, cv2.COLOR_RGB2HLS)
        hls[..., 1] = 1.0 - hls[..., 1]
        inverted = cv2.cvtColor(hls, cv2.COLOR_HLS2RGB)
        rgb_out = np.clip(np.rint(inverted * 255.0), 0, 255).astype(np.uint8)
        pixels = np.concatenate([rgb_out, image.pixels[..., 3:]], axis=2)
    except cv2.error as e:
        raise ProcessingError(f"Failed to invert luminosity: {e}")

    logger.info(f"Luminosity inverted {image.width}x{image.height}")
    return RasterImage(pixels=pixels, source_format=image.source_format)

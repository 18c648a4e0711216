"""
Design Analysis
===============

Helpers that inspect or tidy a design before it is placed on a product.

    - trim_transparent: crop empty transparent margins, then add back a
      small safety padding so anti-aliased edges are never clipped
    - recommend_background: pick a light or dark product color from the
      average luminance of the visible pixels
"""

import logging
from typing import Literal

import cv2
import numpy as np

from design_export.models.image import RasterImage


logger = logging.getLogger(__name__)


# Rec. 601 luma weights
_LUMA = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def trim_transparent(
    image: RasterImage,
    alpha_threshold: int = 5,
    pad_fraction: float = 0.02,
    min_pad: int = 20,
) -> RasterImage:
    """
    Crop transparent borders and re-pad with transparent margins.

    The low default threshold keeps faint anti-aliased edges inside the
    crop.

    Args:
        image: RGBA design
        alpha_threshold: Alpha at or below this counts as empty
        pad_fraction: Padding per axis as a fraction of the trimmed size
        min_pad: Minimum padding in pixels

    Returns:
        Trimmed and padded image; the input itself when nothing is visible
    """
    mask = (image.pixels[..., 3] > alpha_threshold).astype(np.uint8)
    points = cv2.findNonZero(mask)
    if points is None:
        logger.info("Nothing visible to trim; keeping original")
        return image

    x, y, w, h = cv2.boundingRect(points)
    pad_x = max(min_pad, round(w * pad_fraction))
    pad_y = max(min_pad, round(h * pad_fraction))

    cropped = image.pixels[y:y + h, x:x + w]
    padded = np.pad(
        cropped,
        ((pad_y, pad_y), (pad_x, pad_x), (0, 0)),
        mode="constant",
        constant_values=0,
    )

    logger.info(
        f"Trimmed {image.width}x{image.height} -> {w}x{h}, "
        f"padded to {padded.shape[1]}x{padded.shape[0]}"
    )
    return RasterImage(pixels=padded, source_format=image.source_format)


def recommend_background(
    image: RasterImage,
    alpha_cutoff: int = 50,
    luminance_cutoff: float = 120.0,
) -> Literal["light", "dark"]:
    """
    Recommend a product background for contrast with the design.

    Light designs (mean luminance above the cutoff) need a dark product and
    dark designs a light one. Only pixels with alpha above alpha_cutoff
    count; a design with no visible pixels is treated as mid-gray.
    """
    visible = image.pixels[..., 3] > alpha_cutoff
    if np.any(visible):
        luminance = float((image.pixels[..., :3][visible].astype(np.float64) @ _LUMA).mean())
    else:
        luminance = 128.0

    recommendation = "dark" if luminance > luminance_cutoff else "light"
    logger.info(
        f"Average luminance {luminance:.1f}/255 over {int(visible.sum())} pixels; "
        f"recommending {recommendation} background"
    )
    return recommendation

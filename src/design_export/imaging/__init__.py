"""
Imaging Module
==============

Pixel-level stages of the export pipeline.

Components:
    - normalizer: data URI parsing, format sniffing, SVG rasterization,
      canonical RGBA decoding
    - filters: filter descriptor parsing and application
    - compositor: resize, composite and encode the output artifact
    - analysis: transparent trimming and background recommendation

Example:
    from design_export.imaging import normalize_image, parse_filter, apply_filter

    image = normalize_image("data:image/png;base64,...")
    filtered = apply_filter(image, parse_filter("contrast(1.1)"))
"""

from design_export.imaging.normalizer import (
    SVG_RASTER_AVAILABLE,
    normalize_image,
    parse_data_uri,
    sniff_format,
)
from design_export.imaging.filters import (
    apply_filter,
    luminosity_invert,
    parse_filter,
)
from design_export.imaging.compositor import (
    composite,
    create_thumbnail,
    decode_png,
    encode_export,
    encode_png,
    normalize_to_pod_size,
)
from design_export.imaging.analysis import recommend_background, trim_transparent


__all__ = [
    "SVG_RASTER_AVAILABLE",
    "parse_data_uri",
    "sniff_format",
    "normalize_image",
    "parse_filter",
    "apply_filter",
    "luminosity_invert",
    "encode_png",
    "decode_png",
    "encode_export",
    "composite",
    "normalize_to_pod_size",
    "create_thumbnail",
    "trim_transparent",
    "recommend_background",
]

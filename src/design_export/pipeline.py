"""
Export Pipeline
===============

Orchestrates one export request end to end:

    data URI -> Normalizer -> Filter Engine -> Placement Mapper -> Compositor

The pipeline is stateless: every call gets fresh buffers and nothing is
shared between requests. Stages raise typed errors (see errors.py) and any
failure aborts the whole export; there are no soft fallbacks.

Example:
    from design_export.config import settings
    from design_export.pipeline import ExportPipeline

    pipeline = ExportPipeline(settings)
    result = pipeline.export_composite(
        image_data, "brightness(1.05) contrast(1.1)",
        product_width=4500, product_height=5400,
    )
    result.to_data_uri()
"""

import logging
import math
from typing import Optional, Tuple

from design_export.config import Settings
from design_export.errors import InputValidationError
from design_export.geometry import PlacementMapper
from design_export.imaging import (
    apply_filter,
    composite,
    create_thumbnail,
    encode_export,
    luminosity_invert,
    normalize_image,
    normalize_to_pod_size,
    parse_filter,
    recommend_background,
    trim_transparent,
)
from design_export.models.image import ExportResult, OutputSpec, RasterImage
from design_export.models.placement import PrintAreaPlacement, UiPlacement


logger = logging.getLogger(__name__)


class ExportPipeline:
    """
    Export pipeline configured from Settings.

    Attributes:
        settings: Loaded service settings
        mapper: Placement mapper built from the export and print-area sections
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.mapper = PlacementMapper(
            preview_canvas_px=settings.export.preview_canvas_px,
            design_base_px=settings.export.design_base_px,
            print_area_fraction=settings.print_area.base_fraction,
            default_scale_factor=settings.print_area.default_scale_factor,
        )

    # -------------------------------------------------------------------------
    # Shared stages
    # -------------------------------------------------------------------------

    def _load(self, image_data: Optional[str]) -> RasterImage:
        return normalize_image(
            image_data,
            svg_raster_size=self.settings.export.svg_raster_size,
            max_input_pixels=self.settings.limits.max_input_pixels,
        )

    def output_spec(self, width, height) -> OutputSpec:
        """
        Validate caller-supplied output dimensions.

        Raises:
            InputValidationError: Missing, non-integer, non-positive or
                oversized dimensions
        """
        if width is None or height is None:
            raise InputValidationError("productWidth and productHeight must be provided together")

        limit = self.settings.limits.max_output_dimension
        for name, value in (("productWidth", width), ("productHeight", height)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InputValidationError(f"{name} must be a positive integer")
            if value <= 0:
                raise InputValidationError(f"{name} must be a positive integer")
            if value > limit:
                raise InputValidationError(f"{name} must not exceed {limit} pixels")

        return OutputSpec(width_px=width, height_px=height, dpi=self.settings.export.output_dpi)

    @staticmethod
    def ui_placement(scale: float, position: Tuple[float, float]) -> UiPlacement:
        """
        Build a UiPlacement from request values.

        Raises:
            InputValidationError: Non-finite values or non-positive scale
        """
        try:
            return UiPlacement(offset_x=position[0], offset_y=position[1], scale_percent=scale)
        except (TypeError, ValueError) as e:
            raise InputValidationError(f"Invalid placement: {e}")

    # -------------------------------------------------------------------------
    # Export variants
    # -------------------------------------------------------------------------

    def export_design(self, image_data: Optional[str], filter_descriptor: Optional[str] = "none") -> ExportResult:
        """
        Apply filters and return the design at its native size.

        Args:
            image_data: Base64 data URI
            filter_descriptor: CSS filter descriptor

        Returns:
            PNG ExportResult (transparent background preserved)
        """
        image = self._load(image_data)
        spec = parse_filter(filter_descriptor)
        logger.info(f"Export {image.width}x{image.height}, filters: {spec.to_dict()}")

        filtered = apply_filter(image, spec)
        return encode_export(
            filtered,
            dpi=self.settings.export.output_dpi,
            compress_level=self.settings.export.png_compress_level,
        )

    def export_composite(
        self,
        image_data: Optional[str],
        filter_descriptor: Optional[str],
        product_width: Optional[int],
        product_height: Optional[int],
        scale: float = 100.0,
        position: Tuple[float, float] = (0.0, 0.0),
    ) -> ExportResult:
        """
        Filter the design and composite it onto a product-sized canvas.

        Args:
            image_data: Base64 data URI
            filter_descriptor: CSS filter descriptor
            product_width: Output width in pixels
            product_height: Output height in pixels
            scale: Percent of the preview base footprint
            position: (x, y) offset from the preview center, preview pixels

        Returns:
            PNG ExportResult of exactly product_width x product_height
        """
        if not image_data:
            raise InputValidationError("Missing required field: imageData")
        output = self.output_spec(product_width, product_height)
        ui = self.ui_placement(scale, position)

        image = self._load(image_data)
        spec = parse_filter(filter_descriptor)
        logger.info(
            f"Composite export {image.width}x{image.height} -> "
            f"{output.width_px}x{output.height_px}, scale={ui.scale_percent}%, "
            f"offset=({ui.offset_x}, {ui.offset_y}), filters: {spec.to_dict()}"
        )

        filtered = apply_filter(image, spec)
        placement = self.mapper.to_canvas(ui, output, filtered.size)
        logger.info(f"Canvas placement: {placement.to_dict()}")

        return composite(
            filtered,
            placement,
            output,
            compress_level=self.settings.export.png_compress_level,
        )

    def print_area_placement(
        self,
        x_percent: Optional[float] = None,
        y_percent: Optional[float] = None,
        scale_factor: Optional[float] = None,
    ) -> PrintAreaPlacement:
        """
        Convert a marketplace editor placement to print-area coordinates.

        Passing no scale factor yields the centered default.
        """
        if scale_factor is None:
            return self.mapper.to_print_area(None)

        values = (x_percent or 0.0, y_percent or 0.0, scale_factor)
        if not all(math.isfinite(v) for v in values) or scale_factor <= 0:
            raise InputValidationError("designPosition must hold finite x, y and a positive scale")

        ui = self.mapper.from_print_area_ui(*values)
        return self.mapper.to_print_area(ui)

    # -------------------------------------------------------------------------
    # Design utilities
    # -------------------------------------------------------------------------

    def invert_luminosity(self, image_data: Optional[str]) -> ExportResult:
        """Luminosity-invert a design, keeping its size and alpha."""
        image = self._load(image_data)
        return encode_export(
            luminosity_invert(image),
            dpi=self.settings.export.output_dpi,
            compress_level=self.settings.export.png_compress_level,
        )

    def normalize_for_pod(self, image_data: Optional[str]) -> ExportResult:
        """Fit and center a design on the configured POD canvas."""
        pod = self.settings.pod
        image = self._load(image_data)
        return normalize_to_pod_size(
            image,
            OutputSpec(width_px=pod.width_px, height_px=pod.height_px, dpi=self.settings.export.output_dpi),
            fill_fraction=pod.fill_fraction,
            sharpen_radius=pod.sharpen_radius,
            compress_level=self.settings.export.png_compress_level,
        )

    def thumbnail(self, image_data: Optional[str], max_size: Optional[int] = None) -> ExportResult:
        """WebP thumbnail of a design."""
        image = self._load(image_data)
        return create_thumbnail(
            image,
            max_size=max_size or self.settings.thumbnail.max_size,
            quality=self.settings.thumbnail.quality,
        )

    def trim(self, image_data: Optional[str]) -> ExportResult:
        """Crop transparent margins and re-pad with a safety border."""
        trim = self.settings.trim
        image = self._load(image_data)
        trimmed = trim_transparent(
            image,
            alpha_threshold=trim.alpha_threshold,
            pad_fraction=trim.pad_fraction,
            min_pad=trim.min_pad_px,
        )
        return encode_export(
            trimmed,
            dpi=self.settings.export.output_dpi,
            compress_level=self.settings.export.png_compress_level,
        )

    def analyze(self, image_data: Optional[str]) -> dict:
        """Detected format, normalized size and background recommendation."""
        image = self._load(image_data)
        return {
            "format": image.source_format.value,
            "width": image.width,
            "height": image.height,
            "recommended_background": recommend_background(image),
        }

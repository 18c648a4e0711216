"""
Placement Mapper
================

Single coordinate transform between the editor preview and the two output
targets.

Conventions:
    A (input)  UiPlacement: preview pixels on a fixed square canvas
               (500px), design base footprint 280px.
    B (output) CanvasPlacement: pixel rectangle on the export canvas.
    C (output) PrintAreaPlacement: marketplace print area, normalized 0..1.

The marketplace editor expresses offsets as percent of the print area and
size as a multiplier on a 70% base. Those inputs are converted to
Convention A first (from_print_area_ui), so both adapters read the same
UiPlacement and agree by construction:

    offset_px     = percent * preview / 100
    scale_percent = factor * base_fraction * preview / design_base * 100

With the defaults, scale factor 1.0 is a 350px footprint in the preview,
i.e. 70% of the canvas, matching the 0.7 print-area scale.

Example:
    from design_export.geometry import PlacementMapper
    from design_export.models import OutputSpec, UiPlacement

    mapper = PlacementMapper()
    ui = UiPlacement(offset_x=25, offset_y=0, scale_percent=100)
    rect = mapper.to_canvas(ui, OutputSpec(4500, 5400), image_size=(1000, 1000))
    spot = mapper.to_print_area(ui)
"""

import logging
from typing import Optional, Tuple

from design_export.models.image import OutputSpec
from design_export.models.placement import (
    CanvasPlacement,
    PrintAreaPlacement,
    UiPlacement,
)


logger = logging.getLogger(__name__)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class PlacementMapper:
    """
    Convert editor placements to export-canvas and print-area coordinates.

    Attributes:
        preview_canvas_px: Side of the square preview canvas
        design_base_px: Unscaled design footprint in the preview
        print_area_fraction: Print-area width covered at scale factor 1
        default_scale_factor: Editor scale factor when nothing is supplied
    """

    def __init__(
        self,
        preview_canvas_px: float = 500.0,
        design_base_px: float = 280.0,
        print_area_fraction: float = 0.7,
        default_scale_factor: float = 0.9,
    ) -> None:
        self.preview_canvas_px = preview_canvas_px
        self.design_base_px = design_base_px
        self.print_area_fraction = print_area_fraction
        self.default_scale_factor = default_scale_factor

    @property
    def _percent_per_factor(self) -> float:
        """scale_percent that corresponds to marketplace scale factor 1.0."""
        return self.print_area_fraction * self.preview_canvas_px / self.design_base_px * 100.0

    # -------------------------------------------------------------------------
    # Convention A <-> marketplace editor units
    # -------------------------------------------------------------------------

    def from_print_area_ui(self, x_percent: float, y_percent: float, scale_factor: float) -> UiPlacement:
        """
        Build a UiPlacement from marketplace editor units.

        Args:
            x_percent: Offset from center, percent of the print area (-50..+50)
            y_percent: Offset from center, percent of the print area (-50..+50)
            scale_factor: Multiplier on the 70% base size

        Returns:
            Equivalent UiPlacement in preview pixels
        """
        return UiPlacement(
            offset_x=x_percent * self.preview_canvas_px / 100.0,
            offset_y=y_percent * self.preview_canvas_px / 100.0,
            scale_percent=scale_factor * self._percent_per_factor,
        )

    def print_area_ui(self, ui: UiPlacement) -> Tuple[float, float, float]:
        """Inverse of from_print_area_ui: (x_percent, y_percent, scale_factor)."""
        return (
            ui.offset_x * 100.0 / self.preview_canvas_px,
            ui.offset_y * 100.0 / self.preview_canvas_px,
            ui.scale_percent / self._percent_per_factor,
        )

    # -------------------------------------------------------------------------
    # Convention B: export canvas pixels
    # -------------------------------------------------------------------------

    def export_scale(self, output: OutputSpec) -> float:
        """Export pixels per preview pixel."""
        return min(output.width_px, output.height_px) / self.preview_canvas_px

    def to_canvas(
        self,
        ui: UiPlacement,
        output: OutputSpec,
        image_size: Tuple[int, int],
    ) -> CanvasPlacement:
        """
        Compute the design rectangle on the export canvas.

        The longer image side takes the scaled base size (width for
        landscape, height for portrait and square); the other side follows
        the aspect ratio. A footprint larger than the canvas is shrunk to
        fit, and the top-left corner is clamped per axis, so the rectangle
        is always fully inside the canvas.

        Args:
            ui: Editor placement
            output: Export canvas size
            image_size: (width, height) of the design being placed

        Returns:
            CanvasPlacement contained in [0, width] x [0, height]
        """
        image_width, image_height = image_size
        if image_width <= 0 or image_height <= 0:
            raise ValueError(f"Invalid image size: {image_size}")

        canvas_width, canvas_height = output.width_px, output.height_px
        export_scale = self.export_scale(output)

        size = self.design_base_px * (ui.scale_percent / 100.0) * export_scale
        if image_width > image_height:
            width = size
            height = size * image_height / image_width
        else:
            height = size
            width = size * image_width / image_height

        fit = min(1.0, canvas_width / width, canvas_height / height)
        if fit < 1.0:
            logger.info(f"Design footprint exceeds canvas; shrinking by {fit:.3f}")
        width = int(_clamp(round(width * fit), 1, canvas_width))
        height = int(_clamp(round(height * fit), 1, canvas_height))

        center_x = canvas_width / 2 + ui.offset_x * export_scale
        center_y = canvas_height / 2 + ui.offset_y * export_scale

        left = int(_clamp(round(center_x - width / 2), 0, canvas_width - width))
        top = int(_clamp(round(center_y - height / 2), 0, canvas_height - height))

        return CanvasPlacement(left=left, top=top, width=width, height=height)

    # -------------------------------------------------------------------------
    # Convention C: marketplace print area
    # -------------------------------------------------------------------------

    def to_print_area(self, ui: Optional[UiPlacement]) -> PrintAreaPlacement:
        """
        Compute marketplace print-area coordinates.

        Args:
            ui: Editor placement, or None for the centered default

        Returns:
            PrintAreaPlacement with x, y clamped to [0, 1]
        """
        if ui is None:
            return PrintAreaPlacement(
                x=0.5,
                y=0.5,
                scale=self.print_area_fraction * self.default_scale_factor,
            )

        x_percent, y_percent, scale_factor = self.print_area_ui(ui)
        placement = PrintAreaPlacement(
            x=_clamp(0.5 + x_percent / 100.0, 0.0, 1.0),
            y=_clamp(0.5 + y_percent / 100.0, 0.0, 1.0),
            scale=self.print_area_fraction * scale_factor,
        )
        logger.info(
            f"Print-area placement ({placement.x:.2f}, {placement.y:.2f}) "
            f"scale {placement.scale:.2f} ({round(placement.scale * 100)}% of print area)"
        )
        return placement

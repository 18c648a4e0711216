"""
Placement Models
================

Design placement in the three coordinate conventions used by the service.

Conventions:
    A. UiPlacement: the editor preview. A fixed square canvas (500px by
       default) with the design's unscaled footprint at 280px. Offsets are
       pixels from the canvas center; scale_percent is a percentage of the
       base footprint.
    B. CanvasPlacement: absolute pixel rectangle on the export canvas.
    C. PrintAreaPlacement: marketplace print-area coordinates, normalized
       0..1 with (0.5, 0.5) at the center; scale is a fraction of the print
       area width.

Conversion between them lives in design_export.geometry.mapper.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UiPlacement:
    """
    Placement as shown in the editor preview.

    Attributes:
        offset_x: Horizontal offset of the design center from the canvas center (preview px)
        offset_y: Vertical offset of the design center from the canvas center (preview px)
        scale_percent: Size as a percentage of the base footprint
    """

    offset_x: float = 0.0
    offset_y: float = 0.0
    scale_percent: float = 100.0

    def __post_init__(self) -> None:
        """Validate invariants."""
        for name in ("offset_x", "offset_y", "scale_percent"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be a finite number")
        if self.scale_percent <= 0:
            raise ValueError("scale_percent must be positive")


@dataclass(frozen=True, slots=True)
class CanvasPlacement:
    """
    Pixel rectangle of the design on the export canvas.

    Attributes:
        left: X of the top-left corner
        top: Y of the top-left corner
        width: Footprint width
        height: Footprint height
    """

    left: int
    top: int
    width: int
    height: int

    @property
    def center(self) -> tuple:
        return self.left + self.width / 2, self.top + self.height / 2

    def contained_in(self, canvas_width: int, canvas_height: int) -> bool:
        """True when the rectangle lies fully inside the canvas."""
        return (
            self.left >= 0
            and self.top >= 0
            and self.left + self.width <= canvas_width
            and self.top + self.height <= canvas_height
        )

    def to_dict(self) -> dict:
        return {
            "left": self.left,
            "top": self.top,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True, slots=True)
class PrintAreaPlacement:
    """
    Placement in marketplace print-area coordinates.

    Attributes:
        x: Design center, fraction of print-area width [0, 1]
        y: Design center, fraction of print-area height [0, 1]
        scale: Design width as a fraction of print-area width
    """

    x: float
    y: float
    scale: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "scale": self.scale}

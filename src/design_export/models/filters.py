"""
Filter Models
=============

Structured form of the CSS-like filter descriptor sent by the editor,
e.g. "brightness(1.05) contrast(1.1) saturate(1.2)".
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """
    Numeric adjustments parsed from a filter descriptor.

    Defaults are neutral, so FilterSpec() is a no-op.

    Attributes:
        brightness: Multiplier on RGB (1.0 = unchanged)
        contrast: Linear contrast around mid-gray (1.0 = unchanged)
        saturation: Interpolation factor from gray (1.0 = unchanged)
        sepia: Parsed amount; not applied by the export pipeline
        invert: Replace RGB with its complement
    """

    brightness: float = 1.0
    contrast: float = 1.0
    saturation: float = 1.0
    sepia: float = 0.0
    invert: bool = False

    @property
    def is_neutral(self) -> bool:
        """True when applying this spec cannot change any pixel."""
        return (
            self.brightness == 1.0
            and self.contrast == 1.0
            and self.saturation == 1.0
            and not self.invert
        )

    def to_dict(self) -> dict:
        """Export as dictionary for logging."""
        return {
            "brightness": self.brightness,
            "contrast": self.contrast,
            "saturation": self.saturation,
            "sepia": self.sepia,
            "invert": self.invert,
        }

"""
Response Schemas
================

This module defines the JSON response contracts of the export API.

Output Contract (POST /api/export, composite variant):
    {
        "success": true,
        "exportedImage": "data:image/png;base64,...",
        "dimensions": {"width": 4500, "height": 5400, "dpi": 300}
    }

The simple variant omits "dimensions". Failures use ErrorResponse with
status 400 (caller input) or 500 (internal failure).
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Dimensions(BaseModel):
    """Pixel dimensions and declared resolution of an exported file."""

    width: int = Field(..., gt=0, description="Width in pixels")
    height: int = Field(..., gt=0, description="Height in pixels")
    dpi: Optional[int] = Field(default=None, description="Declared resolution")


class _ApiResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(default=True)

    def to_json(self) -> dict:
        """Serialize with wire (camelCase) names, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ExportResponse(_ApiResponse):
    """Successful export."""

    exported_image: str = Field(..., alias="exportedImage")
    dimensions: Optional[Dimensions] = Field(default=None)


class InvertResponse(_ApiResponse):
    """Successful luminosity inversion."""

    inverted_image: str = Field(..., alias="invertedImage")


class ImageResponse(_ApiResponse):
    """Generic single-image response (normalize, thumbnail, trim)."""

    image: str = Field(..., description="Data URI of the result")
    dimensions: Optional[Dimensions] = Field(default=None)


class PrintAreaPosition(BaseModel):
    """Marketplace print-area placement."""

    x: float = Field(..., ge=0.0, le=1.0)
    y: float = Field(..., ge=0.0, le=1.0)
    scale: float = Field(..., gt=0.0)


class PlacementResponse(_ApiResponse):
    """Converted marketplace placement."""

    placement: PrintAreaPosition


class AnalysisResponse(_ApiResponse):
    """Format, size and background recommendation for a design."""

    format: str = Field(..., description="Format detected from the payload bytes")
    dimensions: Dimensions
    recommended_background: Literal["light", "dark"] = Field(
        ...,
        alias="recommendedBackground",
    )


class ErrorResponse(BaseModel):
    """Failure body for 4xx/5xx responses."""

    error: str

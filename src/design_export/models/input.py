"""
Request Schemas
===============

Pydantic models for JSON request bodies accepted by the export API.

Export Contract (POST /api/export):
    {
        "imageData": "data:image/png;base64,...",
        "filter": "brightness(1.05) contrast(1.1)",
        "productWidth": 4500,
        "productHeight": 5400,
        "scale": 100,
        "position": {"x": 0, "y": 0}
    }

Only imageData is required. productWidth and productHeight select the
canvas-composite variant and must be given together.

Field presence is checked by the pipeline rather than by pydantic so that
a missing imageData produces the same {"error": ...} message as any other
input problem.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Position(BaseModel):
    """Design offset from the preview canvas center, in preview pixels."""

    x: float = Field(default=0.0, allow_inf_nan=False, description="Horizontal offset")
    y: float = Field(default=0.0, allow_inf_nan=False, description="Vertical offset")


class ImageRequest(BaseModel):
    """Body carrying a single image as a data URI."""

    model_config = ConfigDict(populate_by_name=True)

    image_data: Optional[str] = Field(
        default=None,
        alias="imageData",
        description="Base64 data URI (data:<mime>;base64,<payload>)",
    )


class ExportRequest(ImageRequest):
    """
    Body of POST /api/export.

    Attributes:
        image_data: Base64 data URI of the design
        filter: CSS-filter-like descriptor ("none" when absent)
        product_width: Output canvas width in pixels (composite variant)
        product_height: Output canvas height in pixels (composite variant)
        scale: Design size as a percentage of the preview base footprint
        position: Offset from the preview canvas center
    """

    filter: Optional[str] = Field(
        default="none",
        description="CSS filter descriptor, e.g. 'brightness(1.05) contrast(1.1)'",
    )

    product_width: Optional[int] = Field(
        default=None,
        alias="productWidth",
        description="Output canvas width in pixels",
    )

    product_height: Optional[int] = Field(
        default=None,
        alias="productHeight",
        description="Output canvas height in pixels",
    )

    scale: float = Field(
        default=100.0,
        allow_inf_nan=False,
        description="Percent of the 280px base footprint",
    )

    position: Position = Field(default_factory=Position)

    @property
    def is_composite(self) -> bool:
        return self.product_width is not None or self.product_height is not None


class ThumbnailRequest(ImageRequest):
    """Body of POST /api/thumbnail."""

    max_size: Optional[int] = Field(
        default=None,
        alias="maxSize",
        ge=16,
        description="Bounding box of the thumbnail (defaults to config)",
    )


class DesignPosition(BaseModel):
    """
    Placement in the marketplace editor convention.

    x and y are percent offsets of the print area from its center
    (-50..+50); scale multiplies the 70% base size.
    """

    x: float = Field(default=0.0, allow_inf_nan=False)
    y: float = Field(default=0.0, allow_inf_nan=False)
    scale: float = Field(..., gt=0, allow_inf_nan=False)


class PlacementRequest(BaseModel):
    """Body of POST /api/placement."""

    model_config = ConfigDict(populate_by_name=True)

    design_position: Optional[DesignPosition] = Field(
        default=None,
        alias="designPosition",
        description="Editor placement; centered default when absent",
    )

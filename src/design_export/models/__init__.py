"""
Data Models
===========

Models for the design export service.

This module re-exports all data models for convenient access.

Models:
    Image:
        - ImageFormat: Format detected from payload bytes
        - DataUri: Parsed data URI
        - RasterImage: RGBA pixel buffer
        - OutputSpec: Requested output canvas
        - ExportResult: Encoded output artifact

    Filters:
        - FilterSpec: Parsed filter descriptor

    Placement:
        - UiPlacement: Editor preview placement
        - CanvasPlacement: Pixel rectangle on the export canvas
        - PrintAreaPlacement: Marketplace normalized placement

    Input / Output:
        - ExportRequest, ImageRequest, ThumbnailRequest, PlacementRequest
        - ExportResponse, InvertResponse, ImageResponse, PlacementResponse,
          AnalysisResponse, ErrorResponse
"""

from design_export.models.image import (
    DataUri,
    ExportResult,
    ImageFormat,
    OutputSpec,
    RasterImage,
)
from design_export.models.filters import FilterSpec
from design_export.models.placement import (
    CanvasPlacement,
    PrintAreaPlacement,
    UiPlacement,
)
from design_export.models.input import (
    DesignPosition,
    ExportRequest,
    ImageRequest,
    PlacementRequest,
    Position,
    ThumbnailRequest,
)
from design_export.models.output import (
    AnalysisResponse,
    Dimensions,
    ErrorResponse,
    ExportResponse,
    ImageResponse,
    InvertResponse,
    PlacementResponse,
    PrintAreaPosition,
)

__all__ = [
    # Image
    "ImageFormat",
    "DataUri",
    "RasterImage",
    "OutputSpec",
    "ExportResult",
    # Filters
    "FilterSpec",
    # Placement
    "UiPlacement",
    "CanvasPlacement",
    "PrintAreaPlacement",
    # Input
    "Position",
    "ImageRequest",
    "ExportRequest",
    "ThumbnailRequest",
    "DesignPosition",
    "PlacementRequest",
    # Output
    "Dimensions",
    "ExportResponse",
    "InvertResponse",
    "ImageResponse",
    "PrintAreaPosition",
    "PlacementResponse",
    "AnalysisResponse",
    "ErrorResponse",
]

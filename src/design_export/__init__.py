"""
Design Export
=============

Print-ready export pipeline for a print-on-demand design remixer.

This package turns an uploaded design (base64 data URI) into a PNG that a
print-on-demand marketplace can consume: the input is normalized to RGBA,
the editor's CSS-like filters are applied, the previewed placement is
mapped onto the product canvas and the result is encoded at 300 DPI.

Components:
    - imaging: normalizer, filter engine, compositor, analysis helpers
    - geometry: placement mapping (editor preview, export canvas, print area)
    - models: value types and request/response schemas
    - pipeline: ExportPipeline wiring the stages together
    - main: FastAPI application

Example:
    from design_export.config import settings
    from design_export.pipeline import ExportPipeline

    pipeline = ExportPipeline(settings)
    result = pipeline.export_design("data:image/png;base64,...", "contrast(1.1)")
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]

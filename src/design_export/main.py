"""
Design Export Service
=====================

FastAPI entry point for the print-on-demand export pipeline.

Endpoints:
    GET  /               - Service information
    GET  /health         - Liveness probe
    POST /api/export     - Filter a design; composite it onto a product
                           canvas when productWidth/productHeight are given
    POST /api/invert     - Luminosity invert (GET describes the endpoint)
    POST /api/placement  - Editor placement -> marketplace print-area coords
    POST /api/normalize  - Fit a design on the POD canvas (4500x5400 @ 300 DPI)
    POST /api/thumbnail  - WebP thumbnail
    POST /api/trim       - Crop transparent margins
    POST /api/analyze    - Detected format, size, background recommendation

Errors:
    400 {"error": ...} for caller input (bad data URI, unsupported format,
        invalid fields); 500 {"error": ...} for processing failures.

Handlers are plain `def` functions: FastAPI runs them in its threadpool,
so image work never blocks the event loop. Each request is independent.
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional, TypeVar

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from design_export.config import settings
from design_export.errors import ExportError, ProcessingError
from design_export.imaging import SVG_RASTER_AVAILABLE
from design_export.models.input import (
    ExportRequest,
    ImageRequest,
    PlacementRequest,
    ThumbnailRequest,
)
from design_export.models.output import (
    AnalysisResponse,
    Dimensions,
    ExportResponse,
    ImageResponse,
    InvertResponse,
    PlacementResponse,
    PrintAreaPosition,
)
from design_export.pipeline import ExportPipeline


logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Global State
# =============================================================================

_pipeline: Optional[ExportPipeline] = None
_startup_time: float = 0.0


def get_pipeline() -> ExportPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = ExportPipeline(settings)
    return _pipeline


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    global _pipeline, _startup_time

    _startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")

    port = int(os.environ.get("PORT", settings.server.port))
    logger.info(f"Configured port: {port}")

    _pipeline = ExportPipeline(settings)
    logger.info(
        f"Export pipeline ready: dpi={settings.export.output_dpi}, "
        f"preview={settings.export.preview_canvas_px}px, "
        f"svg_raster={settings.export.svg_raster_size}px "
        f"({'available' if SVG_RASTER_AVAILABLE else 'unavailable'})"
    )

    yield

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="Design Export Service",
    description="Print-ready export pipeline for print-on-demand designs",
    version=settings.service.version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Error Handling
# =============================================================================

@app.exception_handler(ExportError)
async def export_error_handler(request: Request, exc: ExportError) -> JSONResponse:
    """Map typed pipeline failures to {"error": ...} responses."""
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.url.path} rejected: {exc.message}")
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 instead of FastAPI's 422."""
    message = _describe_validation_error(exc)
    logger.warning(f"{request.url.path} rejected: {message}")
    return JSONResponse({"error": message}, status_code=400)


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if location:
        return f"Invalid request body: {location}: {first.get('msg')}"
    return f"Invalid request body: {first.get('msg')}"


def _run(operation: str, func: Callable[[], T]) -> T:
    """Run a pipeline call, converting unexpected exceptions to ProcessingError."""
    try:
        return func()
    except ExportError:
        raise
    except Exception as e:
        logger.exception(f"{operation} failed unexpectedly")
        raise ProcessingError(f"{operation} failed: {e}")


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "DesignExportService",
        "version": settings.service.version,
        "name": settings.service.name,
        "status": "running",
        "output_dpi": settings.export.output_dpi,
        "svg_supported": SVG_RASTER_AVAILABLE,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1) if _startup_time else 0.0,
    })


@app.post("/api/export")
def export_design(body: ExportRequest) -> JSONResponse:
    """
    Export a design with filters applied.

    Without productWidth/productHeight the design is returned at its native
    size. With both, it is composited onto a transparent canvas of that
    size at the previewed scale and position, tagged 300 DPI.
    """
    pipeline = get_pipeline()
    filter_descriptor = body.filter or "none"
    logger.info(f"Export request received (filter: {filter_descriptor})")

    if body.is_composite:
        result = _run("Export", lambda: pipeline.export_composite(
            body.image_data,
            filter_descriptor,
            product_width=body.product_width,
            product_height=body.product_height,
            scale=body.scale,
            position=(body.position.x, body.position.y),
        ))
        response = ExportResponse(
            exported_image=result.to_data_uri(),
            dimensions=Dimensions(**result.dimensions()),
        )
    else:
        result = _run("Export", lambda: pipeline.export_design(body.image_data, filter_descriptor))
        response = ExportResponse(exported_image=result.to_data_uri())

    logger.info(f"Export complete: {result}")
    return JSONResponse(response.to_json())


@app.post("/api/invert")
def invert_design(body: ImageRequest) -> JSONResponse:
    """Invert lightness while preserving hue, for light/dark product variants."""
    result = _run("Luminosity invert", lambda: get_pipeline().invert_luminosity(body.image_data))
    return JSONResponse(InvertResponse(inverted_image=result.to_data_uri()).to_json())


@app.get("/api/invert")
async def invert_info() -> JSONResponse:
    """Describe the invert endpoint."""
    return JSONResponse({
        "status": "ok",
        "message": "Luminosity Invert API is running",
        "description": (
            "Inverts lightness while preserving hue - useful for adapting "
            "designs between light and dark products"
        ),
    })


@app.post("/api/placement")
def print_area_placement(body: PlacementRequest) -> JSONResponse:
    """Convert an editor placement to marketplace print-area coordinates."""
    position = body.design_position
    pipeline = get_pipeline()
    if position is None:
        placement = pipeline.print_area_placement()
    else:
        placement = _run("Placement", lambda: pipeline.print_area_placement(
            position.x, position.y, position.scale,
        ))
    response = PlacementResponse(placement=PrintAreaPosition(**placement.to_dict()))
    return JSONResponse(response.to_json())


@app.post("/api/normalize")
def normalize_design(body: ImageRequest) -> JSONResponse:
    """Fit and center a design on the POD canvas."""
    result = _run("POD normalization", lambda: get_pipeline().normalize_for_pod(body.image_data))
    response = ImageResponse(
        image=result.to_data_uri(),
        dimensions=Dimensions(**result.dimensions()),
    )
    return JSONResponse(response.to_json())


@app.post("/api/thumbnail")
def thumbnail(body: ThumbnailRequest) -> JSONResponse:
    """Create a WebP thumbnail."""
    result = _run("Thumbnail", lambda: get_pipeline().thumbnail(body.image_data, body.max_size))
    response = ImageResponse(
        image=result.to_data_uri(),
        dimensions=Dimensions(width=result.width, height=result.height),
    )
    return JSONResponse(response.to_json())


@app.post("/api/trim")
def trim_design(body: ImageRequest) -> JSONResponse:
    """Crop transparent margins, keeping a small safety padding."""
    result = _run("Trim", lambda: get_pipeline().trim(body.image_data))
    response = ImageResponse(
        image=result.to_data_uri(),
        dimensions=Dimensions(**result.dimensions()),
    )
    return JSONResponse(response.to_json())


@app.post("/api/analyze")
def analyze_design(body: ImageRequest) -> JSONResponse:
    """Report detected format, size and recommended product background."""
    info = _run("Analysis", lambda: get_pipeline().analyze(body.image_data))
    response = AnalysisResponse(
        format=info["format"],
        dimensions=Dimensions(width=info["width"], height=info["height"]),
        recommended_background=info["recommended_background"],
    )
    return JSONResponse(response.to_json())


# =============================================================================
# Main Entry Point
# =============================================================================

def run() -> None:
    """Console entry point."""
    import uvicorn

    # Cloud Run uses PORT env var
    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "design_export.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run()

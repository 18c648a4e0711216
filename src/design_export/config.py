"""
Design Export Service Configuration
===================================

This module handles configuration loading for the export service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    DESIGN_EXPORT_CONFIG            -> path of the YAML file
    DESIGN_EXPORT_DPI               -> export.output_dpi
    DESIGN_EXPORT_SVG_RASTER_SIZE   -> export.svg_raster_size
    DESIGN_EXPORT_MAX_OUTPUT_DIM    -> limits.max_output_dimension
    DESIGN_EXPORT_MAX_INPUT_PIXELS  -> limits.max_input_pixels
    DESIGN_EXPORT_CORS_ORIGINS      -> cors.allow_origins (comma separated)
    DESIGN_EXPORT_PORT              -> server.port
    DESIGN_EXPORT_LOG_LEVEL         -> logging.level
    DESIGN_EXPORT_LOG_FORMAT        -> logging.format
    PORT                            -> server.port (Cloud Run)

Example:
    from design_export.config import settings

    print(settings.service.name)
    print(settings.export.output_dpi)
    print(settings.print_area.base_fraction)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="design-export", description="Service name")
    version: str = Field(default="v0.1.0", description="API version")


class ExportConfig(BaseModel):
    """Export pipeline constants shared with the editor UI."""

    preview_canvas_px: float = Field(
        default=500.0,
        gt=0,
        description="Side of the square preview canvas in the editor (pixels)",
    )
    design_base_px: float = Field(
        default=280.0,
        gt=0,
        description="Unscaled footprint of the design in the preview (pixels)",
    )
    output_dpi: int = Field(
        default=300,
        ge=1,
        description="Resolution tag written to exported PNG files",
    )
    svg_raster_size: int = Field(
        default=2048,
        ge=16,
        description="Bounding box used when rasterizing SVG input",
    )
    png_compress_level: int = Field(
        default=6,
        ge=0,
        le=9,
        description="zlib compression level for PNG output",
    )


class PrintAreaConfig(BaseModel):
    """Marketplace print-area placement constants."""

    base_fraction: float = Field(
        default=0.7,
        gt=0,
        le=1.0,
        description="Design width as a fraction of the print area at scale factor 1",
    )
    default_scale_factor: float = Field(
        default=0.9,
        gt=0,
        description="Editor scale factor assumed when no placement is supplied",
    )


class PodConfig(BaseModel):
    """Print-on-demand normalization target."""

    width_px: int = Field(default=4500, ge=1, description="Canvas width (15in at 300 DPI)")
    height_px: int = Field(default=5400, ge=1, description="Canvas height (18in at 300 DPI)")
    fill_fraction: float = Field(
        default=0.96,
        gt=0,
        le=1.0,
        description="Fraction of the canvas the design may occupy",
    )
    sharpen_radius: float = Field(
        default=1.2,
        ge=0,
        description="Unsharp mask radius applied after upscaling (0 disables)",
    )


class ThumbnailConfig(BaseModel):
    """Thumbnail generation configuration."""

    max_size: int = Field(default=400, ge=16, description="Bounding box of the thumbnail")
    quality: int = Field(default=80, ge=1, le=100, description="WebP quality")


class TrimConfig(BaseModel):
    """Transparent-border trimming configuration."""

    alpha_threshold: int = Field(
        default=5,
        ge=0,
        le=254,
        description="Pixels with alpha at or below this value count as background",
    )
    pad_fraction: float = Field(
        default=0.02,
        ge=0,
        description="Safety padding added back per axis, as a fraction of the trimmed size",
    )
    min_pad_px: int = Field(default=20, ge=0, description="Minimum safety padding in pixels")


class LimitsConfig(BaseModel):
    """Input and output size limits."""

    max_output_dimension: int = Field(
        default=12000,
        ge=1,
        description="Largest accepted productWidth/productHeight",
    )
    max_input_pixels: int = Field(
        default=100_000_000,
        ge=1,
        description="Largest decoded input image (width * height)",
    )


class CorsConfig(BaseModel):
    """CORS configuration for browser clients."""

    allow_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the design export service.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    print_area: PrintAreaConfig = Field(default_factory=PrintAreaConfig)
    pod: PodConfig = Field(default_factory=PodConfig)
    thumbnail: ThumbnailConfig = Field(default_factory=ThumbnailConfig)
    trim: TrimConfig = Field(default_factory=TrimConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    cors: CorsConfig = Field(default_factory=CorsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, uses DESIGN_EXPORT_CONFIG
            or searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        config_path = os.environ.get("DESIGN_EXPORT_CONFIG")

    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/app/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    # Build settings object
    settings = Settings.model_validate(config_data)

    return settings


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Export settings
    if env_dpi := os.environ.get("DESIGN_EXPORT_DPI"):
        config_data.setdefault("export", {})["output_dpi"] = int(env_dpi)
    if env_svg := os.environ.get("DESIGN_EXPORT_SVG_RASTER_SIZE"):
        config_data.setdefault("export", {})["svg_raster_size"] = int(env_svg)

    # Limits
    if env_dim := os.environ.get("DESIGN_EXPORT_MAX_OUTPUT_DIM"):
        config_data.setdefault("limits", {})["max_output_dimension"] = int(env_dim)
    if env_pixels := os.environ.get("DESIGN_EXPORT_MAX_INPUT_PIXELS"):
        config_data.setdefault("limits", {})["max_input_pixels"] = int(env_pixels)

    # CORS
    if env_origins := os.environ.get("DESIGN_EXPORT_CORS_ORIGINS"):
        config_data.setdefault("cors", {})["allow_origins"] = [
            origin.strip() for origin in env_origins.split(",") if origin.strip()
        ]

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("DESIGN_EXPORT_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("DESIGN_EXPORT_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_fmt := os.environ.get("DESIGN_EXPORT_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_fmt


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)

"""
Export Errors
=============

Typed failures raised by the export pipeline.

Every stage raises one of these instead of degrading silently. The HTTP
layer maps them to status codes:

    InputValidationError    -> 400 (bad caller input, no retry)
    UnsupportedFormatError  -> 400 (payload is not a decodable image)
    ProcessingError         -> 500 (stage failure after validation)
"""

from typing import Optional


class ExportError(Exception):
    """Base class for all export pipeline failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(ExportError):
    """Missing or malformed request input."""

    status_code = 400


class UnsupportedFormatError(ExportError):
    """Payload cannot be decoded as any supported raster or vector format."""

    status_code = 400

    def __init__(self, message: str, mime_type: Optional[str] = None) -> None:
        super().__init__(message)
        self.mime_type = mime_type


class ProcessingError(ExportError):
    """Rasterization, filtering, resizing, compositing or encoding failed."""

    status_code = 500

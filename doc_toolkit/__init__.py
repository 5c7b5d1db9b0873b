"""
Doc Toolkit - Office/PDF conversion, PDF compression and PDF protection.

External tools (LibreOffice, Ghostscript, qpdf, pdftk, poppler) and an
optional ONLYOFFICE Document Server are orchestrated as ordered fallback
chains; the first strategy whose output validates wins.
"""

__version__ = "1.0.0"

from .config import Settings
from .errors import (
    ConversionError,
    ExhaustedError,
    StrategyTimeoutError,
    ToolUnavailableError,
    ValidationError,
)
from .models import ConversionRequest, DocumentProfile, Quality, SourceKind, TargetFormat
from .output_validator import validate_output
from .service import DocumentService, get_document_service

__all__ = [
    "DocumentService",
    "get_document_service",
    "Settings",
    "ConversionRequest",
    "DocumentProfile",
    "SourceKind",
    "TargetFormat",
    "Quality",
    "validate_output",
    "ConversionError",
    "ValidationError",
    "ToolUnavailableError",
    "StrategyTimeoutError",
    "ExhaustedError",
]

"""
Configuration module for doc toolkit.

This module contains default configuration values used across the toolkit,
including timeouts for external tools, output validation thresholds, compression
presets and supported file formats. Values that depend on the deployment
(scratch directory, remote document server) are read from the environment via
:class:`Settings`.
"""

from __future__ import annotations

import os
import sys
import tempfile
from dataclasses import dataclass

# Timeouts (seconds)
CLASSIFY_TIMEOUT = 30
"""int: Timeout for the `pdfinfo` metadata inspection."""

IMAGE_SCAN_TIMEOUT = 10
"""int: Timeout for the `pdfimages -list` scan used by compression."""

OFFICE_TIMEOUT = 120
"""int: Timeout for a single LibreOffice invocation."""

TRANSCODE_TIMEOUT = 120
"""int: Timeout for one library transcoder subprocess."""

COMPRESSION_TIMEOUT = 120
"""int: Timeout for one compression attempt on a text-based PDF."""

IMAGE_HEAVY_COMPRESSION_TIMEOUT = 300
"""int: Timeout for one compression attempt on an image-heavy PDF.

Mobile camera scans downsampled by Ghostscript can take several minutes.
"""

PROTECTION_TIMEOUT = 60
"""int: Timeout for one password protection attempt."""

DOWNLOAD_RETRIES = 3
"""int: Attempts made to download a converted file from the document server."""

DOWNLOAD_BACKOFF = 2.0
"""float: Fixed delay in seconds between download attempts."""

HEALTH_CHECK_TIMEOUT = 5.0
"""float: Timeout for document server health checks."""

# Process runner limits
DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
"""int: Maximum bytes of stdout/stderr kept per process stream."""

# Output validation thresholds (bytes)
MIN_OUTPUT_SIZE = 100
"""int: Smallest output accepted by the output validator."""

MIN_OFFICE_OUTPUT_SIZE = 1000
"""int: Smallest PDF->Office output accepted.

An empty but well-formed ZIP container passes the signature check, so
PDF->Office strategies demand a meaningful payload.
"""

# Input validation
MAX_INPUT_SIZE = 50 * 1024 * 1024
"""int: Largest accepted input document (50MB)."""

MIN_PDF_INPUT_SIZE = 100
"""int: PDFs smaller than this are treated as empty or corrupted."""

MIN_OFFICE_INPUT_SIZE = 1000
"""int: Office documents smaller than this are treated as empty or corrupted."""

PASSWORD_MIN_LENGTH = 4
PASSWORD_MAX_LENGTH = 128

# Document classification
COMPLEX_LAYOUT_PAGE_THRESHOLD = 10
"""int: Documents with more pages than this are flagged as complex."""

LARGE_PDF_PAGE_THRESHOLD = 50
"""int: PDFs with more pages than this get a slow-conversion warning from analysis."""

IMAGE_HEAVY_BYTES_PER_PAGE = 2 * 1024 * 1024
"""int: Bytes per page above which a PDF is treated as image-heavy."""

IMAGE_HEAVY_ENCODINGS = ("jpeg", "jpx", "jp2", "png")
"""tuple: `pdfimages -list` encodings that mark a PDF as image-heavy."""

# Compression
DEFAULT_QUALITY = "moderate"
"""str: Quality used when the caller passes an unknown or empty quality."""

QUALITY_LEVELS = ("low", "moderate", "high")

GHOSTSCRIPT_BASE_ARGS = (
    "-sDEVICE=pdfwrite",
    "-dCompatibilityLevel=1.4",
    "-dNOPAUSE",
    "-dQUIET",
    "-dBATCH",
)
"""tuple: Arguments shared by every Ghostscript compression command."""

# External binaries
LIBREOFFICE_BINARIES = ("soffice", "libreoffice")
GHOSTSCRIPT_BINARY = "gs"
QPDF_BINARY = "qpdf"
PDFTK_BINARY = "pdftk"
PDFINFO_BINARY = "pdfinfo"
PDFIMAGES_BINARY = "pdfimages"
PDFTOTEXT_BINARY = "pdftotext"

REQUIRED_TOOLS = {
    "libreoffice": LIBREOFFICE_BINARIES,
    "ghostscript": (GHOSTSCRIPT_BINARY,),
    "qpdf": (QPDF_BINARY,),
    "pdftk": (PDFTK_BINARY,),
    "pdfinfo": (PDFINFO_BINARY,),
    "pdfimages": (PDFIMAGES_BINARY,),
    "pdftotext": (PDFTOTEXT_BINARY,),
}
"""dict: Tool name to candidate binaries, used by the doctor command."""

TOOL_PACKAGES = {
    "soffice": "LibreOffice",
    "libreoffice": "LibreOffice",
    "gs": "Ghostscript",
    "qpdf": "qpdf",
    "pdftk": "pdftk",
    "pdfinfo": "poppler-utils",
    "pdfimages": "poppler-utils",
    "pdftotext": "poppler-utils",
}
"""dict: Binary name to the package a user has to install."""

# Supported file formats (centralized)
SOURCE_EXTENSIONS = {
    "pdf": {".pdf"},
    "word": {".docx", ".doc", ".txt"},
    "excel": {".xlsx", ".xls", ".csv"},
    "powerpoint": {".pptx", ".ppt"},
}
"""dict: Accepted file extensions per source kind."""

DEFAULT_SOURCE_EXTENSION = {
    "pdf": ".pdf",
    "word": ".docx",
    "excel": ".xlsx",
    "powerpoint": ".pptx",
}
"""dict: Extension used for the scratch copy when the filename has none."""

PLAIN_TEXT_EXTENSIONS = {".txt", ".csv"}
"""Set[str]: Source extensions that carry no binary signature."""

OFFICE_TARGET_FORMATS = ("docx", "xlsx", "pptx")


def source_kind_for_extension(extension: str) -> str | None:
    """Map a file extension onto its source kind, or None when unsupported."""
    ext = extension.lower()
    for kind, exts in SOURCE_EXTENSIONS.items():
        if ext in exts:
            return kind
    return None


@dataclass(frozen=True)
class Settings:
    """
    Deployment settings read from the environment.

    Attributes:
        temp_dir: Shared scratch directory for per-request workspaces
        document_server_url: ONLYOFFICE Document Server base URL, empty when disabled
        remote_timeout: Timeout in seconds for document server requests
        jwt_secret: Secret used to sign document server requests, if enabled
        server_url: Public URL of this service, used for callback URLs
        python_path: Interpreter that runs the library transcoders
    """

    temp_dir: str
    document_server_url: str = ""
    remote_timeout: float = 120.0
    jwt_secret: str | None = None
    server_url: str = "http://localhost:10000"
    python_path: str = sys.executable

    @property
    def remote_enabled(self) -> bool:
        return bool(self.document_server_url)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        timeout_ms = env.get("ONLYOFFICE_TIMEOUT", "120000")
        try:
            remote_timeout = int(timeout_ms) / 1000.0
        except ValueError:
            remote_timeout = 120.0
        if remote_timeout <= 0:
            remote_timeout = 120.0
        return cls(
            temp_dir=env.get("TEMP_DIR") or os.path.join(tempfile.gettempdir(), "pdf-converter"),
            document_server_url=env.get("ONLYOFFICE_DOCUMENT_SERVER_URL", "").rstrip("/"),
            remote_timeout=remote_timeout,
            jwt_secret=env.get("ONLYOFFICE_JWT_SECRET") or None,
            server_url=env.get("SERVER_URL") or f"http://localhost:{env.get('PORT', '10000')}",
            python_path=env.get("PYTHON_PATH") or sys.executable,
        )

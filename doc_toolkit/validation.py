"""
Input validation for conversion requests.

Validates uploaded bytes, filenames and operation parameters before any
external tool runs, and builds the immutable :class:`ConversionRequest`
handed to the pipeline.
"""

from __future__ import annotations

import os
import re

from . import config
from .errors import ValidationError
from .models import ConversionRequest, Quality, SourceKind, TargetFormat

OLE_SIGNATURE = bytes.fromhex("d0cf11e0")
EXECUTABLE_SIGNATURES = (b"MZ", b"\x7fELF")
SUSPICIOUS_PATTERNS = (
    re.compile(rb"<script\b", re.IGNORECASE),
    re.compile(rb"javascript:", re.IGNORECASE),
    re.compile(rb"vbscript:", re.IGNORECASE),
)

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_NON_WORD = re.compile(r"[^\w\-.]")

SUPPORTED_PAIRS = {
    (SourceKind.WORD, TargetFormat.PDF),
    (SourceKind.EXCEL, TargetFormat.PDF),
    (SourceKind.POWERPOINT, TargetFormat.PDF),
    (SourceKind.PDF, TargetFormat.DOCX),
    (SourceKind.PDF, TargetFormat.XLSX),
    (SourceKind.PDF, TargetFormat.PPTX),
}


def sanitize_filename(filename: str | None) -> str:
    """
    Sanitize a filename to prevent path traversal and other security issues.

    Args:
        filename: Client-supplied filename

    Returns:
        Basename containing only word characters, dashes, underscores and dots
    """
    if not filename:
        return "untitled_file"

    basename = os.path.basename(filename.replace("\\", "/"))
    sanitized = _UNSAFE_CHARS.sub("_", basename)
    sanitized = sanitized.lstrip(".")
    sanitized = re.sub(r"\s+", "_", sanitized)
    sanitized = _NON_WORD.sub("_", sanitized)[:255]

    if not sanitized or sanitized in (".", ".."):
        return "sanitized_file"
    return sanitized


def coerce_source_kind(value) -> SourceKind:
    try:
        return SourceKind(getattr(value, "value", value))
    except ValueError:
        raise ValidationError(f"Unsupported source kind: {value}") from None


def coerce_target_format(value) -> TargetFormat:
    try:
        return TargetFormat(str(getattr(value, "value", value)).lower())
    except ValueError:
        raise ValidationError(f"Unsupported target format: {value}") from None


def normalize_quality(quality) -> Quality:
    """
    Validate and sanitize a compression quality parameter.

    Empty or unknown strings fall back to the default quality, matching how
    the upload form has always behaved. Anything that is not a string is a
    programming error and rejected.
    """
    if quality is None:
        return Quality(config.DEFAULT_QUALITY)
    if isinstance(quality, Quality):
        return quality
    if not isinstance(quality, str):
        raise ValidationError(f"Invalid compression quality: {quality!r}")
    cleaned = quality.strip().lower()
    if cleaned not in config.QUALITY_LEVELS:
        return Quality(config.DEFAULT_QUALITY)
    return Quality(cleaned)


def validate_password(password) -> str:
    """
    Check password constraints for PDF protection.

    Raises:
        ValidationError: If the password is empty, too short or too long
    """
    if not isinstance(password, str) or not password.strip():
        raise ValidationError("Password cannot be empty")
    if len(password) < config.PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {config.PASSWORD_MIN_LENGTH} characters long"
        )
    if len(password) > config.PASSWORD_MAX_LENGTH:
        raise ValidationError(
            f"Password must be at most {config.PASSWORD_MAX_LENGTH} characters long"
        )
    return password


def _extension(filename: str, source_kind: SourceKind) -> str:
    ext = os.path.splitext(filename)[1].lower()
    return ext or config.DEFAULT_SOURCE_EXTENSION[source_kind.value]


def _has_suspicious_content(data: bytes) -> bool:
    if data.startswith(EXECUTABLE_SIGNATURES):
        return True
    head = data[:1024]
    return any(pattern.search(head) for pattern in SUSPICIOUS_PATTERNS)


def validate_source(data: bytes, source_kind: SourceKind, filename: str) -> list[str]:
    """
    Validate an uploaded document.

    Args:
        data: Raw document bytes
        source_kind: Declared kind of the document
        filename: Sanitized filename

    Returns:
        List of validation errors (empty when the document is acceptable)
    """
    if not data:
        return ["No file provided"]

    errors: list[str] = []
    label = source_kind.value.upper() if source_kind is SourceKind.PDF else source_kind.value.capitalize()

    if _has_suspicious_content(data):
        return ["File contains potentially malicious content"]

    if len(data) > config.MAX_INPUT_SIZE:
        errors.append(
            f"{label} file size {len(data) / (1024 * 1024):.2f}MB exceeds maximum limit of "
            f"{config.MAX_INPUT_SIZE // (1024 * 1024)}MB"
        )

    ext = _extension(filename, source_kind)
    allowed = config.SOURCE_EXTENSIONS[source_kind.value]
    if ext not in allowed:
        errors.append(f"Invalid file extension: {ext}. Expected one of: {', '.join(sorted(allowed))}")

    if source_kind is SourceKind.PDF:
        if data[:4] != b"%PDF":
            errors.append("Invalid PDF file format - missing PDF header")
        if len(data) < config.MIN_PDF_INPUT_SIZE:
            errors.append("PDF file appears to be empty or corrupted")
        return errors

    if ext not in config.PLAIN_TEXT_EXTENSIONS:
        if ext in (".docx", ".xlsx", ".pptx"):
            header_ok = data[:2] == b"PK"
        else:
            header_ok = data[:4] == OLE_SIGNATURE
        if not header_ok:
            errors.append(f"Invalid {ext} file format - file header does not match expected format")
    if len(data) < config.MIN_OFFICE_INPUT_SIZE:
        errors.append(f"{label} file appears to be empty or corrupted")
    return errors


def build_request(
    data: bytes,
    source_kind,
    target_format,
    filename: str | None = None,
    *,
    quality=None,
    password: str | None = None,
) -> ConversionRequest:
    """
    Validate inputs and build an immutable conversion request.

    Raises:
        ValidationError: If the document or any parameter is invalid
    """
    kind = coerce_source_kind(source_kind)
    target = coerce_target_format(target_format)
    if filename is None:
        filename = f"document{config.DEFAULT_SOURCE_EXTENSION[kind.value]}"
    sanitized = sanitize_filename(filename)

    errors = validate_source(data, kind, sanitized)
    if errors:
        raise ValidationError(f"File validation failed: {', '.join(errors)}")

    return ConversionRequest(
        source_bytes=bytes(data),
        source_kind=kind,
        target_format=target,
        original_filename=sanitized,
        quality_hint=normalize_quality(quality) if quality is not None else None,
        password=password,
    )


def check_conversion_pair(source_kind: SourceKind, target_format: TargetFormat) -> None:
    if (source_kind, target_format) not in SUPPORTED_PAIRS:
        raise ValidationError(
            f"Unsupported conversion: {source_kind.value} to {target_format.value}"
        )

"""
Signature and size checks for produced documents.

Every function here is pure: it only looks at the bytes it is given.
"""

from __future__ import annotations

from . import config

PDF_SIGNATURE = b"%PDF"
ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")


def zip_signature_ok(data: bytes) -> bool:
    """Check for a ZIP local header, end-of-central-directory or spanning marker."""
    return data[:4] in ZIP_SIGNATURES


def pdf_signature_ok(data: bytes) -> bool:
    return data[:4] == PDF_SIGNATURE


def validate_output(data: bytes | None, target_format: str, min_size: int = config.MIN_OUTPUT_SIZE) -> bool:
    """
    Validate a candidate output buffer against the expected target format.

    Args:
        data: Produced bytes (None counts as missing)
        target_format: Expected format ('pdf', 'docx', 'xlsx', 'pptx')
        min_size: Smallest acceptable length in bytes

    Returns:
        True if the buffer is large enough and carries the right signature.
        Unknown formats only get the size check.
    """
    if data is None or len(data) < min_size:
        return False

    fmt = str(getattr(target_format, "value", target_format)).lower()
    if fmt == "pdf":
        return pdf_signature_ok(data)
    if fmt in config.OFFICE_TARGET_FORMATS:
        return zip_signature_ok(data)
    return True


def describe_rejection(data: bytes | None, target_format: str, min_size: int = config.MIN_OUTPUT_SIZE) -> str:
    """Explain why :func:`validate_output` rejected a buffer."""
    if data is None:
        return "no output produced"
    if len(data) < min_size:
        return f"output too small ({len(data)} bytes, expected at least {min_size})"
    fmt = str(getattr(target_format, "value", target_format)).lower()
    if fmt == "pdf" and not pdf_signature_ok(data):
        return "output is not a valid PDF (missing %PDF header)"
    if fmt in config.OFFICE_TARGET_FORMATS and not zip_signature_ok(data):
        return f"output is not a valid {fmt.upper()} container (missing ZIP signature)"
    return "output accepted"

"""
Ordered strategy chains per operation.

The executor knows nothing about tools; this module decides which strategies
run, and in which order, for a given request.
"""

from __future__ import annotations

from typing import Optional

from . import config
from .config import Settings
from .models import Quality, SourceKind, TargetFormat
from .strategies.base import Strategy
from .strategies.encryption import protection_strategies
from .strategies.ghostscript import image_heavy_strategies, text_strategies
from .strategies.libreoffice import (
    EXCEL_TO_PDF_VARIANTS,
    OFFICE_TO_PDF_VARIANTS,
    PDF_TO_OFFICE_VARIANTS,
    LibreOfficeStrategy,
)
from .strategies.remote import DocumentServerClient, RemoteConversionStrategy
from .strategies.transcoder import TranscoderStrategy


def office_to_pdf_chain(source_kind: SourceKind) -> list[Strategy]:
    """Word/PowerPoint use one plain invocation, Excel gets the calc-specific variants."""
    variants = EXCEL_TO_PDF_VARIANTS if source_kind is SourceKind.EXCEL else OFFICE_TO_PDF_VARIANTS
    return [LibreOfficeStrategy(variant) for variant in variants]


def pdf_to_office_chain(
    target_format: TargetFormat,
    settings: Settings,
    remote_client: Optional[DocumentServerClient] = None,
) -> list[Strategy]:
    """
    Remote server (when configured), premium transcoder, LibreOffice variants,
    basic transcoder.
    """
    chain: list[Strategy] = []
    if settings.remote_enabled:
        client = remote_client or DocumentServerClient(settings)
        chain.append(RemoteConversionStrategy(client))

    chain.append(TranscoderStrategy("premium"))
    chain.extend(
        LibreOfficeStrategy(variant, min_output_size=config.MIN_OFFICE_OUTPUT_SIZE)
        for variant in PDF_TO_OFFICE_VARIANTS[target_format.value]
    )
    chain.append(TranscoderStrategy("basic"))
    return chain


def conversion_chain(
    source_kind: SourceKind,
    target_format: TargetFormat,
    settings: Settings,
    remote_client: Optional[DocumentServerClient] = None,
) -> list[Strategy]:
    if source_kind is SourceKind.PDF:
        return pdf_to_office_chain(target_format, settings, remote_client)
    return office_to_pdf_chain(source_kind)


def compression_chain(quality: Quality, image_heavy: bool) -> list[Strategy]:
    """The image-heavy branch ignores quality and always downsamples."""
    if image_heavy:
        return list(image_heavy_strategies())
    return list(text_strategies(quality.value))


def protection_chain() -> list[Strategy]:
    return list(protection_strategies())

"""
Conversion strategies.

Each module defines one family of strategies; :mod:`doc_toolkit.chains`
arranges them into ordered chains per operation.
"""

from .base import CommandStrategy, Strategy, StrategyContext
from .encryption import ProtectionStrategy, protection_strategies
from .ghostscript import ghostscript_strategy, image_heavy_strategies, qpdf_strategy, text_strategies
from .libreoffice import LibreOfficeStrategy, LibreOfficeVariant
from .remote import DocumentServerClient, RemoteConversionJob, RemoteConversionStrategy, RemoteState
from .transcoder import TranscoderStrategy

__all__ = [
    "Strategy",
    "CommandStrategy",
    "StrategyContext",
    "LibreOfficeStrategy",
    "LibreOfficeVariant",
    "ghostscript_strategy",
    "qpdf_strategy",
    "image_heavy_strategies",
    "text_strategies",
    "ProtectionStrategy",
    "protection_strategies",
    "TranscoderStrategy",
    "DocumentServerClient",
    "RemoteConversionJob",
    "RemoteConversionStrategy",
    "RemoteState",
]

"""
PDF password protection strategies (qpdf and pdftk).

A protection attempt only counts when the produced file really is encrypted;
copying the input through unprotected is never an acceptable fallback.
"""

from __future__ import annotations

import io
import logging

from pypdf import PdfReader

from .. import config
from .base import CommandStrategy, StrategyContext

logger = logging.getLogger(__name__)


class ProtectionStrategy(CommandStrategy):
    """Command strategy whose output must parse as an encrypted PDF."""

    def __init__(self, strategy_id, build, *, timeout: float = config.PROTECTION_TIMEOUT, **kwargs):
        super().__init__(strategy_id, build, timeout=timeout, **kwargs)

    def accept(self, data: bytes, context: StrategyContext) -> str | None:
        try:
            encrypted = PdfReader(io.BytesIO(data), strict=False).is_encrypted
        except Exception as e:  # pypdf raises assorted errors on malformed files
            logger.debug(f"{self.id}: could not parse protected output: {e}")
            return "output could not be parsed as a PDF"
        if not encrypted:
            return "output is not encrypted"
        return None


def _password(context: StrategyContext) -> str:
    return context.request.password or ""


def qpdf_aes256(context: StrategyContext) -> list[str]:
    password = _password(context)
    return [
        config.QPDF_BINARY,
        "--encrypt",
        f"--user-password={password}",
        f"--owner-password={password}",
        "--bits=256",
        "--",
        str(context.input_path),
        str(context.output_path),
    ]


def qpdf_aes128(context: StrategyContext) -> list[str]:
    password = _password(context)
    return [
        config.QPDF_BINARY,
        "--encrypt",
        password,
        password,
        "128",
        "--use-aes=y",
        "--",
        str(context.input_path),
        str(context.output_path),
    ]


def pdftk_default(context: StrategyContext) -> list[str]:
    password = _password(context)
    return [
        config.PDFTK_BINARY,
        str(context.input_path),
        "output",
        str(context.output_path),
        "user_pw",
        password,
        "owner_pw",
        password,
    ]


def pdftk_128bit(context: StrategyContext) -> list[str]:
    return [*pdftk_default(context), "encrypt_128bit"]


def protection_strategies() -> list[ProtectionStrategy]:
    """qpdf AES-256, pdftk, then a 128-bit retry of both tools."""
    return [
        ProtectionStrategy("qpdf-aes256", qpdf_aes256),
        ProtectionStrategy("pdftk", pdftk_default),
        ProtectionStrategy("qpdf-aes128", qpdf_aes128),
        ProtectionStrategy("pdftk-128bit", pdftk_128bit),
    ]

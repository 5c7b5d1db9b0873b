"""
PDF compression strategies (Ghostscript pdfwrite presets and qpdf stream recompression).
"""

from __future__ import annotations

from .. import config
from .base import CommandStrategy, StrategyContext

QPDF_OK_CODES = (0, 3)
"""qpdf exits with 3 when it succeeded with warnings."""

IMAGE_DOWNSAMPLE_ARGS = (
    "-dDownsampleColorImages=true",
    "-dColorImageDownsampleType=/Bicubic",
)


def ghostscript_strategy(preset: str, *extra: str, timeout: float = config.COMPRESSION_TIMEOUT, name: str | None = None) -> CommandStrategy:
    """
    Build a Ghostscript pdfwrite strategy.

    Args:
        preset: `-dPDFSETTINGS` preset without the slash ('screen', 'ebook', ...)
        extra: Additional Ghostscript arguments
        timeout: Seconds allowed for the run
        name: Strategy id suffix, defaults to the preset
    """

    def build(context: StrategyContext) -> list[str]:
        return [
            config.GHOSTSCRIPT_BINARY,
            *config.GHOSTSCRIPT_BASE_ARGS,
            f"-dPDFSETTINGS=/{preset}",
            *extra,
            f"-sOutputFile={context.output_path}",
            str(context.input_path),
        ]

    return CommandStrategy(f"ghostscript-{name or preset}", build, timeout=timeout)


def qpdf_strategy(*extra: str, name: str, timeout: float = config.COMPRESSION_TIMEOUT) -> CommandStrategy:
    """Build a qpdf linearize + stream compression strategy."""

    def build(context: StrategyContext) -> list[str]:
        return [
            config.QPDF_BINARY,
            "--linearize",
            "--compress-streams=y",
            *extra,
            str(context.input_path),
            str(context.output_path),
        ]

    return CommandStrategy(f"qpdf-{name}", build, timeout=timeout, ok_codes=QPDF_OK_CODES)


def image_heavy_strategies() -> list[CommandStrategy]:
    """Aggressive image downsampling for scans and photo-heavy PDFs."""
    timeout = config.IMAGE_HEAVY_COMPRESSION_TIMEOUT
    return [
        ghostscript_strategy(
            "screen", *IMAGE_DOWNSAMPLE_ARGS, "-dColorImageResolution=72",
            timeout=timeout, name="screen-72dpi",
        ),
        ghostscript_strategy(
            "ebook", *IMAGE_DOWNSAMPLE_ARGS, "-dColorImageResolution=150",
            timeout=timeout, name="ebook-150dpi",
        ),
        ghostscript_strategy("printer", timeout=timeout),
    ]


def text_strategies(quality: str) -> list[CommandStrategy]:
    """Presets for text-based PDFs, strongest compression first."""
    if quality == "low":
        return [
            ghostscript_strategy("screen"),
            ghostscript_strategy("ebook"),
            qpdf_strategy("--recompress-flate", "--compression-level=9", name="recompress-max"),
        ]
    if quality == "high":
        return [
            ghostscript_strategy("prepress"),
            qpdf_strategy(name="linearize"),
        ]
    return [
        ghostscript_strategy("printer"),
        ghostscript_strategy("ebook"),
        qpdf_strategy("--recompress-flate", name="recompress"),
    ]

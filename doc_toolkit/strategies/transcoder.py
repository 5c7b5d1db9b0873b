"""
PDF->Office strategies backed by the Python library transcoders.

The transcoders run in a child interpreter (`python -m doc_toolkit.transcode`)
so that their timeout is enforced the same way as for any other external tool.
"""

from __future__ import annotations

from pathlib import Path

from .. import config
from .base import CommandStrategy, StrategyContext

TIERS = ("premium", "basic")

_PROJECT_ROOT = str(Path(__file__).resolve().parents[2])


class TranscoderStrategy(CommandStrategy):
    """Runs one transcoder tier for the request's target format."""

    def __init__(self, tier: str, *, timeout: float = config.TRANSCODE_TIMEOUT, **kwargs):
        if tier not in TIERS:
            raise ValueError(f"Unknown transcoder tier: {tier}")
        self.tier = tier
        kwargs.setdefault("min_output_size", config.MIN_OFFICE_OUTPUT_SIZE)
        super().__init__(
            f"transcode-{tier}",
            self._build_command,
            timeout=timeout,
            cwd=_PROJECT_ROOT,
            **kwargs,
        )

    def _build_command(self, context: StrategyContext) -> list[str]:
        return [
            context.settings.python_path,
            "-m",
            "doc_toolkit.transcode",
            self.tier,
            str(context.input_path),
            str(context.output_path),
            context.target,
        ]

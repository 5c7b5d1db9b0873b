"""
Value types shared by the conversion pipeline.

Requests, document profiles and strategy outcomes are plain dataclasses;
none of them is mutated once created.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable


class SourceKind(str, Enum):
    PDF = "pdf"
    WORD = "word"
    EXCEL = "excel"
    POWERPOINT = "powerpoint"


class TargetFormat(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    XLSX = "xlsx"
    PPTX = "pptx"


class Quality(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class Operation(str, Enum):
    CONVERT = "convert"
    COMPRESS = "compress"
    PROTECT = "protect"
    ANALYZE = "analyze"


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    REJECTED_INVALID_OUTPUT = "rejected-invalid-output"
    TOOL_ERROR = "tool-error"
    TIMEOUT = "timeout"


class StrategyKind(str, Enum):
    EXTERNAL_TOOL = "external-tool-invocation"
    REMOTE_SERVICE = "remote-service-call"


@dataclass(frozen=True)
class ConversionRequest:
    """
    One validated call into the toolkit.

    Created once per API call and owned by that call's pipeline.
    ``quality_hint`` only applies to compression and ``password`` only to
    protection.
    """

    source_bytes: bytes = field(repr=False)
    source_kind: SourceKind
    target_format: TargetFormat
    original_filename: str
    quality_hint: Quality | None = None
    password: str | None = field(default=None, repr=False)

    @property
    def size(self) -> int:
        return len(self.source_bytes)


@dataclass(frozen=True)
class DocumentProfile:
    """
    Heuristic metadata snapshot of a PDF.

    The flags are best-effort signals used to pick the compression branch
    and to enrich diagnostics; they never gate a conversion.
    """

    page_count: int = 1
    is_encrypted: bool = False
    is_scanned: bool = False
    has_complex_layout: bool = False
    size_bytes: int = 0
    is_image_heavy: bool = False

    @property
    def bytes_per_page(self) -> float:
        return self.size_bytes / max(self.page_count, 1)

    @classmethod
    def default(cls, size_bytes: int = 0) -> "DocumentProfile":
        """Conservative profile used whenever classification fails."""
        return cls(page_count=1, size_bytes=size_bytes)


class LazyProfile:
    """Computes a document profile on first use and caches it for the request."""

    def __init__(self, factory: Callable[[], Awaitable[DocumentProfile]]):
        self._factory = factory
        self._profile: DocumentProfile | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def of(cls, profile: DocumentProfile) -> "LazyProfile":
        async def _ready() -> DocumentProfile:
            return profile

        lazy = cls(_ready)
        lazy._profile = profile
        return lazy

    async def get(self) -> DocumentProfile:
        if self._profile is None:
            async with self._lock:
                if self._profile is None:
                    self._profile = await self._factory()
        return self._profile


@dataclass
class StrategyOutcome:
    """Result of running one strategy of a chain."""

    strategy_id: str
    status: OutcomeStatus
    diagnostic: str = ""
    produced_bytes: bytes | None = field(default=None, repr=False)
    missing_tool: str | None = None
    elapsed: float = 0.0

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS


@dataclass
class OperationResult:
    """
    Output of one service call together with how it was produced.

    ``strategy`` is the winning strategy id, or "original" when compression
    returned the input unchanged.
    """

    data: bytes = field(repr=False)
    strategy: str
    outcomes: list[StrategyOutcome] = field(default_factory=list)
    elapsed: float = 0.0

"""
Document service facade.

This module exposes the three operations of the toolkit (Office<->PDF
conversion, PDF compression, PDF password protection) behind one async
interface. Each call validates its input, opens a per-request workspace,
picks the strategy chain and hands it to the executor:

- Chain tables: chains.py
- Executor: executor.py
- Strategies: strategies/
"""

from __future__ import annotations

import importlib.util
import logging
import os
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable

from . import config
from .chains import compression_chain, conversion_chain, protection_chain
from .classifier import DocumentClassifier
from .config import Settings
from .errors import ConversionError
from .executor import StrategyChainExecutor
from .analysis import PdfAnalysis, recommend
from .models import ConversionRequest, DocumentProfile, LazyProfile, Operation, OperationResult, SourceKind
from .runner import ProcessRunner
from .stats import ConversionStats
from .strategies.base import StrategyContext
from .strategies.remote import DocumentServerClient
from .utils.profiling import Profiler
from .validation import (
    build_request,
    check_conversion_pair,
    coerce_source_kind,
    coerce_target_format,
    normalize_quality,
    validate_password,
)
from .workspace import Workspace

TRANSCODER_MODULES = ("pdf2docx", "pdfplumber", "pypdfium2", "pypdf", "docx", "openpyxl", "pptx")
"""Import names the library transcoders need in the child interpreter."""

Handler = Callable[[ConversionRequest, Workspace, StrategyChainExecutor], Awaitable[bytes]]


class DocumentService:
    """
    Async entry point for conversion, compression and protection.

    One instance serves many concurrent requests; per-request state lives in
    the workspace and executor created for each call. The `*_detailed`
    methods report the winning strategy of their own call, while
    ``last_strategy`` only reflects whichever call finished most recently.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        runner: ProcessRunner | None = None,
        remote_client: DocumentServerClient | None = None,
        profiler: Profiler | None = None,
    ):
        self.settings = settings or Settings.from_env()
        self.runner = runner or ProcessRunner()
        self.classifier = DocumentClassifier(self.runner)
        if remote_client is None and self.settings.remote_enabled:
            remote_client = DocumentServerClient(self.settings)
        self.remote_client = remote_client
        self.profiler = profiler
        self.stats = ConversionStats()
        self.last_strategy: str | None = None
        self.logger = logging.getLogger(__name__)

        if self.settings.remote_enabled:
            self.logger.info(f"Document server configured at: {self.settings.document_server_url}")
        else:
            self.logger.debug("Document server not configured, remote conversion disabled")

    async def convert(self, data: bytes, source_kind, target_format, filename: str | None = None) -> bytes:
        """
        Convert Office->PDF or PDF->Office.

        Args:
            data: Source document bytes
            source_kind: 'pdf', 'word', 'excel' or 'powerpoint'
            target_format: 'pdf', 'docx', 'xlsx' or 'pptx'
            filename: Client filename, used for validation and logging

        Returns:
            The converted document

        Raises:
            ValidationError: For bad input or an unsupported pair
            ToolUnavailableError: If the needed tools are not installed
            ExhaustedError: If every strategy failed
        """
        result = await self.convert_detailed(data, source_kind, target_format, filename)
        return result.data

    async def convert_detailed(
        self, data: bytes, source_kind, target_format, filename: str | None = None
    ) -> OperationResult:
        """Like :meth:`convert`, but also report the winning strategy and the attempt log."""
        kind = coerce_source_kind(source_kind)
        target = coerce_target_format(target_format)
        check_conversion_pair(kind, target)
        request = build_request(data, kind, target, filename)
        return await self._run(Operation.CONVERT, request, self._convert)

    async def compress(self, data: bytes, quality=None, filename: str | None = None) -> bytes:
        """
        Compress a PDF; never returns something larger than the input.

        Unknown quality strings fall back to 'moderate'.
        """
        result = await self.compress_detailed(data, quality, filename)
        return result.data

    async def compress_detailed(self, data: bytes, quality=None, filename: str | None = None) -> OperationResult:
        level = normalize_quality(quality)
        request = build_request(data, SourceKind.PDF, "pdf", filename, quality=level)
        return await self._run(Operation.COMPRESS, request, self._compress)

    async def protect(self, data: bytes, password: str, filename: str | None = None) -> bytes:
        """
        Encrypt a PDF with a user/owner password.

        The password is checked before any tool runs. The result is always an
        encrypted PDF; there is no unprotected fallback.
        """
        result = await self.protect_detailed(data, password, filename)
        return result.data

    async def protect_detailed(self, data: bytes, password: str, filename: str | None = None) -> OperationResult:
        validate_password(password)
        request = build_request(data, SourceKind.PDF, "pdf", filename, password=password)
        return await self._run(Operation.PROTECT, request, self._protect)

    async def analyze(self, data: bytes, filename: str | None = None) -> PdfAnalysis:
        """
        Classify a PDF and recommend whether converting it to Office is worthwhile.

        Classification failures fall back to the default profile, so only
        invalid input raises.

        Raises:
            ValidationError: If the bytes are not an acceptable PDF
        """
        request = build_request(data, SourceKind.PDF, "pdf", filename)
        start_time = time.perf_counter()
        try:
            workspace = Workspace(self.settings.temp_dir)
        except OSError as e:
            self.stats.add_result(Operation.ANALYZE.value, False, bytes_in=request.size, error_kind="workspace_error")
            raise ConversionError(f"Scratch directory is unavailable: {e}", kind="workspace_error") from e

        async with workspace:
            input_path = workspace.write("analysis.pdf", request.source_bytes)
            profile = await self.classifier.classify(input_path, request.size)

        elapsed = time.perf_counter() - start_time
        self.stats.add_result(Operation.ANALYZE.value, True, elapsed, bytes_in=request.size)
        if self.profiler is not None:
            self.profiler.record(f"operation.{Operation.ANALYZE.value}", elapsed)
        self.logger.info(f"Analyzed {request.original_filename} in {elapsed:.2f}s")
        return PdfAnalysis(request.original_filename, request.size, profile, recommend(profile))

    async def _run(self, operation: Operation, request: ConversionRequest, handler: Handler) -> OperationResult:
        start_time = time.perf_counter()
        executor = StrategyChainExecutor(self.profiler)
        self.logger.info(
            f"Starting {operation.value}: {request.original_filename} "
            f"({request.source_kind.value} -> {request.target_format.value}, {request.size} bytes)"
        )

        try:
            try:
                workspace = Workspace(self.settings.temp_dir)
            except OSError as e:
                raise ConversionError(f"Scratch directory is unavailable: {e}", kind="workspace_error") from e

            async with workspace:
                result = await handler(request, workspace, executor)
        except ConversionError as e:
            elapsed = time.perf_counter() - start_time
            self.stats.add_result(
                operation.value, False, elapsed, bytes_in=request.size, error_kind=e.kind
            )
            raise

        elapsed = time.perf_counter() - start_time
        strategy = executor.winner or "original"
        self.last_strategy = strategy
        self.stats.add_result(
            operation.value, True, elapsed, strategy=strategy, bytes_in=request.size, bytes_out=len(result)
        )
        if self.profiler is not None:
            self.profiler.record(f"operation.{operation.value}", elapsed)
        self.logger.info(
            f"Finished {operation.value} of {request.original_filename} in {elapsed:.2f}s "
            f"via {strategy} ({len(result)} bytes)"
        )
        return OperationResult(result, strategy, list(executor.last_outcomes), elapsed)

    def _context(self, request: ConversionRequest, workspace: Workspace) -> StrategyContext:
        """Write the scratch input and set up the lazily classified profile."""
        ext = os.path.splitext(request.original_filename)[1].lower()
        if not ext:
            ext = config.DEFAULT_SOURCE_EXTENSION[request.source_kind.value]
        input_path = workspace.write(f"input{ext}", request.source_bytes)

        if request.source_kind is SourceKind.PDF:
            profile = LazyProfile(lambda: self.classifier.classify(input_path, request.size))
        else:
            profile = LazyProfile.of(DocumentProfile.default(request.size))

        return StrategyContext(
            request=request,
            workspace=workspace,
            runner=self.runner,
            settings=self.settings,
            profile=profile,
            input_path=input_path,
            output_path=workspace.path(f"output.{request.target_format.value}"),
        )

    async def _convert(self, request, workspace, executor) -> bytes:
        context = self._context(request, workspace)
        chain = conversion_chain(request.source_kind, request.target_format, self.settings, self.remote_client)
        return await executor.execute(context, chain, Operation.CONVERT)

    async def _compress(self, request, workspace, executor) -> bytes:
        context = self._context(request, workspace)
        profile = await context.profile.get()
        image_heavy = await self.classifier.detect_image_heavy(context.input_path, profile)
        context.profile = LazyProfile.of(replace(profile, is_image_heavy=image_heavy))

        quality = request.quality_hint or normalize_quality(None)
        self.logger.info(
            f"Compressing with quality={quality.value}, "
            f"branch={'image-heavy' if image_heavy else 'text'}"
        )
        chain = compression_chain(quality, image_heavy)
        result = await executor.execute(context, chain, Operation.COMPRESS, image_heavy=image_heavy)

        if len(result) > request.size:
            self.logger.info(
                f"Compressed output ({len(result)} bytes) larger than input ({request.size} bytes), "
                "returning original"
            )
            executor.winner = None
            return request.source_bytes
        self.logger.info(f"Compression ratio: {(1 - len(result) / request.size) * 100:.1f}%")
        return result

    async def _protect(self, request, workspace, executor) -> bytes:
        context = self._context(request, workspace)
        return await executor.execute(context, protection_chain(), Operation.PROTECT)

    def check_tools(self) -> dict[str, bool]:
        """Report which external tools and transcoder libraries are installed."""
        report = {
            name: ProcessRunner.which(*binaries) is not None
            for name, binaries in config.REQUIRED_TOOLS.items()
        }
        report["transcoders"] = all(importlib.util.find_spec(name) is not None for name in TRANSCODER_MODULES)
        return report

    async def remote_health(self) -> dict[str, Any]:
        if self.remote_client is None:
            return {"available": False, "reason": "Document server URL not configured"}
        return await self.remote_client.server_info()

    def get_statistics(self) -> dict[str, Any]:
        summary = self.stats.get_summary()
        if self.profiler is not None:
            summary["profile"] = self.profiler.to_dict()
        return summary


# Singleton instance for global use
_document_service = None


def get_document_service() -> DocumentService:
    """
    Get the global document service instance (singleton pattern).

    Returns:
        Global DocumentService built from environment settings
    """
    global _document_service
    if _document_service is None:
        _document_service = DocumentService()
    return _document_service

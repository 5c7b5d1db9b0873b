"""
Strategy chain executor.

Runs an ordered list of strategies one after another and returns the first
output that passes validation. Per-strategy failures are recorded as
:class:`StrategyOutcome` objects and never escape; only exhaustion of the
whole chain is raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import nullcontext
from typing import Sequence

import httpx

from .errors import ProcessRunnerError, ProcessTimeoutError, RemoteServiceError, ToolNotFoundError
from .models import Operation, OutcomeStatus, StrategyKind, StrategyOutcome
from .output_validator import describe_rejection, validate_output
from .reporter import diagnostic_for, exhaustion_error
from .strategies.base import Strategy, StrategyContext
from .utils.profiling import Profiler

TIMEOUT_ERRORS = (ProcessTimeoutError, httpx.TimeoutException, asyncio.TimeoutError)
TOOL_ERRORS = (ProcessRunnerError, RemoteServiceError, httpx.HTTPError, OSError)


class StrategyChainExecutor:
    """
    Sequential, first-success-wins executor for one request.

    Attributes:
        last_outcomes: Attempt log of the most recent :meth:`execute` call
        winner: Id of the strategy that produced the last accepted output
    """

    def __init__(self, profiler: Profiler | None = None):
        self.profiler = profiler
        self.last_outcomes: list[StrategyOutcome] = []
        self.winner: str | None = None
        self.logger = logging.getLogger(__name__)

    async def execute(
        self,
        context: StrategyContext,
        strategies: Sequence[Strategy],
        operation: Operation = Operation.CONVERT,
        *,
        image_heavy: bool = False,
    ) -> bytes:
        """
        Run the chain until one strategy yields valid output.

        Args:
            context: Request context shared by every strategy
            strategies: Ordered chain
            operation: Operation being performed, used for diagnostics
            image_heavy: Whether the compression branch was image-heavy

        Returns:
            The accepted output bytes

        Raises:
            ToolUnavailableError: If every strategy failed for lack of a binary
            ExhaustedError: If every strategy failed otherwise
        """
        self.last_outcomes = []
        self.winner = None
        total = len(strategies)

        for index, strategy in enumerate(strategies, 1):
            self.logger.info(f"{operation.value}: attempting {strategy.id} ({index}/{total})")
            outcome = await self._attempt(strategy, context)
            self.last_outcomes.append(outcome)

            if outcome.success:
                self.winner = strategy.id
                self.logger.info(
                    f"{operation.value}: {strategy.id} succeeded in {outcome.elapsed:.2f}s "
                    f"({len(outcome.produced_bytes)} bytes)"
                )
                return outcome.produced_bytes

            self.logger.warning(
                f"{operation.value}: {strategy.id} failed ({outcome.status.value}): {outcome.diagnostic}"
            )

        profile = await context.profile.get()
        error = exhaustion_error(
            operation,
            self.last_outcomes,
            profile,
            image_heavy=image_heavy,
            target=context.target if operation is Operation.CONVERT else None,
        )
        self.logger.error(f"{operation.value}: all {total} strategies failed: {error.message}")
        raise error

    async def _attempt(self, strategy: Strategy, context: StrategyContext) -> StrategyOutcome:
        scratch = str(context.workspace.scratch_dir)
        start_time = time.perf_counter()
        produced: bytes | None = None
        failure: StrategyOutcome | None = None

        tracker = self.profiler.track(f"strategy.{strategy.id}") if self.profiler else nullcontext()
        with tracker:
            try:
                produced = await strategy.invoke(context)
            except TIMEOUT_ERRORS as e:
                failure = StrategyOutcome(strategy.id, OutcomeStatus.TIMEOUT, diagnostic_for(e, scratch))
            except ToolNotFoundError as e:
                failure = StrategyOutcome(
                    strategy.id, OutcomeStatus.TOOL_ERROR, diagnostic_for(e, scratch), missing_tool=e.tool
                )
            except TOOL_ERRORS as e:
                self.logger.debug(f"{strategy.id} raised {e!r}")
                failure = StrategyOutcome(strategy.id, OutcomeStatus.TOOL_ERROR, diagnostic_for(e, scratch))
            except Exception as e:
                self.logger.exception(f"{strategy.id} failed unexpectedly")
                failure = StrategyOutcome(strategy.id, OutcomeStatus.TOOL_ERROR, diagnostic_for(e, scratch))

            if strategy.kind is StrategyKind.EXTERNAL_TOOL:
                try:
                    found = self._collect_output(strategy, context)
                except OSError as e:
                    found = None
                    if failure is None:
                        failure = StrategyOutcome(
                            strategy.id, OutcomeStatus.TOOL_ERROR, f"could not read output: {e.strerror or e}"
                        )
                if produced is None:
                    produced = found

        elapsed = time.perf_counter() - start_time
        if failure is not None:
            failure.elapsed = elapsed
            return failure

        if produced is None:
            return StrategyOutcome(strategy.id, OutcomeStatus.TOOL_ERROR, "no output produced", elapsed=elapsed)

        if strategy.check_signature:
            valid = validate_output(produced, context.target, strategy.min_output_size)
        else:
            valid = len(produced) >= strategy.min_output_size
        if not valid:
            return StrategyOutcome(
                strategy.id,
                OutcomeStatus.REJECTED_INVALID_OUTPUT,
                describe_rejection(produced, context.target if strategy.check_signature else "", strategy.min_output_size),
                elapsed=elapsed,
            )

        reason = strategy.accept(produced, context)
        if reason:
            return StrategyOutcome(strategy.id, OutcomeStatus.REJECTED_INVALID_OUTPUT, reason, elapsed=elapsed)

        return StrategyOutcome(strategy.id, OutcomeStatus.SUCCESS, produced_bytes=produced, elapsed=elapsed)

    def _collect_output(self, strategy: Strategy, context: StrategyContext) -> bytes | None:
        """Read the first existing candidate and delete every candidate checked."""
        data = None
        for path in strategy.locate_output(context):
            if path == context.input_path or not path.is_file():
                continue
            if data is None:
                data = path.read_bytes()
            context.workspace.discard(path)
        return data

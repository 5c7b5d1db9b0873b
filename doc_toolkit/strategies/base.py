"""
Base strategy interface for document conversion.

A strategy is one concrete attempt at an operation: a single external tool
invocation with a fixed argument set, or one call to the remote document
server. Strategies are stateless; everything request-specific arrives through
:class:`StrategyContext`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from .. import config
from ..config import Settings
from ..models import ConversionRequest, LazyProfile, StrategyKind
from ..runner import ProcessRunner
from ..workspace import Workspace


@dataclass
class StrategyContext:
    """
    Everything a strategy needs to run for one request.

    Attributes:
        request: The validated request
        workspace: Scratch-file context of the request
        runner: Process runner for external tools
        settings: Deployment settings
        profile: Lazily computed document profile
        input_path: Scratch copy of the source document
        output_path: Scratch path tools with an explicit output argument write to
    """

    request: ConversionRequest
    workspace: Workspace
    runner: ProcessRunner
    settings: Settings
    profile: LazyProfile
    input_path: Path
    output_path: Path

    @property
    def target(self) -> str:
        return self.request.target_format.value

    @property
    def secrets(self) -> tuple[str, ...]:
        return (self.request.password,) if self.request.password else ()


class Strategy(ABC):
    """Abstract base class for conversion, compression and protection strategies."""

    kind = StrategyKind.EXTERNAL_TOOL

    def __init__(
        self,
        strategy_id: str,
        *,
        timeout: float,
        min_output_size: int = config.MIN_OUTPUT_SIZE,
        check_signature: bool = True,
    ):
        self.id = strategy_id
        self.timeout = timeout
        self.min_output_size = min_output_size
        self.check_signature = check_signature

    @abstractmethod
    async def invoke(self, context: StrategyContext) -> bytes | None:
        """
        Run the strategy.

        Args:
            context: Request context

        Returns:
            The produced bytes for strategies that receive them directly,
            or None when the output has to be located on disk.
        """

    def locate_output(self, context: StrategyContext) -> list[Path]:
        """
        Candidate locations of the produced file, in probing order.

        Some tools derive the output name themselves, so a strategy may list
        several possible paths.
        """
        return [context.output_path]

    def accept(self, data: bytes, context: StrategyContext) -> str | None:
        """
        Strategy-specific check on a candidate output.

        Returns:
            None to accept, or the reason for rejecting the output
        """
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.id!r})"


CommandBuilder = Callable[[StrategyContext], Sequence[str]]
OutputLocator = Callable[[StrategyContext], list[Path]]


class CommandStrategy(Strategy):
    """
    Strategy defined by a command builder and an output locator.

    Strategy families are tables of these records; the executor is their only
    consumer.
    """

    def __init__(
        self,
        strategy_id: str,
        build: CommandBuilder,
        *,
        timeout: float,
        outputs: OutputLocator | None = None,
        ok_codes: Sequence[int] = (0,),
        cwd: str | None = None,
        min_output_size: int = config.MIN_OUTPUT_SIZE,
        check_signature: bool = True,
    ):
        super().__init__(
            strategy_id,
            timeout=timeout,
            min_output_size=min_output_size,
            check_signature=check_signature,
        )
        self.build = build
        self.outputs = outputs
        self.ok_codes = tuple(ok_codes)
        self.cwd = cwd

    async def invoke(self, context: StrategyContext) -> bytes | None:
        argv = list(self.build(context))
        await context.runner.run(
            argv,
            self.timeout,
            ok_codes=self.ok_codes,
            cwd=self.cwd,
            secrets=context.secrets,
        )
        return None

    def locate_output(self, context: StrategyContext) -> list[Path]:
        if self.outputs is not None:
            return self.outputs(context)
        return super().locate_output(context)

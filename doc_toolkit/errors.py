"""
Exception types raised by the doc toolkit.

Caller-facing failures derive from :class:`ConversionError` and carry a
``kind`` string plus a human-readable ``message``. Process and remote errors
stay internal to the strategy chain: the executor turns them into strategy
outcomes and only exhaustion reaches the caller.
"""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for every failure surfaced to callers of the toolkit."""

    kind = "conversion_error"

    def __init__(self, message: str, *, kind: str | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class ValidationError(ConversionError):
    """Malformed input, unsupported format or invalid quality/password parameter."""

    kind = "validation_error"


class ToolUnavailableError(ConversionError):
    """A required external binary is not installed or not on PATH."""

    kind = "tool_unavailable"

    def __init__(self, message: str, *, tools: list[str] | None = None):
        super().__init__(message)
        self.tools = list(tools or [])


class ExhaustedError(ConversionError):
    """Every strategy in the chain failed."""

    kind = "exhausted"

    def __init__(self, message: str, *, last_diagnostic: str = "", hint: str = ""):
        super().__init__(message)
        self.last_diagnostic = last_diagnostic
        self.hint = hint


class StrategyTimeoutError(ExhaustedError):
    """Every strategy failed and the last one ran out of time."""

    kind = "timeout"


class ProcessRunnerError(Exception):
    """Base class for failures of a single external process invocation."""

    def __init__(self, message: str, *, command: str = ""):
        super().__init__(message)
        self.command = command


class ToolNotFoundError(ProcessRunnerError):
    """The executable could not be found."""

    def __init__(self, tool: str):
        super().__init__(f"{tool}: command not found", command=tool)
        self.tool = tool


class ProcessTimeoutError(ProcessRunnerError):
    """The process did not finish within its timeout and was killed."""

    def __init__(self, command: str, timeout: float):
        super().__init__(f"{command} timed out after {timeout:g}s", command=command)
        self.timeout = timeout


class NonZeroExitError(ProcessRunnerError):
    """The process exited with a status outside the accepted set."""

    def __init__(self, command: str, returncode: int, stdout: str = "", stderr: str = ""):
        super().__init__(f"{command} exited with status {returncode}", command=command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class RemoteServiceError(Exception):
    """The remote document server rejected or failed a conversion."""

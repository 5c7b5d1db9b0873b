"""
Turns strategy failures into caller-facing diagnostics.

Diagnostics are one line: the last meaningful stderr line of the failing tool,
with scratch paths removed and length bounded. Raw output and stack traces go
to the log only. Hints are chosen from the failure and the document profile.
"""

from __future__ import annotations

import re
from typing import Sequence

from . import config
from .errors import ConversionError, ExhaustedError, NonZeroExitError, StrategyTimeoutError, ToolUnavailableError
from .models import DocumentProfile, Operation, OutcomeStatus, StrategyOutcome

MAX_DIAGNOSTIC_LENGTH = 200

_OPERATION_LABELS = {
    Operation.CONVERT: "Conversion",
    Operation.COMPRESS: "PDF compression",
    Operation.PROTECT: "PDF password protection",
}


def summarize_output(text: str, scratch_dir: str | None = None) -> str:
    """
    Reduce tool output to a single diagnostic line.

    Args:
        text: Raw stderr (or stdout) of the tool
        scratch_dir: Scratch directory whose paths are stripped from the line

    Returns:
        The last non-empty line, truncated to 200 characters
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        return ""
    line = lines[-1]
    if scratch_dir:
        line = re.sub(re.escape(str(scratch_dir).rstrip("/")) + r"/\S*", "<file>", line)
    if len(line) > MAX_DIAGNOSTIC_LENGTH:
        line = line[: MAX_DIAGNOSTIC_LENGTH - 3] + "..."
    return line


def diagnostic_for(exc: BaseException, scratch_dir: str | None = None) -> str:
    """One-line description of a strategy exception."""
    if isinstance(exc, NonZeroExitError):
        detail = summarize_output(exc.stderr, scratch_dir) or summarize_output(exc.stdout, scratch_dir)
        return f"{exc} ({detail})" if detail else str(exc)
    return summarize_output(str(exc) or exc.__class__.__name__, scratch_dir)


def missing_tool_hint(tools: Sequence[str]) -> str:
    packages = []
    for tool in tools:
        package = config.TOOL_PACKAGES.get(tool, tool)
        if package not in packages:
            packages.append(package)
    return f"Please install {' or '.join(packages)}."


def build_hint(
    operation: Operation,
    outcomes: Sequence[StrategyOutcome],
    profile: DocumentProfile | None = None,
    *,
    image_heavy: bool = False,
) -> str:
    """
    Pick the most useful suggestion for an exhausted chain.

    Failure-specific hints (missing tool, permission, timeout, filter) win over
    profile-based ones (scanned, complex layout, protected).
    """
    last = outcomes[-1] if outcomes else None
    diagnostic = (last.diagnostic if last else "").lower()

    missing = [o.missing_tool for o in outcomes if o.missing_tool]
    if missing and len(missing) == len(outcomes):
        return missing_tool_hint(missing)
    if "permission denied" in diagnostic or "access denied" in diagnostic:
        return "File access permissions issue. Check that the temp directory is writable."
    if last is not None and last.status is OutcomeStatus.TIMEOUT:
        if operation is Operation.COMPRESS and image_heavy:
            return (
                "Compression timed out. Image-heavy PDFs such as phone scans can take several "
                "minutes; try a smaller file or split it into parts."
            )
        return "The operation timed out. The file may be too large or complex."
    if "filter" in diagnostic:
        return "The document uses features the export filter does not support."

    if profile is not None and operation is Operation.CONVERT:
        if profile.is_scanned:
            return (
                "This appears to be a scanned PDF (image-based). Consider using OCR software "
                "first to make the PDF text-selectable."
            )
        if profile.has_complex_layout:
            return "This PDF has complex formatting (tables, forms or many pages) that may not convert well."
        if profile.is_encrypted:
            return "This PDF appears to be password-protected. Remove protection before converting."
    if profile is not None and profile.is_encrypted:
        return "This PDF appears to be password-protected. Remove protection first."

    if operation is Operation.PROTECT:
        return "Please ensure qpdf or pdftk is installed and the PDF is valid."
    return "Try a simpler document."


def last_diagnostic(outcomes: Sequence[StrategyOutcome]) -> str:
    for outcome in reversed(outcomes):
        if outcome.diagnostic:
            return outcome.diagnostic
    return ""


def exhaustion_error(
    operation: Operation,
    outcomes: Sequence[StrategyOutcome],
    profile: DocumentProfile | None = None,
    *,
    image_heavy: bool = False,
    target: str | None = None,
) -> ConversionError:
    """
    Build the error raised when every strategy of a chain failed.

    Returns:
        ToolUnavailableError when every attempt failed for lack of a binary,
        StrategyTimeoutError when the last attempt timed out, ExhaustedError
        otherwise
    """
    label = _OPERATION_LABELS.get(operation, operation.value)
    if operation is Operation.CONVERT and target:
        label = f"Conversion to {target.upper()}"
    hint = build_hint(operation, outcomes, profile, image_heavy=image_heavy)
    diagnostic = last_diagnostic(outcomes)

    missing = sorted({o.missing_tool for o in outcomes if o.missing_tool})
    if outcomes and all(o.missing_tool for o in outcomes):
        return ToolUnavailableError(
            f"{label} failed: required tools are not installed ({', '.join(missing)}). {hint}",
            tools=missing,
        )

    message = f"{label} failed after {len(outcomes)} attempt{'s' if len(outcomes) != 1 else ''}. {hint}"
    if diagnostic:
        message += f" Last error: {diagnostic}"
    error_cls = ExhaustedError
    if outcomes and outcomes[-1].status is OutcomeStatus.TIMEOUT:
        error_cls = StrategyTimeoutError
    return error_cls(message, last_diagnostic=diagnostic, hint=hint)

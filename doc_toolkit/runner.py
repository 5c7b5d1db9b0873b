"""
Async runner for external command-line tools.

Commands are executed from an argument vector (never through a shell) with a
hard timeout and bounded output capture. On timeout or task cancellation the
whole process tree is killed: LibreOffice and Ghostscript both fork helper
processes that would otherwise outlive the request.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import time
from dataclasses import dataclass
from typing import Sequence

import psutil

from . import config
from .errors import NonZeroExitError, ProcessRunnerError, ProcessTimeoutError, ToolNotFoundError

_CHUNK_SIZE = 64 * 1024
_KILL_GRACE_SECONDS = 5.0


@dataclass
class ProcessResult:
    """Captured result of a finished process."""

    command: str
    returncode: int
    stdout: str
    stderr: str
    elapsed: float
    truncated: bool = False


async def _read_bounded(stream: asyncio.StreamReader | None, limit: int) -> tuple[bytes, bool]:
    """Read a stream to EOF, keeping at most `limit` bytes."""
    if stream is None:
        return b"", False
    kept = bytearray()
    truncated = False
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            break
        room = limit - len(kept)
        if room > 0:
            kept.extend(chunk[:room])
        if len(chunk) > room:
            truncated = True
    return bytes(kept), truncated


def kill_process_tree(pid: int) -> None:
    """Kill a process and all of its descendants, ignoring ones already gone."""
    try:
        parent = psutil.Process(pid)
        procs = parent.children(recursive=True) + [parent]
    except psutil.NoSuchProcess:
        return
    for proc in procs:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass


def format_command(argv: Sequence[str], secrets: Sequence[str] = ()) -> str:
    """Render an argument vector for logs with secret values masked."""
    masked = []
    for arg in argv:
        for secret in secrets:
            if secret and secret in arg:
                arg = arg.replace(secret, "***")
        masked.append(arg)
    return " ".join(masked)


class ProcessRunner:
    """Runs external tools for the conversion strategies."""

    def __init__(self, max_output_bytes: int = config.DEFAULT_MAX_OUTPUT_BYTES):
        self.max_output_bytes = max_output_bytes
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def which(*names: str) -> str | None:
        """Return the first of `names` found on PATH."""
        for name in names:
            found = shutil.which(name)
            if found:
                return found
        return None

    async def run(
        self,
        argv: Sequence[str],
        timeout: float,
        *,
        max_output_bytes: int | None = None,
        ok_codes: Sequence[int] = (0,),
        cwd: str | None = None,
        secrets: Sequence[str] = (),
    ) -> ProcessResult:
        """
        Run a command and capture its output.

        Args:
            argv: Program followed by its arguments
            timeout: Seconds before the process tree is killed
            max_output_bytes: Per-stream capture limit
            ok_codes: Exit statuses treated as success
            cwd: Working directory for the process
            secrets: Values masked when the command is logged

        Returns:
            ProcessResult with decoded stdout/stderr

        Raises:
            ToolNotFoundError: If the executable is not installed
            ProcessTimeoutError: If the timeout fired
            NonZeroExitError: If the exit status is not in `ok_codes`
        """
        if not argv:
            raise ValueError("argv must contain at least the program name")

        program = argv[0]
        name = os.path.basename(program)
        executable = shutil.which(program)
        if executable is None:
            raise ToolNotFoundError(name)

        limit = max_output_bytes or self.max_output_bytes
        self.logger.debug(f"Executing: {format_command(argv, secrets)}")
        start_time = time.perf_counter()

        try:
            proc = await asyncio.create_subprocess_exec(
                executable,
                *argv[1:],
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                start_new_session=True,
            )
        except FileNotFoundError:
            raise ToolNotFoundError(name) from None
        except PermissionError as e:
            raise ProcessRunnerError(f"{name}: permission denied ({e.strerror})", command=name) from None

        try:
            (stdout, out_truncated), (stderr, err_truncated), returncode = await asyncio.wait_for(
                asyncio.gather(
                    _read_bounded(proc.stdout, limit),
                    _read_bounded(proc.stderr, limit),
                    proc.wait(),
                ),
                timeout,
            )
        except asyncio.TimeoutError:
            await self._terminate(proc)
            self.logger.warning(f"{name} timed out after {timeout:g}s, process tree killed")
            raise ProcessTimeoutError(name, timeout) from None
        except asyncio.CancelledError:
            await self._terminate(proc)
            self.logger.info(f"{name} cancelled, process tree killed")
            raise

        result = ProcessResult(
            command=name,
            returncode=returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            elapsed=time.perf_counter() - start_time,
            truncated=out_truncated or err_truncated,
        )
        if result.stderr.strip():
            self.logger.debug(f"{name} stderr: {result.stderr.strip()[-2000:]}")

        if returncode not in ok_codes:
            raise NonZeroExitError(name, returncode, result.stdout, result.stderr)
        return result

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        kill_process_tree(proc.pid)
        try:
            await asyncio.wait_for(proc.wait(), _KILL_GRACE_SECONDS)
        except asyncio.TimeoutError:
            self.logger.warning(f"Process {proc.pid} did not exit after kill")

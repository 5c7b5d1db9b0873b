"""
Per-request scratch file management.

The scratch directory is shared by every request in the process. Each request
gets a :class:`Workspace` whose unique token is embedded in every path it
hands out, so concurrent requests never collide, and whose cleanup removes
every one of those paths on success, failure or exception.
"""

from __future__ import annotations

import logging
import os
import secrets
import shutil
import threading
import time
from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_scratch_dir(path: str | os.PathLike[str]) -> Path:
    """
    Create the shared scratch directory if needed and make it world-writable.

    Concurrent callers are fine: creation tolerates an existing directory and a
    failed chmod (directory owned by another user) is only logged.
    """
    scratch = Path(path).resolve()
    scratch.mkdir(parents=True, exist_ok=True)
    try:
        os.chmod(scratch, 0o777)
    except OSError as e:
        logger.debug(f"Could not chmod scratch directory {scratch}: {e}")
    if not os.access(scratch, os.W_OK):
        raise PermissionError(f"Scratch directory is not writable: {scratch}")
    return scratch


def new_token() -> str:
    """Timestamp plus random suffix, unique per request."""
    return f"{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class Workspace:
    """Scratch-file context for exactly one request."""

    def __init__(self, scratch_dir: str | os.PathLike[str], token: str | None = None):
        self.scratch_dir = ensure_scratch_dir(scratch_dir)
        self.token = token or new_token()
        self._lock = threading.Lock()
        self._tracked_paths: set[Path] = set()
        self._closed = False

    def path(self, name: str) -> Path:
        """
        Reserve a scratch path for `name` and track it for cleanup.

        Returns:
            `<scratch>/<token>_<name>`; the file itself is not created.
        """
        if self._closed:
            raise RuntimeError("Workspace already cleaned up")
        target = self.scratch_dir / f"{self.token}_{os.path.basename(name)}"
        self.add_temp_path(target)
        return target

    def directory(self, name: str) -> Path:
        """Create and track a scratch directory."""
        target = self.path(name)
        target.mkdir(parents=True, exist_ok=True)
        return target

    def write(self, name: str, data: bytes) -> Path:
        target = self.path(name)
        target.write_bytes(data)
        return target

    def add_temp_path(self, path: str | os.PathLike[str]) -> None:
        """Register an existing scratch path for cleanup."""
        with self._lock:
            self._tracked_paths.add(Path(path))

    def owns(self, path: str | os.PathLike[str]) -> bool:
        return Path(path).name.startswith(self.token)

    def discard(self, path: str | os.PathLike[str]) -> None:
        """Delete one scratch path now; failures are logged, never raised."""
        target = Path(path)
        try:
            if target.is_dir():
                shutil.rmtree(target)
            else:
                target.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to delete scratch path {target}: {e}")

    def leftovers(self) -> list[Path]:
        """Files in the scratch directory that carry this workspace's token."""
        return sorted(self.scratch_dir.glob(f"{self.token}*"))

    def cleanup(self) -> None:
        """Best-effort removal of every path this workspace created."""
        with self._lock:
            paths = set(self._tracked_paths)
            self._tracked_paths.clear()
            self._closed = True

        # tools sometimes write siblings of the names we handed out
        paths.update(self.leftovers())
        for path in sorted(paths, reverse=True):
            if path.exists() or path.is_symlink():
                self.discard(path)

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()

    async def __aenter__(self) -> "Workspace":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()

"""
Lightweight profiling utilities.

Backs the `--profile` CLI flag: the executor times every strategy attempt
under a `strategy.<id>` section and the service times whole operations.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from time import perf_counter


@dataclass
class _Section:
    total_s: float = 0.0
    count: int = 0
    max_s: float = 0.0

    @property
    def avg_s(self) -> float:
        return (self.total_s / self.count) if self.count else 0.0


@dataclass
class Profiler:
    """Accumulates wall-clock time per named section."""

    _sections: dict[str, _Section] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, name: str, seconds: float) -> None:
        with self._lock:
            section = self._sections.setdefault(name, _Section())
            section.total_s += seconds
            section.count += 1
            section.max_s = max(section.max_s, seconds)

    @contextmanager
    def track(self, name: str):
        start = perf_counter()
        try:
            yield
        finally:
            self.record(name, perf_counter() - start)

    def to_dict(self) -> dict[str, dict[str, float | int]]:
        with self._lock:
            return {
                name: {"total_s": s.total_s, "count": s.count, "avg_s": s.avg_s, "max_s": s.max_s}
                for name, s in self._sections.items()
            }

    def format_report(self) -> str:
        """Sections sorted by total time, one per line."""
        rows = sorted(self.to_dict().items(), key=lambda item: item[1]["total_s"], reverse=True)
        if not rows:
            return "No profiling data recorded"
        width = max(len(name) for name, _ in rows)
        lines = [f"{'section'.ljust(width)}  count   total_s   avg_s"]
        for name, stat in rows:
            lines.append(f"{name.ljust(width)}  {stat['count']:>5}  {stat['total_s']:8.2f}  {stat['avg_s']:6.2f}")
        return "\n".join(lines)

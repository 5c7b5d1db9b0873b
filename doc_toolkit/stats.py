"""
Conversion statistics tracking module.

Keeps running counts per operation and per winning strategy, separate from
the conversion logic itself.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ConversionStats:
    """
    Tracks statistics for conversion, compression and protection calls.

    ``strategy_wins`` counts which strategy produced each successful result,
    which shows how often the chains have to fall back.
    """
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_processing_time: float = 0.0
    bytes_in: int = 0
    bytes_out: int = 0
    operation_stats: Dict[str, int] = field(default_factory=dict)
    strategy_wins: Dict[str, int] = field(default_factory=dict)
    failure_kinds: Dict[str, int] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add_result(
        self,
        operation: str,
        success: bool,
        processing_time: float = 0.0,
        strategy: Optional[str] = None,
        bytes_in: int = 0,
        bytes_out: int = 0,
        error_kind: Optional[str] = None,
    ):
        """
        Add one finished call to the statistics.

        Args:
            operation: 'convert', 'compress' or 'protect'
            success: Whether the call produced a result
            processing_time: Wall-clock time of the call
            strategy: Winning strategy id for successful calls
            bytes_in: Input size
            bytes_out: Output size
            error_kind: ConversionError kind for failed calls
        """
        with self._lock:
            self.total_requests += 1
            self.total_processing_time += processing_time
            self.bytes_in += bytes_in
            self.bytes_out += bytes_out
            self.operation_stats[operation] = self.operation_stats.get(operation, 0) + 1

            if success:
                self.successful_requests += 1
                if strategy:
                    self.strategy_wins[strategy] = self.strategy_wins.get(strategy, 0) + 1
            else:
                self.failed_requests += 1
                if error_kind:
                    self.failure_kinds[error_kind] = self.failure_kinds.get(error_kind, 0) + 1

    def get_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the statistics.

        Returns:
            Dictionary with counts, rates and per-strategy breakdowns
        """
        with self._lock:
            if self.total_requests == 0:
                return {
                    'total_requests': 0,
                    'success_rate': 0.0,
                    'average_time_per_request': 0.0,
                    'total_processing_time': 0.0,
                    'operation_stats': {},
                    'strategy_wins': {},
                    'failure_kinds': {},
                }

            return {
                'total_requests': self.total_requests,
                'successful_requests': self.successful_requests,
                'failed_requests': self.failed_requests,
                'success_rate': (self.successful_requests / self.total_requests) * 100,
                'average_time_per_request': self.total_processing_time / self.total_requests,
                'total_processing_time': self.total_processing_time,
                'bytes_in': self.bytes_in,
                'bytes_out': self.bytes_out,
                'operation_stats': self.operation_stats.copy(),
                'strategy_wins': self.strategy_wins.copy(),
                'failure_kinds': self.failure_kinds.copy(),
            }

    def reset(self):
        """Reset all statistics to zero."""
        with self._lock:
            self.total_requests = 0
            self.successful_requests = 0
            self.failed_requests = 0
            self.total_processing_time = 0.0
            self.bytes_in = 0
            self.bytes_out = 0
            self.operation_stats.clear()
            self.strategy_wins.clear()
            self.failure_kinds.clear()

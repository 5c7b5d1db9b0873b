"""
Utility modules for doc toolkit.

Shared CLI helpers and the lightweight profiler.
"""

from .cli_common import (
    BaseArgumentParser,
    configure_logging_level,
    default_output_path,
    print_run_summary,
    report_failure,
    setup_logging,
    validate_common_arguments,
    write_output,
)
from .profiling import Profiler

__all__ = [
    'setup_logging', 'BaseArgumentParser', 'validate_common_arguments', 'configure_logging_level',
    'default_output_path', 'write_output', 'report_failure', 'print_run_summary',
    'Profiler',
]

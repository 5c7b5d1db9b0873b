"""
Helpers shared by the doc-* commands (convert, compress, protect, analyze, doctor).

Every `doc-*` command builds its parser from :class:`BaseArgumentParser`,
configures logging the same way and reports failures through
:func:`report_failure`.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from ..errors import ConversionError


def setup_logging() -> None:
    """Route log records to stderr with timestamps; tool output shows up at DEBUG."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )


class BaseArgumentParser:
    """Factory helpers for the argument patterns the CLI commands share."""

    @staticmethod
    def create_base_parser(prog: str, description: str, epilog: Optional[str] = None) -> argparse.ArgumentParser:
        """
        Create a parser whose epilog keeps its example layout.

        Args:
            prog: Console script name
            description: One-line summary shown by --help
            epilog: Usage examples
        """
        return argparse.ArgumentParser(
            prog=prog,
            description=description,
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=epilog
        )

    @staticmethod
    def add_input_file_argument(parser: argparse.ArgumentParser, help: str = "Path to the input document") -> None:
        parser.add_argument("input_file", help=help)

    @staticmethod
    def add_output_argument(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--output", "-o",
            help="Output file path (default: next to the input file)"
        )

    @staticmethod
    def add_verbose_quiet_arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Log every strategy attempt and raw tool output"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Only log warnings and errors"
        )

    @staticmethod
    def add_profile_argument(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--profile",
            action="store_true",
            help="Print per-strategy timing after the run"
        )


def validate_common_arguments(args: argparse.Namespace) -> bool:
    """Check flag combinations and that the input file exists; prints the problem and returns False."""
    if getattr(args, "verbose", False) and getattr(args, "quiet", False):
        print("Error: --verbose and --quiet cannot be used together")
        return False

    input_file = getattr(args, "input_file", None)
    if input_file and not os.path.isfile(input_file):
        print(f"Error: input file does not exist: {input_file}")
        return False

    return True


def configure_logging_level(args: argparse.Namespace) -> None:
    """Apply --verbose/--quiet to the root logger."""
    if getattr(args, "quiet", False):
        logging.getLogger().setLevel(logging.WARNING)
    elif getattr(args, "verbose", False):
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.INFO)


def default_output_path(input_file: str, suffix: str, extension: str) -> Path:
    """`report.docx` + ('_compressed', 'pdf') -> `report_compressed.pdf` beside the input."""
    source = Path(input_file)
    return source.with_name(f"{source.stem}{suffix}.{extension}")


def write_output(path, data: bytes) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logging.info(f"Saved {len(data)} bytes to: {path}")


def report_failure(error: ConversionError, verbose: bool = False) -> None:
    """Log a caller-facing error and exit with status 1."""
    logging.error(f"{error.kind}: {error.message}")
    if verbose:
        logging.debug("Failure details", exc_info=error)
    sys.exit(1)


def print_run_summary(operation: str, input_size: int, output_size: int, elapsed: float, method: Optional[str] = None) -> None:
    """
    Print a standardized summary for a single-document run.

    Args:
        operation: Operation label ('Conversion', 'Compression', ...)
        input_size: Input document size in bytes
        output_size: Produced document size in bytes
        elapsed: Wall-clock time in seconds
        method: Strategy that produced the result, if known
    """
    print("\n" + "=" * 60)
    print(f"{operation.upper()} SUMMARY")
    print("=" * 60)
    print(f"Input size: {input_size} bytes")
    print(f"Output size: {output_size} bytes")
    if input_size:
        print(f"Size ratio: {output_size / input_size * 100:.1f}%")
    if method:
        print(f"Method: {method}")
    print(f"Total time: {elapsed:.2f}s")

"""
CLI for PDF compression.
"""

import asyncio
import logging
import os
import sys
import time

from .. import config
from ..errors import ConversionError
from ..service import DocumentService
from ..utils import (
    BaseArgumentParser,
    Profiler,
    configure_logging_level,
    default_output_path,
    print_run_summary,
    report_failure,
    setup_logging,
    validate_common_arguments,
    write_output,
)


def create_parser():
    """Create argument parser for compress command."""
    epilog = """
Examples:
  # Balanced compression
  doc-compress scan.pdf

  # Strongest compression
  doc-compress scan.pdf --quality low --output scan_small.pdf

Quality levels:
  low       smallest file, screen resolution images
  moderate  balanced (default)
  high      print quality, mostly lossless

Image-heavy PDFs (phone scans, photos) are always downsampled and may take
several minutes.
        """

    parser = BaseArgumentParser.create_base_parser(
        prog="doc-compress",
        description="Reduce the size of a PDF",
        epilog=epilog
    )

    BaseArgumentParser.add_input_file_argument(parser, help="Path to the PDF to compress")
    parser.add_argument(
        "--quality",
        default=config.DEFAULT_QUALITY,
        help=f"Compression quality: {', '.join(config.QUALITY_LEVELS)} (default: {config.DEFAULT_QUALITY})"
    )
    BaseArgumentParser.add_output_argument(parser)
    BaseArgumentParser.add_profile_argument(parser)
    BaseArgumentParser.add_verbose_quiet_arguments(parser)
    return parser


def main(argv=None):
    """Main entry point for doc-compress command."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not validate_common_arguments(args):
        parser.print_help()
        sys.exit(1)

    setup_logging()
    configure_logging_level(args)

    profiler = Profiler() if args.profile else None
    service = DocumentService(profiler=profiler)

    with open(args.input_file, "rb") as f:
        data = f.read()

    start_time = time.time()
    try:
        result = asyncio.run(service.compress(data, args.quality, filename=os.path.basename(args.input_file)))
    except ConversionError as e:
        report_failure(e, verbose=args.verbose)
    except KeyboardInterrupt:
        logging.info("Compression cancelled by user.")
        sys.exit(1)

    if service.last_strategy == "original":
        logging.info("No size reduction possible, writing the original document")

    write_output(args.output or default_output_path(args.input_file, "_compressed", "pdf"), result)

    if not args.quiet:
        print_run_summary("Compression", len(data), len(result), time.time() - start_time, service.last_strategy)
    if profiler is not None:
        print("\n" + profiler.format_report())


if __name__ == "__main__":
    main()

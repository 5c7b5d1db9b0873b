"""
CLI for Office<->PDF conversion.

Converts Word, Excel and PowerPoint documents to PDF, and PDFs to
DOCX/XLSX/PPTX, using the same strategy chains as the service.
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
    """Create argument parser for convert command."""
    epilog = """
Examples:
  # Word document to PDF
  doc-convert report.docx

  # PDF to Excel, explicit output path
  doc-convert invoice.pdf --to xlsx --output invoice.xlsx

  # Print per-strategy timing
  doc-convert slides.pdf --to pptx --profile

Supported conversions:
  Office -> PDF: .docx .doc .txt .xlsx .xls .csv .pptx .ppt
  PDF -> Office: docx, xlsx, pptx
        """

    parser = BaseArgumentParser.create_base_parser(
        prog="doc-convert",
        description="Convert documents between Office formats and PDF",
        epilog=epilog
    )

    BaseArgumentParser.add_input_file_argument(parser)
    parser.add_argument(
        "--to",
        dest="target_format",
        choices=["pdf", *config.OFFICE_TARGET_FORMATS],
        help="Target format (default: pdf for Office input, docx for PDF input)"
    )
    BaseArgumentParser.add_output_argument(parser)
    BaseArgumentParser.add_profile_argument(parser)
    BaseArgumentParser.add_verbose_quiet_arguments(parser)
    return parser


def resolve_formats(input_file: str, target_format):
    """
    Work out source kind and target format from the input extension.

    Returns:
        (source_kind, target_format), or (None, None) when the extension is unsupported
    """
    source_kind = config.source_kind_for_extension(os.path.splitext(input_file)[1])
    if source_kind is None:
        return None, None
    if target_format is None:
        target_format = "docx" if source_kind == "pdf" else "pdf"
    return source_kind, target_format


def main(argv=None):
    """Main entry point for doc-convert command."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not validate_common_arguments(args):
        parser.print_help()
        sys.exit(1)

    setup_logging()
    configure_logging_level(args)

    source_kind, target_format = resolve_formats(args.input_file, args.target_format)
    if source_kind is None:
        logging.error(f"Unsupported file type: {args.input_file}")
        sys.exit(1)

    profiler = Profiler() if args.profile else None
    service = DocumentService(profiler=profiler)

    with open(args.input_file, "rb") as f:
        data = f.read()

    start_time = time.time()
    try:
        result = asyncio.run(
            service.convert(data, source_kind, target_format, filename=os.path.basename(args.input_file))
        )
    except ConversionError as e:
        report_failure(e, verbose=args.verbose)
    except KeyboardInterrupt:
        logging.info("Conversion cancelled by user.")
        sys.exit(1)

    output_path = args.output or default_output_path(args.input_file, "", target_format)
    write_output(output_path, result)

    if not args.quiet:
        print_run_summary("Conversion", len(data), len(result), time.time() - start_time, service.last_strategy)
    if profiler is not None:
        print("\n" + profiler.format_report())


if __name__ == "__main__":
    main()

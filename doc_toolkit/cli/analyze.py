"""
CLI for PDF analysis before conversion.
"""

import asyncio
import json
import logging
import os
import sys

from ..errors import ConversionError
from ..service import DocumentService
from ..utils import (
    BaseArgumentParser,
    configure_logging_level,
    report_failure,
    setup_logging,
    validate_common_arguments,
)


def create_parser():
    """Create argument parser for analyze command."""
    epilog = """
Examples:
  # Check whether a PDF is worth converting to Word
  doc-analyze contract.pdf

  # Machine-readable report
  doc-analyze contract.pdf --json
        """

    parser = BaseArgumentParser.create_base_parser(
        prog="doc-analyze",
        description="Inspect a PDF and recommend whether to convert it to Office",
        epilog=epilog
    )

    BaseArgumentParser.add_input_file_argument(parser, help="Path to the PDF to analyze")
    parser.add_argument("--json", action="store_true", help="Print the analysis as JSON")
    BaseArgumentParser.add_verbose_quiet_arguments(parser)
    return parser


def print_analysis(report: dict) -> None:
    analysis = report["analysis"]
    recommendations = report["recommendations"]
    print("=" * 60)
    print(f"PDF ANALYSIS: {report['filename']} ({report['size']} bytes)")
    print("=" * 60)
    print(f"Pages: {analysis['page_count']}")
    print(f"Scanned: {'yes' if analysis['is_scanned'] else 'no'}")
    print(f"Protected: {'yes' if analysis['is_protected'] else 'no'}")
    print(f"Complex layout: {'yes' if analysis['has_complex_layout'] else 'no'}")

    print("\nConvertible to:")
    for label, key in (("Word", "can_convert_to_word"), ("Excel", "can_convert_to_excel"),
                       ("PowerPoint", "can_convert_to_powerpoint")):
        print(f"  {label:<12} {'yes' if recommendations[key] else 'no'}")

    for warning in recommendations["warnings"]:
        print(f"\nWarning: {warning}")
    for suggestion in recommendations["suggestions"]:
        print(f"Suggestion: {suggestion}")


def main(argv=None):
    """Main entry point for doc-analyze command."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not validate_common_arguments(args):
        parser.print_help()
        sys.exit(1)

    setup_logging()
    configure_logging_level(args)

    service = DocumentService()
    with open(args.input_file, "rb") as f:
        data = f.read()

    try:
        analysis = asyncio.run(service.analyze(data, filename=os.path.basename(args.input_file)))
    except ConversionError as e:
        report_failure(e, verbose=args.verbose)
    except KeyboardInterrupt:
        logging.info("Analysis cancelled by user.")
        sys.exit(1)

    report = analysis.to_dict()
    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print_analysis(report)


if __name__ == "__main__":
    main()

"""
CLI that reports which external tools and services are available.
"""

import asyncio
import json
import sys

from .. import __version__, config
from ..service import DocumentService
from ..utils import BaseArgumentParser, configure_logging_level, setup_logging

OPERATIONS_NEEDING = {
    "Office -> PDF": ("libreoffice",),
    "PDF -> Office": ("libreoffice", "transcoders"),
    "Compression": ("ghostscript", "qpdf"),
    "Protection": ("qpdf", "pdftk"),
}
"""Operation label to the tools of which at least one must be present."""


def create_parser():
    """Create argument parser for doctor command."""
    parser = BaseArgumentParser.create_base_parser(
        prog="doc-doctor",
        description="Check external tools and the document server",
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument(
        "--skip-remote", action="store_true", help="Do not contact the document server"
    )
    BaseArgumentParser.add_verbose_quiet_arguments(parser)
    return parser


def build_report(service: DocumentService, check_remote: bool = True) -> dict:
    tools = service.check_tools()
    operations = {
        label: any(tools.get(tool, False) for tool in needed)
        for label, needed in OPERATIONS_NEEDING.items()
    }
    report = {
        "version": __version__,
        "temp_dir": service.settings.temp_dir,
        "tools": tools,
        "operations": operations,
    }
    if check_remote:
        report["remote"] = asyncio.run(service.remote_health())
    return report


def print_report(report: dict) -> None:
    print("=" * 60)
    print(f"DOC TOOLKIT {report['version']} - ENVIRONMENT CHECK")
    print("=" * 60)
    print(f"Scratch directory: {report['temp_dir']}")
    print("\nTools:")
    for name, available in report["tools"].items():
        hint = ""
        if not available:
            binaries = config.REQUIRED_TOOLS.get(name, ())
            package = config.TOOL_PACKAGES.get(binaries[0], name) if binaries else "the Python extras"
            hint = f"  (install {package})"
        print(f"  {'OK' if available else 'MISSING':8} {name}{hint}")
    print("\nOperations:")
    for label, available in report["operations"].items():
        print(f"  {'OK' if available else 'UNAVAILABLE':12} {label}")
    if "remote" in report:
        remote = report["remote"]
        print("\nDocument server:")
        if not remote.get("available"):
            print(f"  disabled ({remote.get('reason', 'not configured')})")
        else:
            print(f"  {remote['url']}: {'healthy' if remote.get('healthy') else 'UNREACHABLE'}")


def main(argv=None):
    """Main entry point for doc-doctor command."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging()
    configure_logging_level(args)

    report = build_report(DocumentService(), check_remote=not args.skip_remote)
    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print_report(report)

    if not all(report["operations"].values()):
        sys.exit(1)


if __name__ == "__main__":
    main()

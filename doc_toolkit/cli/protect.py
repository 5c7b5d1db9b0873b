"""
CLI for PDF password protection.

The password is read from --password, the DOC_TOOLKIT_PASSWORD environment
variable, or prompted for interactively.
"""

import asyncio
import getpass
import logging
import os
import sys

from ..errors import ConversionError
from ..service import DocumentService
from ..utils import (
    BaseArgumentParser,
    configure_logging_level,
    default_output_path,
    report_failure,
    setup_logging,
    validate_common_arguments,
    write_output,
)

PASSWORD_ENV_VAR = "DOC_TOOLKIT_PASSWORD"


def create_parser():
    """Create argument parser for protect command."""
    epilog = f"""
Examples:
  # Prompt for the password
  doc-protect contract.pdf

  # Non-interactive use
  {PASSWORD_ENV_VAR}=s3cret doc-protect contract.pdf --output contract_locked.pdf
        """

    parser = BaseArgumentParser.create_base_parser(
        prog="doc-protect",
        description="Encrypt a PDF with a password",
        epilog=epilog
    )

    BaseArgumentParser.add_input_file_argument(parser, help="Path to the PDF to protect")
    parser.add_argument(
        "--password",
        help=f"Password to set (visible in the process list; prefer {PASSWORD_ENV_VAR} or the prompt)"
    )
    BaseArgumentParser.add_output_argument(parser)
    BaseArgumentParser.add_verbose_quiet_arguments(parser)
    return parser


def read_password(args) -> str:
    if args.password:
        return args.password
    if os.environ.get(PASSWORD_ENV_VAR):
        return os.environ[PASSWORD_ENV_VAR]
    return getpass.getpass("PDF password: ")


def main(argv=None):
    """Main entry point for doc-protect command."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not validate_common_arguments(args):
        parser.print_help()
        sys.exit(1)

    setup_logging()
    configure_logging_level(args)

    password = read_password(args)
    service = DocumentService()

    with open(args.input_file, "rb") as f:
        data = f.read()

    try:
        result = asyncio.run(service.protect(data, password, filename=os.path.basename(args.input_file)))
    except ConversionError as e:
        report_failure(e, verbose=args.verbose)
    except KeyboardInterrupt:
        logging.info("Protection cancelled by user.")
        sys.exit(1)

    write_output(args.output or default_output_path(args.input_file, "_protected", "pdf"), result)
    logging.info(f"PDF protected using {service.last_strategy}")


if __name__ == "__main__":
    main()

"""
Command-line entry point for the library transcoders.

Usage: python -m doc_toolkit.transcode {premium,basic} INPUT OUTPUT {docx,xlsx,pptx}

Exit status 0 means OUTPUT was written; 2 means the transcoder could not
produce a document, with the reason as the last stderr line.
"""

import argparse
import importlib
import logging
import sys

from . import FORMATS, TranscodeError

TIERS = ("premium", "basic")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m doc_toolkit.transcode")
    parser.add_argument("tier", choices=TIERS)
    parser.add_argument("input_path")
    parser.add_argument("output_path")
    parser.add_argument("format", choices=FORMATS)
    return parser


def main(argv=None) -> int:
    args = create_parser().parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s - %(message)s", stream=sys.stderr)
    for noisy in ("pdf2docx", "pdfminer", "PIL"):
        logging.getLogger(noisy).setLevel(logging.ERROR)

    module = importlib.import_module(f"{__package__}.{args.tier}")
    converter = module.CONVERTERS[args.format]
    try:
        converter(args.input_path, args.output_path)
    except TranscodeError as e:
        print(f"{args.tier} {args.format} transcoder: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())

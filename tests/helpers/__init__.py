"""
Test helpers package for doc toolkit.

Provides the fake process runner and document builders used across tests.
"""

from .test_utils import (
    FakeRunner,
    failed,
    make_context,
    make_office_bytes,
    make_pdf_bytes,
    make_table_pdf_bytes,
    make_text_pdf_bytes,
    missing,
    ok_result,
    program_of,
    respond_by_program,
    suppress_logging,
    timed_out,
    tool_output_path,
)

__all__ = [
    'FakeRunner',
    'failed',
    'make_context',
    'make_office_bytes',
    'make_pdf_bytes',
    'make_table_pdf_bytes',
    'make_text_pdf_bytes',
    'missing',
    'ok_result',
    'program_of',
    'respond_by_program',
    'suppress_logging',
    'timed_out',
    'tool_output_path',
]

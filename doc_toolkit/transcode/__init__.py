"""
Library-based PDF->Office transcoders.

These modules are executed in a child interpreter through
``python -m doc_toolkit.transcode <tier> <input> <output> <format>`` and are
never imported by the service process itself.
"""


class TranscodeError(Exception):
    """The transcoder could not produce a meaningful document."""


FORMATS = ("docx", "xlsx", "pptx")

"""
Text-only transcoders used as the last resort.

Page text extracted with pypdf is written through python-docx, openpyxl or
python-pptx. Layout is lost; a PDF without any extractable text fails.
"""

import logging
import re

from docx import Document
from openpyxl import Workbook
from pptx import Presentation
from pptx.util import Pt
from pypdf import PdfReader

from . import TranscodeError

logger = logging.getLogger(__name__)

MAX_LINES_PER_SLIDE = 30
_COLUMN_GAP = re.compile(r"\s{2,}|\t")


def extract_pages(input_path: str) -> list[str]:
    """
    Extract the text of every page.

    Raises:
        TranscodeError: If no page carries any text (scanned PDF)
    """
    reader = PdfReader(input_path)
    pages = [(page.extract_text() or "") for page in reader.pages]
    if not any(text.strip() for text in pages):
        raise TranscodeError("no extractable text in PDF (scanned document?)")
    return pages


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def to_docx(input_path: str, output_path: str) -> None:
    pages = extract_pages(input_path)
    document = Document()
    for number, text in enumerate(pages, 1):
        for line in _lines(text):
            document.add_paragraph(line)
        if number < len(pages):
            document.add_page_break()
    document.save(output_path)


def to_xlsx(input_path: str, output_path: str) -> None:
    """One sheet per page; runs of whitespace split a line into columns."""
    pages = extract_pages(input_path)
    workbook = Workbook()
    workbook.remove(workbook.active)
    for number, text in enumerate(pages, 1):
        sheet = workbook.create_sheet(f"Page {number}")
        for line in _lines(text):
            sheet.append(_COLUMN_GAP.split(line))
    workbook.save(output_path)


def to_pptx(input_path: str, output_path: str) -> None:
    pages = extract_pages(input_path)
    presentation = Presentation()
    layout = presentation.slide_layouts[1]
    for number, text in enumerate(pages, 1):
        slide = presentation.slides.add_slide(layout)
        slide.shapes.title.text = f"Page {number}"
        body = slide.placeholders[1].text_frame
        lines = _lines(text)[:MAX_LINES_PER_SLIDE]
        body.text = lines[0] if lines else ""
        for line in lines[1:]:
            paragraph = body.add_paragraph()
            paragraph.text = line
            paragraph.font.size = Pt(12)
    presentation.save(output_path)


CONVERTERS = {
    "docx": to_docx,
    "xlsx": to_xlsx,
    "pptx": to_pptx,
}

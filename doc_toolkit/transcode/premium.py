"""
Layout-preserving transcoders.

docx: pdf2docx reconstructs paragraphs, tables and images.
xlsx: pdfplumber table detection, one worksheet per table.
pptx: pypdfium2 page renders placed full-bleed on python-pptx slides.
"""

import io
import logging

import pdfplumber
import pypdfium2 as pdfium
from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from pdf2docx import Converter
from pptx import Presentation
from pptx.util import Pt

from . import TranscodeError

logger = logging.getLogger(__name__)

RENDER_SCALE = 2.0
MAX_SHEET_TITLE = 31


def to_docx(input_path: str, output_path: str) -> None:
    converter = Converter(input_path)
    try:
        converter.convert(output_path, start=0, end=None)
    finally:
        converter.close()


def to_xlsx(input_path: str, output_path: str) -> None:
    """Write every detected table to its own sheet; no tables is a failure."""
    workbook = Workbook()
    workbook.remove(workbook.active)

    with pdfplumber.open(input_path) as pdf:
        for page_number, page in enumerate(pdf.pages, 1):
            for table_number, table in enumerate(page.extract_tables(), 1):
                rows = [[("" if cell is None else str(cell).strip()) for cell in row] for row in table]
                if not any(any(row) for row in rows):
                    continue
                title = f"Page{page_number}_Table{table_number}"[:MAX_SHEET_TITLE]
                sheet = workbook.create_sheet(title)
                for row in rows:
                    sheet.append(row)
                _fit_columns(sheet)

    if not workbook.worksheets:
        raise TranscodeError("no tables detected in PDF")
    logger.info(f"Extracted {len(workbook.worksheets)} tables")
    workbook.save(output_path)


def _fit_columns(sheet) -> None:
    for index, column in enumerate(sheet.iter_cols(values_only=True), 1):
        longest = max((len(str(value)) for value in column if value), default=0)
        sheet.column_dimensions[get_column_letter(index)].width = min(max(longest + 2, 8), 60)


def to_pptx(input_path: str, output_path: str) -> None:
    pdf = pdfium.PdfDocument(input_path)
    try:
        if len(pdf) == 0:
            raise TranscodeError("PDF has no pages")

        presentation = Presentation()
        width, height = pdf[0].get_size()
        presentation.slide_width = Pt(width)
        presentation.slide_height = Pt(height)
        blank_layout = presentation.slide_layouts[6]

        for index in range(len(pdf)):
            page = pdf[index]
            image = page.render(scale=RENDER_SCALE).to_pil()
            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
            buffer.seek(0)

            slide = presentation.slides.add_slide(blank_layout)
            slide.shapes.add_picture(
                buffer, 0, 0, width=presentation.slide_width, height=presentation.slide_height
            )
    finally:
        pdf.close()

    presentation.save(output_path)


CONVERTERS = {
    "docx": to_docx,
    "xlsx": to_xlsx,
    "pptx": to_pptx,
}

"""
PDF analysis with conversion recommendations.

Turns a classifier profile into the flags and advice a client shows before
it submits a PDF->Office conversion.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from . import config
from .models import DocumentProfile


@dataclass
class ConversionRecommendations:
    can_convert_to_word: bool = True
    can_convert_to_excel: bool = True
    can_convert_to_powerpoint: bool = True
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def block_all(self) -> None:
        self.can_convert_to_word = False
        self.can_convert_to_excel = False
        self.can_convert_to_powerpoint = False


@dataclass
class PdfAnalysis:
    """Profile of an uploaded PDF and what it means for conversion."""

    filename: str
    size: int
    profile: DocumentProfile
    recommendations: ConversionRecommendations

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "size": self.size,
            "analysis": {
                "page_count": self.profile.page_count,
                "is_scanned": self.profile.is_scanned,
                "is_protected": self.profile.is_encrypted,
                "has_complex_layout": self.profile.has_complex_layout,
            },
            "recommendations": asdict(self.recommendations),
        }


def recommend(profile: DocumentProfile) -> ConversionRecommendations:
    """
    Derive conversion recommendations from a document profile.

    Scanned and protected PDFs cannot be converted meaningfully; complex
    layouts and large page counts only produce warnings.
    """
    result = ConversionRecommendations()

    if profile.is_scanned:
        result.block_all()
        result.warnings.append("This appears to be a scanned PDF (image-based)")
        result.suggestions.append("Use OCR software to make the PDF text-selectable first")

    if profile.is_encrypted:
        result.block_all()
        result.warnings.append("This PDF appears to be password-protected or restricted")
        result.suggestions.append("Remove password protection before conversion")

    if profile.has_complex_layout:
        result.warnings.append("Complex layout detected - conversion quality may vary")
        result.suggestions.append("Simpler PDFs generally convert better")

    if profile.page_count > config.LARGE_PDF_PAGE_THRESHOLD:
        result.warnings.append("Large PDF detected - conversion may take longer")
        result.suggestions.append("Consider splitting into smaller files for faster processing")

    return result

"""
Heuristic PDF classification from poppler metadata.

The profile is advisory: it selects the compression branch and enriches
error messages. Classification failure never blocks a request.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from . import config
from .errors import ProcessRunnerError
from .models import DocumentProfile
from .runner import ProcessRunner

_PAGES_RE = re.compile(r"^Pages:\s+(\d+)", re.MULTILINE)
_FIELD_RE = re.compile(r"^(?P<key>[A-Za-z ]+):\s*(?P<value>.*)$", re.MULTILINE)


def parse_pdfinfo(output: str) -> dict[str, str]:
    """Parse `pdfinfo` key/value output into a dict."""
    return {m.group("key").strip(): m.group("value").strip() for m in _FIELD_RE.finditer(output)}


def profile_from_pdfinfo(output: str, size_bytes: int = 0, extracted_text: str | None = None) -> DocumentProfile:
    """
    Build a document profile from `pdfinfo` output.

    Args:
        output: Raw `pdfinfo` stdout
        size_bytes: Size of the inspected document
        extracted_text: Text from `pdftotext`, or None when extraction did not run

    Returns:
        DocumentProfile with heuristic flags
    """
    fields = parse_pdfinfo(output)
    match = _PAGES_RE.search(output)
    page_count = int(match.group(1)) if match else 0

    encrypted = fields.get("Encrypted")
    is_encrypted = encrypted is not None and not encrypted.lower().startswith("no")

    is_scanned = "no text" in output.lower() or (page_count > 0 and "Tagged" not in fields)
    if extracted_text is not None and page_count > 0 and not extracted_text.strip():
        is_scanned = True

    form = fields.get("Form", "none").lower()
    javascript = fields.get("JavaScript", "no").lower()
    has_complex_layout = (
        page_count > config.COMPLEX_LAYOUT_PAGE_THRESHOLD
        or form not in ("", "none")
        or javascript.startswith("yes")
    )

    return DocumentProfile(
        page_count=page_count,
        is_encrypted=is_encrypted,
        is_scanned=is_scanned,
        has_complex_layout=has_complex_layout,
        size_bytes=size_bytes,
    )


class DocumentClassifier:
    """Inspects PDFs with `pdfinfo`, `pdftotext` and `pdfimages`."""

    def __init__(self, runner: ProcessRunner, timeout: float = config.CLASSIFY_TIMEOUT):
        self.runner = runner
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    async def classify(self, pdf_path: str | Path, size_bytes: int | None = None) -> DocumentProfile:
        """
        Classify a PDF on disk.

        Returns:
            The heuristic profile, or the conservative default when the
            metadata tool is missing, times out or rejects the input.
        """
        path = Path(pdf_path)
        if size_bytes is None:
            size_bytes = path.stat().st_size if path.exists() else 0

        try:
            info = await self.runner.run([config.PDFINFO_BINARY, str(path)], self.timeout)
        except ProcessRunnerError as e:
            self.logger.warning(f"PDF analysis failed: {e}")
            return DocumentProfile.default(size_bytes)

        extracted = await self._extract_text(path)
        profile = profile_from_pdfinfo(info.stdout, size_bytes, extracted)
        self.logger.info(
            f"PDF analysis: pages={profile.page_count} encrypted={profile.is_encrypted} "
            f"scanned={profile.is_scanned} complex={profile.has_complex_layout}"
        )
        return profile

    async def _extract_text(self, path: Path) -> str | None:
        try:
            result = await self.runner.run(
                [config.PDFTOTEXT_BINARY, "-l", "3", str(path), "-"], self.timeout
            )
        except ProcessRunnerError as e:
            self.logger.debug(f"Text extraction skipped: {e}")
            return None
        return result.stdout

    async def detect_image_heavy(self, pdf_path: str | Path, profile: DocumentProfile) -> bool:
        """
        Decide whether a PDF should get the image-heavy compression commands.

        A PDF is image-heavy when it carries more than 2MB per page or embeds
        JPEG/JPX/PNG images. pdfimages failures count as not image-heavy.
        """
        if profile.bytes_per_page > config.IMAGE_HEAVY_BYTES_PER_PAGE:
            self.logger.info(f"Detected image-heavy PDF ({profile.bytes_per_page:.0f} bytes/page)")
            return True

        try:
            listing = await self.runner.run(
                [config.PDFIMAGES_BINARY, "-list", str(pdf_path)], config.IMAGE_SCAN_TIMEOUT
            )
        except ProcessRunnerError as e:
            self.logger.warning(f"Image analysis failed: {e}")
            return False

        encodings = _image_encodings(listing.stdout)
        if encodings & set(config.IMAGE_HEAVY_ENCODINGS):
            self.logger.info(f"Detected image-heavy PDF (embedded {', '.join(sorted(encodings))} images)")
            return True
        return False


def _image_encodings(listing: str) -> set[str]:
    """Collect the `enc` column of a `pdfimages -list` table."""
    lines = listing.splitlines()
    header = next((i for i, line in enumerate(lines) if line.split()[:1] == ["page"]), None)
    if header is None:
        return set()
    columns = lines[header].split()
    if "enc" not in columns:
        return set()
    enc_index = columns.index("enc")
    encodings = set()
    for line in lines[header + 1:]:
        parts = line.split()
        if len(parts) > enc_index and not line.startswith("-"):
            encodings.add(parts[enc_index].lower())
    return encodings

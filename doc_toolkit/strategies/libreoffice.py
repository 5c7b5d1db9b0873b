"""
Document conversion strategies using LibreOffice (soffice) in headless mode.

One strategy is one `soffice --convert-to` invocation with a fixed module and
filter selection. Each request gets its own LibreOffice user profile inside
its workspace, which lets several conversions run side by side without
fighting over the profile lock.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .. import config
from ..runner import ProcessRunner
from .base import CommandStrategy, StrategyContext

SOFFICE_BASE_ARGS = (
    "--headless",
    "--nologo",
    "--nolockcheck",
    "--nodefault",
    "--nofirststartwizard",
    "--norestore",
)

PROFILE_DIR_NAME = "lo_profile"


def soffice_binary() -> str:
    """Resolve the LibreOffice executable, preferring `soffice`."""
    return ProcessRunner.which(*config.LIBREOFFICE_BINARIES) or config.LIBREOFFICE_BINARIES[0]


@dataclass(frozen=True)
class LibreOfficeVariant:
    """
    Module and filter selection for one LibreOffice attempt.

    Attributes:
        name: Short label used in the strategy id
        convert_to: Value of `--convert-to` (`ext` or `ext:FilterName`)
        module: Application switch such as `--writer` or `--calc`, if any
        infilter: Import filter forced with `--infilter`, if any
        extra: Additional flags placed before `--convert-to`
    """

    name: str
    convert_to: str
    module: str | None = None
    infilter: str | None = None
    extra: tuple[str, ...] = ()

    @property
    def extension(self) -> str:
        return self.convert_to.split(":", 1)[0]


class LibreOfficeStrategy(CommandStrategy):
    """Runs one LibreOffice variant against the request's scratch input."""

    def __init__(self, variant: LibreOfficeVariant, *, timeout: float = config.OFFICE_TIMEOUT, **kwargs):
        self.variant = variant
        super().__init__(
            f"libreoffice-{variant.name}",
            self._build_command,
            timeout=timeout,
            outputs=self._output_candidates,
            **kwargs,
        )

    def _build_command(self, context: StrategyContext) -> list[str]:
        profile_dir = context.workspace.directory(PROFILE_DIR_NAME)
        cmd = [
            soffice_binary(),
            *SOFFICE_BASE_ARGS,
            f"-env:UserInstallation={profile_dir.as_uri()}",
        ]
        if self.variant.module:
            cmd.append(self.variant.module)
        cmd.extend(self.variant.extra)
        if self.variant.infilter:
            cmd.append(f"--infilter={self.variant.infilter}")
        cmd.extend([
            "--convert-to",
            self.variant.convert_to,
            "--outdir",
            str(context.workspace.scratch_dir),
            str(context.input_path),
        ])
        return cmd

    def _output_candidates(self, context: StrategyContext) -> list[Path]:
        ext = self.variant.extension
        stem = context.input_path.stem
        expected = context.workspace.scratch_dir / f"{stem}.{ext}"
        candidates = [expected]
        # some filters append a suffix to the stem
        for path in sorted(context.workspace.scratch_dir.glob(f"{stem}*.{ext}")):
            if path not in candidates and path != context.input_path:
                candidates.append(path)
        return candidates


OFFICE_TO_PDF_VARIANTS = (
    LibreOfficeVariant("pdf", "pdf"),
)
"""Word and PowerPoint sources need a single plain invocation."""

EXCEL_TO_PDF_VARIANTS = (
    LibreOfficeVariant("calc-export", "pdf:calc_pdf_Export", module="--calc"),
    LibreOfficeVariant("calc-invisible", "pdf", module="--calc", extra=("--invisible",)),
    LibreOfficeVariant("calc", "pdf", module="--calc"),
    LibreOfficeVariant(
        "calc-pdf-version",
        'pdf:calc_pdf_Export:{"SelectPdfVersion":{"type":"long","value":"1"}}',
        module="--calc",
    ),
    LibreOfficeVariant("writer", "pdf", module="--writer"),
    LibreOfficeVariant("plain", "pdf"),
)

PDF_TO_OFFICE_VARIANTS = {
    "docx": (
        LibreOfficeVariant(
            "writer-msword", "docx:MS Word 2007 XML", module="--writer", infilter="writer_pdf_import"
        ),
        LibreOfficeVariant("writer-import", "docx", infilter="writer_pdf_import"),
        LibreOfficeVariant("draw", "docx", module="--draw"),
        LibreOfficeVariant("writer", "docx", module="--writer"),
        LibreOfficeVariant("plain", "docx"),
    ),
    "xlsx": (
        LibreOfficeVariant(
            "calc-msexcel", "xlsx:Calc MS Excel 2007 XML", module="--calc", infilter="calc_pdf_import"
        ),
        LibreOfficeVariant("writer-import", "xlsx", module="--writer", infilter="writer_pdf_import"),
        LibreOfficeVariant("draw-import", "xlsx", module="--draw", infilter="draw_pdf_import"),
        LibreOfficeVariant("calc-msexcel-plain", "xlsx:Calc MS Excel 2007 XML", module="--calc"),
        LibreOfficeVariant("calc", "xlsx", module="--calc"),
    ),
    "pptx": (
        LibreOfficeVariant(
            "draw-mspowerpoint",
            "pptx:Impress MS PowerPoint 2007 XML",
            module="--draw",
            infilter="draw_pdf_import",
        ),
        LibreOfficeVariant("impress-import", "pptx", module="--impress", infilter="impress_pdf_import"),
        LibreOfficeVariant("draw", "pptx", module="--draw"),
        LibreOfficeVariant("impress", "pptx", module="--impress"),
        LibreOfficeVariant("mspowerpoint", "pptx:Impress MS PowerPoint 2007 XML"),
    ),
}
"""Variants tried in order for each PDF->Office target."""

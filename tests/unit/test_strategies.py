"""
Unit tests for the command-line strategy families.

Commands are checked as argument vectors; the fake runner stands in for the
tools themselves.
"""

import asyncio
import sys
from pathlib import Path

import pytest

from doc_toolkit.strategies.encryption import (
    ProtectionStrategy,
    pdftk_128bit,
    pdftk_default,
    protection_strategies,
    qpdf_aes128,
    qpdf_aes256,
)
from doc_toolkit.strategies.ghostscript import (
    QPDF_OK_CODES,
    ghostscript_strategy,
    image_heavy_strategies,
    qpdf_strategy,
    text_strategies,
)
from doc_toolkit.strategies.libreoffice import (
    EXCEL_TO_PDF_VARIANTS,
    PDF_TO_OFFICE_VARIANTS,
    PROFILE_DIR_NAME,
    LibreOfficeStrategy,
    LibreOfficeVariant,
)
from doc_toolkit.strategies.transcoder import TranscoderStrategy
from tests.helpers import FakeRunner, make_context, make_office_bytes, make_pdf_bytes, program_of


class StrategyTestCase:
    """Provides `self.context` for a PDF input and cleans it up afterwards."""

    target_format = "pdf"
    source_kind = "pdf"
    password = None

    @pytest.fixture(autouse=True)
    def _context(self, settings):
        self.runner = FakeRunner()
        data = make_office_bytes() if self.source_kind != "pdf" else make_pdf_bytes()
        self.context = make_context(
            settings, self.runner, data, self.source_kind, self.target_format, password=self.password
        )
        yield
        self.context.workspace.cleanup()


class TestLibreOfficeStrategy(StrategyTestCase):

    target_format = "docx"

    def test_command_for_pdf_import(self):
        strategy = LibreOfficeStrategy(PDF_TO_OFFICE_VARIANTS["docx"][0])
        argv = strategy.build(self.context)

        assert strategy.id == "libreoffice-writer-msword"
        assert program_of(argv) in ("soffice", "libreoffice")
        assert "--headless" in argv
        assert argv.index("--writer") < argv.index("--convert-to")
        assert "--infilter=writer_pdf_import" in argv
        assert argv[argv.index("--convert-to") + 1] == "docx:MS Word 2007 XML"
        assert argv[argv.index("--outdir") + 1] == str(self.context.workspace.scratch_dir)
        assert argv[-1] == str(self.context.input_path)

    def test_private_user_profile(self):
        argv = LibreOfficeStrategy(LibreOfficeVariant("plain", "docx")).build(self.context)
        profile_arg = next(arg for arg in argv if arg.startswith("-env:UserInstallation="))
        profile_dir = self.context.workspace.path(PROFILE_DIR_NAME)
        assert profile_arg == f"-env:UserInstallation={profile_dir.as_uri()}"
        assert profile_dir.is_dir()

    def test_plain_variant_has_no_module(self):
        argv = LibreOfficeStrategy(LibreOfficeVariant("plain", "docx")).build(self.context)
        assert not any(arg in argv for arg in ("--writer", "--calc", "--draw", "--impress"))
        assert not any(arg.startswith("--infilter") for arg in argv)

    def test_output_candidates(self):
        strategy = LibreOfficeStrategy(LibreOfficeVariant("plain", "docx"))
        stem = self.context.input_path.stem
        suffixed = self.context.workspace.scratch_dir / f"{stem}-1.docx"
        suffixed.write_bytes(b"PK")

        candidates = strategy.locate_output(self.context)
        assert candidates[0] == self.context.workspace.scratch_dir / f"{stem}.docx"
        assert suffixed in candidates

    def test_invoke_runs_command(self):
        strategy = LibreOfficeStrategy(PDF_TO_OFFICE_VARIANTS["docx"][1])
        self.runner.responder = lambda argv: make_office_bytes(2048)

        assert asyncio.run(strategy.invoke(self.context)) is None
        assert self.runner.timeouts == [120]
        assert strategy.locate_output(self.context)[0].read_bytes() == make_office_bytes(2048)

    def test_variant_extension(self):
        assert LibreOfficeVariant("x", "pdf:calc_pdf_Export").extension == "pdf"
        assert EXCEL_TO_PDF_VARIANTS[3].extension == "pdf"

    def test_variant_tables(self):
        assert [LibreOfficeStrategy(v).id for v in EXCEL_TO_PDF_VARIANTS] == [
            "libreoffice-calc-export",
            "libreoffice-calc-invisible",
            "libreoffice-calc",
            "libreoffice-calc-pdf-version",
            "libreoffice-writer",
            "libreoffice-plain",
        ]
        for target, variants in PDF_TO_OFFICE_VARIANTS.items():
            assert len(variants) == 5
            assert all(v.extension == target for v in variants)


class TestCompressionStrategies(StrategyTestCase):

    def test_ghostscript_command(self):
        argv = ghostscript_strategy("screen").build(self.context)
        assert argv[0] == "gs"
        assert "-sDEVICE=pdfwrite" in argv
        assert "-dPDFSETTINGS=/screen" in argv
        assert f"-sOutputFile={self.context.output_path}" in argv
        assert argv[-1] == str(self.context.input_path)

    def test_qpdf_command(self):
        strategy = qpdf_strategy("--recompress-flate", name="recompress")
        argv = strategy.build(self.context)
        assert strategy.id == "qpdf-recompress"
        assert strategy.ok_codes == QPDF_OK_CODES == (0, 3)
        assert argv[:3] == ["qpdf", "--linearize", "--compress-streams=y"]
        assert argv[-2:] == [str(self.context.input_path), str(self.context.output_path)]

    @pytest.mark.parametrize("quality,expected", [
        ("low", ["ghostscript-screen", "ghostscript-ebook", "qpdf-recompress-max"]),
        ("moderate", ["ghostscript-printer", "ghostscript-ebook", "qpdf-recompress"]),
        ("high", ["ghostscript-prepress", "qpdf-linearize"]),
    ])
    def test_text_strategies(self, quality, expected):
        strategies = text_strategies(quality)
        assert [s.id for s in strategies] == expected
        assert all(s.timeout == 120 for s in strategies)

    def test_image_heavy_strategies(self):
        strategies = image_heavy_strategies()
        assert [s.id for s in strategies] == [
            "ghostscript-screen-72dpi",
            "ghostscript-ebook-150dpi",
            "ghostscript-printer",
        ]
        assert all(s.timeout == 300 for s in strategies)
        argv = strategies[0].build(self.context)
        assert "-dColorImageResolution=72" in argv
        assert "-dDownsampleColorImages=true" in argv


class TestProtectionStrategies(StrategyTestCase):

    password = "abcd1234"

    def test_order(self):
        assert [s.id for s in protection_strategies()] == [
            "qpdf-aes256", "pdftk", "qpdf-aes128", "pdftk-128bit",
        ]

    def test_qpdf_commands(self):
        aes256 = qpdf_aes256(self.context)
        assert aes256[:5] == [
            "qpdf", "--encrypt", "--user-password=abcd1234", "--owner-password=abcd1234", "--bits=256",
        ]
        assert aes256[-3:] == ["--", str(self.context.input_path), str(self.context.output_path)]

        aes128 = qpdf_aes128(self.context)
        assert aes128[1:6] == ["--encrypt", "abcd1234", "abcd1234", "128", "--use-aes=y"]

    def test_pdftk_commands(self):
        argv = pdftk_default(self.context)
        assert argv == [
            "pdftk", str(self.context.input_path), "output", str(self.context.output_path),
            "user_pw", "abcd1234", "owner_pw", "abcd1234",
        ]
        assert pdftk_128bit(self.context) == argv + ["encrypt_128bit"]

    def test_password_passed_as_secret(self):
        asyncio.run(protection_strategies()[0].invoke(self.context))
        assert self.runner.secrets == [("abcd1234",)]
        assert self.runner.timeouts == [60]

    def test_accepts_encrypted_output(self):
        strategy = ProtectionStrategy("qpdf-aes256", qpdf_aes256)
        assert strategy.accept(make_pdf_bytes(password="abcd1234"), self.context) is None

    def test_rejects_unprotected_output(self):
        strategy = ProtectionStrategy("qpdf-aes256", qpdf_aes256)
        assert strategy.accept(make_pdf_bytes(), self.context) == "output is not encrypted"

    def test_rejects_unparsable_output(self):
        strategy = ProtectionStrategy("pdftk", pdftk_default)
        assert strategy.accept(b"garbage" * 100, self.context) is not None


class TestTranscoderStrategy(StrategyTestCase):

    target_format = "xlsx"

    def test_command(self):
        strategy = TranscoderStrategy("premium")
        argv = strategy.build(self.context)
        assert strategy.id == "transcode-premium"
        assert argv == [
            sys.executable, "-m", "doc_toolkit.transcode", "premium",
            str(self.context.input_path), str(self.context.output_path), "xlsx",
        ]

    def test_runs_from_project_root(self):
        strategy = TranscoderStrategy("basic")
        assert (Path(strategy.cwd) / "doc_toolkit" / "transcode" / "__main__.py").is_file()
        assert strategy.min_output_size == 1000
        assert strategy.timeout == 120

    def test_unknown_tier(self):
        with pytest.raises(ValueError):
            TranscoderStrategy("deluxe")

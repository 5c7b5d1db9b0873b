"""
Unit tests for CLI commands.
"""

import json
import os
import shutil
import tempfile
from argparse import Namespace
from unittest.mock import AsyncMock, Mock, patch

import pytest

from doc_toolkit.cli import analyze, compress, convert, doctor, protect
from doc_toolkit.errors import ExhaustedError, ValidationError
from doc_toolkit.utils import default_output_path, validate_common_arguments


class TestCLICommands:
    """Test cases for CLI commands."""

    def setup_method(self):
        """Setup test fixtures before each test method."""
        self.test_dir = tempfile.mkdtemp()
        self.pdf_path = os.path.join(self.test_dir, "report.pdf")
        with open(self.pdf_path, "wb") as f:
            f.write(b"%PDF-1.4 test document")

    def teardown_method(self):
        """Cleanup after each test method."""
        if os.path.exists(self.test_dir):
            shutil.rmtree(self.test_dir, ignore_errors=True)

    def mock_service(self, **results):
        service = Mock()
        service.last_strategy = "transcode-premium"
        for name, value in results.items():
            setattr(service, name, AsyncMock(**value))
        return service

    def test_create_parsers(self):
        """Test parser creation for every command."""
        assert convert.create_parser().prog == "doc-convert"
        assert compress.create_parser().prog == "doc-compress"
        assert protect.create_parser().prog == "doc-protect"
        assert doctor.create_parser().prog == "doc-doctor"
        assert analyze.create_parser().prog == "doc-analyze"

    def test_convert_parser_rejects_unknown_target(self):
        with pytest.raises(SystemExit):
            convert.create_parser().parse_args(["a.pdf", "--to", "odt"])

    @pytest.mark.parametrize("filename,target,expected", [
        ("report.pdf", None, ("pdf", "docx")),
        ("report.pdf", "xlsx", ("pdf", "xlsx")),
        ("budget.XLSX", None, ("excel", "pdf")),
        ("slides.ppt", None, ("powerpoint", "pdf")),
        ("notes.txt", None, ("word", "pdf")),
        ("image.png", None, (None, None)),
    ])
    def test_resolve_formats(self, filename, target, expected):
        assert convert.resolve_formats(filename, target) == expected

    def test_validate_common_arguments(self):
        assert validate_common_arguments(Namespace(input_file=self.pdf_path, verbose=False, quiet=False))
        assert not validate_common_arguments(Namespace(input_file=self.pdf_path, verbose=True, quiet=True))
        assert not validate_common_arguments(
            Namespace(input_file=os.path.join(self.test_dir, "missing.pdf"), verbose=False, quiet=False)
        )

    def test_default_output_path(self):
        assert default_output_path("/docs/report.docx", "", "pdf").name == "report.pdf"
        assert default_output_path("/docs/scan.pdf", "_compressed", "pdf").name == "scan_compressed.pdf"

    @patch("doc_toolkit.cli.convert.DocumentService")
    def test_convert_main_writes_output(self, mock_service_cls):
        """Test convert main function end to end with a mocked service."""
        service = self.mock_service(convert={"return_value": b"PK\x03\x04converted"})
        mock_service_cls.return_value = service
        output = os.path.join(self.test_dir, "out", "report.xlsx")

        convert.main([self.pdf_path, "--to", "xlsx", "--output", output, "-q"])

        service.convert.assert_awaited_once_with(
            b"%PDF-1.4 test document", "pdf", "xlsx", filename="report.pdf"
        )
        with open(output, "rb") as f:
            assert f.read() == b"PK\x03\x04converted"

    @patch("doc_toolkit.cli.convert.DocumentService")
    def test_convert_main_default_output(self, mock_service_cls):
        mock_service_cls.return_value = self.mock_service(convert={"return_value": b"PK\x03\x04"})
        convert.main([self.pdf_path, "-q"])
        assert os.path.exists(os.path.join(self.test_dir, "report.docx"))

    @patch("doc_toolkit.cli.convert.DocumentService")
    def test_convert_main_failure_exits(self, mock_service_cls):
        mock_service_cls.return_value = self.mock_service(
            convert={"side_effect": ExhaustedError("Conversion to DOCX failed after 7 attempts.")}
        )
        with pytest.raises(SystemExit) as exc_info:
            convert.main([self.pdf_path, "-q"])
        assert exc_info.value.code == 1
        assert not os.path.exists(os.path.join(self.test_dir, "report.docx"))

    def test_convert_main_unsupported_extension(self):
        path = os.path.join(self.test_dir, "photo.png")
        with open(path, "wb") as f:
            f.write(b"\x89PNG")
        with pytest.raises(SystemExit) as exc_info:
            convert.main([path])
        assert exc_info.value.code == 1

    @patch("doc_toolkit.cli.compress.DocumentService")
    def test_compress_main(self, mock_service_cls):
        service = self.mock_service(compress={"return_value": b"%PDF-small"})
        mock_service_cls.return_value = service

        compress.main([self.pdf_path, "--quality", "low", "-q"])

        service.compress.assert_awaited_once_with(b"%PDF-1.4 test document", "low", filename="report.pdf")
        with open(os.path.join(self.test_dir, "report_compressed.pdf"), "rb") as f:
            assert f.read() == b"%PDF-small"

    @patch("doc_toolkit.cli.protect.DocumentService")
    def test_protect_main_uses_environment_password(self, mock_service_cls, monkeypatch):
        monkeypatch.setenv(protect.PASSWORD_ENV_VAR, "from-env")
        service = self.mock_service(protect={"return_value": b"%PDF-encrypted"})
        mock_service_cls.return_value = service

        protect.main([self.pdf_path, "-q"])

        service.protect.assert_awaited_once_with(b"%PDF-1.4 test document", "from-env", filename="report.pdf")
        assert os.path.exists(os.path.join(self.test_dir, "report_protected.pdf"))

    @patch("doc_toolkit.cli.protect.DocumentService")
    def test_protect_main_validation_error(self, mock_service_cls):
        mock_service_cls.return_value = self.mock_service(
            protect={"side_effect": ValidationError("Password must be at least 4 characters long")}
        )
        with pytest.raises(SystemExit) as exc_info:
            protect.main([self.pdf_path, "--password", "abc", "-q"])
        assert exc_info.value.code == 1

    def test_read_password_order(self, monkeypatch):
        monkeypatch.setenv(protect.PASSWORD_ENV_VAR, "from-env")
        assert protect.read_password(Namespace(password="from-flag")) == "from-flag"
        assert protect.read_password(Namespace(password=None)) == "from-env"

        monkeypatch.delenv(protect.PASSWORD_ENV_VAR)
        with patch("doc_toolkit.cli.protect.getpass.getpass", return_value="typed") as mock_getpass:
            assert protect.read_password(Namespace(password=None)) == "typed"
        mock_getpass.assert_called_once()


    ANALYSIS = {
        "filename": "report.pdf",
        "size": 22,
        "analysis": {"page_count": 60, "is_scanned": True, "is_protected": False, "has_complex_layout": True},
        "recommendations": {
            "can_convert_to_word": False,
            "can_convert_to_excel": False,
            "can_convert_to_powerpoint": False,
            "warnings": ["This appears to be a scanned PDF (image-based)"],
            "suggestions": ["Use OCR software to make the PDF text-selectable first"],
        },
    }

    @patch("doc_toolkit.cli.analyze.DocumentService")
    def test_analyze_main_json(self, mock_service_cls, capsys):
        service = Mock()
        service.analyze = AsyncMock(return_value=Mock(to_dict=Mock(return_value=self.ANALYSIS)))
        mock_service_cls.return_value = service

        analyze.main([self.pdf_path, "--json", "-q"])

        service.analyze.assert_awaited_once_with(b"%PDF-1.4 test document", filename="report.pdf")
        assert json.loads(capsys.readouterr().out) == self.ANALYSIS

    @patch("doc_toolkit.cli.analyze.DocumentService")
    def test_analyze_main_text_report(self, mock_service_cls, capsys):
        service = Mock()
        service.analyze = AsyncMock(return_value=Mock(to_dict=Mock(return_value=self.ANALYSIS)))
        mock_service_cls.return_value = service

        analyze.main([self.pdf_path, "-q"])

        out = capsys.readouterr().out
        assert "Pages: 60" in out
        assert "Warning: This appears to be a scanned PDF (image-based)" in out

    @patch("doc_toolkit.cli.analyze.DocumentService")
    def test_analyze_main_invalid_pdf_exits(self, mock_service_cls):
        service = Mock()
        service.analyze = AsyncMock(side_effect=ValidationError("Invalid PDF file"))
        mock_service_cls.return_value = service
        with pytest.raises(SystemExit) as exc_info:
            analyze.main([self.pdf_path, "-q"])
        assert exc_info.value.code == 1

class TestDoctor:

    def mock_service(self, tools):
        service = Mock()
        service.settings.temp_dir = "/tmp/pdf-converter"
        service.check_tools.return_value = tools
        service.remote_health = AsyncMock(return_value={"available": False, "reason": "not configured"})
        return service

    def test_build_report(self):
        tools = {"libreoffice": True, "ghostscript": False, "qpdf": True, "pdftk": False, "transcoders": True}
        report = doctor.build_report(self.mock_service(tools))

        assert report["operations"] == {
            "Office -> PDF": True,
            "PDF -> Office": True,
            "Compression": True,
            "Protection": True,
        }
        assert report["remote"]["available"] is False

    def test_build_report_without_remote(self):
        report = doctor.build_report(self.mock_service({"libreoffice": False}), check_remote=False)
        assert "remote" not in report
        assert report["operations"]["Office -> PDF"] is False

    @patch("doc_toolkit.cli.doctor.DocumentService")
    def test_main_json_exits_when_operation_unavailable(self, mock_service_cls, capsys):
        mock_service_cls.return_value = self.mock_service({"libreoffice": False, "qpdf": True})
        with pytest.raises(SystemExit) as exc_info:
            doctor.main(["--json", "--skip-remote"])
        assert exc_info.value.code == 1
        report = json.loads(capsys.readouterr().out)
        assert report["tools"]["libreoffice"] is False

    @patch("doc_toolkit.cli.doctor.DocumentService")
    def test_main_all_available(self, mock_service_cls, capsys):
        tools = {"libreoffice": True, "ghostscript": True, "qpdf": True, "pdftk": True, "transcoders": True}
        mock_service_cls.return_value = self.mock_service(tools)
        doctor.main(["--skip-remote"])
        assert "ENVIRONMENT CHECK" in capsys.readouterr().out

"""
Pytest configuration and fixtures for doc toolkit tests.
"""

import pytest
import shutil
import sys
import tempfile
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from doc_toolkit.config import Settings
from tests.helpers import FakeRunner, make_office_bytes, make_pdf_bytes


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def settings(temp_dir):
    """Settings with a private scratch directory and no document server."""
    return Settings(temp_dir=str(Path(temp_dir) / "scratch"), python_path=sys.executable)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def sample_pdf():
    """A small, valid, unencrypted PDF."""
    return make_pdf_bytes()


@pytest.fixture
def sample_docx():
    """Bytes that pass DOCX input validation."""
    return make_office_bytes()


@pytest.fixture
def pdfinfo_output():
    """Typical `pdfinfo` output for a tagged three-page text PDF."""
    return """Title:          Quarterly report
Producer:       LibreOffice 7.5
Tagged:         yes
Form:           none
JavaScript:     no
Pages:          3
Encrypted:      no
Page size:      595 x 842 pts (A4)
PDF version:    1.7
"""

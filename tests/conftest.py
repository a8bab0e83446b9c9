"""
Pytest configuration and fixtures for docgate tests.
"""

import os
import tempfile
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing the app
os.environ["ENVIRONMENT"] = "test"
os.environ["TEMP_DIR"] = tempfile.mkdtemp(prefix="docgate_test_scratch_")

from docgate.config import Settings, get_settings  # noqa: E402
from docgate.main import app  # noqa: E402
from docgate.utils.fs import ScratchArena  # noqa: E402
from tests.helpers import build_docx, fake_run  # noqa: E402


@pytest.fixture
def scratch_root(tmp_path):
    """Scratch root private to one test."""
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture
def arena(scratch_root):
    """A scratch arena cleaned up after the test."""
    with ScratchArena(scratch_root) as scratch:
        yield scratch


@pytest.fixture
def test_settings(scratch_root):
    """Settings pointing at the per-test scratch root."""
    return Settings(ENVIRONMENT="test", TEMP_DIR=str(scratch_root))


@pytest.fixture
def client(test_settings):
    """Create a test client for the FastAPI app (lifespan not started)."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def fake_tools():
    """Patch both external tools with healthy fakes."""
    with patch("docgate.services.html_pdf.run_command_safely", side_effect=fake_run) as html_run, \
            patch("docgate.services.rtf.run_command_safely", side_effect=fake_run) as rtf_run:
        yield SimpleNamespace(wkhtmltopdf=html_run, unrtf=rtf_run)


@pytest.fixture
def sample_docx():
    return build_docx()

"""
Pytest configuration and fixtures
"""
import os
import shutil
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from playact import config as playact_config
from playact.api.main import app
from playact.samples import SAMPLE_FILES, write_sample_set

HAS_POPPLER = shutil.which("pdftoppm") is not None


def pytest_collection_modifyitems(config, items):
    run_e2e = os.environ.get("RUN_E2E", "0") == "1"
    skip_e2e = pytest.mark.skip(reason="browser tests disabled; set RUN_E2E=1 to run them")
    skip_render = pytest.mark.skip(reason="poppler (pdftoppm) is not installed")
    for item in items:
        if "e2e" in item.keywords and not run_e2e:
            item.add_marker(skip_e2e)
        if "render" in item.keywords and not HAS_POPPLER:
            item.add_marker(skip_render)


@pytest.fixture(scope="session")
def sample_root(tmp_path_factory) -> Path:
    """A fixtures directory holding the generated sample invoices under pdfs/."""
    root = tmp_path_factory.mktemp("fixtures")
    write_sample_set(root / "pdfs")
    return root


@pytest.fixture(scope="session")
def sample_pdfs(sample_root) -> dict:
    """Fixture file name -> path of the generated PDF."""
    return {name: sample_root / "pdfs" / name for name in SAMPLE_FILES.values()}


@pytest.fixture
def fixtures_dir(tmp_path, sample_root, monkeypatch) -> Path:
    """
    A writable copy of the sample fixtures, installed as the configured
    fixtures directory for the duration of one test.
    """
    root = tmp_path / "fixtures"
    shutil.copytree(sample_root, root)
    monkeypatch.setattr(playact_config, "FIXTURES_DIR", root)
    return root


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)

"""Shared fixtures: isolated temporary storage for query items."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from musebag.main import app
from musebag.services import distributor


@pytest.fixture
def tmp_storage(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point upload/sketch storage at a per-test directory."""
    monkeypatch.setattr(distributor, "TMP_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)

"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from filedrop.core.config import Settings
from filedrop.main import create_app


@pytest.fixture
def app_settings(tmp_path):
    """Settings pointing the blob store and registry at a temp directory."""
    return Settings(
        _env_file=None,
        UPLOAD_DIR=str(tmp_path / "uploads"),
        REGISTRY_PATH=str(tmp_path / "fileMap.json"),
    )


@pytest.fixture
def app(app_settings):
    """Create a fresh application for each test."""
    return create_app(app_settings)


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def registry(app):
    """Registry owned by the test application."""
    return app.state.registry


@pytest.fixture
def upload_dir(app_settings):
    """Directory holding stored content."""
    return Path(app_settings.UPLOAD_DIR)


@pytest.fixture
def upload(client):
    """Upload files through the API and return the response JSON.

    Each file is a (name, content, mime_type) tuple.
    """

    def _upload(*files):
        payload = [
            ("files", (name, io.BytesIO(content), mime_type))
            for name, content, mime_type in files
        ]
        response = client.post("/upload", files=payload)
        assert response.status_code == 200, response.text
        return response.json()

    return _upload

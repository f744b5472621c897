"""
Pytest fixtures for Card Studio tests.
"""

import io
import os

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Set test environment before importing app
os.environ["ENV"] = "dev"
os.environ["OPENAI_API_KEY"] = ""
os.environ["HUGGING_FACE_ACCESS_TOKEN"] = ""

from card_studio import server
from card_studio.analysis import providers
from card_studio.card_utils import images
from card_studio.card_utils.images import to_data_url
from card_studio.card_utils.templates import TEMPLATE_JSON_DIR
from card_studio.card_utils.wizard import WizardRegistry
from card_studio.utils import db_access
from studio_logs import file as file_logs


@pytest.fixture(autouse=True)
def no_provider_keys(monkeypatch):
    """Keep every test offline: no provider is configured."""
    monkeypatch.setattr(providers, "OPENAI_API_KEY", "")
    monkeypatch.setattr(providers, "HUGGING_FACE_API_KEY", "")


@pytest.fixture
def tmp_db(tmp_path, monkeypatch):
    """Fresh SQLite database with the bundled templates registered."""
    monkeypatch.setattr(db_access, "DB_PATH", tmp_path / "db" / "test.db")
    db_access.init_db()
    db_access.scan_and_register_templates(TEMPLATE_JSON_DIR)
    return db_access.DB_PATH


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(images, "UPLOAD_DIR", path)
    return path


@pytest.fixture
def log_dir(tmp_path, monkeypatch):
    path = tmp_path / "logs"
    path.mkdir()
    monkeypatch.setattr(file_logs, "LOG_DIR", str(path))
    return path


@pytest.fixture
def client(tmp_path, monkeypatch, upload_dir, log_dir):
    """TestClient over an isolated database; startup registers templates."""
    monkeypatch.setattr(db_access, "DB_PATH", tmp_path / "db" / "api.db")
    monkeypatch.setattr(server, "wizards", WizardRegistry())
    with TestClient(server.app) as c:
        yield c


@pytest.fixture
def red_image() -> Image.Image:
    return Image.new("RGB", (200, 280), (255, 0, 0))


@pytest.fixture
def png_data_url(red_image) -> str:
    return to_data_url(red_image)


@pytest.fixture
def png_bytes(red_image) -> bytes:
    buffer = io.BytesIO()
    red_image.save(buffer, format="PNG")
    return buffer.getvalue()

"""Shared fixtures: a throwaway sqlite db and uploads root per test."""
import os
import tempfile
from pathlib import Path

import pytest

_TMP = Path(tempfile.mkdtemp(prefix="user_files_tests_"))
os.environ["FILE_API_DATABASE_URL"] = f"sqlite:///{_TMP / 'test_files.db'}"
os.environ["FILE_API_LOG_DIR"] = str(_TMP / "logs")

from fastapi.testclient import TestClient  # noqa: E402

from user_files.config import settings  # noqa: E402
from user_files.database import Base, SessionLocal, engine  # noqa: E402
from user_files.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_state(tmp_path, monkeypatch):
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "strict_ownership", False)
    yield
    app.dependency_overrides = {}


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def upload(client):
    """Upload `content` as `user_id` through the API and return the response."""

    def _upload(user_id, name="notes.txt", content=b"hello", content_type="text/plain"):
        return client.post(
            "/files",
            headers={"X-User-Id": str(user_id)},
            files={"file": (name, content, content_type)},
        )

    return _upload

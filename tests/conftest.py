"""Shared fixtures: hermetic testing environment and a fresh application per test."""

from pathlib import Path

import pytest

from cureconnect.app import PACKAGE_ROOT, Application
from cureconnect.config import DatabaseSettings
from cureconnect.data import Database, migrate
from cureconnect.main import reset_logging
from cureconnect.testing import TestClient


@pytest.fixture(autouse=True)
def testing_environment(monkeypatch: pytest.MonkeyPatch):
    """Select the testing config and make sure no application or log handler outlives a test."""
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.delenv("TZ", raising=False)
    Application.reset_for_testing()
    yield
    Application.reset_for_testing()
    reset_logging()


@pytest.fixture
def app() -> Application:
    return Application.boot()


@pytest.fixture
def client(app: Application) -> TestClient:
    return TestClient(app)


@pytest.fixture
def db():
    """A migrated in-memory SQLite database."""
    database = Database(DatabaseSettings(driver="sqlite", name=":memory:"))
    database.connect()
    migrate(database, PACKAGE_ROOT / "migrations" / "sqlite")
    yield database
    database.disconnect()


@pytest.fixture
def templates(tmp_path: Path):
    """Write template files into a temporary root: ``templates({"a.html": "..."})``."""

    def write(files: dict[str, str]) -> Path:
        for name, source in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source, encoding="utf-8")
        return tmp_path

    return write

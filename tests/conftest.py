"""Shared fixtures: an application over a throwaway SQLite database per test."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from ledger.core.settings import Settings
from main import create_app

USER = "u1"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a fresh SQLite file with file logging disabled."""
    return Settings(database_url=f"sqlite:///{tmp_path / 'ledger.db'}", log_file=None)


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    """A TestClient with the lifespan run, so tables exist."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def auth() -> dict[str, str]:
    """Headers identifying the default test user."""
    return {"X-User-Id": USER}

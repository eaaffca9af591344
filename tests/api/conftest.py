from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.clock import FixedClock
from src.adapters.sqlite_db import SQLiteContentCatalog, SQLiteEventStore
from src.api.auth_utils import create_access_token
from src.api.deps import Settings, get_clock, get_rules, get_settings
from src.api.main import create_app
from src.core.entities import ContentItem

PROJECT_ROOT = Path(__file__).resolve().parents[2]

TEST_SECRET = "test-secret"


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Settings]:
    """Settings pointing at a throwaway data dir."""
    monkeypatch.setenv("ANALYTICS_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("ANALYTICS_DB_PATH", str(tmp_path / "data" / "analytics.db"))
    monkeypatch.setenv("ANALYTICS_RULES_PATH", str(PROJECT_ROOT / "rules.yaml"))
    monkeypatch.setenv("ANALYTICS_SECRET_KEY", TEST_SECRET)
    get_settings.cache_clear()
    get_rules.cache_clear()

    yield get_settings()

    get_settings.cache_clear()
    get_rules.cache_clear()


@pytest.fixture
def app(settings: Settings, clock: FixedClock) -> FastAPI:
    app = create_app()
    app.dependency_overrides[get_clock] = lambda: clock
    return app


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Client with startup (migrations) run."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers() -> dict[str, str]:
    token = create_access_token({"sub": "admin"}, secret_key=TEST_SECRET)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def event_store(client: TestClient, settings: Settings) -> SQLiteEventStore:
    return SQLiteEventStore(settings.db_path)


@pytest.fixture
def seeded_catalog(
    client: TestClient, settings: Settings, posts: list[ContentItem]
) -> SQLiteContentCatalog:
    catalog = SQLiteContentCatalog(settings.db_path)
    for post in posts:
        catalog.save(post)
    return catalog

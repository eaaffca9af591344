from datetime import UTC, datetime
from pathlib import Path

import pytest

from src.adapters.clock import FixedClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.components.analytics import InMemoryAnalyticsStore, InMemoryContentCatalog
from src.core.entities import ContentItem
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Midday, so a day window never straddles the clock
NOW = datetime(2025, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def rules() -> Rules:
    """The real project rules file."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def store() -> InMemoryAnalyticsStore:
    return InMemoryAnalyticsStore()


@pytest.fixture
def posts() -> list[ContentItem]:
    return [
        ContentItem(slug="p1", title="Post One", author="Tiago", draft=False),
        ContentItem(slug="p2", title="Draft Two", author="Tiago", draft=True),
        ContentItem(slug="p3", title="Post Three", author="Vicente", draft=False),
        ContentItem(slug="p4", title="Guest Post", author="Guest", draft=False),
    ]


@pytest.fixture
def catalog(posts: list[ContentItem]) -> InMemoryContentCatalog:
    return InMemoryContentCatalog(posts)


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Fresh SQLite database with all migrations applied."""
    path = str(tmp_path / "analytics.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path

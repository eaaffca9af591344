import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.adapters.clock import SystemClock
from src.adapters.sqlite_db import (
    SQLiteAnalyticsRepo,
    SQLiteContentCatalog,
    SQLiteCrawlRepo,
    SQLiteEventStore,
)
from src.api.auth_utils import decode_access_token
from src.components.analytics import (
    AggregationConfig,
    AttributionConfig,
    CrawlAggregationConfig,
)
from src.rules.configs import (
    build_aggregation_config,
    build_attribution_config,
    build_crawl_aggregation_config,
)
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parents[2]


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("ANALYTICS_DATA_DIR", "./data"))
        self.db_path = os.environ.get("ANALYTICS_DB_PATH", str(self.data_dir / "analytics.db"))
        self.rules_path = Path(
            os.environ.get("ANALYTICS_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.migrations_dir = PROJECT_ROOT / "migrations"
        self.secret_key = os.environ.get("ANALYTICS_SECRET_KEY", "dev-secret-unsafe")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


def get_attribution_config(rules: Rules = Depends(get_rules)) -> AttributionConfig:
    return build_attribution_config(rules)


def get_aggregation_config(rules: Rules = Depends(get_rules)) -> AggregationConfig:
    return build_aggregation_config(rules)


def get_crawl_aggregation_config(rules: Rules = Depends(get_rules)) -> CrawlAggregationConfig:
    return build_crawl_aggregation_config(rules)


# --- Repos (one per request, no shared state) ---
def get_event_store(settings: Settings = Depends(get_settings)) -> SQLiteEventStore:
    return SQLiteEventStore(settings.db_path)


def get_analytics_repo(settings: Settings = Depends(get_settings)) -> SQLiteAnalyticsRepo:
    return SQLiteAnalyticsRepo(settings.db_path)


def get_crawl_repo(settings: Settings = Depends(get_settings)) -> SQLiteCrawlRepo:
    return SQLiteCrawlRepo(settings.db_path)


def get_content_catalog(settings: Settings = Depends(get_settings)) -> SQLiteContentCatalog:
    return SQLiteContentCatalog(settings.db_path)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Auth ---
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    """
    Require a valid dashboard bearer token.

    Runs before any repo is used, so unauthenticated requests never
    touch the store.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(
        credentials.credentials,
        secret_key=settings.secret_key,
        algorithm=rules.auth.token_algorithm,
    )
    if not payload:
        raise _unauthorized("Invalid token")

    subject = payload.get("sub")
    if subject is None or not isinstance(subject, str):
        raise _unauthorized("Invalid token payload")

    return payload

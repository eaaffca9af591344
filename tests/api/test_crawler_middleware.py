"""
Tests for AI crawler request logging.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.clock import FixedClock
from src.api.deps import Settings
from src.components.analytics import InMemoryAnalyticsStore, RecordCrawlInput
from src.components.analytics.ports import AnalyticsStoreError
from src.core.entities import AICrawlEvent
from src.rules.configs import build_crawler_config
from src.rules.models import Rules
from src.shell.http.crawler_middleware import CrawlerLoggingMiddleware, record_crawl_quietly

GPTBOT_UA = "Mozilla/5.0 AppleWebKit/537.36 (KHTML, like Gecko; compatible; GPTBot/1.2)"
BROWSER_UA = "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) AppleWebKit/605.1.15 Safari/605.1.15"


def crawl_rows(settings: Settings) -> list[tuple]:
    conn = sqlite3.connect(settings.db_path)
    try:
        return conn.execute(
            "SELECT crawler_name, path, slug, status_code FROM ai_crawls ORDER BY id"
        ).fetchall()
    finally:
        conn.close()


class BrokenStore(InMemoryAnalyticsStore):
    def insert_ai_crawl(self, event: AICrawlEvent) -> None:
        raise AnalyticsStoreError("disk full")


class ThreadRecordingStore(InMemoryAnalyticsStore):
    """Remembers which thread wrote each crawl."""

    def __init__(self) -> None:
        super().__init__()
        self.writer_threads: list[int] = []

    def insert_ai_crawl(self, event: AICrawlEvent) -> None:
        self.writer_threads.append(threading.get_ident())
        super().insert_ai_crawl(event)


class TestCrawlerLoggingMiddleware:
    """Requests through the full app."""

    def test_crawler_request_logged_with_status(
        self, client: TestClient, settings: Settings
    ) -> None:
        """Both found and missing pages are logged with their real status."""
        ok = client.get("/health", headers={"User-Agent": GPTBOT_UA})
        missing = client.get("/blog/p1", headers={"User-Agent": "ClaudeBot/1.0"})

        assert ok.status_code == 200
        assert missing.status_code == 404
        assert crawl_rows(settings) == [
            ("GPTBot", "/health", None, 200),
            ("ClaudeBot", "/blog/p1", "p1", 404),
        ]

    def test_browser_not_logged(self, client: TestClient, settings: Settings) -> None:
        client.get("/health", headers={"User-Agent": BROWSER_UA})

        assert crawl_rows(settings) == []

    def test_static_assets_skipped(self, client: TestClient, settings: Settings) -> None:
        for path in ["/favicon.ico", "/_next/static/app.js", "/images/logo.png"]:
            client.get(path, headers={"User-Agent": GPTBOT_UA})

        assert crawl_rows(settings) == []

    def test_response_unchanged(self, client: TestClient) -> None:
        response = client.get("/health", headers={"User-Agent": GPTBOT_UA})

        assert response.json() == {"status": "ok", "service": "analytics"}


class TestCrawlerLoggingOnAppError:
    """Routes that raise."""

    def test_failing_route_recorded_as_500(self, rules: Rules, clock: FixedClock) -> None:
        """The hit is stored with status 500, written outside the event loop thread."""
        store = ThreadRecordingStore()
        loop_threads: list[int] = []

        app = FastAPI()
        app.add_middleware(
            CrawlerLoggingMiddleware,
            store_factory=lambda: store,
            config_factory=lambda: build_crawler_config(rules),
            time_port=clock,
        )

        @app.get("/blog/{slug}")
        async def explode(slug: str) -> dict[str, str]:
            loop_threads.append(threading.get_ident())
            raise RuntimeError("render failed")

        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/blog/p1", headers={"User-Agent": GPTBOT_UA})

        assert response.status_code == 500
        assert [(c.crawler_name, c.path, c.slug, c.status_code) for c in store.ai_crawls] == [
            ("GPTBot", "/blog/p1", "p1", 500)
        ]
        assert store.writer_threads[0] != loop_threads[0]


class TestRecordCrawlQuietly:
    """Background recording helper."""

    def test_records(self, rules: Rules, clock: FixedClock, now: datetime) -> None:
        store = InMemoryAnalyticsStore()

        record_crawl_quietly(
            RecordCrawlInput(user_agent="PerplexityBot/1.0", path="/blog/p3", status_code=200),
            lambda: store,
            build_crawler_config(rules),
            clock,
        )

        assert [(c.crawler_name, c.slug, c.created_at) for c in store.ai_crawls] == [
            ("PerplexityBot", "p3", now)
        ]

    def test_store_failure_swallowed(
        self, rules: Rules, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            record_crawl_quietly(
                RecordCrawlInput(user_agent="GPTBot", path="/"),
                BrokenStore,
                build_crawler_config(rules),
            )

        assert "not recorded" in caplog.text

    def test_factory_failure_swallowed(
        self, rules: Rules, caplog: pytest.LogCaptureFixture
    ) -> None:
        def no_store() -> InMemoryAnalyticsStore:
            raise RuntimeError("no database")

        with caplog.at_level(logging.ERROR):
            record_crawl_quietly(
                RecordCrawlInput(user_agent="GPTBot", path="/"),
                no_store,
                build_crawler_config(rules),
            )

        assert "Crawler logging failed" in caplog.text

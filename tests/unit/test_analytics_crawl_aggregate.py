"""
Tests for CrawlAggregationService and run_query_crawls.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.adapters.clock import FixedClock
from src.components.analytics import (
    AnalyticsStoreError,
    CrawlAggregationConfig,
    CrawlAggregationService,
    InMemoryAnalyticsStore,
    InMemoryContentCatalog,
    QueryCrawlsInput,
    create_crawl_aggregation_service,
    run_query_crawls,
)
from src.core.entities import AICrawlEvent


def add_crawl(
    store: InMemoryAnalyticsStore,
    when: datetime,
    crawler_name: str,
    path: str = "/",
    slug: str | None = None,
    status_code: int = 200,
) -> None:
    store.insert_ai_crawl(
        AICrawlEvent(
            crawler_name=crawler_name,
            user_agent=f"{crawler_name}/1.0",
            path=path,
            slug=slug,
            status_code=status_code,
            created_at=when,
        )
    )


class BrokenCrawlRepo(InMemoryAnalyticsStore):
    def crawl_totals(self, start, slugs):  # type: ignore[no-untyped-def]
        raise AnalyticsStoreError("timeout")


@pytest.fixture
def service(
    store: InMemoryAnalyticsStore, catalog: InMemoryContentCatalog, clock: FixedClock
) -> CrawlAggregationService:
    return create_crawl_aggregation_service(store, catalog, time_port=clock)


class TestCrawlDailySeries:
    """Daily crawl series."""

    def test_seeded(self, service: CrawlAggregationService) -> None:
        """N + 1 zero days with every series column."""
        report = service.build_report(28)

        assert len(report.daily) == 29
        assert report.daily[0].to_dict() == {
            "date": "2025-02-15",
            "crawls": 0,
            "gptbot": 0,
            "claudebot": 0,
            "perplexitybot": 0,
            "other": 0,
        }

    def test_named_and_other_columns(
        self, service: CrawlAggregationService, store: InMemoryAnalyticsStore, now: datetime
    ) -> None:
        """Named crawlers get their column, everything else goes to other."""
        add_crawl(store, now, "GPTBot", "/blog/p1", "p1")
        add_crawl(store, now, "GPTBot", "/blog/p3", "p3")
        add_crawl(store, now, "ClaudeBot")
        add_crawl(store, now, "PerplexityBot", "/about")
        add_crawl(store, now, "Bytespider", "/about")
        add_crawl(store, now, "CCBot", "/llms.txt")
        add_crawl(store, now - timedelta(days=1), "ClaudeBot")

        daily = {p.date: p for p in service.build_report(7).daily}

        assert daily["2025-03-15"].crawls == 6
        assert daily["2025-03-15"].crawlers == {
            "gptbot": 2,
            "claudebot": 1,
            "perplexitybot": 1,
            "other": 2,
        }
        assert daily["2025-03-14"].crawlers["claudebot"] == 1


class TestCrawlRankings:
    """Leaderboards."""

    def test_crawler_leaderboard(
        self, service: CrawlAggregationService, store: InMemoryAnalyticsStore, now: datetime
    ) -> None:
        """Count desc, ties by name."""
        for name in ["GPTBot", "GPTBot", "CCBot", "ClaudeBot", "ClaudeBot", "Bytespider"]:
            add_crawl(store, now, name)

        crawlers = service.build_report(7).crawlers

        assert [(c.name, c.count) for c in crawlers] == [
            ("ClaudeBot", 2),
            ("GPTBot", 2),
            ("Bytespider", 1),
            ("CCBot", 1),
        ]

    def test_crawled_articles_only_with_crawls(
        self, service: CrawlAggregationService, store: InMemoryAnalyticsStore, now: datetime
    ) -> None:
        """Published items with at least one crawl, most crawled first."""
        add_crawl(store, now, "GPTBot", "/blog/p3", "p3")
        add_crawl(store, now, "ClaudeBot", "/blog/p3", "p3")
        add_crawl(store, now, "GPTBot", "/blog/p1", "p1")

        articles = service.build_report(7).articles

        assert [(a.slug, a.title, a.crawls) for a in articles] == [
            ("p3", "Post Three", 2),
            ("p1", "Post One", 1),
        ]

    def test_top_paths_slugless_and_capped(
        self, service: CrawlAggregationService, store: InMemoryAnalyticsStore, now: datetime
    ) -> None:
        """Only non-content paths, at most ten."""
        for i in range(12):
            for _ in range(i + 1):
                add_crawl(store, now, "GPTBot", f"/page-{i:02d}")
        for _ in range(50):
            add_crawl(store, now, "GPTBot", "/blog/p1", "p1")

        paths = service.build_report(7).paths

        assert len(paths) == 10
        assert paths[0].path == "/page-11"
        assert paths[0].count == 12
        assert "/blog/p1" not in {p.path for p in paths}

    def test_top_paths_limit_from_config(
        self, store: InMemoryAnalyticsStore, catalog: InMemoryContentCatalog, clock: FixedClock
    ) -> None:
        """The cap is configurable."""
        for path in ["/a", "/b", "/c"]:
            add_crawl(store, clock.now_utc(), "GPTBot", path)
        service = create_crawl_aggregation_service(
            store, catalog, time_port=clock, config=CrawlAggregationConfig(top_paths_limit=2)
        )

        assert [p.path for p in service.build_report(7).paths] == ["/a", "/b"]


class TestCrawlScope:
    """Published-content scoping."""

    def test_draft_crawls_excluded(
        self, service: CrawlAggregationService, store: InMemoryAnalyticsStore, now: datetime
    ) -> None:
        """Crawls on drafts stay out of the series, summary and articles."""
        add_crawl(store, now, "GPTBot", "/blog/p2", "p2")
        add_crawl(store, now, "GPTBot", "/", None)

        report = service.build_report(7)

        assert report.summary.total_crawls == 1
        assert report.daily[-1].crawls == 1
        assert report.articles == ()

    def test_draft_crawls_on_leaderboard(
        self, service: CrawlAggregationService, store: InMemoryAnalyticsStore, now: datetime
    ) -> None:
        """The leaderboard counts every classified crawl in the window."""
        for _ in range(3):
            add_crawl(store, now, "ClaudeBot", "/blog/d1", "d1")
        add_crawl(store, now, "GPTBot", "/blog/p2", "p2")
        add_crawl(store, now, "GPTBot", "/", None)
        add_crawl(store, now - timedelta(days=30), "CCBot", "/blog/d1", "d1")

        report = service.build_report(7)

        assert [(c.name, c.count) for c in report.crawlers] == [
            ("ClaudeBot", 3),
            ("GPTBot", 2),
        ]
        assert report.summary.total_crawls == 1

    def test_nothing_published(
        self, store: InMemoryAnalyticsStore, clock: FixedClock, now: datetime
    ) -> None:
        """Slug-less crawls still count with an empty catalog."""
        add_crawl(store, now, "GPTBot", "/blog/p1", "p1")
        add_crawl(store, now, "ClaudeBot", "/robots.txt")
        service = create_crawl_aggregation_service(store, InMemoryContentCatalog(), time_port=clock)

        report = service.build_report(7)

        assert report.summary.total_crawls == 1
        assert report.summary.blog_crawls == 0


class TestCrawlSummary:
    """Summary counters."""

    def test_counters(
        self, service: CrawlAggregationService, store: InMemoryAnalyticsStore, now: datetime
    ) -> None:
        """Totals, distinct crawlers, content crawls and 2xx responses."""
        add_crawl(store, now, "GPTBot", "/blog/p1", "p1")
        add_crawl(store, now, "GPTBot", "/missing", status_code=404)
        add_crawl(store, now, "ClaudeBot", "/blog/p3", "p3", status_code=304)
        add_crawl(store, now, "CCBot", "/")

        summary = service.build_report(7).summary

        assert summary.total_crawls == 4
        assert summary.unique_crawlers == 3
        assert summary.blog_crawls == 2
        assert summary.successful_crawls == 2

    def test_daily_sum_matches_total(
        self, service: CrawlAggregationService, store: InMemoryAnalyticsStore, now: datetime
    ) -> None:
        """Sum of daily crawls equals totalCrawls."""
        for days_ago in [0, 2, 5, 10]:
            add_crawl(store, now - timedelta(days=days_ago), "GPTBot")

        report = service.build_report(7)

        assert sum(p.crawls for p in report.daily) == report.summary.total_crawls == 3


class TestRunQueryCrawls:
    """Component entry point."""

    def test_store_failure_is_fatal(
        self, catalog: InMemoryContentCatalog, clock: FixedClock, now: datetime
    ) -> None:
        """No partial crawl report on failure."""
        repo = BrokenCrawlRepo()
        add_crawl(repo, now, "GPTBot")

        output = run_query_crawls(
            QueryCrawlsInput(window_days=7), repo=repo, catalog=catalog, time_port=clock
        )

        assert not output.success
        assert output.errors[0].code == "store_error"
        assert output.daily == ()

    def test_success(
        self, store: InMemoryAnalyticsStore, catalog: InMemoryContentCatalog, clock: FixedClock
    ) -> None:
        """Report fields are populated."""
        output = run_query_crawls(
            QueryCrawlsInput(window_days=0), repo=store, catalog=catalog, time_port=clock
        )

        assert output.success
        assert len(output.daily) == 1
        assert output.summary is not None
        assert output.summary.total_crawls == 0

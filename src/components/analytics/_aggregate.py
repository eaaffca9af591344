"""
ViewsAggregationService - page view and CTA report.

Builds the dashboard report from grouped store queries.

Key behaviors:
- Published slugs are re-read on every call (no caching)
- Qualifying views: published slugs, plus the overview sentinel
  only when at least one item is published
- Daily series pre-seeded with zero buckets (window_days + 1 entries)
- Per-author split only for recognized authors
- Top articles cover the full published catalog, zero views included
- Any store failure aborts the whole report
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from src.core.entities import ContentItem

from ._buckets import resolve_window_start, seed_daily_buckets
from ._impl import DefaultTimePort
from .models import (
    ArticleItem,
    DailyViewsPoint,
    SourceItem,
    ViewsSummary,
)
from .ports import AnalyticsRepoPort, ContentCatalogPort, TimePort

# --- Configuration ---


@dataclass(frozen=True)
class AggregationConfig:
    """Views report configuration."""

    # Slug used for the blog listing page
    overview_slug: str = "blog"

    # Authors with their own column in the daily series
    tracked_authors: tuple[str, ...] = field(default_factory=lambda: ("Tiago", "Vicente"))

    def author_key(self, author: str) -> str | None:
        """Column name for an author, or None if not tracked."""
        if author in self.tracked_authors:
            return author.lower()
        return None


DEFAULT_CONFIG = AggregationConfig()


# --- Report ---


@dataclass(frozen=True)
class ViewsReport:
    """Complete views report."""

    daily: tuple[DailyViewsPoint, ...]
    sources: tuple[SourceItem, ...]
    articles: tuple[ArticleItem, ...]
    summary: ViewsSummary


@dataclass
class _DayBucket:
    views: int = 0
    visitors: int = 0
    authors: dict[str, int] = field(default_factory=dict)


# --- Ranking helpers ---


def rank_sources(rows: list[dict]) -> tuple[SourceItem, ...]:
    """Sort sources by count desc, then label asc (direct sorts as "")."""
    items = [SourceItem(referrer=r["referrer"], count=int(r["count"])) for r in rows]
    items.sort(key=lambda s: (-s.count, s.referrer or ""))
    return tuple(items)


def build_articles(
    published: list[ContentItem],
    view_rows: list[dict],
    click_rows: list[dict],
) -> tuple[ArticleItem, ...]:
    """
    Left-join counts onto the published catalog.

    Every published item appears, zero-view items included.
    """
    views = {r["slug"]: int(r["count"]) for r in view_rows}
    clicks = {r["slug"]: int(r["count"]) for r in click_rows}

    articles = [
        ArticleItem(
            slug=item.slug,
            title=item.title,
            author=item.author,
            views=views.get(item.slug, 0),
            clicks=clicks.get(item.slug, 0),
        )
        for item in published
    ]
    articles.sort(key=lambda a: (-a.views, a.slug))
    return tuple(articles)


# --- Aggregation Service ---


class ViewsAggregationService:
    """
    Page view / CTA aggregation.

    Each metric is one grouped query against the store.
    """

    def __init__(
        self,
        repo: AnalyticsRepoPort,
        catalog: ContentCatalogPort,
        time_port: TimePort | None = None,
        config: AggregationConfig | None = None,
    ) -> None:
        """Initialize service."""
        self._repo = repo
        self._catalog = catalog
        self._time = time_port or DefaultTimePort()
        self._config = config or DEFAULT_CONFIG

    def build_report(self, window_days: int) -> ViewsReport:
        """
        Build the report for the last `window_days` days.

        Raises:
            ValueError: window_days is negative.
            AnalyticsStoreError: any store read failed.
        """
        now = self._time.now_utc()
        start = resolve_window_start(now, window_days)

        # Seeded before any store round trip
        buckets = seed_daily_buckets(start, now, _DayBucket)

        overview = self._config.overview_slug
        published = [item for item in self._catalog.list_published() if item.slug != overview]
        article_slugs = {item.slug for item in published}

        # Nothing published: overview traffic is not reported either
        qualifying = article_slugs | {overview} if article_slugs else set()

        self._merge_daily(buckets, start, qualifying, published)

        sources = rank_sources(self._repo.page_views_by_referrer(start, qualifying))

        articles = build_articles(
            published,
            self._repo.page_views_by_slug(start, article_slugs),
            self._repo.cta_clicks_by_slug(start, article_slugs),
        )

        summary = self._summarize(start, qualifying, overview, articles)

        daily = tuple(
            DailyViewsPoint(
                date=day,
                views=bucket.views,
                visitors=bucket.visitors,
                authors=bucket.authors,
            )
            for day, bucket in buckets.items()
        )

        return ViewsReport(daily=daily, sources=sources, articles=articles, summary=summary)

    def _merge_daily(
        self,
        buckets: dict[str, _DayBucket],
        start: datetime,
        qualifying: set[str],
        published: list[ContentItem],
    ) -> None:
        """Merge grouped day rows into the seeded buckets."""
        tracked = [self._config.author_key(a) for a in self._config.tracked_authors]
        for bucket in buckets.values():
            bucket.authors = {key: 0 for key in tracked if key}

        for row in self._repo.page_views_by_day(start, qualifying):
            bucket = buckets.get(row["date"])
            if bucket is None:
                continue
            bucket.views = int(row["views"])
            bucket.visitors = int(row["visitors"])

        author_by_slug = {item.slug: self._config.author_key(item.author) for item in published}

        # Overview rows are dropped here: the sentinel owns no author
        for row in self._repo.page_views_by_day_and_slug(start, set(author_by_slug)):
            bucket = buckets.get(row["date"])
            key = author_by_slug.get(row["slug"])
            if bucket is None or key is None:
                continue
            bucket.authors[key] += int(row["views"])

    def _summarize(
        self,
        start: datetime,
        qualifying: set[str],
        overview: str,
        articles: tuple[ArticleItem, ...],
    ) -> ViewsSummary:
        totals = self._repo.page_view_totals(start, qualifying)

        overview_views = 0
        if overview in qualifying:
            overview_views = self._repo.page_view_totals(start, {overview})["views"]

        return ViewsSummary(
            total_views=int(totals["views"]),
            unique_visitors=int(totals["visitors"]),
            blog_overview_views=int(overview_views),
            total_cta_clicks=sum(a.clicks for a in articles),
        )


# --- Factory ---


def create_views_aggregation_service(
    repo: AnalyticsRepoPort,
    catalog: ContentCatalogPort,
    time_port: TimePort | None = None,
    config: AggregationConfig | None = None,
) -> ViewsAggregationService:
    """Create a ViewsAggregationService."""
    return ViewsAggregationService(
        repo=repo,
        catalog=catalog,
        time_port=time_port,
        config=config,
    )

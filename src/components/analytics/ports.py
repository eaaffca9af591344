"""
Analytics component port definitions.

Every read method is a single grouped aggregate (GROUP BY + COUNT)
evaluated by the store. Implementations must not return raw event rows.

`slugs` arguments restrict the query to those slugs; an empty
collection matches nothing.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from typing import Any, Protocol

from src.core.entities import AICrawlEvent, ContentItem, CTAClickEvent, PageViewEvent
from src.core.ports.time import TimePort

__all__ = [
    "AnalyticsRepoPort",
    "AnalyticsStoreError",
    "ContentCatalogPort",
    "CrawlRepoPort",
    "EventStorePort",
    "TimePort",
]


class AnalyticsStoreError(Exception):
    """Raised when the event store cannot complete a read or write."""


class EventStorePort(Protocol):
    """Append-only event writer."""

    def insert_page_view(self, event: PageViewEvent) -> None:
        """Insert one page view row."""
        ...

    def insert_cta_click(self, event: CTAClickEvent) -> None:
        """Insert one CTA click row."""
        ...

    def insert_ai_crawl(self, event: AICrawlEvent) -> None:
        """Insert one crawler hit row."""
        ...


class ContentCatalogPort(Protocol):
    """Read-only view of the CMS content table."""

    def list_published(self) -> list[ContentItem]:
        """Return every item with draft = False."""
        ...


class AnalyticsRepoPort(Protocol):
    """Grouped reads over page views and CTA clicks."""

    def page_views_by_day(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        """Rows of {date, views, visitors} grouped by UTC date."""
        ...

    def page_views_by_day_and_slug(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        """Rows of {date, slug, views} grouped by UTC date and slug."""
        ...

    def page_views_by_referrer(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        """Rows of {referrer, count}; referrer None is direct."""
        ...

    def page_views_by_slug(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        """Rows of {slug, count}."""
        ...

    def page_view_totals(self, start: datetime, slugs: Collection[str]) -> dict[str, int]:
        """Dict with views and visitors (distinct visitor_id)."""
        ...

    def cta_clicks_by_slug(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        """Rows of {slug, count}."""
        ...


class CrawlRepoPort(Protocol):
    """
    Grouped reads over AI crawler hits.

    Scope for `slugs`: rows with no slug always match, rows with a slug
    match only when it is in `slugs`.
    """

    def crawls_by_day_and_crawler(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        """Rows of {date, crawler_name, count}."""
        ...

    def crawls_by_crawler(self, start: datetime) -> list[dict[str, Any]]:
        """Rows of {crawler_name, count} over every crawl, whatever its slug."""
        ...

    def crawls_by_slug(self, start: datetime, slugs: Collection[str]) -> list[dict[str, Any]]:
        """Rows of {slug, count} for rows whose slug is in `slugs`."""
        ...

    def crawls_by_path(self, start: datetime, limit: int) -> list[dict[str, Any]]:
        """Top rows of {path, count} among rows with no slug."""
        ...

    def crawl_totals(self, start: datetime, slugs: Collection[str]) -> dict[str, int]:
        """Dict with crawls, crawlers, content_crawls, successful."""
        ...

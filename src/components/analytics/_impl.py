"""
EventRecorder - event ingestion with validation.

Handles the three write paths: page views, CTA clicks, crawler hits.

Key behaviors:
- visitor_id and slug are required non-empty strings
- Single insert per event, no reads
- Slug validity is NOT checked (drafts and deleted slugs still recorded)
- Referrers normalized before storage
- Store failures logged and reported, never raised to the caller
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Collection
from datetime import UTC, datetime
from typing import Any

from src.core.entities import AICrawlEvent, ContentItem, CTAClickEvent, PageViewEvent
from src.core.services.analytics_attrib import (
    DEFAULT_CONFIG as DEFAULT_ATTRIBUTION_CONFIG,
)
from src.core.services.analytics_attrib import (
    AttributionConfig,
    normalize_referrer,
)
from src.core.services.analytics_crawlers import (
    DEFAULT_CONFIG as DEFAULT_CRAWLER_CONFIG,
)
from src.core.services.analytics_crawlers import (
    CrawlerConfig,
    classify_crawler,
    is_static_asset,
    slug_from_path,
)

from ._buckets import bucket_date, to_utc
from .models import (
    AnalyticsValidationError,
    RecordCrawlInput,
    RecordCTAClickInput,
    RecordOutput,
    RecordPageViewInput,
)
from .ports import AnalyticsStoreError, EventStorePort, TimePort

logger = logging.getLogger(__name__)


# --- Default Implementations ---


class DefaultTimePort:
    """Default time provider."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        return datetime.now(UTC)


class InMemoryContentCatalog:
    """In-memory content catalog for testing/dev."""

    def __init__(self, items: list[ContentItem] | None = None) -> None:
        self._items: dict[str, ContentItem] = {}
        for item in items or []:
            self.save(item)

    def save(self, item: ContentItem) -> None:
        self._items[item.slug] = item

    def list_published(self) -> list[ContentItem]:
        return [item for item in self._items.values() if not item.draft]


class InMemoryAnalyticsStore:
    """
    In-memory event store for testing/dev.

    Implements the writer and both grouped-read ports. Grouping happens
    here instead of in a database, but callers see the same row shapes.
    """

    def __init__(self) -> None:
        self.page_views: list[PageViewEvent] = []
        self.cta_clicks: list[CTAClickEvent] = []
        self.ai_crawls: list[AICrawlEvent] = []

    # --- Writes ---

    def insert_page_view(self, event: PageViewEvent) -> None:
        self.page_views.append(event)

    def insert_cta_click(self, event: CTAClickEvent) -> None:
        self.cta_clicks.append(event)

    def insert_ai_crawl(self, event: AICrawlEvent) -> None:
        self.ai_crawls.append(event)

    # --- Page view reads ---

    def _views(self, start: datetime, slugs: Collection[str]) -> list[PageViewEvent]:
        start = to_utc(start)
        return [v for v in self.page_views if v.slug in slugs and to_utc(v.created_at) >= start]

    def page_views_by_day(self, start: datetime, slugs: Collection[str]) -> list[dict[str, Any]]:
        views: Counter[str] = Counter()
        visitors: dict[str, set[str]] = defaultdict(set)
        for v in self._views(start, slugs):
            day = bucket_date(v.created_at)
            views[day] += 1
            visitors[day].add(v.visitor_id)
        return [
            {"date": day, "views": views[day], "visitors": len(visitors[day])}
            for day in sorted(views)
        ]

    def page_views_by_day_and_slug(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        counts = Counter((bucket_date(v.created_at), v.slug) for v in self._views(start, slugs))
        return [
            {"date": day, "slug": slug, "views": count}
            for (day, slug), count in sorted(counts.items())
        ]

    def page_views_by_referrer(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        counts = Counter(v.referrer for v in self._views(start, slugs))
        return [{"referrer": ref, "count": count} for ref, count in counts.items()]

    def page_views_by_slug(self, start: datetime, slugs: Collection[str]) -> list[dict[str, Any]]:
        counts = Counter(v.slug for v in self._views(start, slugs))
        return [{"slug": slug, "count": count} for slug, count in counts.items()]

    def page_view_totals(self, start: datetime, slugs: Collection[str]) -> dict[str, int]:
        views = self._views(start, slugs)
        return {"views": len(views), "visitors": len({v.visitor_id for v in views})}

    def cta_clicks_by_slug(self, start: datetime, slugs: Collection[str]) -> list[dict[str, Any]]:
        start = to_utc(start)
        counts = Counter(
            c.slug for c in self.cta_clicks if c.slug in slugs and to_utc(c.created_at) >= start
        )
        return [{"slug": slug, "count": count} for slug, count in counts.items()]

    # --- Crawl reads ---

    def _crawls(self, start: datetime, slugs: Collection[str]) -> list[AICrawlEvent]:
        start = to_utc(start)
        return [
            c
            for c in self.ai_crawls
            if to_utc(c.created_at) >= start and (c.slug is None or c.slug in slugs)
        ]

    def crawls_by_day_and_crawler(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        counts = Counter(
            (bucket_date(c.created_at), c.crawler_name) for c in self._crawls(start, slugs)
        )
        return [
            {"date": day, "crawler_name": name, "count": count}
            for (day, name), count in sorted(counts.items())
        ]

    def crawls_by_crawler(self, start: datetime) -> list[dict[str, Any]]:
        start = to_utc(start)
        counts = Counter(
            c.crawler_name for c in self.ai_crawls if to_utc(c.created_at) >= start
        )
        return [{"crawler_name": name, "count": count} for name, count in counts.items()]

    def crawls_by_slug(self, start: datetime, slugs: Collection[str]) -> list[dict[str, Any]]:
        counts = Counter(c.slug for c in self._crawls(start, slugs) if c.slug is not None)
        return [{"slug": slug, "count": count} for slug, count in counts.items()]

    def crawls_by_path(self, start: datetime, limit: int) -> list[dict[str, Any]]:
        counts = Counter(c.path for c in self._crawls(start, ()) if c.slug is None)
        ranked = sorted(counts.items(), key=lambda x: (-x[1], x[0]))
        return [{"path": path, "count": count} for path, count in ranked[:limit]]

    def crawl_totals(self, start: datetime, slugs: Collection[str]) -> dict[str, int]:
        crawls = self._crawls(start, slugs)
        return {
            "crawls": len(crawls),
            "crawlers": len({c.crawler_name for c in crawls}),
            "content_crawls": sum(1 for c in crawls if c.slug is not None),
            "successful": sum(1 for c in crawls if 200 <= c.status_code < 300),
        }


# --- Validation Functions ---


def validate_required(value: Any, field_name: str) -> list[AnalyticsValidationError]:
    """Validate a required non-empty string field."""
    if not isinstance(value, str) or not value.strip():
        return [
            AnalyticsValidationError(
                code="required",
                message=f"Field '{field_name}' is required",
                field_name=field_name,
            )
        ]
    return []


def _store_error(message: str) -> AnalyticsValidationError:
    return AnalyticsValidationError(code="store_error", message=message)


# --- Event Recorder ---


class EventRecorder:
    """
    Event recorder.

    One insert per call. Callers should treat recording as
    fire-and-forget; failures come back as errors, not exceptions.
    """

    def __init__(
        self,
        event_store: EventStorePort,
        time_port: TimePort | None = None,
        attribution: AttributionConfig | None = None,
        crawlers: CrawlerConfig | None = None,
    ) -> None:
        """Initialize recorder."""
        self._store = event_store
        self._time = time_port or DefaultTimePort()
        self._attribution = attribution or DEFAULT_ATTRIBUTION_CONFIG
        self._crawlers = crawlers or DEFAULT_CRAWLER_CONFIG

    def record_page_view(self, inp: RecordPageViewInput) -> RecordOutput:
        """Record a page view (referrer normalized first)."""
        errors = validate_required(inp.visitor_id, "visitor_id")
        errors.extend(validate_required(inp.slug, "slug"))
        if errors:
            return RecordOutput(event=None, errors=errors, success=False)

        event = PageViewEvent(
            visitor_id=inp.visitor_id or "",
            slug=inp.slug or "",
            referrer=normalize_referrer(inp.referrer, self._attribution),
            created_at=self._time.now_utc(),
        )

        try:
            self._store.insert_page_view(event)
        except AnalyticsStoreError:
            logger.exception("Error tracking page view for slug %s", event.slug)
            return RecordOutput(
                event=None,
                errors=[_store_error("Failed to track page view")],
                success=False,
            )

        return RecordOutput(event=event)

    def record_cta_click(self, inp: RecordCTAClickInput) -> RecordOutput:
        """Record a CTA click."""
        errors = validate_required(inp.visitor_id, "visitor_id")
        errors.extend(validate_required(inp.slug, "slug"))
        if errors:
            return RecordOutput(event=None, errors=errors, success=False)

        event = CTAClickEvent(
            visitor_id=inp.visitor_id or "",
            slug=inp.slug or "",
            created_at=self._time.now_utc(),
        )

        try:
            self._store.insert_cta_click(event)
        except AnalyticsStoreError:
            logger.exception("Error tracking CTA click for slug %s", event.slug)
            return RecordOutput(
                event=None,
                errors=[_store_error("Failed to track CTA click")],
                success=False,
            )

        return RecordOutput(event=event)

    def record_crawl(self, inp: RecordCrawlInput) -> RecordOutput:
        """
        Record a crawler hit if the user agent is a known AI crawler.

        Non-crawler and static asset requests are a successful no-op.
        """
        if is_static_asset(inp.path, self._crawlers):
            return RecordOutput(event=None)

        crawler_name = classify_crawler(inp.user_agent, self._crawlers)
        if crawler_name is None:
            return RecordOutput(event=None)

        event = AICrawlEvent(
            crawler_name=crawler_name,
            user_agent=inp.user_agent or "",
            path=inp.path,
            slug=slug_from_path(inp.path, self._crawlers),
            status_code=inp.status_code,
            created_at=self._time.now_utc(),
        )

        try:
            self._store.insert_ai_crawl(event)
        except AnalyticsStoreError:
            logger.exception("Error logging crawl from %s on %s", crawler_name, inp.path)
            return RecordOutput(
                event=None,
                errors=[_store_error("Failed to log crawl")],
                success=False,
            )

        return RecordOutput(event=event)


# --- Factory ---


def create_event_recorder(
    event_store: EventStorePort,
    time_port: TimePort | None = None,
    attribution: AttributionConfig | None = None,
    crawlers: CrawlerConfig | None = None,
) -> EventRecorder:
    """Create an EventRecorder."""
    return EventRecorder(
        event_store=event_store,
        time_port=time_port,
        attribution=attribution,
        crawlers=crawlers,
    )

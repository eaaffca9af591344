"""
Analytics component - Event recording and report aggregation.

Records page views, CTA clicks and AI crawler hits, and builds the
dashboard reports from grouped store queries.

Invariants:
- I1: Recording is a single insert; slugs are never checked against content
- I2: Visitor id and slug are required for page views and CTA clicks
- I3: Reports are computed fresh on every call; no cached published set
- I4: A store failure during aggregation fails the whole report
- I5: Daily series always holds window_days + 1 zero-seeded buckets
"""

from __future__ import annotations

import logging

from src.core.services.analytics_attrib import AttributionConfig
from src.core.services.analytics_crawlers import CrawlerConfig

from ._aggregate import AggregationConfig, create_views_aggregation_service
from ._crawl import CrawlAggregationConfig, create_crawl_aggregation_service
from ._impl import create_event_recorder
from .models import (
    AnalyticsValidationError,
    CrawlReportOutput,
    QueryCrawlsInput,
    QueryViewsInput,
    RecordCrawlInput,
    RecordCTAClickInput,
    RecordOutput,
    RecordPageViewInput,
    ViewsReportOutput,
)
from .ports import (
    AnalyticsRepoPort,
    AnalyticsStoreError,
    ContentCatalogPort,
    CrawlRepoPort,
    EventStorePort,
    TimePort,
)

logger = logging.getLogger(__name__)


def _invalid_window(exc: ValueError) -> AnalyticsValidationError:
    return AnalyticsValidationError(
        code="invalid_window",
        message=str(exc),
        field_name="window_days",
    )


def _store_failure(message: str) -> AnalyticsValidationError:
    return AnalyticsValidationError(code="store_error", message=message)


# --- Component Entry Points ---


def run_record_page_view(
    inp: RecordPageViewInput,
    *,
    event_store: EventStorePort,
    time_port: TimePort | None = None,
    attribution: AttributionConfig | None = None,
) -> RecordOutput:
    """
    Record a page view.

    Args:
        inp: Visitor id, slug and raw referrer.
        event_store: Event store port.
        time_port: Optional time port.
        attribution: Optional referrer normalization config.

    Returns:
        RecordOutput with the stored event or errors.
    """
    recorder = create_event_recorder(event_store, time_port=time_port, attribution=attribution)
    return recorder.record_page_view(inp)


def run_record_cta_click(
    inp: RecordCTAClickInput,
    *,
    event_store: EventStorePort,
    time_port: TimePort | None = None,
) -> RecordOutput:
    """Record a CTA click."""
    recorder = create_event_recorder(event_store, time_port=time_port)
    return recorder.record_cta_click(inp)


def run_record_crawl(
    inp: RecordCrawlInput,
    *,
    event_store: EventStorePort,
    time_port: TimePort | None = None,
    crawlers: CrawlerConfig | None = None,
) -> RecordOutput:
    """
    Record a request if it came from a known AI crawler.

    Non-crawler requests succeed with no event.
    """
    recorder = create_event_recorder(event_store, time_port=time_port, crawlers=crawlers)
    return recorder.record_crawl(inp)


def run_query_views(
    inp: QueryViewsInput,
    *,
    repo: AnalyticsRepoPort,
    catalog: ContentCatalogPort,
    time_port: TimePort | None = None,
    config: AggregationConfig | None = None,
) -> ViewsReportOutput:
    """
    Build the page view / CTA report.

    Args:
        inp: Input containing the window size in days.
        repo: Grouped-read analytics repository.
        catalog: Content catalog for the published set.
        time_port: Optional time port.
        config: Optional aggregation config.

    Returns:
        ViewsReportOutput; on failure only errors are set.
    """
    service = create_views_aggregation_service(repo, catalog, time_port=time_port, config=config)

    try:
        report = service.build_report(inp.window_days)
    except ValueError as exc:
        return ViewsReportOutput(errors=[_invalid_window(exc)], success=False)
    except AnalyticsStoreError:
        logger.exception("Error fetching analytics for %d day window", inp.window_days)
        return ViewsReportOutput(
            errors=[_store_failure("Failed to fetch analytics")],
            success=False,
        )

    return ViewsReportOutput(
        daily=report.daily,
        sources=report.sources,
        articles=report.articles,
        summary=report.summary,
    )


def run_query_crawls(
    inp: QueryCrawlsInput,
    *,
    repo: CrawlRepoPort,
    catalog: ContentCatalogPort,
    time_port: TimePort | None = None,
    config: CrawlAggregationConfig | None = None,
) -> CrawlReportOutput:
    """
    Build the AI crawler report.

    Args:
        inp: Input containing the window size in days.
        repo: Grouped-read crawl repository.
        catalog: Content catalog for the published set.
        time_port: Optional time port.
        config: Optional crawl aggregation config.

    Returns:
        CrawlReportOutput; on failure only errors are set.
    """
    service = create_crawl_aggregation_service(repo, catalog, time_port=time_port, config=config)

    try:
        report = service.build_report(inp.window_days)
    except ValueError as exc:
        return CrawlReportOutput(errors=[_invalid_window(exc)], success=False)
    except AnalyticsStoreError:
        logger.exception("Error fetching AI analytics for %d day window", inp.window_days)
        return CrawlReportOutput(
            errors=[_store_failure("Failed to fetch AI analytics")],
            success=False,
        )

    return CrawlReportOutput(
        daily=report.daily,
        crawlers=report.crawlers,
        articles=report.articles,
        paths=report.paths,
        summary=report.summary,
    )

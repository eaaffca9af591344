"""
Admin Analytics API.

Dashboard endpoints for the page view / CTA report and the AI crawler
report. Every route requires a bearer token; unauthenticated requests
are rejected before any store access.

Key behaviors:
- days defaults to the configured window (28), must be >= 0
- JSON keys are camelCase for the dashboard client
- A store failure returns 500 with no partial metrics
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.adapters.clock import SystemClock
from src.adapters.sqlite_db import SQLiteAnalyticsRepo, SQLiteContentCatalog, SQLiteCrawlRepo
from src.api.deps import (
    get_aggregation_config,
    get_analytics_repo,
    get_clock,
    get_content_catalog,
    get_crawl_aggregation_config,
    get_crawl_repo,
    get_rules,
    require_admin,
)
from src.components.analytics import (
    AggregationConfig,
    AnalyticsValidationError,
    CrawlAggregationConfig,
    CrawlReportOutput,
    QueryCrawlsInput,
    QueryViewsInput,
    ViewsReportOutput,
    run_query_crawls,
    run_query_views,
)
from src.rules.models import Rules

router = APIRouter(dependencies=[Depends(require_admin)])


# --- Response Models ---


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SourceResponse(CamelModel):
    """Traffic source; referrer null is direct."""

    referrer: str | None
    count: int


class ArticleResponse(CamelModel):
    """Published article with views, CTA clicks and click-through rate."""

    slug: str
    title: str
    author: str
    views: int
    clicks: int
    ctr: float


class ViewsSummaryResponse(CamelModel):
    total_views: int
    unique_visitors: int
    blog_overview_views: int
    total_cta_clicks: int


class AnalyticsResponse(CamelModel):
    """Page view / CTA dashboard payload."""

    daily_data: list[dict[str, Any]]
    sources: list[SourceResponse]
    top_articles: list[ArticleResponse]
    summary: ViewsSummaryResponse


class CrawlerResponse(CamelModel):
    name: str
    count: int


class CrawledArticleResponse(CamelModel):
    slug: str
    title: str
    crawls: int


class PathResponse(CamelModel):
    path: str
    count: int


class CrawlSummaryResponse(CamelModel):
    total_crawls: int
    unique_crawlers: int
    blog_crawls: int
    successful_crawls: int


class AIAnalyticsResponse(CamelModel):
    """AI crawler dashboard payload."""

    daily_data: list[dict[str, Any]]
    crawlers: list[CrawlerResponse]
    top_articles: list[CrawledArticleResponse]
    top_paths: list[PathResponse]
    summary: CrawlSummaryResponse


class ErrorResponse(BaseModel):
    error: str


# --- Helpers ---


def resolve_days(days: int | None, rules: Rules) -> int:
    """Explicit days, else the configured default window."""
    if days is None:
        return rules.analytics.default_window_days
    return days


def raise_for_errors(errors: list[AnalyticsValidationError]) -> None:
    if not errors:
        return

    store_errors = [e for e in errors if e.code == "store_error"]
    if store_errors:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=store_errors[0].message,
        )

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=errors[0].message,
    )


def to_analytics_response(output: ViewsReportOutput) -> AnalyticsResponse:
    if output.summary is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch analytics",
        )
    return AnalyticsResponse(
        daily_data=[point.to_dict() for point in output.daily],
        sources=[SourceResponse(referrer=s.referrer, count=s.count) for s in output.sources],
        top_articles=[
            ArticleResponse(
                slug=a.slug,
                title=a.title,
                author=a.author,
                views=a.views,
                clicks=a.clicks,
                ctr=a.ctr,
            )
            for a in output.articles
        ],
        summary=ViewsSummaryResponse(
            total_views=output.summary.total_views,
            unique_visitors=output.summary.unique_visitors,
            blog_overview_views=output.summary.blog_overview_views,
            total_cta_clicks=output.summary.total_cta_clicks,
        ),
    )


def to_ai_analytics_response(output: CrawlReportOutput) -> AIAnalyticsResponse:
    if output.summary is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch AI analytics",
        )
    return AIAnalyticsResponse(
        daily_data=[point.to_dict() for point in output.daily],
        crawlers=[CrawlerResponse(name=c.name, count=c.count) for c in output.crawlers],
        top_articles=[
            CrawledArticleResponse(slug=a.slug, title=a.title, crawls=a.crawls)
            for a in output.articles
        ],
        top_paths=[PathResponse(path=p.path, count=p.count) for p in output.paths],
        summary=CrawlSummaryResponse(
            total_crawls=output.summary.total_crawls,
            unique_crawlers=output.summary.unique_crawlers,
            blog_crawls=output.summary.blog_crawls,
            successful_crawls=output.summary.successful_crawls,
        ),
    )


# --- Routes ---


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def get_analytics(
    days: int | None = Query(None, ge=0, description="Window size in days"),
    repo: SQLiteAnalyticsRepo = Depends(get_analytics_repo),
    catalog: SQLiteContentCatalog = Depends(get_content_catalog),
    config: AggregationConfig = Depends(get_aggregation_config),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> AnalyticsResponse:
    """
    Page view / CTA report for the last `days` days.

    Daily series, traffic sources, top articles and summary counters,
    all scoped to published content.
    """
    output = run_query_views(
        QueryViewsInput(window_days=resolve_days(days, rules)),
        repo=repo,
        catalog=catalog,
        time_port=clock,
        config=config,
    )
    raise_for_errors(output.errors)
    return to_analytics_response(output)


@router.get(
    "/ai-analytics",
    response_model=AIAnalyticsResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def get_ai_analytics(
    days: int | None = Query(None, ge=0, description="Window size in days"),
    repo: SQLiteCrawlRepo = Depends(get_crawl_repo),
    catalog: SQLiteContentCatalog = Depends(get_content_catalog),
    config: CrawlAggregationConfig = Depends(get_crawl_aggregation_config),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> AIAnalyticsResponse:
    """AI crawler report for the last `days` days."""
    output = run_query_crawls(
        QueryCrawlsInput(window_days=resolve_days(days, rules)),
        repo=repo,
        catalog=catalog,
        time_port=clock,
        config=config,
    )
    raise_for_errors(output.errors)
    return to_ai_analytics_response(output)

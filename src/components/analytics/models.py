"""
Analytics component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.core.entities import AICrawlEvent, CTAClickEvent, PageViewEvent

# --- Validation Error ---


@dataclass(frozen=True)
class AnalyticsValidationError:
    """Analytics validation error."""

    code: str
    message: str
    field_name: str | None = None


# Error codes that map to a server-side failure rather than bad input
STORE_ERROR_CODES = frozenset({"store_error"})


# --- Input Models ---


@dataclass(frozen=True)
class RecordPageViewInput:
    """Input for recording a page view."""

    visitor_id: str | None
    slug: str | None
    referrer: str | None = None


@dataclass(frozen=True)
class RecordCTAClickInput:
    """Input for recording a CTA click."""

    visitor_id: str | None
    slug: str | None


@dataclass(frozen=True)
class RecordCrawlInput:
    """Input for recording a crawler hit."""

    user_agent: str | None
    path: str
    status_code: int = 200


@dataclass(frozen=True)
class QueryViewsInput:
    """Input for the page view / CTA report."""

    window_days: int = 28


@dataclass(frozen=True)
class QueryCrawlsInput:
    """Input for the AI crawler report."""

    window_days: int = 28


# --- Output Models ---


@dataclass(frozen=True)
class RecordOutput:
    """Output for a single recording attempt."""

    event: PageViewEvent | CTAClickEvent | AICrawlEvent | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True

    @property
    def is_store_failure(self) -> bool:
        return any(e.code in STORE_ERROR_CODES for e in self.errors)


@dataclass(frozen=True)
class DailyViewsPoint:
    """One day in the page view series."""

    date: str
    views: int
    visitors: int
    authors: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "date": self.date,
            "views": self.views,
            "visitors": self.visitors,
        }
        data.update(self.authors)
        return data


@dataclass(frozen=True)
class SourceItem:
    """Traffic source; referrer None is the direct bucket."""

    referrer: str | None
    count: int


@dataclass(frozen=True)
class ArticleItem:
    """Published article with view and CTA counts."""

    slug: str
    title: str
    author: str
    views: int
    clicks: int

    @property
    def ctr(self) -> float:
        """Click-through rate (clicks / views), 0.0 without views."""
        if self.views <= 0:
            return 0.0
        return self.clicks / self.views


@dataclass(frozen=True)
class ViewsSummary:
    total_views: int
    unique_visitors: int
    blog_overview_views: int
    total_cta_clicks: int


@dataclass(frozen=True)
class ViewsReportOutput:
    """Output for the page view / CTA report."""

    daily: tuple[DailyViewsPoint, ...] = ()
    sources: tuple[SourceItem, ...] = ()
    articles: tuple[ArticleItem, ...] = ()
    summary: ViewsSummary | None = None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class DailyCrawlsPoint:
    """One day in the crawl series, split by named crawler."""

    date: str
    crawls: int
    crawlers: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"date": self.date, "crawls": self.crawls}
        data.update(self.crawlers)
        return data


@dataclass(frozen=True)
class CrawlerItem:
    name: str
    count: int


@dataclass(frozen=True)
class CrawledArticle:
    slug: str
    title: str
    crawls: int


@dataclass(frozen=True)
class PathItem:
    path: str
    count: int


@dataclass(frozen=True)
class CrawlSummary:
    total_crawls: int
    unique_crawlers: int
    blog_crawls: int
    successful_crawls: int


@dataclass(frozen=True)
class CrawlReportOutput:
    """Output for the AI crawler report."""

    daily: tuple[DailyCrawlsPoint, ...] = ()
    crawlers: tuple[CrawlerItem, ...] = ()
    articles: tuple[CrawledArticle, ...] = ()
    paths: tuple[PathItem, ...] = ()
    summary: CrawlSummary | None = None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True

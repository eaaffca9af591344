"""
Domain entities for the blog analytics service.

Event tables are append-only; entities are frozen once built.

- PageViewEvent: one tracked page render
- CTAClickEvent: one click on a tracked outbound link
- AICrawlEvent: one request from a classified AI crawler
- ContentItem: CMS reference data (read-only from analytics)
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PageViewEvent(BaseModel):
    """
    Page view event.

    `slug` is a content slug or the overview sentinel.
    `referrer` is a normalized source label; None means direct/unknown.
    """

    model_config = ConfigDict(frozen=True)

    visitor_id: str
    slug: str
    referrer: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class CTAClickEvent(BaseModel):
    """Click on a tracked call-to-action link inside content."""

    model_config = ConfigDict(frozen=True)

    visitor_id: str
    slug: str
    created_at: datetime = Field(default_factory=_utcnow)


class AICrawlEvent(BaseModel):
    """
    Request from a known AI crawler.

    `slug` is only set when the path maps to a content item.
    """

    model_config = ConfigDict(frozen=True)

    crawler_name: str
    user_agent: str
    path: str
    slug: str | None = None
    status_code: int = 200
    created_at: datetime = Field(default_factory=_utcnow)


class ContentItem(BaseModel):
    """
    Content item as seen by analytics.

    Invariants:
    - slug is unique
    - draft=False is the only published predicate
    """

    model_config = ConfigDict(frozen=True)

    slug: str
    title: str
    author: str
    draft: bool = True
    description: str | None = None
    published_at: datetime | None = None

    @property
    def is_published(self) -> bool:
        return not self.draft

"""
Analytics Ingestion API Routes.

Public endpoints called by page and link instrumentation.

Key behaviors:
- visitor_id and slug required (400, nothing written)
- Malformed bodies (bad JSON, non-string fields) get the same 400
- Store failures logged by the recorder, reported as 500
- Slugs are not checked against content (drafts are recorded)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from src.adapters.clock import SystemClock
from src.adapters.sqlite_db import SQLiteEventStore
from src.api.deps import get_attribution_config, get_clock, get_event_store
from src.components.analytics import (
    AttributionConfig,
    RecordCTAClickInput,
    RecordOutput,
    RecordPageViewInput,
    run_record_cta_click,
    run_record_page_view,
)

router = APIRouter()


# --- Request/Response Models ---


class PageViewRequest(BaseModel):
    """Page view tracking request."""

    visitor_id: str | None = Field(None, description="Client visitor id")
    slug: str | None = Field(None, description="Content slug or the overview slug")
    referrer: str | None = Field(None, description="Raw document.referrer or 'direct'")

    model_config = ConfigDict(extra="ignore")


class CTAClickRequest(BaseModel):
    """CTA click tracking request."""

    visitor_id: str | None = Field(None, description="Client visitor id")
    slug: str | None = Field(None, description="Slug of the content holding the link")

    model_config = ConfigDict(extra="ignore")


class TrackResponse(BaseModel):
    """Success response."""

    success: bool = True


class ErrorResponse(BaseModel):
    """Error response."""

    error: str


MISSING_FIELDS_MESSAGE = "visitor_id and slug are required"


# --- Helpers ---


def raise_for_result(result: RecordOutput, failure_message: str) -> None:
    """Map a recording failure to the HTTP error contract."""
    if result.success:
        return

    if result.is_store_failure:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=failure_message,
        )

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=MISSING_FIELDS_MESSAGE,
    )


# --- Routes ---


@router.post(
    "/track-page-view",
    response_model=TrackResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def track_page_view(
    body: PageViewRequest,
    event_store: SQLiteEventStore = Depends(get_event_store),
    attribution: AttributionConfig = Depends(get_attribution_config),
    clock: SystemClock = Depends(get_clock),
) -> TrackResponse:
    """Record one page view."""
    result = run_record_page_view(
        RecordPageViewInput(
            visitor_id=body.visitor_id,
            slug=body.slug,
            referrer=body.referrer,
        ),
        event_store=event_store,
        time_port=clock,
        attribution=attribution,
    )
    raise_for_result(result, "Failed to track page view")
    return TrackResponse()


@router.post(
    "/track-cta-click",
    response_model=TrackResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def track_cta_click(
    body: CTAClickRequest,
    event_store: SQLiteEventStore = Depends(get_event_store),
    clock: SystemClock = Depends(get_clock),
) -> TrackResponse:
    """Record one CTA click."""
    result = run_record_cta_click(
        RecordCTAClickInput(visitor_id=body.visitor_id, slug=body.slug),
        event_store=event_store,
        time_port=clock,
    )
    raise_for_result(result, "Failed to track CTA click")
    return TrackResponse()

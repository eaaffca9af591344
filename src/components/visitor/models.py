"""
Visitor component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_TRACKED_CTA_URLS: tuple[str, ...] = (
    "nodewave.io/#contact-section",
    "/#contact-section",
    "#contact-section",
    "cal.com/tiago-lemos-p1wrn8/30min",
)


@dataclass(frozen=True)
class VisitorContext:
    """
    Identity of one client, passed explicitly to the tracker.

    visitor_id is only a grouping key for unique-visitor counts;
    it carries no authentication weight.
    """

    visitor_id: str
    excluded: bool = False


@dataclass(frozen=True)
class TrackingConfig:
    """Client-side tracking configuration."""

    visitor_id_key: str = "nw_visitor_id"
    excluded_key: str = "nw_analytics_excluded"

    # Substrings of hrefs that count as CTA clicks
    tracked_cta_urls: tuple[str, ...] = field(default_factory=lambda: DEFAULT_TRACKED_CTA_URLS)

    # Referrer sent when the client has none
    direct_referrer: str = "direct"

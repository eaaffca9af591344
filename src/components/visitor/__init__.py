"""
Visitor component - Visitor identity, opt-out and client-side tracking.
"""

from ._impl import (
    AnalyticsTracker,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    RecorderSink,
    create_tracker,
    get_or_create_visitor_id,
    is_excluded,
    is_tracked_cta_href,
    load_visitor_context,
    set_excluded,
)
from .models import DEFAULT_TRACKED_CTA_URLS, TrackingConfig, VisitorContext
from .ports import KeyValueStorePort, TrackingSinkPort

__all__ = [
    # Tracker
    "AnalyticsTracker",
    "RecorderSink",
    "create_tracker",
    # Identity
    "get_or_create_visitor_id",
    "is_excluded",
    "is_tracked_cta_href",
    "load_visitor_context",
    "set_excluded",
    # Models
    "DEFAULT_TRACKED_CTA_URLS",
    "TrackingConfig",
    "VisitorContext",
    # Ports
    "KeyValueStorePort",
    "TrackingSinkPort",
    # Adapters
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
]

"""
Visitor identity and client-side tracking.

Key behaviors:
- visitor_id is a random UUID4, created on first need and reused
- Opt-out flag persisted independently of the id
- The tracker checks the opt-out flag before every tracking call;
  excluded clients never reach the recorders
- Tracking is fire-and-forget through a TaskDispatcherPort
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from uuid import uuid4

from src.components.analytics.component import run_record_cta_click, run_record_page_view
from src.components.analytics.models import RecordCTAClickInput, RecordPageViewInput
from src.components.analytics.ports import EventStorePort, TimePort
from src.core.ports.dispatch import TaskDispatcherPort

from .models import TrackingConfig, VisitorContext
from .ports import KeyValueStorePort, TrackingSinkPort

logger = logging.getLogger(__name__)

DEFAULT_TRACKING_CONFIG = TrackingConfig()

_TRUE = "true"


# --- Key/Value Store Adapters ---


class InMemoryKeyValueStore:
    """In-memory key/value store for testing."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class JsonFileKeyValueStore:
    """
    Key/value store persisted as one JSON object on disk.

    Writes go to a temp file and are renamed into place.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {self.path}")
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


# --- Identity Functions ---


def get_or_create_visitor_id(
    store: KeyValueStorePort,
    config: TrackingConfig | None = None,
) -> str:
    """Stored visitor id, generating and persisting one on first call."""
    config = config or DEFAULT_TRACKING_CONFIG
    visitor_id = store.get(config.visitor_id_key)
    if not visitor_id:
        visitor_id = str(uuid4())
        store.set(config.visitor_id_key, visitor_id)
    return visitor_id


def is_excluded(store: KeyValueStorePort, config: TrackingConfig | None = None) -> bool:
    """Whether this client opted out of analytics."""
    config = config or DEFAULT_TRACKING_CONFIG
    return store.get(config.excluded_key) == _TRUE


def set_excluded(
    store: KeyValueStorePort,
    excluded: bool,
    config: TrackingConfig | None = None,
) -> None:
    """Toggle the opt-out flag. The visitor id is left untouched."""
    config = config or DEFAULT_TRACKING_CONFIG
    if excluded:
        store.set(config.excluded_key, _TRUE)
    else:
        store.delete(config.excluded_key)


def load_visitor_context(
    store: KeyValueStorePort,
    config: TrackingConfig | None = None,
) -> VisitorContext:
    """Build the explicit context handed to the tracker."""
    return VisitorContext(
        visitor_id=get_or_create_visitor_id(store, config),
        excluded=is_excluded(store, config),
    )


def is_tracked_cta_href(href: str | None, config: TrackingConfig | None = None) -> bool:
    """Whether a clicked link is one of the tracked CTA targets."""
    if not href:
        return False
    config = config or DEFAULT_TRACKING_CONFIG
    return any(url in href for url in config.tracked_cta_urls)


# --- Sinks ---


class RecorderSink:
    """Sends events straight to the analytics recorders (same process)."""

    def __init__(self, event_store: EventStorePort, time_port: TimePort | None = None) -> None:
        self._store = event_store
        self._time = time_port

    def send_page_view(self, visitor_id: str, slug: str, referrer: str | None) -> None:
        result = run_record_page_view(
            RecordPageViewInput(visitor_id=visitor_id, slug=slug, referrer=referrer),
            event_store=self._store,
            time_port=self._time,
        )
        if not result.success:
            logger.warning("Page view not recorded: %s", [e.code for e in result.errors])

    def send_cta_click(self, visitor_id: str, slug: str) -> None:
        result = run_record_cta_click(
            RecordCTAClickInput(visitor_id=visitor_id, slug=slug),
            event_store=self._store,
            time_port=self._time,
        )
        if not result.success:
            logger.warning("CTA click not recorded: %s", [e.code for e in result.errors])


# --- Tracker ---


class AnalyticsTracker:
    """
    Client-side tracker.

    Every method returns whether a tracking call was dispatched.
    The outcome of the call itself is never reported back.
    """

    def __init__(
        self,
        context: VisitorContext,
        sink: TrackingSinkPort,
        dispatcher: TaskDispatcherPort,
        config: TrackingConfig | None = None,
    ) -> None:
        self._context = context
        self._sink = sink
        self._dispatcher = dispatcher
        self._config = config or DEFAULT_TRACKING_CONFIG

    @property
    def context(self) -> VisitorContext:
        return self._context

    def track_page_view(self, slug: str, referrer: str | None = None) -> bool:
        if self._context.excluded or not self._context.visitor_id:
            return False

        self._dispatcher.dispatch(
            self._sink.send_page_view,
            self._context.visitor_id,
            slug,
            referrer or self._config.direct_referrer,
        )
        return True

    def track_cta_click(self, slug: str) -> bool:
        if self._context.excluded or not self._context.visitor_id:
            return False

        self._dispatcher.dispatch(self._sink.send_cta_click, self._context.visitor_id, slug)
        return True

    def track_link_click(self, slug: str, href: str | None) -> bool:
        """Track a click inside content; only tracked CTA links count."""
        if not is_tracked_cta_href(href, self._config):
            return False
        return self.track_cta_click(slug)


# --- Factory ---


def create_tracker(
    store: KeyValueStorePort,
    sink: TrackingSinkPort,
    dispatcher: TaskDispatcherPort,
    config: TrackingConfig | None = None,
) -> AnalyticsTracker:
    """Load the visitor context from storage and build a tracker."""
    return AnalyticsTracker(
        context=load_visitor_context(store, config),
        sink=sink,
        dispatcher=dispatcher,
        config=config,
    )

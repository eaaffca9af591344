"""
Visitor component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol


class KeyValueStorePort(Protocol):
    """Durable client-side key/value storage (browser localStorage equivalent)."""

    def get(self, key: str) -> str | None:
        """Value for key, or None if unset."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key."""
        ...

    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...


class TrackingSinkPort(Protocol):
    """Where the tracker sends events (recorder in process, or the HTTP API)."""

    def send_page_view(self, visitor_id: str, slug: str, referrer: str | None) -> None:
        ...

    def send_cta_click(self, visitor_id: str, slug: str) -> None:
        ...

"""
Referrer attribution - normalize raw referrers into source labels.

Key behaviors:
- Raw referrer URL -> bare hostname, leading "www." stripped
- utm_source query parameter wins over the hostname
- Unparseable referrer -> raw string unchanged
- Missing, empty, or "direct" referrer -> None (direct bucket)
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

# --- Configuration ---


@dataclass(frozen=True)
class AttributionConfig:
    """Referrer normalization configuration."""

    # Values meaning "no referrer"
    direct_values: tuple[str, ...] = ("", "direct")

    # Host prefix removed from labels
    strip_host_prefix: str = "www."

    # Query parameter that overrides the hostname label
    utm_source_param: str = "utm_source"


DEFAULT_CONFIG = AttributionConfig()


# --- Parsing Functions ---


def parse_host(url: str) -> str | None:
    """
    Extract the hostname from a URL.

    Returns None when the string does not parse as an absolute URL.
    Port and credentials are dropped; the result is lower-cased.
    """
    if not url:
        return None

    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError:
        return None

    if not parsed.scheme or not host:
        return None

    return host


def parse_utm_source(url: str, config: AttributionConfig = DEFAULT_CONFIG) -> str | None:
    """Return the utm_source label carried by a referrer URL, if any."""
    try:
        query = urlparse(url).query
    except ValueError:
        return None

    values = parse_qs(query).get(config.utm_source_param)
    if not values:
        return None

    label = values[0].strip().lower()
    return label or None


def strip_www(host: str, config: AttributionConfig = DEFAULT_CONFIG) -> str:
    prefix = config.strip_host_prefix
    if prefix and host.startswith(prefix):
        return host[len(prefix) :]
    return host


def normalize_referrer(
    referrer: str | None,
    config: AttributionConfig = DEFAULT_CONFIG,
) -> str | None:
    """
    Normalize a raw referrer into a source label.

    Examples:
        "https://www.example.com/path" -> "example.com"
        "https://x.com/?utm_source=Newsletter" -> "newsletter"
        "direct" / "" / None -> None
        "not a url" -> "not a url"
    """
    if referrer is None:
        return None

    raw = referrer.strip()
    if raw.lower() in config.direct_values:
        return None

    host = parse_host(raw)
    if host is None:
        # Extraction failed: keep the raw label
        return referrer

    utm_label = parse_utm_source(raw, config)
    if utm_label:
        return utm_label

    return strip_www(host, config)

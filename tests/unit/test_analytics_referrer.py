"""
Tests for referrer normalization.
"""

from __future__ import annotations

import pytest

from src.core.services.analytics_attrib import (
    AttributionConfig,
    normalize_referrer,
    parse_host,
    parse_utm_source,
    strip_www,
)


class TestParseHost:
    """Hostname extraction."""

    def test_absolute_url(self) -> None:
        """Hostname is lower-cased, port dropped."""
        assert parse_host("https://Example.com:8443/path?q=1") == "example.com"

    @pytest.mark.parametrize("value", ["", "not a url", "example.com/path", "/relative"])
    def test_not_absolute(self, value: str) -> None:
        """Strings without scheme and host do not parse."""
        assert parse_host(value) is None


class TestParseUTMSource:
    """utm_source extraction."""

    def test_present(self) -> None:
        """Value is trimmed and lower-cased."""
        url = "https://t.co/x?utm_source=%20Newsletter%20&utm_medium=email"
        assert parse_utm_source(url) == "newsletter"

    def test_absent(self) -> None:
        """No parameter, no label."""
        assert parse_utm_source("https://google.com/search?q=x") is None

    def test_custom_param(self) -> None:
        """Parameter name comes from config."""
        config = AttributionConfig(utm_source_param="ref")
        assert parse_utm_source("https://a.com/?ref=HN", config) == "hn"


class TestNormalizeReferrer:
    """Raw referrer to source label."""

    def test_url_to_bare_host(self) -> None:
        """https://www.example.com/path -> example.com."""
        assert normalize_referrer("https://www.example.com/path") == "example.com"

    def test_host_without_www_kept(self) -> None:
        """Subdomains other than www are kept."""
        assert normalize_referrer("https://news.ycombinator.com/item?id=1") == (
            "news.ycombinator.com"
        )

    @pytest.mark.parametrize("value", [None, "", "   ", "direct", "DIRECT"])
    def test_direct_values(self, value: str | None) -> None:
        """Empty, missing and 'direct' referrers are the direct bucket."""
        assert normalize_referrer(value) is None

    def test_unparseable_kept_raw(self) -> None:
        """Extraction failure returns the raw string unchanged."""
        assert normalize_referrer("not a url") == "not a url"

    def test_utm_source_wins(self) -> None:
        """A UTM label replaces the hostname."""
        assert normalize_referrer("https://www.linkedin.com/feed?utm_source=LinkedIn") == (
            "linkedin"
        )

    def test_strip_www_only_prefix(self) -> None:
        """Only a leading www. is removed."""
        assert strip_www("www.example.com") == "example.com"
        assert strip_www("example.www.com") == "example.www.com"

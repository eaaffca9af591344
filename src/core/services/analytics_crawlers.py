"""
AI crawler classification.

Key behaviors:
- Ordered signature table, case-insensitive, first match wins
- No multi-label classification
- Static asset requests are never classified
- Slug is derived only from content paths (/blog/<slug>)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# --- Signatures ---


@dataclass(frozen=True)
class CrawlerSignature:
    """One known AI crawler identity."""

    name: str
    pattern: str

    def matches(self, user_agent: str) -> bool:
        return re.search(self.pattern, user_agent, re.IGNORECASE) is not None


DEFAULT_SIGNATURES: tuple[CrawlerSignature, ...] = (
    CrawlerSignature("GPTBot", r"GPTBot"),
    CrawlerSignature("ChatGPT-User", r"ChatGPT-User"),
    CrawlerSignature("ClaudeBot", r"ClaudeBot"),
    CrawlerSignature("Anthropic-ai", r"Anthropic-ai"),
    CrawlerSignature("Claude-Web", r"Claude-Web"),
    CrawlerSignature("PerplexityBot", r"PerplexityBot"),
    CrawlerSignature("Bytespider", r"Bytespider"),
    CrawlerSignature("Cohere", r"cohere-ai"),
    CrawlerSignature("YouBot", r"YouBot"),
    CrawlerSignature("Google-Extended", r"Google-Extended"),
    CrawlerSignature("CCBot", r"CCBot"),
    CrawlerSignature("FacebookBot", r"FacebookBot"),
    CrawlerSignature("Applebot-Extended", r"Applebot-Extended"),
)


# --- Configuration ---


@dataclass(frozen=True)
class CrawlerConfig:
    """Crawler classification configuration."""

    signatures: tuple[CrawlerSignature, ...] = DEFAULT_SIGNATURES

    # Paths of the form {content_prefix}<slug> map to a content item
    content_prefix: str = "/blog/"

    # Static assets are out of scope for classification
    static_prefixes: tuple[str, ...] = ("/_next/static", "/_next/image", "/static/")
    static_paths: tuple[str, ...] = ("/favicon.ico",)
    static_extensions: tuple[str, ...] = field(
        default_factory=lambda: (
            ".svg",
            ".png",
            ".jpg",
            ".jpeg",
            ".gif",
            ".webp",
            ".ico",
            ".css",
            ".js",
            ".woff",
            ".woff2",
        )
    )


DEFAULT_CONFIG = CrawlerConfig()


# --- Classification ---


def classify_crawler(
    user_agent: str | None,
    config: CrawlerConfig = DEFAULT_CONFIG,
) -> str | None:
    """
    Return the crawler name for a user agent, or None.

    Signatures are tried in order; the first match wins.
    """
    if not user_agent:
        return None

    for signature in config.signatures:
        if signature.matches(user_agent):
            return signature.name

    return None


def is_static_asset(path: str, config: CrawlerConfig = DEFAULT_CONFIG) -> bool:
    """Check if a request path is a static asset."""
    if path in config.static_paths:
        return True

    if any(path.startswith(prefix) for prefix in config.static_prefixes):
        return True

    return path.lower().endswith(config.static_extensions)


def slug_from_path(path: str, config: CrawlerConfig = DEFAULT_CONFIG) -> str | None:
    """
    Extract the content slug from a path.

    Only a single segment directly under the content prefix counts:
    "/blog/my-post" -> "my-post", "/blog/my-post/x" -> None, "/blog" -> None.
    """
    prefix = config.content_prefix
    if not path.startswith(prefix):
        return None

    rest = path[len(prefix) :]
    if not rest or "/" in rest:
        return None

    return rest

"""
CrawlAggregationService - AI crawler report.

Key behaviors:
- Same day-bucket discipline as the views report
- Daily series split into named crawler columns plus "other"
- Crawls on non-published content are out of scope for the daily series,
  articles and summary; crawls with no slug always count
- The crawler leaderboard counts every crawl in the window
- Top paths only cover slug-less crawls, capped (default 10)
- Crawled articles: published items with at least one crawl
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ._buckets import resolve_window_start, seed_daily_buckets
from ._impl import DefaultTimePort
from .models import (
    CrawledArticle,
    CrawlerItem,
    CrawlSummary,
    DailyCrawlsPoint,
    PathItem,
)
from .ports import ContentCatalogPort, CrawlRepoPort, TimePort

# --- Configuration ---


def _default_named_series() -> dict[str, str]:
    return {
        "GPTBot": "gptbot",
        "ClaudeBot": "claudebot",
        "PerplexityBot": "perplexitybot",
    }


@dataclass(frozen=True)
class CrawlAggregationConfig:
    """Crawl report configuration."""

    # crawler_name -> daily series column
    named_series: dict[str, str] = field(default_factory=_default_named_series)

    # Column for every classified name not in named_series
    other_key: str = "other"

    top_paths_limit: int = 10

    def series_key(self, crawler_name: str) -> str:
        return self.named_series.get(crawler_name, self.other_key)

    def series_columns(self) -> list[str]:
        columns = list(dict.fromkeys(self.named_series.values()))
        if self.other_key not in columns:
            columns.append(self.other_key)
        return columns


DEFAULT_CRAWL_CONFIG = CrawlAggregationConfig()


# --- Report ---


@dataclass(frozen=True)
class CrawlReport:
    """Complete crawl report."""

    daily: tuple[DailyCrawlsPoint, ...]
    crawlers: tuple[CrawlerItem, ...]
    articles: tuple[CrawledArticle, ...]
    paths: tuple[PathItem, ...]
    summary: CrawlSummary


@dataclass
class _CrawlBucket:
    crawls: int = 0
    crawlers: dict[str, int] = field(default_factory=dict)


# --- Aggregation Service ---


class CrawlAggregationService:
    """AI crawler aggregation over grouped store queries."""

    def __init__(
        self,
        repo: CrawlRepoPort,
        catalog: ContentCatalogPort,
        time_port: TimePort | None = None,
        config: CrawlAggregationConfig | None = None,
    ) -> None:
        """Initialize service."""
        self._repo = repo
        self._catalog = catalog
        self._time = time_port or DefaultTimePort()
        self._config = config or DEFAULT_CRAWL_CONFIG

    def build_report(self, window_days: int) -> CrawlReport:
        """
        Build the crawl report for the last `window_days` days.

        Raises:
            ValueError: window_days is negative.
            AnalyticsStoreError: any store read failed.
        """
        now = self._time.now_utc()
        start = resolve_window_start(now, window_days)

        columns = self._config.series_columns()
        buckets = seed_daily_buckets(
            start, now, lambda: _CrawlBucket(crawlers={key: 0 for key in columns})
        )

        published = self._catalog.list_published()
        slugs = {item.slug for item in published}

        for row in self._repo.crawls_by_day_and_crawler(start, slugs):
            bucket = buckets.get(row["date"])
            if bucket is None:
                continue
            count = int(row["count"])
            bucket.crawls += count
            bucket.crawlers[self._config.series_key(row["crawler_name"])] += count

        # Leaderboard covers every classified crawl, drafts included
        crawlers = [
            CrawlerItem(name=row["crawler_name"], count=int(row["count"]))
            for row in self._repo.crawls_by_crawler(start)
        ]
        crawlers.sort(key=lambda c: (-c.count, c.name))

        crawl_counts = {
            row["slug"]: int(row["count"]) for row in self._repo.crawls_by_slug(start, slugs)
        }
        articles = [
            CrawledArticle(slug=item.slug, title=item.title, crawls=crawl_counts.get(item.slug, 0))
            for item in published
        ]
        articles = [a for a in articles if a.crawls > 0]
        articles.sort(key=lambda a: (-a.crawls, a.slug))

        paths = [
            PathItem(path=row["path"], count=int(row["count"]))
            for row in self._repo.crawls_by_path(start, self._config.top_paths_limit)
        ]
        paths.sort(key=lambda p: (-p.count, p.path))

        totals = self._repo.crawl_totals(start, slugs)
        summary = CrawlSummary(
            total_crawls=int(totals["crawls"]),
            unique_crawlers=int(totals["crawlers"]),
            blog_crawls=int(totals["content_crawls"]),
            successful_crawls=int(totals["successful"]),
        )

        daily = tuple(
            DailyCrawlsPoint(date=day, crawls=bucket.crawls, crawlers=bucket.crawlers)
            for day, bucket in buckets.items()
        )

        return CrawlReport(
            daily=daily,
            crawlers=tuple(crawlers),
            articles=tuple(articles),
            paths=tuple(paths),
            summary=summary,
        )


# --- Factory ---


def create_crawl_aggregation_service(
    repo: CrawlRepoPort,
    catalog: ContentCatalogPort,
    time_port: TimePort | None = None,
    config: CrawlAggregationConfig | None = None,
) -> CrawlAggregationService:
    """Create a CrawlAggregationService."""
    return CrawlAggregationService(
        repo=repo,
        catalog=catalog,
        time_port=time_port,
        config=config,
    )

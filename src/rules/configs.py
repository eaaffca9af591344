"""
Rules -> component configuration.

Each builder turns one validated rules section into the frozen config
object its component takes.
"""

from __future__ import annotations

from src.components.analytics import (
    AggregationConfig,
    AttributionConfig,
    CrawlAggregationConfig,
    CrawlerConfig,
    CrawlerSignature,
)
from src.components.visitor import TrackingConfig
from src.rules.models import Rules


def build_attribution_config(rules: Rules) -> AttributionConfig:
    analytics = rules.analytics
    return AttributionConfig(
        direct_values=tuple(analytics.direct_values),
        strip_host_prefix=analytics.strip_host_prefix,
        utm_source_param=analytics.utm_source_param,
    )


def build_aggregation_config(rules: Rules) -> AggregationConfig:
    return AggregationConfig(
        overview_slug=rules.analytics.overview_slug,
        tracked_authors=tuple(rules.analytics.tracked_authors),
    )


def build_crawler_config(rules: Rules) -> CrawlerConfig:
    crawlers = rules.crawlers
    return CrawlerConfig(
        signatures=tuple(CrawlerSignature(s.name, s.pattern) for s in crawlers.signatures),
        content_prefix=crawlers.content_prefix,
        static_prefixes=tuple(crawlers.static.prefixes),
        static_paths=tuple(crawlers.static.paths),
        static_extensions=tuple(ext.lower() for ext in crawlers.static.extensions),
    )


def build_crawl_aggregation_config(rules: Rules) -> CrawlAggregationConfig:
    crawlers = rules.crawlers
    return CrawlAggregationConfig(
        named_series=dict(crawlers.named_series),
        other_key=crawlers.other_key,
        top_paths_limit=crawlers.top_paths_limit,
    )


def build_tracking_config(rules: Rules) -> TrackingConfig:
    tracking = rules.tracking
    return TrackingConfig(
        visitor_id_key=tracking.visitor_id_key,
        excluded_key=tracking.excluded_key,
        tracked_cta_urls=tuple(tracking.tracked_cta_urls),
        direct_referrer=tracking.direct_referrer,
    )

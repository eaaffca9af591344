"""
Analytics component - Event recording and report aggregation.
"""

from src.core.services.analytics_attrib import (
    AttributionConfig,
    normalize_referrer,
)
from src.core.services.analytics_crawlers import (
    CrawlerConfig,
    CrawlerSignature,
    classify_crawler,
    is_static_asset,
    slug_from_path,
)

from ._aggregate import (
    AggregationConfig,
    ViewsAggregationService,
    create_views_aggregation_service,
)
from ._buckets import ALL_TIME_WINDOW_DAYS, DEFAULT_WINDOW_DAYS
from ._crawl import (
    CrawlAggregationConfig,
    CrawlAggregationService,
    create_crawl_aggregation_service,
)
from ._impl import (
    DefaultTimePort,
    EventRecorder,
    InMemoryAnalyticsStore,
    InMemoryContentCatalog,
    create_event_recorder,
)
from .component import (
    run_query_crawls,
    run_query_views,
    run_record_crawl,
    run_record_cta_click,
    run_record_page_view,
)
from .models import (
    AnalyticsValidationError,
    ArticleItem,
    CrawledArticle,
    CrawlerItem,
    CrawlReportOutput,
    CrawlSummary,
    DailyCrawlsPoint,
    DailyViewsPoint,
    PathItem,
    QueryCrawlsInput,
    QueryViewsInput,
    RecordCrawlInput,
    RecordCTAClickInput,
    RecordOutput,
    RecordPageViewInput,
    SourceItem,
    ViewsReportOutput,
    ViewsSummary,
)
from .ports import (
    AnalyticsRepoPort,
    AnalyticsStoreError,
    ContentCatalogPort,
    CrawlRepoPort,
    EventStorePort,
    TimePort,
)

__all__ = [
    # Entry points
    "run_query_crawls",
    "run_query_views",
    "run_record_crawl",
    "run_record_cta_click",
    "run_record_page_view",
    # Input models
    "QueryCrawlsInput",
    "QueryViewsInput",
    "RecordCrawlInput",
    "RecordCTAClickInput",
    "RecordPageViewInput",
    # Output models
    "AnalyticsValidationError",
    "ArticleItem",
    "CrawledArticle",
    "CrawlerItem",
    "CrawlReportOutput",
    "CrawlSummary",
    "DailyCrawlsPoint",
    "DailyViewsPoint",
    "PathItem",
    "RecordOutput",
    "SourceItem",
    "ViewsReportOutput",
    "ViewsSummary",
    # Ports
    "AnalyticsRepoPort",
    "AnalyticsStoreError",
    "ContentCatalogPort",
    "CrawlRepoPort",
    "EventStorePort",
    "TimePort",
    # Services
    "AggregationConfig",
    "CrawlAggregationConfig",
    "CrawlAggregationService",
    "DefaultTimePort",
    "EventRecorder",
    "ViewsAggregationService",
    "create_crawl_aggregation_service",
    "create_event_recorder",
    "create_views_aggregation_service",
    # Adapters
    "InMemoryAnalyticsStore",
    "InMemoryContentCatalog",
    # Helpers
    "ALL_TIME_WINDOW_DAYS",
    "DEFAULT_WINDOW_DAYS",
    "AttributionConfig",
    "CrawlerConfig",
    "CrawlerSignature",
    "classify_crawler",
    "is_static_asset",
    "normalize_referrer",
    "slug_from_path",
]

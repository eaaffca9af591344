"""
AI crawler logging middleware.

Runs on every request except static assets. Requests from a known AI
crawler are logged after the response is sent, with the real status
code. Logging never changes or delays the response.

Key behaviors:
- Static assets skipped before classification
- Non-crawler requests pass through untouched
- Recording runs as a starlette background task, or in the threadpool
  when the app raises (recorded as 500)
- Recording failures are logged and swallowed
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.components.analytics import (
    CrawlerConfig,
    EventStorePort,
    RecordCrawlInput,
    TimePort,
    classify_crawler,
    is_static_asset,
    run_record_crawl,
)

logger = logging.getLogger(__name__)


def record_crawl_quietly(
    inp: RecordCrawlInput,
    store_factory: Callable[[], EventStorePort],
    config: CrawlerConfig,
    time_port: TimePort | None = None,
) -> None:
    """Record one crawler hit; never raises."""
    try:
        result = run_record_crawl(
            inp,
            event_store=store_factory(),
            time_port=time_port,
            crawlers=config,
        )
    except Exception:
        logger.exception("Crawler logging failed for %s", inp.path)
        return

    if not result.success:
        logger.warning("Crawler hit on %s not recorded", inp.path)


class CrawlerLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        store_factory: Callable[[], EventStorePort],
        config_factory: Callable[[], CrawlerConfig],
        time_port: TimePort | None = None,
    ) -> None:
        super().__init__(app)
        self._store_factory = store_factory
        self._config_factory = config_factory
        self._time = time_port

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        config = self._config_factory()

        if is_static_asset(path, config):
            return await call_next(request)

        user_agent = request.headers.get("user-agent")
        if classify_crawler(user_agent, config) is None:
            return await call_next(request)

        try:
            response = await call_next(request)
        except Exception:
            # Blocking store write, runs in the threadpool
            await run_in_threadpool(
                record_crawl_quietly,
                RecordCrawlInput(user_agent=user_agent, path=path, status_code=500),
                self._store_factory,
                config,
                self._time,
            )
            raise

        task = BackgroundTask(
            record_crawl_quietly,
            RecordCrawlInput(user_agent=user_agent, path=path, status_code=response.status_code),
            self._store_factory,
            config,
            self._time,
        )
        if response.background is None:
            response.background = task
        else:
            previous = response.background

            async def run_both() -> None:
                await previous()
                await task()

            response.background = BackgroundTask(run_both)

        return response

"""
SQLite Database Adapter.

Implements the analytics store ports using SQLite.
Uses standard SQL only (GROUP BY / COUNT / CASE), so the same queries
run unchanged against Postgres.

Timestamps are stored as fixed-width UTC ISO strings, so text
comparison matches time order and substr(created_at, 1, 10) is the
UTC calendar date.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Collection
from datetime import UTC, datetime
from typing import Any

from src.components.analytics.ports import AnalyticsStoreError
from src.core.entities import AICrawlEvent, ContentItem, CTAClickEvent, PageViewEvent

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def format_dt(dt: datetime) -> str:
    """Fixed-width UTC timestamp (naive is treated as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def parse_dt(s: str | None) -> datetime | None:
    """Parse ISO datetime string."""
    return datetime.fromisoformat(s) if s else None


def slug_in(slugs: Collection[str]) -> tuple[str, list[Any]]:
    """SQL predicate restricting `slug` to a set; empty matches nothing."""
    if not slugs:
        return "0", []
    placeholders = ", ".join("?" for _ in slugs)
    return f"slug IN ({placeholders})", sorted(slugs)


def crawl_scope(slugs: Collection[str]) -> tuple[str, list[Any]]:
    """Slug-less crawls always match; others only for the given slugs."""
    if not slugs:
        return "slug IS NULL", []
    clause, params = slug_in(slugs)
    return f"(slug IS NULL OR {clause})", params


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None

    def _fetch_all(self, query: str, params: list[Any]) -> list[dict[str, Any]]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise AnalyticsStoreError(f"Cannot open {self.db_path}: {e}") from e
        try:
            return list(conn.execute(query, params).fetchall())
        except sqlite3.Error as e:
            raise AnalyticsStoreError(str(e)) from e
        finally:
            if self._should_close():
                conn.close()

    def _fetch_one(self, query: str, params: list[Any]) -> dict[str, Any]:
        rows = self._fetch_all(query, params)
        return rows[0] if rows else {}

    def _write(self, query: str, params: tuple[Any, ...]) -> None:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise AnalyticsStoreError(f"Cannot open {self.db_path}: {e}") from e
        try:
            conn.execute(query, params)
            if self._should_close():
                conn.commit()
        except sqlite3.Error as e:
            raise AnalyticsStoreError(str(e)) from e
        finally:
            if self._should_close():
                conn.close()


# -----------------------------------------------------------------------------
# Event Store (writes)
# -----------------------------------------------------------------------------


class SQLiteEventStore(SQLiteRepoBase):
    """SQLite implementation of EventStorePort. One INSERT per event."""

    def insert_page_view(self, event: PageViewEvent) -> None:
        self._write(
            """
            INSERT INTO page_views (visitor_id, slug, referrer, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (event.visitor_id, event.slug, event.referrer, format_dt(event.created_at)),
        )

    def insert_cta_click(self, event: CTAClickEvent) -> None:
        self._write(
            """
            INSERT INTO cta_clicks (visitor_id, slug, created_at)
            VALUES (?, ?, ?)
            """,
            (event.visitor_id, event.slug, format_dt(event.created_at)),
        )

    def insert_ai_crawl(self, event: AICrawlEvent) -> None:
        self._write(
            """
            INSERT INTO ai_crawls (
                crawler_name, user_agent, path, slug, status_code, created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                event.crawler_name,
                event.user_agent,
                event.path,
                event.slug,
                event.status_code,
                format_dt(event.created_at),
            ),
        )


# -----------------------------------------------------------------------------
# Page view / CTA grouped reads
# -----------------------------------------------------------------------------


class SQLiteAnalyticsRepo(SQLiteRepoBase):
    """SQLite implementation of AnalyticsRepoPort."""

    def page_views_by_day(self, start: datetime, slugs: Collection[str]) -> list[dict[str, Any]]:
        clause, params = slug_in(slugs)
        return self._fetch_all(
            f"""
            SELECT substr(created_at, 1, 10) AS date,
                   COUNT(*) AS views,
                   COUNT(DISTINCT visitor_id) AS visitors
            FROM page_views
            WHERE created_at >= ? AND {clause}
            GROUP BY substr(created_at, 1, 10)
            ORDER BY date
            """,
            [format_dt(start), *params],
        )

    def page_views_by_day_and_slug(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        clause, params = slug_in(slugs)
        return self._fetch_all(
            f"""
            SELECT substr(created_at, 1, 10) AS date, slug, COUNT(*) AS views
            FROM page_views
            WHERE created_at >= ? AND {clause}
            GROUP BY substr(created_at, 1, 10), slug
            ORDER BY date, slug
            """,
            [format_dt(start), *params],
        )

    def page_views_by_referrer(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        clause, params = slug_in(slugs)
        return self._fetch_all(
            f"""
            SELECT referrer, COUNT(*) AS count
            FROM page_views
            WHERE created_at >= ? AND {clause}
            GROUP BY referrer
            """,
            [format_dt(start), *params],
        )

    def page_views_by_slug(self, start: datetime, slugs: Collection[str]) -> list[dict[str, Any]]:
        clause, params = slug_in(slugs)
        return self._fetch_all(
            f"""
            SELECT slug, COUNT(*) AS count
            FROM page_views
            WHERE created_at >= ? AND {clause}
            GROUP BY slug
            """,
            [format_dt(start), *params],
        )

    def page_view_totals(self, start: datetime, slugs: Collection[str]) -> dict[str, int]:
        clause, params = slug_in(slugs)
        row = self._fetch_one(
            f"""
            SELECT COUNT(*) AS views, COUNT(DISTINCT visitor_id) AS visitors
            FROM page_views
            WHERE created_at >= ? AND {clause}
            """,
            [format_dt(start), *params],
        )
        return {"views": row.get("views") or 0, "visitors": row.get("visitors") or 0}

    def cta_clicks_by_slug(self, start: datetime, slugs: Collection[str]) -> list[dict[str, Any]]:
        clause, params = slug_in(slugs)
        return self._fetch_all(
            f"""
            SELECT slug, COUNT(*) AS count
            FROM cta_clicks
            WHERE created_at >= ? AND {clause}
            GROUP BY slug
            """,
            [format_dt(start), *params],
        )


# -----------------------------------------------------------------------------
# AI crawl grouped reads
# -----------------------------------------------------------------------------


class SQLiteCrawlRepo(SQLiteRepoBase):
    """SQLite implementation of CrawlRepoPort."""

    def crawls_by_day_and_crawler(
        self, start: datetime, slugs: Collection[str]
    ) -> list[dict[str, Any]]:
        clause, params = crawl_scope(slugs)
        return self._fetch_all(
            f"""
            SELECT substr(created_at, 1, 10) AS date, crawler_name, COUNT(*) AS count
            FROM ai_crawls
            WHERE created_at >= ? AND {clause}
            GROUP BY substr(created_at, 1, 10), crawler_name
            ORDER BY date, crawler_name
            """,
            [format_dt(start), *params],
        )

    def crawls_by_crawler(self, start: datetime) -> list[dict[str, Any]]:
        return self._fetch_all(
            """
            SELECT crawler_name, COUNT(*) AS count
            FROM ai_crawls
            WHERE created_at >= ?
            GROUP BY crawler_name
            """,
            [format_dt(start)],
        )

    def crawls_by_slug(self, start: datetime, slugs: Collection[str]) -> list[dict[str, Any]]:
        clause, params = slug_in(slugs)
        return self._fetch_all(
            f"""
            SELECT slug, COUNT(*) AS count
            FROM ai_crawls
            WHERE created_at >= ? AND {clause}
            GROUP BY slug
            """,
            [format_dt(start), *params],
        )

    def crawls_by_path(self, start: datetime, limit: int) -> list[dict[str, Any]]:
        return self._fetch_all(
            """
            SELECT path, COUNT(*) AS count
            FROM ai_crawls
            WHERE created_at >= ? AND slug IS NULL
            GROUP BY path
            ORDER BY count DESC, path ASC
            LIMIT ?
            """,
            [format_dt(start), limit],
        )

    def crawl_totals(self, start: datetime, slugs: Collection[str]) -> dict[str, int]:
        clause, params = crawl_scope(slugs)
        row = self._fetch_one(
            f"""
            SELECT COUNT(*) AS crawls,
                   COUNT(DISTINCT crawler_name) AS crawlers,
                   SUM(CASE WHEN slug IS NOT NULL THEN 1 ELSE 0 END) AS content_crawls,
                   SUM(CASE WHEN status_code BETWEEN 200 AND 299 THEN 1 ELSE 0 END)
                       AS successful
            FROM ai_crawls
            WHERE created_at >= ? AND {clause}
            """,
            [format_dt(start), *params],
        )
        return {
            "crawls": row.get("crawls") or 0,
            "crawlers": row.get("crawlers") or 0,
            "content_crawls": row.get("content_crawls") or 0,
            "successful": row.get("successful") or 0,
        }


# -----------------------------------------------------------------------------
# Content catalog
# -----------------------------------------------------------------------------


class SQLiteContentCatalog(SQLiteRepoBase):
    """SQLite implementation of ContentCatalogPort over the posts table."""

    def list_published(self) -> list[ContentItem]:
        rows = self._fetch_all(
            "SELECT * FROM posts WHERE draft = 0 ORDER BY slug",
            [],
        )
        return [self._map_row(r) for r in rows]

    def save(self, item: ContentItem) -> ContentItem:
        self._write(
            """
            INSERT INTO posts (slug, title, author, description, draft, published_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(slug) DO UPDATE SET
                title = excluded.title,
                author = excluded.author,
                description = excluded.description,
                draft = excluded.draft,
                published_at = excluded.published_at
            """,
            (
                item.slug,
                item.title,
                item.author,
                item.description,
                1 if item.draft else 0,
                format_dt(item.published_at) if item.published_at else None,
            ),
        )
        return item

    def _map_row(self, row: dict[str, Any]) -> ContentItem:
        return ContentItem(
            slug=row["slug"],
            title=row["title"],
            author=row["author"],
            description=row["description"],
            draft=bool(row["draft"]),
            published_at=parse_dt(row["published_at"]),
        )

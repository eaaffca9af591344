import os
import random
import sys
from datetime import UTC, datetime, timedelta

# Add root to pythonpath
sys.path.append(os.getcwd())

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite_db import SQLiteContentCatalog, SQLiteEventStore
from src.api.deps import Settings
from src.core.entities import AICrawlEvent, ContentItem, CTAClickEvent, PageViewEvent

POSTS = [
    ContentItem(slug="why-nodewave", title="Why Nodewave", author="Tiago", draft=False),
    ContentItem(slug="ai-search", title="Ranking in AI Search", author="Vicente", draft=False),
    ContentItem(slug="roi-notes", title="Notes on ROI", author="Tiago", draft=True),
]

REFERRERS = [None, "google.com", "linkedin.com", "t.co", "chatgpt.com"]
CRAWLERS = ["GPTBot", "ClaudeBot", "PerplexityBot", "Bytespider", "CCBot"]


def seed(days: int = 28, seed_value: int = 7) -> None:
    settings = Settings()
    os.makedirs(settings.data_dir, exist_ok=True)
    print(f"Seeding to {settings.db_path}")

    SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()

    catalog = SQLiteContentCatalog(settings.db_path)
    for post in POSTS:
        catalog.save(post)
    print(f"Saved {len(POSTS)} posts")

    rng = random.Random(seed_value)
    events = SQLiteEventStore(settings.db_path)
    now = datetime.now(UTC)
    slugs = [p.slug for p in POSTS] + ["blog"]

    views = clicks = crawls = 0
    for day in range(days + 1):
        when = now - timedelta(days=day, minutes=rng.randint(0, 600))
        for _ in range(rng.randint(0, 12)):
            slug = rng.choice(slugs)
            events.insert_page_view(
                PageViewEvent(
                    visitor_id=f"seed-{rng.randint(1, 40)}",
                    slug=slug,
                    referrer=rng.choice(REFERRERS),
                    created_at=when,
                )
            )
            views += 1
            if slug != "blog" and rng.random() < 0.1:
                events.insert_cta_click(
                    CTAClickEvent(visitor_id="seed-1", slug=slug, created_at=when)
                )
                clicks += 1
        for _ in range(rng.randint(0, 4)):
            post = rng.choice(POSTS)
            name = rng.choice(CRAWLERS)
            on_post = rng.random() < 0.6
            events.insert_ai_crawl(
                AICrawlEvent(
                    crawler_name=name,
                    user_agent=f"Mozilla/5.0 (compatible; {name}/1.0)",
                    path=f"/blog/{post.slug}" if on_post else rng.choice(["/", "/llms.txt"]),
                    slug=post.slug if on_post else None,
                    status_code=rng.choice([200, 200, 200, 404]),
                    created_at=when,
                )
            )
            crawls += 1

    print(f"Created {views} page views, {clicks} CTA clicks, {crawls} crawls")


if __name__ == "__main__":
    seed()

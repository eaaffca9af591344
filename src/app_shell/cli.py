import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path

from src.adapters.clock import SystemClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite_db import SQLiteAnalyticsRepo, SQLiteContentCatalog, SQLiteCrawlRepo
from src.api.auth_utils import create_access_token
from src.api.deps import Settings
from src.api.routes.admin_analytics import to_ai_analytics_response, to_analytics_response
from src.components.analytics import (
    QueryCrawlsInput,
    QueryViewsInput,
    run_query_crawls,
    run_query_views,
)
from src.rules.configs import build_aggregation_config, build_crawl_aggregation_config
from src.rules.loader import load_rules
from src.rules.models import Rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")


def get_rules(settings: Settings) -> Rules:
    if not settings.rules_path.exists():
        logger.error("Rules file %s not found.", settings.rules_path)
        sys.exit(1)
    return load_rules(settings.rules_path)


def resolve_window(args: argparse.Namespace, rules: Rules) -> int:
    if args.all_time:
        return rules.analytics.all_time_window_days
    if args.days is None:
        return rules.analytics.default_window_days
    if args.days < 0:
        logger.error("--days must be >= 0")
        sys.exit(2)
    return int(args.days)


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    Path(settings.db_path).parent.mkdir(parents=True, exist_ok=True)
    migrator = SQLiteMigrator(settings.db_path, str(settings.migrations_dir))

    if args.rollback:
        reverted = migrator.rollback_last()
        if reverted is None:
            print("Nothing to roll back.")
        else:
            print(f"Reverted {reverted}.")
        return

    applied = migrator.run_migrations()
    print(f"Applied {len(applied)} migration(s) to {settings.db_path}.")


def handle_token(settings: Settings, rules: Rules, args: argparse.Namespace) -> None:
    ttl = args.ttl_minutes or rules.auth.token_ttl_minutes
    token = create_access_token(
        {"sub": args.subject},
        expires_delta=timedelta(minutes=ttl),
        secret_key=settings.secret_key,
        algorithm=rules.auth.token_algorithm,
    )
    print(token)


def handle_report(settings: Settings, rules: Rules, args: argparse.Namespace) -> None:
    output = run_query_views(
        QueryViewsInput(window_days=resolve_window(args, rules)),
        repo=SQLiteAnalyticsRepo(settings.db_path),
        catalog=SQLiteContentCatalog(settings.db_path),
        time_port=SystemClock(),
        config=build_aggregation_config(rules),
    )
    if not output.success:
        logger.error("Report failed: %s", ", ".join(e.message for e in output.errors))
        sys.exit(1)
    print(to_analytics_response(output).model_dump_json(by_alias=True, indent=2))


def handle_crawl_report(settings: Settings, rules: Rules, args: argparse.Namespace) -> None:
    output = run_query_crawls(
        QueryCrawlsInput(window_days=resolve_window(args, rules)),
        repo=SQLiteCrawlRepo(settings.db_path),
        catalog=SQLiteContentCatalog(settings.db_path),
        time_port=SystemClock(),
        config=build_crawl_aggregation_config(rules),
    )
    if not output.success:
        logger.error("Crawl report failed: %s", ", ".join(e.message for e in output.errors))
        sys.exit(1)
    print(to_ai_analytics_response(output).model_dump_json(by_alias=True, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Blog Analytics CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Apply pending SQL migrations")
    migrate_parser.add_argument(
        "--rollback", action="store_true", help="Revert the most recent migration"
    )

    # token
    token_parser = subparsers.add_parser("token", help="Mint a dashboard bearer token")
    token_parser.add_argument("--subject", default="admin", help="Token subject (sub claim)")
    token_parser.add_argument("--ttl-minutes", type=int, help="Token lifetime in minutes")

    # report / crawl-report
    for name, help_text in (
        ("report", "Print the page view / CTA report as JSON"),
        ("crawl-report", "Print the AI crawler report as JSON"),
    ):
        report_parser = subparsers.add_parser(name, help=help_text)
        window = report_parser.add_mutually_exclusive_group()
        window.add_argument("--days", type=int, help="Window size in days")
        window.add_argument("--all-time", action="store_true", help="Use the all-time window")

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = Settings()

    if args.command == "migrate":
        handle_migrate(settings, args)
        return

    rules = get_rules(settings)

    if args.command == "token":
        handle_token(settings, rules, args)
    elif args.command == "report":
        handle_report(settings, rules, args)
    elif args.command == "crawl-report":
        handle_crawl_report(settings, rules, args)


if __name__ == "__main__":
    main()

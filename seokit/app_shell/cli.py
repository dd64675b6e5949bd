import argparse
import logging
import sys
from pathlib import Path

from seokit.adapters.clock import SystemClock
from seokit.adapters.dev_jobs import create_rebuild_runner
from seokit.adapters.sqlite.migrator import SQLiteMigrator
from seokit.adapters.sqlite_db import (
    SQLiteContentInventory,
    SQLiteRebuildQueue,
    SQLiteRuleStore,
    SQLiteSitemapCacheStore,
)
from seokit.api.deps import Settings
from seokit.components.redirects import RedirectService
from seokit.components.redirects import build_config as build_redirect_config
from seokit.components.sitemap import SitemapCache, create_sitemap_cache
from seokit.rules.loader import load_rules
from seokit.rules.models import Rules

logger = logging.getLogger("cli")


def get_rules(rules_path: Path) -> Rules:
    if not rules_path.exists():
        logger.error("Rules file %s not found.", rules_path)
        sys.exit(1)
    return load_rules(rules_path)


def build_cache(db_path: str, rules: Rules) -> tuple[SitemapCache, SQLiteRebuildQueue]:
    clock = SystemClock()
    queue = SQLiteRebuildQueue(db_path, time_port=clock)
    cache = create_sitemap_cache(
        inventory=SQLiteContentInventory(db_path),
        store=SQLiteSitemapCacheStore(db_path),
        queue=queue,
        rules=rules,
        time_port=clock,
    )
    return cache, queue


def handle_migrate(args: argparse.Namespace) -> int:
    applied = SQLiteMigrator(args.db).run_migrations()
    print(f"Applied {len(applied)} migrations.")
    return 0


def handle_list_redirects(args: argparse.Namespace) -> int:
    rules = get_rules(args.rules)
    service = RedirectService(SQLiteRuleStore(args.db), build_redirect_config(rules))
    for rule in service.list_all():
        kind = "regex" if rule.is_regex else "exact"
        print(
            f"{rule.id}\t{rule.status_code}\t{kind}\t{rule.source}\t"
            f"{rule.destination or '-'}\t{rule.hit_count}"
        )
    return 0


def handle_add_redirect(args: argparse.Namespace) -> int:
    rules = get_rules(args.rules)
    service = RedirectService(SQLiteRuleStore(args.db), build_redirect_config(rules))
    rule, errors = service.add_rule(
        args.source, args.destination, args.status, is_regex=args.regex
    )
    if rule is None:
        for error in errors:
            logger.error("%s: %s", error.code, error.message)
        return 1
    print(f"Created redirect {rule.id}: {rule.source} -> {rule.destination or '-'}")
    return 0


def handle_rebuild_sitemaps(args: argparse.Namespace) -> int:
    rules = get_rules(args.rules)
    cache, queue = build_cache(args.db, rules)

    if args.all:
        queued = cache.schedule_all()
        logger.info("Queued %d sitemap rebuilds", queued)

    runner = create_rebuild_runner(
        queue,
        cache,
        max_attempts=rules.sitemap.rebuild_max_attempts,
        retry_delay_seconds=rules.sitemap.rebuild_retry_delay_seconds,
    )
    result = runner.run_pending(max_jobs=args.max_jobs)
    print(
        f"Processed {result.total_processed} rebuilds: {result.succeeded} succeeded, "
        f"{result.failed} failed, {result.skipped} skipped."
    )
    return 1 if result.failed else 0


def handle_clear_sitemaps(args: argparse.Namespace) -> int:
    rules = get_rules(args.rules)
    cache, _ = build_cache(args.db, rules)
    removed = cache.clear_all()
    print(f"Removed {removed} cached sitemap entries.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = Settings()
    parser = argparse.ArgumentParser(description="seokit CLI")
    parser.add_argument("--db", default=settings.db_path, help="SQLite database path")
    parser.add_argument(
        "--rules", type=Path, default=settings.rules_path, help="Rules YAML path"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    # list-redirects
    subparsers.add_parser("list-redirects", help="List redirect rules, newest first")

    # add-redirect
    add_parser = subparsers.add_parser("add-redirect", help="Create a redirect rule")
    add_parser.add_argument("source", help="Literal path or regex pattern")
    add_parser.add_argument("destination", nargs="?", default="", help="Target URL")
    add_parser.add_argument("--status", type=int, default=301, help="301, 302, 307 or 410")
    add_parser.add_argument("--regex", action="store_true", help="Source is a regex")

    # rebuild-sitemaps
    rebuild_parser = subparsers.add_parser(
        "rebuild-sitemaps", help="Run queued sitemap rebuilds once"
    )
    rebuild_parser.add_argument(
        "--all", action="store_true", help="Queue the index and every page before running"
    )
    rebuild_parser.add_argument("--max-jobs", type=int, default=100)

    # clear-sitemaps
    subparsers.add_parser("clear-sitemaps", help="Drop every cached sitemap")

    return parser


HANDLERS = {
    "migrate": handle_migrate,
    "list-redirects": handle_list_redirects,
    "add-redirect": handle_add_redirect,
    "rebuild-sitemaps": handle_rebuild_sitemaps,
    "clear-sitemaps": handle_clear_sitemaps,
}


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)
    return HANDLERS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())

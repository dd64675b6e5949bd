import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, Request

from seokit.adapters.clock import SystemClock
from seokit.adapters.sqlite_db import (
    SQLiteContentInventory,
    SQLiteRebuildQueue,
    SQLiteRuleStore,
    SQLiteSitemapCacheStore,
)
from seokit.components.redirects import RedirectResolver, RedirectService
from seokit.components.redirects import build_config as build_redirect_config
from seokit.components.sitemap import SitemapCache, create_sitemap_cache
from seokit.core.ports.time import TimePort
from seokit.rules.loader import load_rules
from seokit.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("SEOKIT_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "seokit.db")
        self.rules_path = Path(
            os.environ.get("SEOKIT_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


def get_clock() -> TimePort:
    return SystemClock()


# --- Repos ---
def get_rule_store(settings: Settings = Depends(get_settings)) -> SQLiteRuleStore:
    return SQLiteRuleStore(settings.db_path)


def get_inventory(settings: Settings = Depends(get_settings)) -> SQLiteContentInventory:
    return SQLiteContentInventory(settings.db_path)


def get_cache_store(settings: Settings = Depends(get_settings)) -> SQLiteSitemapCacheStore:
    return SQLiteSitemapCacheStore(settings.db_path)


def get_rebuild_queue(
    settings: Settings = Depends(get_settings),
    clock: TimePort = Depends(get_clock),
) -> SQLiteRebuildQueue:
    return SQLiteRebuildQueue(settings.db_path, time_port=clock)


# --- Component Services ---
def get_redirect_service(
    store: SQLiteRuleStore = Depends(get_rule_store),
    rules: Rules = Depends(get_rules),
) -> RedirectService:
    """Get redirects component write-path service."""
    return RedirectService(store, build_redirect_config(rules))


def get_redirect_resolver(
    store: SQLiteRuleStore = Depends(get_rule_store),
    rules: Rules = Depends(get_rules),
) -> RedirectResolver:
    return RedirectResolver(store, build_redirect_config(rules))


def get_sitemap_cache(
    inventory: SQLiteContentInventory = Depends(get_inventory),
    store: SQLiteSitemapCacheStore = Depends(get_cache_store),
    queue: SQLiteRebuildQueue = Depends(get_rebuild_queue),
    rules: Rules = Depends(get_rules),
    clock: TimePort = Depends(get_clock),
) -> SitemapCache:
    """Get sitemap cache wired to SQLite stores."""
    return create_sitemap_cache(
        inventory=inventory,
        store=store,
        queue=queue,
        rules=rules,
        time_port=clock,
    )


# --- Middleware access ---
def resolver_for_request(request: Request) -> RedirectResolver:
    """
    Resolver for code running outside dependency injection (middleware).

    Honors app.dependency_overrides for get_redirect_resolver.
    """
    override = request.app.dependency_overrides.get(get_redirect_resolver)
    if override is not None:
        return override()

    settings = get_settings()
    return RedirectResolver(
        SQLiteRuleStore(settings.db_path),
        build_redirect_config(get_rules(settings)),
    )

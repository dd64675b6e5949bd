import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from seokit.adapters.clock import SystemClock
from seokit.adapters.dev_jobs import create_rebuild_runner, create_rebuild_scheduler
from seokit.adapters.sqlite.migrator import SQLiteMigrator
from seokit.adapters.sqlite_db import (
    SQLiteContentInventory,
    SQLiteRebuildQueue,
    SQLiteSitemapCacheStore,
)
from seokit.api.deps import get_settings, resolver_for_request
from seokit.api.routes import admin_redirects, admin_sitemaps, public_sitemaps
from seokit.api.routes.public_redirects import RedirectMiddleware
from seokit.components.sitemap import create_sitemap_cache
from seokit.rules.loader import load_rules
from seokit.shell.http.health import (
    DatabaseCheck,
    HealthCheckRegistry,
    RebuildSchedulerCheck,
    create_health_router,
)

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

health_registry = HealthCheckRegistry()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load rules, migrate the database and start the rebuild scheduler."""
    settings = get_settings()

    # Fail fast on a bad rules file
    try:
        rules = load_rules(settings.rules_path)
        logger.info("Rules loaded from %s", settings.rules_path)
    except Exception as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)

    migrator = SQLiteMigrator(settings.db_path)
    migrator.run_migrations()

    clock = SystemClock()
    queue = SQLiteRebuildQueue(settings.db_path, time_port=clock)
    cache = create_sitemap_cache(
        inventory=SQLiteContentInventory(settings.db_path),
        store=SQLiteSitemapCacheStore(settings.db_path),
        queue=queue,
        rules=rules,
        time_port=clock,
    )
    runner = create_rebuild_runner(
        queue,
        cache,
        max_attempts=rules.sitemap.rebuild_max_attempts,
        retry_delay_seconds=rules.sitemap.rebuild_retry_delay_seconds,
        time_port=clock,
    )
    scheduler = create_rebuild_scheduler(runner, rules.sitemap.rebuild_poll_seconds)

    health_registry.clear()
    health_registry.register(DatabaseCheck(migrator))
    health_registry.register(RebuildSchedulerCheck(scheduler, queue))

    scheduler.start()
    health_registry.mark_started()
    try:
        yield
    finally:
        scheduler.stop()


def create_app() -> FastAPI:
    app = FastAPI(
        title="seokit",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(RedirectMiddleware, get_resolver=resolver_for_request)

    # --- Routers ---
    app.include_router(create_health_router(VERSION, health_registry))
    app.include_router(admin_redirects.router, prefix="/api/admin", tags=["Admin Redirects"])
    app.include_router(admin_sitemaps.router, prefix="/api/admin", tags=["Admin Sitemaps"])
    app.include_router(public_sitemaps.router, tags=["Sitemaps"])

    return app


app = create_app()

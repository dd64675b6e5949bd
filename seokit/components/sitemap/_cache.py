"""
SitemapCache - two-tier stale-while-revalidate cache in front of the generator.

States per key:
- Cold (no tiers): generate synchronously, write both tiers, return
- Warm-fresh: return the fresh tier, no generation
- Warm-stale-only (fresh expired): return stale immediately and enqueue
  one background rebuild unless one is already pending
- Invalidated: content mutation for a type deletes both tiers for every
  page of that type and for the index

Bookkeeping failures (cache reads/writes, enqueue) are logged and the
request is still served.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from seokit.core.entities import INDEX_SCOPE, CacheKey, SitemapDocument
from seokit.core.ports.db import SitemapCacheStorePort
from seokit.core.ports.jobs import RebuildQueuePort
from seokit.core.ports.time import TimePort

from ._impl import SitemapGenerator

logger = logging.getLogger(__name__)


class SitemapCache:
    """Serves sitemap documents without blocking on regeneration."""

    def __init__(
        self,
        store: SitemapCacheStorePort,
        generator: SitemapGenerator,
        queue: RebuildQueuePort,
        time_port: TimePort | None = None,
    ) -> None:
        self._store = store
        self._generator = generator
        self._queue = queue
        self._time_port = time_port

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    @property
    def ttl_seconds(self) -> int:
        return self._generator.config.cache_ttl_seconds

    def eligible_types(self) -> list[str]:
        return self._generator.eligible_types()

    def is_servable(self, scope: str) -> bool:
        """Whether a scope may be served at all (enabled, known, not excluded)."""
        if not self._generator.config.enabled:
            return False
        return scope == INDEX_SCOPE or self._generator.is_eligible_type(scope)

    def get(self, scope: str, page: int = 1) -> SitemapDocument | None:
        """
        Read a sitemap document.

        Returns:
            The document, or None when the scope is not servable or the
            page has no eligible items (caller answers 404)
        """
        if page < 1 or not self.is_servable(scope):
            return None

        key = CacheKey(scope, page)
        now = self._now()

        fresh = self._read(key, lambda: self._store.get_fresh(key, now))
        if fresh is not None:
            return fresh

        stale = self._read(key, lambda: self._store.get_stale(key))
        if stale is not None:
            self.schedule_rebuild(key)
            return stale

        document = self._generator.generate(key)
        if document is None:
            return None

        try:
            self._store.put(key, document, self._expiry(now))
        except Exception:
            logger.warning("Sitemap cache write failed for %s", key, exc_info=True)
        return document

    def schedule_rebuild(self, key: CacheKey) -> bool:
        """Enqueue a background rebuild unless one is pending."""
        try:
            scheduled = self._queue.schedule_if_absent(key)
        except Exception:
            logger.warning("Could not schedule sitemap rebuild for %s", key, exc_info=True)
            return False
        if scheduled:
            logger.debug("Scheduled sitemap rebuild for %s", key)
        return scheduled

    def schedule_all(self) -> int:
        """Enqueue a rebuild of the index and of every page of every eligible type."""
        keys = [CacheKey(INDEX_SCOPE, 1)]
        for content_type in self._generator.eligible_types():
            pages = self._generator.total_pages(content_type)
            keys.extend(CacheKey(content_type, page) for page in range(1, pages + 1))
        return sum(1 for key in keys if self.schedule_rebuild(key))

    def rebuild(self, scope: str, page: int = 1) -> SitemapDocument | None:
        """
        Regenerate one key and rewrite both tiers. Idempotent.

        A key that no longer has content is dropped from the cache.
        Store failures propagate so the job runner can retry.
        """
        key = CacheKey(scope, page)
        document = None
        if self.is_servable(scope):
            document = self._generator.generate(key)

        if document is None:
            self._store.delete_key(key)
            return None

        self._store.put(key, document, self._expiry(self._now()))
        return document

    def invalidate(self, content_type: str) -> int:
        """Drop both tiers for every page of the type and for the index."""
        removed = self._store.delete_scope(content_type)
        removed += self._store.delete_scope(INDEX_SCOPE)
        logger.info("Sitemap cache invalidated for %s (%d entries)", content_type, removed)
        return removed

    def clear_all(self) -> int:
        """Drop every cached sitemap and every pending rebuild."""
        removed = self._store.clear()
        jobs = self._queue.clear()
        logger.info("Sitemap cache cleared (%d entries, %d pending jobs)", removed, jobs)
        return removed

    def _expiry(self, now: datetime) -> datetime:
        return now + timedelta(seconds=self.ttl_seconds)

    def _read(
        self,
        key: CacheKey,
        fetch: Callable[[], SitemapDocument | None],
    ) -> SitemapDocument | None:
        try:
            return fetch()
        except Exception:
            logger.warning("Sitemap cache read failed for %s", key, exc_info=True)
            return None

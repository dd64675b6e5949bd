"""
ContentEventHooks - host content events wired to redirects and sitemaps.

The host calls these after persisting a content change:
- on_item_saved(before, after): rename handling, then sitemap invalidation
- on_item_deleted(item): sitemap invalidation

Revisions are never public and are ignored. Hook failures are logged and
never propagate into the host's save path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from seokit.components.redirects import AutoRedirector
from seokit.components.sitemap import SitemapCache
from seokit.core.entities import InventoryItem, RedirectRule

logger = logging.getLogger(__name__)

REVISION_TYPE = "revision"


@dataclass
class SaveOutcome:
    """What the hooks did for one save event."""

    redirect: RedirectRule | None = None
    invalidated: tuple[str, ...] = ()


class ContentEventHooks:
    """Reacts to content saves and deletes."""

    def __init__(
        self,
        auto_redirector: AutoRedirector | None,
        cache: SitemapCache | None,
    ) -> None:
        self._auto = auto_redirector
        self._cache = cache

    def on_item_saved(
        self,
        before: InventoryItem | None,
        after: InventoryItem,
    ) -> SaveOutcome:
        if after.content_type == REVISION_TYPE:
            return SaveOutcome()

        redirect = None
        if before is not None and self._auto is not None:
            try:
                redirect = self._auto.on_rename(
                    after.id,
                    before.address,
                    after.address,
                    before.status,
                    after.status,
                )
            except Exception:
                logger.exception("Auto-redirect failed for item %s", after.id)

        types = [after.content_type]
        if before is not None and before.content_type not in types:
            types.append(before.content_type)

        return SaveOutcome(redirect=redirect, invalidated=self._invalidate(types))

    def on_item_deleted(self, item: InventoryItem) -> tuple[str, ...]:
        if item.content_type == REVISION_TYPE:
            return ()
        return self._invalidate([item.content_type])

    def _invalidate(self, content_types: list[str]) -> tuple[str, ...]:
        if self._cache is None:
            return ()
        done: list[str] = []
        for content_type in content_types:
            try:
                self._cache.invalidate(content_type)
                done.append(content_type)
            except Exception:
                logger.exception("Sitemap invalidation failed for %s", content_type)
        return tuple(done)

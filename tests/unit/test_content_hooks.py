"""
Tests for ContentEventHooks wiring content saves to redirects and sitemaps.
"""

from __future__ import annotations

import pytest
from conftest import (
    InMemoryCacheStore,
    InMemoryInventory,
    InMemoryRebuildQueue,
    InMemoryRuleStore,
    make_item,
)

from seokit.adapters.clock import FrozenClock
from seokit.components.redirects import AutoRedirector, RedirectConfig, RedirectService
from seokit.components.sitemap import SitemapCache, SitemapConfig, SitemapGenerator
from seokit.core.entities import CacheKey
from seokit.shell.hooks.content_hooks import ContentEventHooks


@pytest.fixture
def cache(
    inventory: InMemoryInventory,
    cache_store: InMemoryCacheStore,
    rebuild_queue: InMemoryRebuildQueue,
    clock: FrozenClock,
) -> SitemapCache:
    generator = SitemapGenerator(inventory, SitemapConfig(base_url="https://example.com"), clock)
    return SitemapCache(cache_store, generator, rebuild_queue, clock)


@pytest.fixture
def hooks(rule_store: InMemoryRuleStore, cache: SitemapCache) -> ContentEventHooks:
    service = RedirectService(rule_store, RedirectConfig(base_url="https://example.com"))
    return ContentEventHooks(AutoRedirector(service), cache)


def _warm(cache: SitemapCache, inventory: InMemoryInventory) -> None:
    inventory.add_many("post", 3)
    inventory.add_many("page", 2)
    cache.get("index")
    cache.get("post")
    cache.get("page")


class TestOnItemSaved:
    """Save events."""

    def test_rename_creates_redirect_and_invalidates(
        self,
        hooks: ContentEventHooks,
        cache: SitemapCache,
        inventory: InMemoryInventory,
        cache_store: InMemoryCacheStore,
    ) -> None:
        _warm(cache, inventory)
        before = make_item("post-00000", "post", "/post/0")
        after = make_item("post-00000", "post", "/post/zero")

        outcome = hooks.on_item_saved(before, after)

        assert outcome.redirect is not None
        assert outcome.redirect.source == "/post/0"
        assert outcome.invalidated == ("post",)
        assert cache_store.get_stale(CacheKey("post")) is None
        assert cache_store.get_stale(CacheKey("index")) is None
        assert cache_store.get_stale(CacheKey("page")) is not None

    def test_new_item_only_invalidates(
        self, hooks: ContentEventHooks, rule_store: InMemoryRuleStore
    ) -> None:
        outcome = hooks.on_item_saved(None, make_item("1", "post"))

        assert outcome.redirect is None
        assert outcome.invalidated == ("post",)
        assert rule_store.rules == {}

    def test_type_change_invalidates_both_types(self, hooks: ContentEventHooks) -> None:
        outcome = hooks.on_item_saved(
            make_item("1", "post", "/x"), make_item("1", "page", "/x")
        )
        assert outcome.invalidated == ("page", "post")

    def test_revisions_are_ignored(
        self, hooks: ContentEventHooks, rule_store: InMemoryRuleStore
    ) -> None:
        outcome = hooks.on_item_saved(
            make_item("9", "revision", "/a"), make_item("9", "revision", "/b")
        )

        assert outcome.redirect is None
        assert outcome.invalidated == ()
        assert rule_store.rules == {}

    def test_redirect_failure_does_not_block_invalidation(
        self, cache: SitemapCache
    ) -> None:
        class ExplodingRedirector:
            def on_rename(self, *args: object) -> None:
                raise RuntimeError("store down")

        hooks = ContentEventHooks(ExplodingRedirector(), cache)  # type: ignore[arg-type]

        outcome = hooks.on_item_saved(make_item("1", "post", "/a"), make_item("1", "post", "/b"))

        assert outcome.redirect is None
        assert outcome.invalidated == ("post",)


class TestOnItemDeleted:
    """Delete events."""

    def test_delete_invalidates_type(
        self,
        hooks: ContentEventHooks,
        cache: SitemapCache,
        inventory: InMemoryInventory,
        cache_store: InMemoryCacheStore,
    ) -> None:
        _warm(cache, inventory)

        assert hooks.on_item_deleted(make_item("post-00001", "post")) == ("post",)
        assert cache_store.get_stale(CacheKey("post")) is None

    def test_without_cache(self) -> None:
        hooks = ContentEventHooks(None, None)
        assert hooks.on_item_deleted(make_item("1")) == ()

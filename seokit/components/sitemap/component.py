"""
Sitemap component - XML sitemaps behind a stale-while-revalidate cache.

Invariants:
- I1: The index lists exactly the non-empty pages of each eligible type
- I2: A page never holds more than `urls_per_page` URLs
- I3: Output is byte-identical for unchanged inventory
- I4: A fresh hit never regenerates; a stale hit regenerates off-request
- I5: Invalidating a type drops its pages and the index
"""

from __future__ import annotations

from seokit.core.ports.db import ContentInventoryPort, SitemapCacheStorePort
from seokit.core.ports.jobs import RebuildQueuePort
from seokit.core.ports.time import TimePort
from seokit.rules.models import Rules

from ._cache import SitemapCache
from ._impl import SitemapConfig, SitemapGenerator, sitemap_headers
from .models import (
    CacheOpOutput,
    ClearInput,
    GetSitemapInput,
    InvalidateInput,
    RebuildInput,
    SitemapOutput,
)


def build_config(rules: Rules | None) -> SitemapConfig:
    """Build sitemap config from loaded rules."""
    if rules is None:
        return SitemapConfig()

    return SitemapConfig(
        base_url=rules.site.base_url,
        enabled=rules.sitemap.enabled,
        max_age_months=rules.sitemap.max_age_months,
        exclude_types=tuple(rules.sitemap.exclude_types),
        urls_per_page=rules.sitemap.urls_per_page,
        cache_ttl_seconds=rules.sitemap.cache_ttl_seconds,
    )


def create_sitemap_cache(
    *,
    inventory: ContentInventoryPort,
    store: SitemapCacheStorePort,
    queue: RebuildQueuePort,
    rules: Rules | None = None,
    time_port: TimePort | None = None,
) -> SitemapCache:
    """Wire a generator and cache from ports and rules."""
    generator = SitemapGenerator(inventory, build_config(rules), time_port)
    return SitemapCache(store, generator, queue, time_port)


# --- Component Entry Points ---


def run_get(inp: GetSitemapInput, *, cache: SitemapCache) -> SitemapOutput:
    """Read a sitemap document with its HTTP headers."""
    document = cache.get(inp.scope, inp.page)
    if document is None:
        return SitemapOutput(document=None)
    return SitemapOutput(
        document=document,
        headers=sitemap_headers(document, cache.ttl_seconds),
    )


def run_invalidate(inp: InvalidateInput, *, cache: SitemapCache) -> CacheOpOutput:
    """Drop a type's cached pages and the index."""
    return CacheOpOutput(removed=cache.invalidate(inp.content_type))


def run_clear(inp: ClearInput, *, cache: SitemapCache) -> CacheOpOutput:
    """Drop every cached sitemap."""
    return CacheOpOutput(removed=cache.clear_all())


def run_rebuild(inp: RebuildInput, *, cache: SitemapCache) -> CacheOpOutput:
    """Regenerate one key now."""
    document = cache.rebuild(inp.scope, inp.page)
    return CacheOpOutput(rebuilt=document is not None)


def run(
    inp: GetSitemapInput | InvalidateInput | ClearInput | RebuildInput,
    *,
    cache: SitemapCache,
) -> SitemapOutput | CacheOpOutput:
    """
    Main entry point for the sitemap component.

    Dispatches to the appropriate handler based on input type.
    """
    if isinstance(inp, GetSitemapInput):
        return run_get(inp, cache=cache)
    elif isinstance(inp, InvalidateInput):
        return run_invalidate(inp, cache=cache)
    elif isinstance(inp, ClearInput):
        return run_clear(inp, cache=cache)
    elif isinstance(inp, RebuildInput):
        return run_rebuild(inp, cache=cache)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")

"""
Sitemap component - index and per-type XML sitemaps with two-tier caching.
"""

from seokit.core.ports.db import ContentInventoryPort, SitemapCacheStorePort

from ._cache import SitemapCache
from ._impl import (
    ATTACHMENT_TYPE,
    SITEMAP_NS,
    SitemapConfig,
    SitemapGenerator,
    format_http_date,
    format_lastmod,
    parse_sitemap_name,
    sitemap_headers,
    sitemap_path,
    subtract_months,
)
from .component import (
    build_config,
    create_sitemap_cache,
    run,
    run_clear,
    run_get,
    run_invalidate,
    run_rebuild,
)
from .models import (
    CacheOpOutput,
    ClearInput,
    GetSitemapInput,
    InvalidateInput,
    RebuildInput,
    SitemapOutput,
)

__all__ = [
    # Entry points
    "run",
    "run_clear",
    "run_get",
    "run_invalidate",
    "run_rebuild",
    "build_config",
    "create_sitemap_cache",
    # Input models
    "ClearInput",
    "GetSitemapInput",
    "InvalidateInput",
    "RebuildInput",
    # Output models
    "CacheOpOutput",
    "SitemapOutput",
    # Ports
    "ContentInventoryPort",
    "SitemapCacheStorePort",
    # Services
    "SitemapCache",
    "SitemapConfig",
    "SitemapGenerator",
    # Helpers
    "ATTACHMENT_TYPE",
    "SITEMAP_NS",
    "format_http_date",
    "format_lastmod",
    "parse_sitemap_name",
    "sitemap_headers",
    "sitemap_path",
    "subtract_months",
]

"""
Admin sitemap cache routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from seokit.api.deps import get_sitemap_cache
from seokit.components.sitemap import (
    ClearInput,
    InvalidateInput,
    SitemapCache,
    run_clear,
    run_invalidate,
)

router = APIRouter()


@router.post("/sitemaps/invalidate/{content_type}")
def invalidate_sitemaps(
    content_type: str,
    cache: SitemapCache = Depends(get_sitemap_cache),
) -> dict[str, int | str]:
    """Drop cached pages of one type and the index."""
    result = run_invalidate(InvalidateInput(content_type=content_type), cache=cache)
    return {"content_type": content_type, "removed": result.removed}


@router.post("/sitemaps/clear")
def clear_sitemaps(cache: SitemapCache = Depends(get_sitemap_cache)) -> dict[str, int]:
    """Drop every cached sitemap and pending rebuild."""
    result = run_clear(ClearInput(), cache=cache)
    return {"removed": result.removed}

"""
Public sitemap routes.

- GET|HEAD /sitemap.xml: sitemap index
- GET|HEAD /sitemap-{name}.xml: one page of a type, where name is `<type>` or
  `<type>-<page>`

Unknown, excluded or empty pages answer 404 with an empty body.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from seokit.api.deps import get_sitemap_cache
from seokit.components.sitemap import (
    GetSitemapInput,
    SitemapCache,
    SitemapOutput,
    parse_sitemap_name,
    run_get,
)
from seokit.core.entities import INDEX_SCOPE

router = APIRouter()

XML_MEDIA_TYPE = "application/xml; charset=UTF-8"
# Crawlers probe sitemaps with HEAD before fetching
SITEMAP_METHODS = ["GET", "HEAD"]


def _xml_response(output: SitemapOutput) -> Response:
    if output.document is None:
        return Response(status_code=404)
    return Response(
        content=output.document.content,
        media_type=XML_MEDIA_TYPE,
        headers=output.headers,
    )


@router.api_route(
    "/sitemap.xml", methods=SITEMAP_METHODS, response_class=Response, summary="Sitemap index"
)
def sitemap_index(cache: SitemapCache = Depends(get_sitemap_cache)) -> Response:
    return _xml_response(run_get(GetSitemapInput(scope=INDEX_SCOPE), cache=cache))


@router.api_route(
    "/sitemap-{name}.xml",
    methods=SITEMAP_METHODS,
    response_class=Response,
    summary="Sitemap page",
)
def sitemap_page(
    name: str,
    cache: SitemapCache = Depends(get_sitemap_cache),
) -> Response:
    """Serve one page of a content type's sitemap."""
    key = parse_sitemap_name(name, cache.eligible_types())
    if key is None or key.is_index:
        return Response(status_code=404)
    return _xml_response(run_get(GetSitemapInput(scope=key.scope, page=key.page), cache=cache))

"""
Public redirect handling.

Every GET/HEAD request is checked against the redirect rules before
routing:
- Redirect -> RedirectResponse with the rule's status code
- Gone -> 410 with an empty body and no-cache headers
- NoMatch -> the request continues to the routes

Admin, health and docs paths are never redirected.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from seokit.components.redirects import Gone, Redirect, RedirectAction, RedirectResolver

logger = logging.getLogger(__name__)

RESOLVED_METHODS = frozenset({"GET", "HEAD"})
EXEMPT_PATHS = frozenset({"/api", "/health", "/docs", "/redoc", "/openapi.json"})

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, must-revalidate, max-age=0, no-store, private",
    "Expires": "Wed, 11 Jan 1984 05:00:00 GMT",
}


def is_exempt(path: str, exempt_paths: frozenset[str] = EXEMPT_PATHS) -> bool:
    """Whether the path is, or sits under, one of the exempt paths."""
    return any(path == p or path.startswith(p + "/") for p in exempt_paths)


def action_response(action: RedirectAction) -> Response | None:
    """HTTP response for a resolver action, or None to fall through."""
    if isinstance(action, Gone):
        return Response(status_code=410, headers=dict(NO_CACHE_HEADERS))
    if isinstance(action, Redirect):
        return RedirectResponse(url=action.destination, status_code=action.status_code)
    return None


class RedirectMiddleware(BaseHTTPMiddleware):
    """Applies redirect rules in front of the router."""

    def __init__(
        self,
        app: ASGIApp,
        get_resolver: Callable[[Request], RedirectResolver],
        exempt_paths: frozenset[str] = EXEMPT_PATHS,
    ) -> None:
        super().__init__(app)
        self._get_resolver = get_resolver
        self._exempt_paths = exempt_paths

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        path = request.url.path
        if request.method not in RESOLVED_METHODS or is_exempt(path, self._exempt_paths):
            return await call_next(request)

        resolver = self._get_resolver(request)
        action = await run_in_threadpool(resolver.resolve, path)
        response = action_response(action)
        if response is None:
            return await call_next(request)

        logger.debug("Redirect rule applied to %s: %s", path, action)
        return response

"""
HTTP surface tests: admin redirect routes, redirect middleware, public
sitemap routes and admin sitemap routes, all over in-memory ports.
"""

from __future__ import annotations

import pytest
from conftest import (
    InMemoryCacheStore,
    InMemoryInventory,
    InMemoryRebuildQueue,
    InMemoryRuleStore,
)
from fastapi.testclient import TestClient

from seokit.adapters.clock import FrozenClock
from seokit.api.deps import get_redirect_resolver, get_redirect_service, get_sitemap_cache
from seokit.api.main import create_app
from seokit.components.redirects import RedirectConfig, RedirectResolver, RedirectService
from seokit.components.sitemap import SitemapCache, SitemapConfig, SitemapGenerator


@pytest.fixture
def service(rule_store: InMemoryRuleStore) -> RedirectService:
    return RedirectService(rule_store, RedirectConfig(base_url="https://example.com"))


@pytest.fixture
def cache(
    inventory: InMemoryInventory,
    cache_store: InMemoryCacheStore,
    rebuild_queue: InMemoryRebuildQueue,
    clock: FrozenClock,
) -> SitemapCache:
    config = SitemapConfig(base_url="https://example.com", exclude_types=("product",))
    generator = SitemapGenerator(inventory, config, clock)
    return SitemapCache(cache_store, generator, rebuild_queue, clock)


@pytest.fixture
def client(
    rule_store: InMemoryRuleStore,
    service: RedirectService,
    cache: SitemapCache,
) -> TestClient:
    """Test client with dependency overrides (lifespan not started)."""
    app = create_app()
    app.dependency_overrides[get_redirect_service] = lambda: service
    app.dependency_overrides[get_redirect_resolver] = lambda: RedirectResolver(rule_store)
    app.dependency_overrides[get_sitemap_cache] = lambda: cache
    return TestClient(app)


# --- Admin redirects ---


class TestAdminRedirects:
    """Rule management routes."""

    def test_create(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects",
            json={"source": "old-page/", "destination": "/new-page", "status_code": 302},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["source"] == "/old-page"
        assert data["destination"] == "/new-page"
        assert data["status_code"] == 302
        assert data["is_regex"] is False
        assert data["hit_count"] == 0

    def test_create_gone_without_destination(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects", json={"source": "/removed", "status_code": 410}
        )

        assert response.status_code == 201
        assert response.json()["destination"] == ""

    def test_invalid_regex_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/admin/redirects",
            json={"source": "/blog/(\\d+", "destination": "/p/$1", "is_regex": True},
        )

        assert response.status_code == 400
        errors = response.json()["detail"]["errors"]
        assert errors[0]["code"] == "invalid_regex"
        assert errors[0]["field"] == "source"

    def test_missing_destination_rejected(self, client: TestClient) -> None:
        response = client.post("/api/admin/redirects", json={"source": "/x"})

        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == "destination_required"

    def test_duplicate_rejected(self, client: TestClient) -> None:
        client.post("/api/admin/redirects", json={"source": "/x", "destination": "/y"})
        response = client.post("/api/admin/redirects", json={"source": "/x/", "destination": "/z"})

        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == "source_exists"

    def test_list_get_lookup_delete(self, client: TestClient) -> None:
        created = client.post(
            "/api/admin/redirects", json={"source": "/a", "destination": "/b"}
        ).json()
        client.post("/api/admin/redirects", json={"source": "/c", "destination": "/d"})

        listing = client.get("/api/admin/redirects").json()
        assert listing["count"] == 2
        assert [r["source"] for r in listing["redirects"]] == ["/c", "/a"]

        assert client.get(f"/api/admin/redirects/{created['id']}").json() == created
        assert client.get("/api/admin/redirects/lookup", params={"source": "a/"}).json() == created
        assert client.get("/api/admin/redirects/lookup", params={"source": "/zz"}).status_code == 404

        assert client.delete(f"/api/admin/redirects/{created['id']}").json() == {"deleted": True}
        assert client.get(f"/api/admin/redirects/{created['id']}").status_code == 404
        assert client.delete(f"/api/admin/redirects/{created['id']}").status_code == 404

    def test_import(self, client: TestClient) -> None:
        client.post("/api/admin/redirects", json={"source": "/dup", "destination": "/y"})

        response = client.post(
            "/api/admin/redirects/import",
            json={
                "rules": [
                    {"source": "/one", "destination": "/1"},
                    {"source": "/dup", "destination": "/2"},
                    {"source": "/bad"},
                ]
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert (data["imported"], data["skipped"], data["failed"]) == (1, 1, 1)
        assert data["redirects"][0]["source"] == "/one"
        assert data["errors"][0]["code"] == "destination_required"


# --- Redirect middleware ---


class TestRedirectMiddleware:
    """Rules applied in front of routing."""

    def test_redirect(self, client: TestClient, service: RedirectService) -> None:
        service.add_rule("/old", "/new", 302)

        response = client.get("/old/", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/new"

    def test_regex_capture(self, client: TestClient, service: RedirectService) -> None:
        service.add_rule("/blog/(\\d+)", "/posts/$1", is_regex=True)

        response = client.get("/blog/42", follow_redirects=False)

        assert response.status_code == 301
        assert response.headers["location"] == "/posts/42"

    def test_gone(self, client: TestClient, service: RedirectService) -> None:
        service.add_rule("/removed", "", 410)

        response = client.get("/removed", follow_redirects=False)

        assert response.status_code == 410
        assert response.content == b""
        assert "no-cache" in response.headers["cache-control"]
        assert "location" not in response.headers

    def test_head_is_resolved(self, client: TestClient, service: RedirectService) -> None:
        service.add_rule("/old", "/new")
        assert client.head("/old", follow_redirects=False).status_code == 301

    def test_no_match_falls_through(self, client: TestClient) -> None:
        assert client.get("/nothing-here", follow_redirects=False).status_code == 404

    def test_post_is_not_resolved(self, client: TestClient, service: RedirectService) -> None:
        service.add_rule("/old", "/new")
        assert client.post("/old", follow_redirects=False).status_code != 301

    def test_hit_count(
        self, client: TestClient, service: RedirectService, rule_store: InMemoryRuleStore
    ) -> None:
        rule, _ = service.add_rule("/old", "/new")
        assert rule is not None

        client.get("/old", follow_redirects=False)
        client.get("/old", follow_redirects=False)

        stored = rule_store.get_by_id(rule.id)
        assert stored is not None
        assert stored.hit_count == 2

    def test_admin_and_health_paths_are_exempt(
        self, client: TestClient, service: RedirectService
    ) -> None:
        service.add_rule("/.*", "/catch-all", is_regex=True)

        assert client.get("/api/admin/redirects", follow_redirects=False).status_code == 200
        assert client.get("/health", follow_redirects=False).status_code == 200
        assert client.get("/healthy", follow_redirects=False).status_code == 301


# --- Public sitemaps ---


class TestPublicSitemaps:
    """Sitemap routes."""

    def test_index(self, client: TestClient, inventory: InMemoryInventory) -> None:
        inventory.add_many("post", 2)

        response = client.get("/sitemap.xml")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert response.headers["cache-control"] == "max-age=3600, public"
        assert response.headers["last-modified"] == "Mon, 15 Jun 2026 12:00:00 GMT"
        assert "<sitemapindex" in response.text
        assert "https://example.com/sitemap-post.xml" in response.text

    def test_type_page(self, client: TestClient, inventory: InMemoryInventory) -> None:
        inventory.add_many("post", 2)

        response = client.get("/sitemap-post.xml")

        assert response.status_code == 200
        assert response.text.count("<url>") == 2

    def test_paginated(self, client: TestClient, inventory: InMemoryInventory) -> None:
        inventory.add_many("post", 2500)

        assert client.get("/sitemap-post-3.xml").text.count("<url>") == 500
        missing = client.get("/sitemap-post-4.xml")
        assert missing.status_code == 404
        assert missing.content == b""

    def test_unknown_and_excluded_types(
        self, client: TestClient, inventory: InMemoryInventory
    ) -> None:
        inventory.add_many("product", 2)

        assert client.get("/sitemap-nope.xml").status_code == 404
        assert client.get("/sitemap-product.xml").status_code == 404
        assert client.get("/sitemap-index.xml").status_code == 404

    def test_second_read_is_cached(
        self,
        client: TestClient,
        inventory: InMemoryInventory,
        cache_store: InMemoryCacheStore,
    ) -> None:
        inventory.add_many("post", 1)

        client.get("/sitemap-post.xml")
        calls = inventory.page_calls
        client.get("/sitemap-post.xml")

        assert inventory.page_calls == calls
        assert ("post", 1, "fresh") in cache_store.entries

    def test_head_requests(self, client: TestClient, inventory: InMemoryInventory) -> None:
        inventory.add_many("post", 2)

        index = client.head("/sitemap.xml")
        page = client.head("/sitemap-post.xml")

        assert index.status_code == 200
        assert index.headers["content-type"].startswith("application/xml")
        assert index.headers["cache-control"] == "max-age=3600, public"
        assert page.status_code == 200
        assert client.head("/sitemap-nope.xml").status_code == 404


# --- Admin sitemaps ---


class TestAdminSitemaps:
    """Cache maintenance routes."""

    def test_invalidate(
        self,
        client: TestClient,
        inventory: InMemoryInventory,
        cache_store: InMemoryCacheStore,
    ) -> None:
        inventory.add_many("post", 1)
        client.get("/sitemap.xml")
        client.get("/sitemap-post.xml")

        response = client.post("/api/admin/sitemaps/invalidate/post")

        assert response.json() == {"content_type": "post", "removed": 4}
        assert cache_store.entries == {}

    def test_clear(
        self,
        client: TestClient,
        inventory: InMemoryInventory,
        rebuild_queue: InMemoryRebuildQueue,
    ) -> None:
        inventory.add_many("post", 1)
        client.get("/sitemap-post.xml")

        assert client.post("/api/admin/sitemaps/clear").json() == {"removed": 2}
        assert rebuild_queue.jobs == {}

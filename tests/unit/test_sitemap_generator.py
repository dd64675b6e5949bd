"""
Tests for SitemapGenerator rendering, eligibility and pagination, plus the
formatting and URL helpers.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from conftest import NOW, InMemoryInventory, make_item

from seokit.adapters.clock import FrozenClock
from seokit.components.sitemap import (
    SitemapConfig,
    SitemapGenerator,
    format_http_date,
    format_lastmod,
    parse_sitemap_name,
    sitemap_headers,
    sitemap_path,
    subtract_months,
)
from seokit.core.entities import CacheKey, SitemapDocument

BASE_URL = "https://example.com"


def _generator(
    inventory: InMemoryInventory,
    clock: FrozenClock,
    **overrides: object,
) -> SitemapGenerator:
    config = SitemapConfig(base_url=BASE_URL, **overrides)  # type: ignore[arg-type]
    return SitemapGenerator(inventory, config, clock)


class TestUrlset:
    """Per-type pages."""

    def test_exact_document(self, inventory: InMemoryInventory, clock: FrozenClock) -> None:
        inventory.add(make_item("1", "post", "/post/hello"))

        document = _generator(inventory, clock).generate_page("post", 1)

        assert document is not None
        assert document.content == (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
            "\t<url>\n"
            "\t\t<loc>https://example.com/post/hello</loc>\n"
            "\t\t<lastmod>2026-06-15T12:00:00+00:00</lastmod>\n"
            "\t</url>\n"
            "</urlset>"
        )
        assert document.last_modified == NOW

    def test_pagination(self, inventory: InMemoryInventory, clock: FrozenClock) -> None:
        inventory.add_many("post", 2500)
        generator = _generator(inventory, clock)

        counts = []
        for page in (1, 2, 3):
            document = generator.generate_page("post", page)
            assert document is not None
            counts.append(document.content.count("<url>"))

        assert counts == [1000, 1000, 500]
        assert generator.generate_page("post", 4) is None
        assert generator.total_pages("post") == 3

    def test_page_zero_is_none(self, inventory: InMemoryInventory, clock: FrozenClock) -> None:
        inventory.add_many("post", 1)
        assert _generator(inventory, clock).generate_page("post", 0) is None

    def test_newest_first_ties_by_id(
        self, inventory: InMemoryInventory, clock: FrozenClock
    ) -> None:
        older = NOW - timedelta(days=3)
        inventory.add(make_item("b", "post", "/b", older))
        inventory.add(make_item("a", "post", "/a", older))
        inventory.add(make_item("c", "post", "/c", NOW))

        document = _generator(inventory, clock).generate_page("post")

        assert document is not None
        locs = [
            line.strip()[5:-6] for line in document.content.splitlines() if "<loc>" in line
        ]
        assert locs == [f"{BASE_URL}/c", f"{BASE_URL}/a", f"{BASE_URL}/b"]

    def test_drafts_and_noindex_excluded(
        self, inventory: InMemoryInventory, clock: FrozenClock
    ) -> None:
        inventory.add(make_item("1", "post", "/live"))
        inventory.add(make_item("2", "post", "/draft", status="draft"))
        inventory.add(make_item("3", "post", "/hidden", noindex=True))

        document = _generator(inventory, clock).generate_page("post")

        assert document is not None
        assert "/live" in document.content
        assert "/draft" not in document.content
        assert "/hidden" not in document.content

    def test_freshness_window(self, inventory: InMemoryInventory, clock: FrozenClock) -> None:
        cutoff = datetime(2025, 12, 15, 12, 0, tzinfo=UTC)
        inventory.add(make_item("old", "post", "/old", cutoff - timedelta(seconds=1)))
        inventory.add(make_item("edge", "post", "/edge", cutoff))

        document = _generator(inventory, clock, max_age_months=6).generate_page("post")

        assert document is not None
        assert "/edge" in document.content
        assert "/old" not in document.content

    def test_absolute_address_kept_and_escaped(
        self, inventory: InMemoryInventory, clock: FrozenClock
    ) -> None:
        inventory.add(make_item("1", "post", "https://cdn.example.org/a?x=1&y=2"))

        document = _generator(inventory, clock).generate_page("post")

        assert document is not None
        assert "<loc>https://cdn.example.org/a?x=1&amp;y=2</loc>" in document.content

    def test_loc_uses_xml_entities(
        self, inventory: InMemoryInventory, clock: FrozenClock
    ) -> None:
        inventory.add(make_item("1", "post", "/rock-'n'-roll/\"live\""))

        document = _generator(inventory, clock).generate_page("post")

        assert document is not None
        assert "/rock-&apos;n&apos;-roll/&quot;live&quot;</loc>" in document.content
        assert "&#x27;" not in document.content

    def test_deterministic(self, inventory: InMemoryInventory, clock: FrozenClock) -> None:
        inventory.add_many("post", 30)
        generator = _generator(inventory, clock)

        assert generator.generate_page("post") == generator.generate_page("post")
        assert generator.generate_index() == generator.generate_index()


class TestIndex:
    """Sitemap index."""

    def test_lists_every_page_of_every_type(
        self, inventory: InMemoryInventory, clock: FrozenClock
    ) -> None:
        inventory.add_many("post", 2500)
        inventory.add_many("page", 10, modified_at=NOW - timedelta(days=1))

        document = _generator(inventory, clock).generate_index()

        assert document.content.count("<sitemap>") == 4
        assert f"<loc>{BASE_URL}/sitemap-page.xml</loc>" in document.content
        for page in (1, 2, 3):
            assert f"<loc>{BASE_URL}/sitemap-post-{page}.xml</loc>" in document.content
        assert f"{BASE_URL}/sitemap-post.xml" not in document.content
        assert document.last_modified == NOW

    def test_skips_empty_excluded_and_private_types(
        self, inventory: InMemoryInventory, clock: FrozenClock
    ) -> None:
        inventory.add_many("post", 2)
        inventory.add_many("attachment", 2)
        inventory.add_many("product", 2)
        inventory.add_many("secret", 2)
        inventory.register_type("secret", public=False)
        inventory.register_type("empty")

        generator = _generator(inventory, clock, exclude_types=("product",))
        document = generator.generate_index()

        assert document.content.count("<sitemap>") == 1
        assert "sitemap-post.xml" in document.content
        assert generator.eligible_types() == ["empty", "post"]
        assert generator.generate_page("empty") is None

    def test_index_with_no_content(
        self, inventory: InMemoryInventory, clock: FrozenClock
    ) -> None:
        document = _generator(inventory, clock).generate_index()

        assert "<sitemap>" not in document.content
        assert document.last_modified is None

    def test_generate_dispatches_on_key(
        self, inventory: InMemoryInventory, clock: FrozenClock
    ) -> None:
        inventory.add_many("post", 1)
        generator = _generator(inventory, clock)

        assert generator.generate(CacheKey("index")) == generator.generate_index()
        assert generator.generate(CacheKey("post", 1)) == generator.generate_page("post", 1)


class TestHelpers:
    """Formatting and parsing helpers."""

    def test_format_lastmod(self) -> None:
        moment = datetime(2024, 6, 15, 12, 30, 45, 123456, tzinfo=UTC)
        assert format_lastmod(moment) == "2024-06-15T12:30:45+00:00"
        assert format_lastmod(moment.replace(tzinfo=None)) == "2024-06-15T12:30:45+00:00"

    def test_format_http_date(self) -> None:
        assert format_http_date(NOW) == "Mon, 15 Jun 2026 12:00:00 GMT"

    @pytest.mark.parametrize(
        ("moment", "months", "expected"),
        [
            (datetime(2024, 3, 31, tzinfo=UTC), 1, datetime(2024, 2, 29, tzinfo=UTC)),
            (datetime(2024, 1, 15, tzinfo=UTC), 1, datetime(2023, 12, 15, tzinfo=UTC)),
            (datetime(2024, 6, 15, tzinfo=UTC), 18, datetime(2022, 12, 15, tzinfo=UTC)),
        ],
    )
    def test_subtract_months(self, moment: datetime, months: int, expected: datetime) -> None:
        assert subtract_months(moment, months) == expected

    def test_sitemap_path(self) -> None:
        assert sitemap_path("post") == "/sitemap-post.xml"
        assert sitemap_path("post", 2, 3) == "/sitemap-post-2.xml"

    def test_sitemap_headers(self) -> None:
        headers = sitemap_headers(SitemapDocument("<x/>", NOW), 3600)
        assert headers == {
            "Cache-Control": "max-age=3600, public",
            "Last-Modified": "Mon, 15 Jun 2026 12:00:00 GMT",
        }
        assert "Last-Modified" not in sitemap_headers(SitemapDocument("<x/>"), 60)

    @pytest.mark.parametrize(
        ("name", "known", "expected"),
        [
            ("post", ["post"], CacheKey("post", 1)),
            ("post-2", ["post"], CacheKey("post", 2)),
            ("post-0", ["post"], CacheKey("post", 1)),
            ("news-item-3", ["news-item"], CacheKey("news-item", 3)),
            ("top-10", ["top-10"], CacheKey("top-10", 1)),
            ("top-10-2", ["top-10"], CacheKey("top-10", 2)),
            ("unknown", ["post"], CacheKey("unknown", 1)),
            ("../etc", ["post"], None),
        ],
    )
    def test_parse_sitemap_name(
        self, name: str, known: list[str], expected: CacheKey | None
    ) -> None:
        assert parse_sitemap_name(name, known) == expected

"""
SitemapGenerator - renders the sitemap index and per-type pages.

Key behaviors:
- Eligible types: public, not excluded by config, never the attachment
  pseudo-type
- Eligible items: published, not flagged noindex and, when a freshness
  window is configured, modified within the last N months
- Pages hold at most `urls_per_page` items, newest modification first,
  ties broken by item id, so output is byte-stable for unchanged content
- An empty page renders as None (caller answers 404), never as an empty
  <urlset>
"""

from __future__ import annotations

import calendar
import math
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import format_datetime
from xml.sax.saxutils import escape

from seokit.core.entities import INDEX_SCOPE, CacheKey, InventoryItem, SitemapDocument
from seokit.core.ports.db import ContentInventoryPort, InventoryFilters
from seokit.core.ports.time import TimePort

ATTACHMENT_TYPE = "attachment"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
# Sitemap protocol entity escapes beyond &, < and >
_XML_ENTITIES = {"'": "&apos;", '"': "&quot;"}


# --- Configuration ---


@dataclass(frozen=True)
class SitemapConfig:
    """Sitemap configuration from rules."""

    base_url: str = "http://localhost"
    enabled: bool = True
    max_age_months: int = 0
    exclude_types: tuple[str, ...] = ()
    urls_per_page: int = 1000
    cache_ttl_seconds: int = 3600


DEFAULT_CONFIG = SitemapConfig()


# --- Formatting helpers ---


def format_lastmod(moment: datetime) -> str:
    """UTC ISO-8601 timestamp with explicit offset, e.g. 2024-06-15T12:00:00+00:00."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).replace(microsecond=0).isoformat()


def format_http_date(moment: datetime) -> str:
    """RFC 7231 date for the Last-Modified header."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return format_datetime(moment.astimezone(UTC), usegmt=True)


def subtract_months(moment: datetime, months: int) -> datetime:
    """Calendar-aware `moment - months`, clamping the day to the target month."""
    total = moment.year * 12 + (moment.month - 1) - months
    year, month_index = divmod(total, 12)
    month = month_index + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def sitemap_path(content_type: str, page: int = 1, total_pages: int = 1) -> str:
    """Unpaginated path when one page suffices, else the page-numbered path."""
    if total_pages > 1:
        return f"/sitemap-{content_type}-{page}.xml"
    return f"/sitemap-{content_type}.xml"


def sitemap_headers(document: SitemapDocument, ttl_seconds: int) -> dict[str, str]:
    """HTTP headers for a served sitemap."""
    headers = {"Cache-Control": f"max-age={ttl_seconds}, public"}
    if document.last_modified is not None:
        headers["Last-Modified"] = format_http_date(document.last_modified)
    return headers


def _absolute(address: str, base_url: str) -> str:
    if "://" in address:
        return address
    return base_url.rstrip("/") + "/" + address.lstrip("/")


# --- Generator ---


class SitemapGenerator:
    """Renders sitemap XML from the content inventory."""

    def __init__(
        self,
        inventory: ContentInventoryPort,
        config: SitemapConfig | None = None,
        time_port: TimePort | None = None,
    ) -> None:
        self._inventory = inventory
        self._config = config or DEFAULT_CONFIG
        self._time_port = time_port

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    @property
    def config(self) -> SitemapConfig:
        return self._config

    # --- Eligibility ---

    def eligible_types(self) -> list[str]:
        excluded = set(self._config.exclude_types) | {ATTACHMENT_TYPE, INDEX_SCOPE}
        return [t for t in self._inventory.public_types() if t not in excluded]

    def is_eligible_type(self, content_type: str) -> bool:
        return content_type in self.eligible_types()

    def filters(self) -> InventoryFilters:
        cutoff = None
        if self._config.max_age_months > 0:
            cutoff = subtract_months(self._now(), self._config.max_age_months)
        return InventoryFilters(modified_after=cutoff)

    def total_pages(self, content_type: str) -> int:
        count = self._inventory.count(content_type, self.filters())
        return math.ceil(count / self._config.urls_per_page)

    # --- Rendering ---

    def generate(self, key: CacheKey) -> SitemapDocument | None:
        if key.is_index:
            return self.generate_index()
        return self.generate_page(key.scope, key.page)

    def generate_index(self) -> SitemapDocument:
        filters = self.filters()
        lines = [XML_DECLARATION, f'<sitemapindex xmlns="{SITEMAP_NS}">']
        newest: datetime | None = None

        for content_type in self.eligible_types():
            total_pages = self.total_pages(content_type)
            if total_pages < 1:
                continue

            last_mod = self._inventory.most_recently_modified(content_type, filters)
            if last_mod is not None and (newest is None or last_mod > newest):
                newest = last_mod

            for page in range(1, total_pages + 1):
                loc = self._config.base_url + sitemap_path(content_type, page, total_pages)
                lines.append("\t<sitemap>")
                lines.append(f"\t\t<loc>{escape(loc, _XML_ENTITIES)}</loc>")
                if last_mod is not None:
                    lines.append(f"\t\t<lastmod>{format_lastmod(last_mod)}</lastmod>")
                lines.append("\t</sitemap>")

        lines.append("</sitemapindex>")
        return SitemapDocument(content="\n".join(lines), last_modified=newest)

    def generate_page(self, content_type: str, page: int = 1) -> SitemapDocument | None:
        if page < 1:
            return None

        items = list(
            self._inventory.page(
                content_type, self.filters(), page, self._config.urls_per_page
            )
        )
        if not items:
            return None

        lines = [XML_DECLARATION, f'<urlset xmlns="{SITEMAP_NS}">']
        for item in items:
            lines.extend(self._url_entry(item))
        lines.append("</urlset>")

        newest = max(item.last_modified_utc for item in items)
        return SitemapDocument(content="\n".join(lines), last_modified=newest)

    def _url_entry(self, item: InventoryItem) -> list[str]:
        loc = _absolute(item.address, self._config.base_url)
        return [
            "\t<url>",
            f"\t\t<loc>{escape(loc, _XML_ENTITIES)}</loc>",
            f"\t\t<lastmod>{format_lastmod(item.last_modified_utc)}</lastmod>",
            "\t</url>",
        ]


# --- URL parsing ---

_NAME_RE = re.compile(r"^[a-z0-9_-]+$")
_PAGED_NAME_RE = re.compile(r"^(?P<scope>[a-z0-9_-]+?)-(?P<page>\d+)$")


def parse_sitemap_name(name: str, known_types: Iterable[str]) -> CacheKey | None:
    """
    Split the `{name}` of /sitemap-{name}.xml into (type, page).

    A name that is itself a known type is never split, so hyphenated type
    names ending in digits stay addressable. Page numbers below 1 read as 1.
    """
    if not _NAME_RE.match(name):
        return None
    if name in set(known_types):
        return CacheKey(name, 1)

    paged = _PAGED_NAME_RE.match(name)
    if paged is None:
        return CacheKey(name, 1)
    return CacheKey(paged.group("scope"), max(1, int(paged.group("page"))))

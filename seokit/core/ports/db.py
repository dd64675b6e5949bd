"""
Storage interfaces (rule store, content inventory, sitemap cache).

Implementations: SQLite (seokit.adapters.sqlite_db), in-memory fakes in tests.

All mutation goes through single-row or single-key operations; no port
method requires a multi-row transaction.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from seokit.core.entities import (
    CacheKey,
    InventoryItem,
    RedirectRule,
    SitemapDocument,
)

# -----------------------------------------------------------------------------
# Rule Store
# -----------------------------------------------------------------------------


class DuplicateRuleError(Exception):
    """Raised by a store when a non-regex source is already taken."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"A rule for '{source}' already exists")


class RuleStorePort(Protocol):
    """
    Repository for redirect rules.

    Invariants:
    - ids are assigned on insert and increase with insertion order
    - hit_count changes only through increment_hits
    """

    def insert(
        self,
        source: str,
        destination: str,
        status_code: int,
        is_regex: bool,
    ) -> RedirectRule:
        """Insert a rule and return it with its assigned id."""
        ...

    def get_by_id(self, rule_id: int) -> RedirectRule | None:
        """Get rule by id."""
        ...

    def find_exact(self, source: str) -> RedirectRule | None:
        """Indexed point lookup of a non-regex rule by normalized source."""
        ...

    def find_by_source(self, source: str) -> RedirectRule | None:
        """First rule (regex or not) whose stored source equals `source`."""
        ...

    def list_regex(self) -> list[RedirectRule]:
        """Regex rules in insertion order."""
        ...

    def list_all(self) -> list[RedirectRule]:
        """All rules, newest first."""
        ...

    def increment_hits(self, rule_id: int) -> None:
        """Atomically add one to the rule's hit counter."""
        ...

    def delete(self, rule_id: int) -> bool:
        """Delete one rule; returns False if it did not exist."""
        ...


# -----------------------------------------------------------------------------
# Content Inventory (read-only collaborator)
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class InventoryFilters:
    """
    Eligibility filters for sitemap queries.

    published_only and exclude_noindex are always on for sitemaps;
    modified_after is the freshness cutoff (None = unlimited).
    """

    published_only: bool = True
    exclude_noindex: bool = True
    modified_after: datetime | None = None


class ContentInventoryPort(Protocol):
    """Read-only query surface over the host's content store."""

    def public_types(self) -> list[str]:
        """Names of public content types, in a stable order."""
        ...

    def count(self, content_type: str, filters: InventoryFilters) -> int:
        """Number of items of the type matching the filters."""
        ...

    def page(
        self,
        content_type: str,
        filters: InventoryFilters,
        page: int,
        page_size: int,
    ) -> Sequence[InventoryItem]:
        """
        One page of matching items, newest modification first, ties broken
        by item id ascending. Pages are 1-based.
        """
        ...

    def most_recently_modified(
        self,
        content_type: str,
        filters: InventoryFilters,
    ) -> datetime | None:
        """Newest modification time among matching items, or None."""
        ...


# -----------------------------------------------------------------------------
# Sitemap Cache backing store
# -----------------------------------------------------------------------------


class SitemapCacheStorePort(Protocol):
    """
    Two-tier key/value store for rendered sitemaps.

    The fresh tier carries an expiry and reads as absent once expired;
    the stale tier never expires.
    """

    def get_fresh(self, key: CacheKey, now_utc: datetime) -> SitemapDocument | None:
        ...

    def get_stale(self, key: CacheKey) -> SitemapDocument | None:
        ...

    def put(self, key: CacheKey, document: SitemapDocument, expires_at: datetime) -> None:
        """Write both tiers for the key."""
        ...

    def delete_scope(self, scope: str) -> int:
        """Delete both tiers for every page of the scope; returns rows removed."""
        ...

    def delete_key(self, key: CacheKey) -> None:
        ...

    def clear(self) -> int:
        ...

"""
Domain entities for seokit.

- RedirectRule: stored mapping from a request path to an HTTP outcome
- InventoryItem: one content record as seen by the sitemap
- SitemapDocument: a rendered sitemap body plus its freshness metadata
- RebuildJob: a pending background regeneration of one sitemap key
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

__all__ = [
    "INDEX_SCOPE",
    "PUBLISHED",
    "VALID_STATUS_CODES",
    "REDIRECT_STATUS_CODES",
    "CacheKey",
    "CacheTier",
    "InventoryItem",
    "RebuildJob",
    "RedirectRule",
    "SitemapDocument",
]

INDEX_SCOPE = "index"
PUBLISHED = "published"

VALID_STATUS_CODES = frozenset({301, 302, 307, 410})
REDIRECT_STATUS_CODES = frozenset({301, 302, 307})

CacheTier = Literal["fresh", "stale"]


# --- Redirects ---


class RedirectRule(BaseModel):
    """
    Redirect rule.

    Invariants:
    - non-regex sources are stored normalized (leading slash, no trailing
      slash except root)
    - destination may be empty only when status_code == 410
    - hit_count never decreases
    """

    id: int
    source: str
    destination: str = ""
    status_code: int = 301
    is_regex: bool = False
    hit_count: int = Field(default=0, ge=0)

    @property
    def is_gone(self) -> bool:
        return self.status_code == 410


# --- Content inventory ---


class InventoryItem(BaseModel):
    """Content record exposed by the inventory reader."""

    id: str
    content_type: str
    address: str
    status: str = PUBLISHED
    noindex: bool = False
    modified_at: datetime

    @property
    def last_modified_utc(self) -> datetime:
        if self.modified_at.tzinfo is None:
            return self.modified_at.replace(tzinfo=UTC)
        return self.modified_at.astimezone(UTC)


# --- Sitemap cache ---


@dataclass(frozen=True, order=True)
class CacheKey:
    """Cache/generation key: scope is "index" or a content type."""

    scope: str
    page: int = 1

    @property
    def is_index(self) -> bool:
        return self.scope == INDEX_SCOPE

    def __str__(self) -> str:
        return f"{self.scope}:{self.page}"


@dataclass(frozen=True)
class SitemapDocument:
    """Rendered sitemap XML with the newest eligible modification time."""

    content: str
    last_modified: datetime | None = None


@dataclass
class RebuildJob:
    """
    Pending background rebuild of one sitemap key.

    At most one row per key exists; duplicates collapse on insert.
    """

    scope: str
    page: int = 1
    attempts: int = 0
    claimed_by: str | None = None
    error_message: str | None = None
    # Earliest time a released job may be claimed again
    not_before: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def key(self) -> CacheKey:
        return CacheKey(self.scope, self.page)

"""
Sitemap component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from seokit.core.entities import INDEX_SCOPE, SitemapDocument

# --- Input Models ---


@dataclass(frozen=True)
class GetSitemapInput:
    """Input for reading the index or one page of a type's sitemap."""

    scope: str = INDEX_SCOPE
    page: int = 1


@dataclass(frozen=True)
class InvalidateInput:
    """Input for dropping a type's cached sitemaps (and the index)."""

    content_type: str


@dataclass(frozen=True)
class ClearInput:
    """Input for dropping every cached sitemap."""


@dataclass(frozen=True)
class RebuildInput:
    """Input for regenerating one key synchronously."""

    scope: str = INDEX_SCOPE
    page: int = 1


# --- Output Models ---


@dataclass(frozen=True)
class SitemapOutput:
    """Sitemap read result. `document` is None when there is nothing to serve."""

    document: SitemapDocument | None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.document is not None


@dataclass(frozen=True)
class CacheOpOutput:
    """Result of an invalidate/clear/rebuild call."""

    removed: int = 0
    rebuilt: bool = False

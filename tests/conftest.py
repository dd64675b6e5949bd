"""
Shared fixtures: in-memory port fakes, a frozen clock and a migrated
temporary SQLite database.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

import pytest

from seokit.adapters.clock import FrozenClock
from seokit.adapters.sqlite.migrator import SQLiteMigrator
from seokit.core.entities import (
    CacheKey,
    InventoryItem,
    RebuildJob,
    RedirectRule,
    SitemapDocument,
)
from seokit.core.ports.db import DuplicateRuleError, InventoryFilters

NOW = datetime(2026, 6, 15, 12, 0, 0, tzinfo=UTC)


# --- Rule store ---


class InMemoryRuleStore:
    """In-memory RuleStorePort."""

    def __init__(self) -> None:
        self.rules: dict[int, RedirectRule] = {}
        self._next_id = 1
        self.fail_increments = False

    def insert(
        self,
        source: str,
        destination: str,
        status_code: int,
        is_regex: bool,
    ) -> RedirectRule:
        if not is_regex and self.find_exact(source) is not None:
            raise DuplicateRuleError(source)
        return self.add_raw(source, destination, status_code, is_regex)

    def add_raw(
        self,
        source: str,
        destination: str = "",
        status_code: int = 301,
        is_regex: bool = False,
    ) -> RedirectRule:
        """Store a rule without any validation (simulates legacy rows)."""
        rule = RedirectRule(
            id=self._next_id,
            source=source,
            destination=destination,
            status_code=status_code,
            is_regex=is_regex,
        )
        self._next_id += 1
        self.rules[rule.id] = rule
        return rule

    def get_by_id(self, rule_id: int) -> RedirectRule | None:
        return self.rules.get(rule_id)

    def find_exact(self, source: str) -> RedirectRule | None:
        for rule in self._ordered():
            if rule.source == source and not rule.is_regex:
                return rule
        return None

    def find_by_source(self, source: str) -> RedirectRule | None:
        matches = [r for r in self._ordered() if r.source == source]
        matches.sort(key=lambda r: (r.is_regex, r.id))
        return matches[0] if matches else None

    def list_regex(self) -> list[RedirectRule]:
        return [r for r in self._ordered() if r.is_regex]

    def list_all(self) -> list[RedirectRule]:
        return list(reversed(self._ordered()))

    def increment_hits(self, rule_id: int) -> None:
        if self.fail_increments:
            raise RuntimeError("database is locked")
        rule = self.rules.get(rule_id)
        if rule is not None:
            self.rules[rule_id] = rule.model_copy(update={"hit_count": rule.hit_count + 1})

    def delete(self, rule_id: int) -> bool:
        return self.rules.pop(rule_id, None) is not None

    def _ordered(self) -> list[RedirectRule]:
        return [self.rules[i] for i in sorted(self.rules)]


# --- Content inventory ---


class InMemoryInventory:
    """In-memory ContentInventoryPort with call counting."""

    def __init__(self) -> None:
        self.types: dict[str, bool] = {}
        self.items: dict[str, InventoryItem] = {}
        self.page_calls = 0

    def register_type(self, name: str, public: bool = True) -> None:
        self.types[name] = public

    def add(self, item: InventoryItem) -> InventoryItem:
        self.types.setdefault(item.content_type, True)
        self.items[item.id] = item
        return item

    def add_many(
        self,
        content_type: str,
        count: int,
        modified_at: datetime = NOW,
    ) -> list[InventoryItem]:
        return [
            self.add(
                make_item(
                    f"{content_type}-{n:05d}",
                    content_type,
                    f"/{content_type}/{n}",
                    modified_at,
                )
            )
            for n in range(count)
        ]

    def public_types(self) -> list[str]:
        return sorted(name for name, public in self.types.items() if public)

    def count(self, content_type: str, filters: InventoryFilters) -> int:
        return len(self._matching(content_type, filters))

    def page(
        self,
        content_type: str,
        filters: InventoryFilters,
        page: int,
        page_size: int,
    ) -> Sequence[InventoryItem]:
        self.page_calls += 1
        start = (page - 1) * page_size
        return self._matching(content_type, filters)[start : start + page_size]

    def most_recently_modified(
        self,
        content_type: str,
        filters: InventoryFilters,
    ) -> datetime | None:
        items = self._matching(content_type, filters)
        return items[0].last_modified_utc if items else None

    def _matching(self, content_type: str, filters: InventoryFilters) -> list[InventoryItem]:
        items = [i for i in self.items.values() if i.content_type == content_type]
        if filters.published_only:
            items = [i for i in items if i.status == "published"]
        if filters.exclude_noindex:
            items = [i for i in items if not i.noindex]
        if filters.modified_after is not None:
            items = [i for i in items if i.last_modified_utc >= filters.modified_after]
        return sorted(items, key=lambda i: (-i.last_modified_utc.timestamp(), i.id))


def make_item(
    item_id: str,
    content_type: str = "post",
    address: str | None = None,
    modified_at: datetime = NOW,
    status: str = "published",
    noindex: bool = False,
) -> InventoryItem:
    return InventoryItem(
        id=item_id,
        content_type=content_type,
        address=address or f"/{content_type}/{item_id}",
        status=status,
        noindex=noindex,
        modified_at=modified_at,
    )


# --- Sitemap cache store ---


class InMemoryCacheStore:
    """In-memory SitemapCacheStorePort."""

    def __init__(self) -> None:
        self.entries: dict[tuple[str, int, str], tuple[SitemapDocument, datetime | None]] = {}
        self.fail_reads = False
        self.fail_writes = False

    def get_fresh(self, key: CacheKey, now_utc: datetime) -> SitemapDocument | None:
        if self.fail_reads:
            raise RuntimeError("cache unavailable")
        entry = self.entries.get((key.scope, key.page, "fresh"))
        if entry is None or entry[1] is None or entry[1] <= now_utc:
            return None
        return entry[0]

    def get_stale(self, key: CacheKey) -> SitemapDocument | None:
        if self.fail_reads:
            raise RuntimeError("cache unavailable")
        entry = self.entries.get((key.scope, key.page, "stale"))
        return entry[0] if entry else None

    def put(self, key: CacheKey, document: SitemapDocument, expires_at: datetime) -> None:
        if self.fail_writes:
            raise RuntimeError("disk full")
        self.entries[(key.scope, key.page, "fresh")] = (document, expires_at)
        self.entries[(key.scope, key.page, "stale")] = (document, None)

    def delete_scope(self, scope: str) -> int:
        doomed = [k for k in self.entries if k[0] == scope]
        for k in doomed:
            del self.entries[k]
        return len(doomed)

    def delete_key(self, key: CacheKey) -> None:
        for tier in ("fresh", "stale"):
            self.entries.pop((key.scope, key.page, tier), None)

    def clear(self) -> int:
        removed = len(self.entries)
        self.entries.clear()
        return removed

    def expire_fresh(self) -> None:
        """Drop every fresh-tier entry, leaving stale copies."""
        for k in [k for k in self.entries if k[2] == "fresh"]:
            del self.entries[k]


# --- Rebuild queue ---


class InMemoryRebuildQueue:
    """In-memory RebuildQueuePort."""

    def __init__(self, clock: FrozenClock | None = None) -> None:
        self.jobs: dict[CacheKey, RebuildJob] = {}
        self.schedule_calls = 0
        self._clock = clock or FrozenClock(NOW)

    def schedule_if_absent(self, key: CacheKey) -> bool:
        self.schedule_calls += 1
        if key in self.jobs:
            return False
        self.jobs[key] = RebuildJob(scope=key.scope, page=key.page)
        return True

    def claim_next(self, worker_id: str) -> RebuildJob | None:
        now = self._clock.now_utc()
        for job in self.jobs.values():
            if job.not_before is not None and job.not_before > now:
                continue
            if job.claimed_by is None:
                job.claimed_by = worker_id
                return job
        return None

    def complete(self, key: CacheKey) -> None:
        self.jobs.pop(key, None)

    def release(
        self,
        key: CacheKey,
        error: str,
        not_before: datetime | None = None,
    ) -> RebuildJob | None:
        job = self.jobs.get(key)
        if job is None:
            return None
        job.claimed_by = None
        job.attempts += 1
        job.error_message = error
        job.not_before = not_before
        return job

    def pending(self) -> list[RebuildJob]:
        return list(self.jobs.values())

    def clear(self) -> int:
        removed = len(self.jobs)
        self.jobs.clear()
        return removed


# --- Fixtures ---


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def rule_store() -> InMemoryRuleStore:
    return InMemoryRuleStore()


@pytest.fixture
def inventory() -> InMemoryInventory:
    return InMemoryInventory()


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def rebuild_queue(clock: FrozenClock) -> InMemoryRebuildQueue:
    return InMemoryRebuildQueue(clock)


@pytest.fixture
def db_path(tmp_path) -> str:
    """Path to a freshly migrated SQLite database."""
    path = str(tmp_path / "seokit.db")
    SQLiteMigrator(path).run_migrations()
    return path

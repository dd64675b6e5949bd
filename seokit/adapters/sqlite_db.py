"""
SQLite adapters for the seokit storage ports.

- SQLiteRuleStore: redirect rules (RuleStorePort)
- SQLiteContentInventory: content inventory reader plus seeding writers
- SQLiteSitemapCacheStore: two-tier rendered sitemap cache
- SQLiteRebuildQueue: deduplicated background rebuild jobs

Timestamps are stored as fixed-width UTC ISO-8601 strings so that string
comparison in SQL matches chronological order.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from seokit.core.entities import (
    CacheKey,
    InventoryItem,
    RebuildJob,
    RedirectRule,
    SitemapDocument,
)
from seokit.core.ports.db import DuplicateRuleError, InventoryFilters
from seokit.core.ports.time import TimePort

DEFAULT_TIMEOUT_SECONDS = 30.0

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def to_iso(dt: datetime) -> str:
    """Serialize as fixed-width UTC ISO-8601."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def parse_dt(s: str | None) -> datetime | None:
    """Parse ISO datetime string."""
    if not s:
        return None
    dt = datetime.fromisoformat(s)
    return dt if dt.tzinfo else dt.replace(tzinfo=UTC)


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(
        self,
        db_path: str,
        connection: sqlite3.Connection | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.db_path = db_path
        self.timeout = timeout
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None


# -----------------------------------------------------------------------------
# Redirect Rule Store
# -----------------------------------------------------------------------------


class SQLiteRuleStore(SQLiteRepoBase):
    """SQLite implementation of RuleStorePort."""

    def insert(
        self,
        source: str,
        destination: str,
        status_code: int,
        is_regex: bool,
    ) -> RedirectRule:
        conn = self._get_conn()
        try:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO redirect_rules (source, destination, status_code, is_regex)
                    VALUES (?, ?, ?, ?)
                    """,
                    (source, destination, status_code, int(is_regex)),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateRuleError(source) from e
            if self._should_close():
                conn.commit()
            return RedirectRule(
                id=cursor.lastrowid,
                source=source,
                destination=destination,
                status_code=status_code,
                is_regex=is_regex,
            )
        finally:
            if self._should_close():
                conn.close()

    def get_by_id(self, rule_id: int) -> RedirectRule | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM redirect_rules WHERE id = ?", (rule_id,)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def find_exact(self, source: str) -> RedirectRule | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM redirect_rules WHERE source = ? AND is_regex = 0 LIMIT 1",
                (source,),
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def find_by_source(self, source: str) -> RedirectRule | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT * FROM redirect_rules WHERE source = ?
                ORDER BY is_regex ASC, id ASC LIMIT 1
                """,
                (source,),
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def list_regex(self) -> list[RedirectRule]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM redirect_rules WHERE is_regex = 1 ORDER BY id ASC"
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def list_all(self) -> list[RedirectRule]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM redirect_rules ORDER BY id DESC").fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def increment_hits(self, rule_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE redirect_rules SET hit_count = hit_count + 1 WHERE id = ?",
                (rule_id,),
            )
            if self._should_close():
                conn.commit()
        finally:
            if self._should_close():
                conn.close()

    def delete(self, rule_id: int) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM redirect_rules WHERE id = ?", (rule_id,))
            if self._should_close():
                conn.commit()
            return cursor.rowcount > 0
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> RedirectRule:
        return RedirectRule(
            id=row["id"],
            source=row["source"],
            destination=row["destination"] or "",
            status_code=row["status_code"],
            is_regex=bool(row["is_regex"]),
            hit_count=row["hit_count"],
        )


# -----------------------------------------------------------------------------
# Content Inventory
# -----------------------------------------------------------------------------


class SQLiteContentInventory(SQLiteRepoBase):
    """
    SQLite implementation of ContentInventoryPort.

    The writer methods (register_type, upsert_item, delete_item) are used by
    seeding and tests; the sitemap only reads.
    """

    def public_types(self) -> list[str]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT name FROM content_types WHERE public = 1 ORDER BY name ASC"
            ).fetchall()
            return [r["name"] for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def count(self, content_type: str, filters: InventoryFilters) -> int:
        where, params = self._where(content_type, filters)
        conn = self._get_conn()
        try:
            row = conn.execute(
                f"SELECT COUNT(*) AS n FROM content_items WHERE {where}", params
            ).fetchone()
            return int(row["n"])
        finally:
            if self._should_close():
                conn.close()

    def page(
        self,
        content_type: str,
        filters: InventoryFilters,
        page: int,
        page_size: int,
    ) -> Sequence[InventoryItem]:
        if page < 1 or page_size < 1:
            return []
        where, params = self._where(content_type, filters)
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"""
                SELECT * FROM content_items WHERE {where}
                ORDER BY modified_at DESC, id ASC
                LIMIT ? OFFSET ?
                """,
                (*params, page_size, (page - 1) * page_size),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def most_recently_modified(
        self,
        content_type: str,
        filters: InventoryFilters,
    ) -> datetime | None:
        where, params = self._where(content_type, filters)
        conn = self._get_conn()
        try:
            row = conn.execute(
                f"SELECT MAX(modified_at) AS newest FROM content_items WHERE {where}",
                params,
            ).fetchone()
            return parse_dt(row["newest"])
        finally:
            if self._should_close():
                conn.close()

    # --- Writers ---

    def register_type(self, name: str, public: bool = True) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO content_types (name, public) VALUES (?, ?)
                ON CONFLICT(name) DO UPDATE SET public = excluded.public
                """,
                (name, int(public)),
            )
            if self._should_close():
                conn.commit()
        finally:
            if self._should_close():
                conn.close()

    def get_item(self, item_id: str) -> InventoryItem | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM content_items WHERE id = ?", (item_id,)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def upsert_item(self, item: InventoryItem) -> InventoryItem:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO content_items (
                    id, content_type, address, status, noindex, modified_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    content_type=excluded.content_type,
                    address=excluded.address,
                    status=excluded.status,
                    noindex=excluded.noindex,
                    modified_at=excluded.modified_at
                """,
                (
                    item.id,
                    item.content_type,
                    item.address,
                    item.status,
                    int(item.noindex),
                    to_iso(item.modified_at),
                ),
            )
            if self._should_close():
                conn.commit()
            return item
        finally:
            if self._should_close():
                conn.close()

    def delete_item(self, item_id: str) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM content_items WHERE id = ?", (item_id,))
            if self._should_close():
                conn.commit()
            return cursor.rowcount > 0
        finally:
            if self._should_close():
                conn.close()

    def _where(
        self, content_type: str, filters: InventoryFilters
    ) -> tuple[str, tuple[Any, ...]]:
        clauses = ["content_type = ?"]
        params: list[Any] = [content_type]
        if filters.published_only:
            clauses.append("status = 'published'")
        if filters.exclude_noindex:
            clauses.append("noindex = 0")
        if filters.modified_after is not None:
            clauses.append("modified_at >= ?")
            params.append(to_iso(filters.modified_after))
        return " AND ".join(clauses), tuple(params)

    def _map_row(self, row: dict[str, Any]) -> InventoryItem:
        return InventoryItem(
            id=row["id"],
            content_type=row["content_type"],
            address=row["address"],
            status=row["status"],
            noindex=bool(row["noindex"]),
            modified_at=parse_dt(row["modified_at"]),
        )


# -----------------------------------------------------------------------------
# Sitemap Cache Store
# -----------------------------------------------------------------------------


class SQLiteSitemapCacheStore(SQLiteRepoBase):
    """
    SQLite implementation of SitemapCacheStorePort.

    One row per (scope, page, tier). Fresh rows carry expires_at; stale
    rows never expire.
    """

    def get_fresh(self, key: CacheKey, now_utc: datetime) -> SitemapDocument | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT content, last_modified FROM sitemap_cache
                WHERE scope = ? AND page = ? AND tier = 'fresh' AND expires_at > ?
                """,
                (key.scope, key.page, to_iso(now_utc)),
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def get_stale(self, key: CacheKey) -> SitemapDocument | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT content, last_modified FROM sitemap_cache
                WHERE scope = ? AND page = ? AND tier = 'stale'
                """,
                (key.scope, key.page),
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def put(self, key: CacheKey, document: SitemapDocument, expires_at: datetime) -> None:
        last_modified = to_iso(document.last_modified) if document.last_modified else None
        conn = self._get_conn()
        try:
            conn.executemany(
                """
                INSERT OR REPLACE INTO sitemap_cache (
                    scope, page, tier, content, last_modified, expires_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (key.scope, key.page, "fresh", document.content, last_modified,
                     to_iso(expires_at)),
                    (key.scope, key.page, "stale", document.content, last_modified, None),
                ],
            )
            if self._should_close():
                conn.commit()
        finally:
            if self._should_close():
                conn.close()

    def delete_scope(self, scope: str) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM sitemap_cache WHERE scope = ?", (scope,))
            if self._should_close():
                conn.commit()
            return cursor.rowcount
        finally:
            if self._should_close():
                conn.close()

    def delete_key(self, key: CacheKey) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "DELETE FROM sitemap_cache WHERE scope = ? AND page = ?",
                (key.scope, key.page),
            )
            if self._should_close():
                conn.commit()
        finally:
            if self._should_close():
                conn.close()

    def clear(self) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM sitemap_cache")
            if self._should_close():
                conn.commit()
            return cursor.rowcount
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> SitemapDocument:
        return SitemapDocument(
            content=row["content"],
            last_modified=parse_dt(row["last_modified"]),
        )


# -----------------------------------------------------------------------------
# Sitemap Rebuild Queue
# -----------------------------------------------------------------------------


class SQLiteRebuildQueue(SQLiteRepoBase):
    """
    SQLite implementation of RebuildQueuePort.

    The (scope, page) primary key collapses duplicate enqueues. A claim older
    than `lease_seconds` is treated as abandoned and may be claimed again.
    A released job waits until its `not_before` time.
    """

    def __init__(
        self,
        db_path: str,
        connection: sqlite3.Connection | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        time_port: TimePort | None = None,
        lease_seconds: int = 300,
    ):
        super().__init__(db_path, connection, timeout)
        self._time_port = time_port
        self._lease_seconds = lease_seconds

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    def schedule_if_absent(self, key: CacheKey) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO sitemap_rebuild_jobs (scope, page, created_at)
                VALUES (?, ?, ?)
                """,
                (key.scope, key.page, to_iso(self._now())),
            )
            if self._should_close():
                conn.commit()
            return cursor.rowcount == 1
        finally:
            if self._should_close():
                conn.close()

    def claim_next(self, worker_id: str) -> RebuildJob | None:
        now = self._now()
        now_iso = to_iso(now)
        lease_cutoff = to_iso(now - timedelta(seconds=self._lease_seconds))
        conn = self._get_conn()
        try:
            # Retry when another worker wins the conditional update.
            for _ in range(5):
                row = conn.execute(
                    """
                    SELECT * FROM sitemap_rebuild_jobs
                    WHERE (claimed_by IS NULL OR claimed_at < ?)
                      AND (not_before IS NULL OR not_before <= ?)
                    ORDER BY created_at ASC, scope ASC, page ASC
                    LIMIT 1
                    """,
                    (lease_cutoff, now_iso),
                ).fetchone()
                if not row:
                    return None

                cursor = conn.execute(
                    """
                    UPDATE sitemap_rebuild_jobs
                    SET claimed_by = ?, claimed_at = ?
                    WHERE scope = ? AND page = ?
                      AND (claimed_by IS NULL OR claimed_at < ?)
                      AND (not_before IS NULL OR not_before <= ?)
                    """,
                    (worker_id, now_iso, row["scope"], row["page"], lease_cutoff, now_iso),
                )
                if self._should_close():
                    conn.commit()
                if cursor.rowcount == 1:
                    job = self._map_row(row)
                    job.claimed_by = worker_id
                    return job
            return None
        finally:
            if self._should_close():
                conn.close()

    def complete(self, key: CacheKey) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "DELETE FROM sitemap_rebuild_jobs WHERE scope = ? AND page = ?",
                (key.scope, key.page),
            )
            if self._should_close():
                conn.commit()
        finally:
            if self._should_close():
                conn.close()

    def release(
        self,
        key: CacheKey,
        error: str,
        not_before: datetime | None = None,
    ) -> RebuildJob | None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                UPDATE sitemap_rebuild_jobs
                SET claimed_by = NULL, claimed_at = NULL,
                    attempts = attempts + 1, error_message = ?, not_before = ?
                WHERE scope = ? AND page = ?
                """,
                (
                    error,
                    to_iso(not_before) if not_before else None,
                    key.scope,
                    key.page,
                ),
            )
            if self._should_close():
                conn.commit()
            row = conn.execute(
                "SELECT * FROM sitemap_rebuild_jobs WHERE scope = ? AND page = ?",
                (key.scope, key.page),
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def pending(self) -> list[RebuildJob]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM sitemap_rebuild_jobs
                ORDER BY created_at ASC, scope ASC, page ASC
                """
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def clear(self) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM sitemap_rebuild_jobs")
            if self._should_close():
                conn.commit()
            return cursor.rowcount
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> RebuildJob:
        return RebuildJob(
            scope=row["scope"],
            page=row["page"],
            attempts=row["attempts"],
            claimed_by=row["claimed_by"],
            error_message=row["error_message"],
            not_before=parse_dt(row["not_before"]),
            created_at=parse_dt(row["created_at"]) or datetime.now(UTC),
        )

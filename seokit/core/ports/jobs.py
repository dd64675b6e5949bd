"""
Background rebuild job interfaces.

Sitemap regeneration after a stale read runs out-of-band: the request that
noticed staleness only enqueues a job and returns.

Key requirements:
- Enqueue is deduplicated per cache key (at most one pending job per key)
- Job bodies are idempotent, so a duplicate run under a race is harmless
- Workers are stateless; the queue table provides coordination
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol

from seokit.core.entities import CacheKey, RebuildJob


class JobStatus(Enum):
    """Job execution result status."""

    SUCCESS = "success"
    FAILURE = "failure"
    SKIP = "skip"  # Nothing to regenerate (type gone or page now empty)
    NO_JOBS = "no_jobs"


@dataclass
class JobResult:
    """Result of a job execution attempt."""

    status: JobStatus
    key: CacheKey | None = None
    message: str = ""
    error: str | None = None
    execution_time_ms: int = 0


@dataclass
class BatchResult:
    """Result of processing a batch of jobs."""

    total_processed: int
    succeeded: int
    failed: int
    skipped: int
    results: list[JobResult]


class RebuildQueuePort(Protocol):
    """
    Deduplicated queue of sitemap rebuild jobs.

    schedule_if_absent is an idempotent upsert keyed by (scope, page).
    """

    def schedule_if_absent(self, key: CacheKey) -> bool:
        """
        Enqueue a rebuild for the key unless one is already pending.

        Returns:
            True if a new job was enqueued, False if one already existed
        """
        ...

    def claim_next(self, worker_id: str) -> RebuildJob | None:
        """Atomically claim the oldest unclaimed job whose retry delay has passed."""
        ...

    def complete(self, key: CacheKey) -> None:
        """Remove a finished job."""
        ...

    def release(
        self,
        key: CacheKey,
        error: str,
        not_before: datetime | None = None,
    ) -> RebuildJob | None:
        """
        Unclaim a failed job, recording the error and bumping attempts.

        The job is not claimable again before `not_before`, when given.
        """
        ...

    def pending(self) -> list[RebuildJob]:
        """All queued jobs, oldest first."""
        ...

    def clear(self) -> int:
        ...


class JobExecutorPort(Protocol):
    """Executes one rebuild job; must not raise."""

    def execute(self, job: RebuildJob) -> JobResult:
        ...


"""
In-process sitemap rebuild runner.

Stale cache reads only enqueue a rebuild; this module drains the queue
off the request path. The queue table provides coordination, so any
number of runners (API process, CLI) may poll the same database.

Key behaviors:
- Atomic job claim via conditional UPDATE
- Synchronous execution for predictable testing
- Failed jobs are released with a retry delay until max_attempts, then dropped
- Configurable poll interval for background mode
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from uuid import uuid4

from seokit.core.entities import RebuildJob
from seokit.core.ports.jobs import (
    BatchResult,
    JobExecutorPort,
    JobResult,
    JobStatus,
    RebuildQueuePort,
)
from seokit.core.ports.time import TimePort

if TYPE_CHECKING:
    from seokit.components.sitemap import SitemapCache

logger = logging.getLogger(__name__)


class RebuildExecutor:
    """Executes one rebuild job against the sitemap cache."""

    def __init__(self, cache: SitemapCache) -> None:
        self._cache = cache

    def execute(self, job: RebuildJob) -> JobResult:
        """
        Regenerate the job's key.

        Returns:
            JobResult with execution outcome; never raises
        """
        start_time = time.monotonic()

        try:
            document = self._cache.rebuild(job.scope, job.page)
            elapsed_ms = int((time.monotonic() - start_time) * 1000)

            if document is None:
                return JobResult(
                    status=JobStatus.SKIP,
                    key=job.key,
                    message=f"Nothing to rebuild for {job.key}",
                    execution_time_ms=elapsed_ms,
                )
            return JobResult(
                status=JobStatus.SUCCESS,
                key=job.key,
                message=f"Rebuilt sitemap {job.key}",
                execution_time_ms=elapsed_ms,
            )

        except Exception as e:
            elapsed_ms = int((time.monotonic() - start_time) * 1000)
            return JobResult(
                status=JobStatus.FAILURE,
                key=job.key,
                message=f"Exception during rebuild of {job.key}",
                error=str(e),
                execution_time_ms=elapsed_ms,
            )


class RebuildJobRunner:
    """
    Drains the rebuild queue.

    Each claimed job is executed once per call; failures are released back
    to the queue with an incremented attempt counter and are not claimable
    again until `retry_delay_seconds` have passed.
    """

    def __init__(
        self,
        queue: RebuildQueuePort,
        executor: JobExecutorPort,
        max_attempts: int = 3,
        retry_delay_seconds: int = 60,
        time_port: TimePort | None = None,
    ) -> None:
        """
        Initialize runner.

        Args:
            queue: Rebuild job queue
            executor: Job executor
            max_attempts: Attempts before a failing job is dropped
            retry_delay_seconds: Delay before a failed job may be claimed again
            time_port: Clock shared with the queue (defaults to system time)
        """
        self._queue = queue
        self._executor = executor
        self._max_attempts = max_attempts
        self._retry_delay_seconds = retry_delay_seconds
        self._time_port = time_port
        self._worker_id = f"dev-{uuid4().hex[:8]}"

    @property
    def worker_id(self) -> str:
        return self._worker_id

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    def run_pending(self, max_jobs: int = 10) -> BatchResult:
        """
        Process up to max_jobs queued rebuilds.

        Returns:
            BatchResult with all outcomes
        """
        results: list[JobResult] = []
        succeeded = 0
        failed = 0
        skipped = 0

        for _ in range(max_jobs):
            job = self._queue.claim_next(self._worker_id)
            if job is None:
                break

            result = self._execute_and_update(job)
            results.append(result)

            if result.status == JobStatus.SUCCESS:
                succeeded += 1
            elif result.status == JobStatus.FAILURE:
                failed += 1
            elif result.status == JobStatus.SKIP:
                skipped += 1

        if not results:
            return BatchResult(
                total_processed=0,
                succeeded=0,
                failed=0,
                skipped=0,
                results=[JobResult(status=JobStatus.NO_JOBS, message="No jobs to process")],
            )

        return BatchResult(
            total_processed=len(results),
            succeeded=succeeded,
            failed=failed,
            skipped=skipped,
            results=results,
        )

    def _execute_and_update(self, job: RebuildJob) -> JobResult:
        result = self._executor.execute(job)

        if result.status != JobStatus.FAILURE:
            self._queue.complete(job.key)
            return result

        retry_at = self._now() + timedelta(seconds=self._retry_delay_seconds)
        released = self._queue.release(job.key, result.error or "Unknown error", retry_at)
        if released is not None and released.attempts >= self._max_attempts:
            logger.warning(
                "Dropping sitemap rebuild %s after %d attempts: %s",
                job.key,
                released.attempts,
                result.error,
            )
            self._queue.complete(job.key)
        else:
            logger.warning("Sitemap rebuild %s failed: %s", job.key, result.error)
        return result


class RebuildScheduler:
    """
    Background polling of the rebuild queue.

    Runs a daemon thread that drains the queue at a configurable interval.
    """

    def __init__(
        self,
        runner: RebuildJobRunner,
        poll_interval_seconds: float = 5.0,
    ) -> None:
        self._runner = runner
        self._poll_interval = poll_interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running = False

    def start(self) -> None:
        """Start the background scheduler."""
        if self._running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop, name="sitemap-rebuild", daemon=True
        )
        self._thread.start()
        self._running = True
        logger.info("Rebuild scheduler started (poll interval: %.1fs)", self._poll_interval)

    def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
        self._running = False
        logger.info("Rebuild scheduler stopped")

    def trigger_now(self) -> BatchResult:
        """Drain the queue immediately on the calling thread."""
        return self._runner.run_pending()

    @property
    def is_running(self) -> bool:
        return self._running

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._poll_interval):
            try:
                result = self._runner.run_pending()
                if result.total_processed > 0:
                    logger.info(
                        "Rebuilt %d sitemaps: %d succeeded, %d failed, %d skipped",
                        result.total_processed,
                        result.succeeded,
                        result.failed,
                        result.skipped,
                    )
            except Exception:
                logger.exception("Error in rebuild poll loop")


# Factory functions


def create_rebuild_runner(
    queue: RebuildQueuePort,
    cache: SitemapCache,
    max_attempts: int = 3,
    retry_delay_seconds: int = 60,
    time_port: TimePort | None = None,
) -> RebuildJobRunner:
    """Create a runner that rebuilds through the given cache."""
    return RebuildJobRunner(
        queue,
        RebuildExecutor(cache),
        max_attempts=max_attempts,
        retry_delay_seconds=retry_delay_seconds,
        time_port=time_port,
    )


def create_rebuild_scheduler(
    runner: RebuildJobRunner,
    poll_interval_seconds: float = 5.0,
) -> RebuildScheduler:
    return RebuildScheduler(runner, poll_interval_seconds)

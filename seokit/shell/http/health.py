"""
Health endpoints.

- /health: runs every registered check; 200 when all pass, else 503
- /health/live: process liveness only, never touches the database

Checks report on the two things that keep sitemaps and redirects correct:
the schema being fully migrated and the rebuild scheduler draining its queue.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from seokit.adapters.dev_jobs import RebuildScheduler
from seokit.adapters.sqlite.migrator import SQLiteMigrator
from seokit.core.ports.jobs import RebuildQueuePort


@dataclass
class CheckResult:
    name: str
    healthy: bool
    message: str = ""
    latency_ms: float = 0.0
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "message": self.message,
            "latency_ms": round(self.latency_ms, 2),
            **self.details,
        }


class HealthCheck(Protocol):
    name: str

    def check(self) -> CheckResult:
        ...


def _timed(name: str, probe: Callable[[], CheckResult]) -> CheckResult:
    """Run a probe, turning an exception into an unhealthy result."""
    start = time.perf_counter()
    try:
        result = probe()
    except Exception as e:
        result = CheckResult(name=name, healthy=False, message=f"{type(e).__name__}: {e}")
    result.latency_ms = (time.perf_counter() - start) * 1000
    return result


class DatabaseCheck:
    """The SQLite file opens and every migration has been applied."""

    name = "database"

    def __init__(self, migrator: SQLiteMigrator) -> None:
        self._migrator = migrator

    def check(self) -> CheckResult:
        return _timed(self.name, self._probe)

    def _probe(self) -> CheckResult:
        pending = self._migrator.pending()
        if pending:
            return CheckResult(
                name=self.name,
                healthy=False,
                message=f"{len(pending)} migration(s) not applied",
                details={"pending_migrations": pending},
            )
        return CheckResult(name=self.name, healthy=True, message="Schema up to date")


class RebuildSchedulerCheck:
    """The background sitemap rebuild thread is alive; reports the backlog."""

    name = "sitemap_rebuilds"

    def __init__(self, scheduler: RebuildScheduler, queue: RebuildQueuePort) -> None:
        self._scheduler = scheduler
        self._queue = queue

    def check(self) -> CheckResult:
        return _timed(self.name, self._probe)

    def _probe(self) -> CheckResult:
        backlog = len(self._queue.pending())
        running = self._scheduler.is_running
        return CheckResult(
            name=self.name,
            healthy=running,
            message="Scheduler running" if running else "Scheduler stopped",
            details={"pending_jobs": backlog},
        )


class HealthCheckRegistry:
    """Checks to run for /health, plus process start time for uptime."""

    def __init__(self) -> None:
        self._checks: list[HealthCheck] = []
        self._started_at: float | None = None

    def register(self, check: HealthCheck) -> None:
        self._checks.append(check)

    def clear(self) -> None:
        self._checks = []

    def run_all(self) -> list[CheckResult]:
        return [check.check() for check in self._checks]

    def mark_started(self) -> None:
        self._started_at = time.monotonic()

    @property
    def uptime_seconds(self) -> float:
        if self._started_at is None:
            return 0.0
        return time.monotonic() - self._started_at


def create_health_router(version: str, registry: HealthCheckRegistry) -> APIRouter:
    router = APIRouter(tags=["health"])

    @router.get(
        "/health",
        response_model=None,
        responses={503: {"description": "At least one check failed"}},
    )
    def health() -> JSONResponse:
        results = registry.run_all()
        healthy = all(r.healthy for r in results)
        return JSONResponse(
            content={
                "status": "healthy" if healthy else "unhealthy",
                "version": version,
                "uptime_seconds": round(registry.uptime_seconds, 3),
                "checks": {r.name: r.to_dict() for r in results},
            },
            status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @router.get("/health/live", response_model=None)
    def live() -> dict[str, Any]:
        return {"alive": True}

    return router

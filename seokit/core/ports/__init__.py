# seokit — Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from seokit.core.ports.db import (
    ContentInventoryPort,
    DuplicateRuleError,
    InventoryFilters,
    RuleStorePort,
    SitemapCacheStorePort,
)
from seokit.core.ports.jobs import (
    BatchResult,
    JobExecutorPort,
    JobResult,
    JobStatus,
    RebuildQueuePort,
)
from seokit.core.ports.time import TimePort

__all__ = [
    # Storage
    "ContentInventoryPort",
    "DuplicateRuleError",
    "InventoryFilters",
    "RuleStorePort",
    "SitemapCacheStorePort",
    # Jobs
    "BatchResult",
    "JobExecutorPort",
    "JobResult",
    "JobStatus",
    "RebuildQueuePort",
    # Time
    "TimePort",
]

"""
RedirectService - rule store write path and management surface.

Key behaviors:
- Non-regex sources are normalized before storage and lookup
- Status codes outside {301, 302, 307, 410} are coerced to 301
- A destination is required unless the rule is a 410
- Regex sources are trial-compiled with resolve-time anchoring and
  rejected at write time if they do not compile
- Duplicate non-regex sources are rejected
- Bulk import applies the same validation, skipping existing sources
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import urlparse

from seokit.core.entities import VALID_STATUS_CODES, RedirectRule
from seokit.core.ports.db import DuplicateRuleError, RuleStorePort

from ._pattern import RedirectPattern
from .models import ImportRecord, ImportResult, RuleValidationError

logger = logging.getLogger(__name__)

DEFAULT_STATUS_CODE = 301


# --- Configuration ---


@dataclass(frozen=True)
class RedirectConfig:
    """Redirect configuration from rules."""

    enabled: bool = True
    auto_redirect_on_rename: bool = True
    # Used to absolutize relative addresses for auto-created rules
    base_url: str | None = None


DEFAULT_CONFIG = RedirectConfig()


# --- Path helpers ---


def normalize_path(path: str) -> str:
    """
    Normalize a request path: exactly one leading slash, no trailing slash
    except for the root. Idempotent.
    """
    path = "/" + path.lstrip("/")
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def address_to_path(address: str) -> str:
    """Normalized path component of an absolute or relative address."""
    return normalize_path(urlparse(address).path)


def is_absolute_url(url: str) -> bool:
    """Check if URL is absolute (has scheme and host)."""
    parsed = urlparse(url)
    return bool(parsed.scheme and parsed.netloc)


def absolute_address(address: str, base_url: str | None) -> str:
    """Join a relative address onto base_url; absolute addresses pass through."""
    if is_absolute_url(address) or not base_url:
        return address
    return base_url.rstrip("/") + "/" + address.lstrip("/")


def coerce_status_code(status_code: int | None) -> int:
    if status_code in VALID_STATUS_CODES:
        return status_code  # type: ignore[return-value]
    return DEFAULT_STATUS_CODE


# --- Validation ---


def validate_rule(
    source: str,
    destination: str,
    status_code: int,
    is_regex: bool,
) -> list[RuleValidationError]:
    """Validate a rule before insert. `status_code` must already be coerced."""
    errors: list[RuleValidationError] = []

    if not source.strip():
        errors.append(
            RuleValidationError(
                code="source_required",
                message="Source URL is required",
                field="source",
            )
        )

    if status_code != 410 and not destination.strip():
        errors.append(
            RuleValidationError(
                code="destination_required",
                message="Destination URL is required",
                field="destination",
            )
        )

    if is_regex and source.strip():
        problem = RedirectPattern(source).compile_error()
        if problem is not None:
            errors.append(
                RuleValidationError(
                    code="invalid_regex",
                    message=f"Invalid regex pattern: {problem}",
                    field="source",
                )
            )

    return errors


# --- Redirect Service ---


class RedirectService:
    """
    Redirect rule management.

    All writes go through add_rule so the stored-rule invariants hold no
    matter which caller (admin, import, auto-redirect) creates the rule.
    """

    def __init__(
        self,
        store: RuleStorePort,
        config: RedirectConfig | None = None,
    ) -> None:
        self._store = store
        self._config = config or DEFAULT_CONFIG

    @property
    def config(self) -> RedirectConfig:
        return self._config

    def add_rule(
        self,
        source: str,
        destination: str = "",
        status_code: int | None = DEFAULT_STATUS_CODE,
        is_regex: bool = False,
    ) -> tuple[RedirectRule | None, list[RuleValidationError]]:
        """
        Create a rule.

        Store failures other than a duplicate source propagate.

        Returns:
            Tuple of (rule, errors). Rule is None if validation fails.
        """
        source = source.strip()
        destination = destination.strip()
        status = coerce_status_code(status_code)

        errors = validate_rule(source, destination, status, is_regex)
        if errors:
            return None, errors

        if not is_regex:
            source = normalize_path(source)
            if self._store.find_exact(source) is not None:
                return None, [_source_exists(source)]

        try:
            rule = self._store.insert(source, destination, status, is_regex)
        except DuplicateRuleError:
            return None, [_source_exists(source)]

        logger.info(
            "Redirect rule %d created: %s -> %s (%d%s)",
            rule.id,
            rule.source,
            rule.destination or "-",
            rule.status_code,
            ", regex" if rule.is_regex else "",
        )
        return rule, []

    def delete_rule(self, rule_id: int) -> bool:
        """Delete a rule by id."""
        return self._store.delete(rule_id)

    def get(self, rule_id: int) -> RedirectRule | None:
        return self._store.get_by_id(rule_id)

    def lookup(self, source: str, is_regex: bool = False) -> RedirectRule | None:
        """Find a rule by source; non-regex sources are normalized first."""
        if not is_regex:
            source = normalize_path(source)
        return self._store.find_by_source(source)

    def list_all(self) -> list[RedirectRule]:
        return self._store.list_all()

    def import_rules(
        self,
        records: Iterable[ImportRecord],
        dry_run: bool = False,
    ) -> ImportResult:
        """
        Import rules exported by another tool.

        Records whose source already exists are skipped; invalid records
        are counted as failed. With dry_run nothing is written.
        """
        result = ImportResult(dry_run=dry_run)
        seen: set[tuple[str, bool]] = set()

        for record in records:
            source = record.source.strip()
            if source and not record.is_regex:
                source = normalize_path(source)

            if (source, record.is_regex) in seen or (
                source and self.lookup(source, record.is_regex) is not None
            ):
                result.skipped += 1
                continue

            status = coerce_status_code(record.status_code)
            errors = validate_rule(source, record.destination, status, record.is_regex)
            if errors:
                result.failed += 1
                result.errors.extend(errors)
                continue

            seen.add((source, record.is_regex))
            if dry_run:
                result.imported += 1
                continue

            rule, errors = self.add_rule(
                source, record.destination, status, record.is_regex
            )
            if rule is None:
                result.failed += 1
                result.errors.extend(errors)
                continue

            result.imported += 1
            result.rules.append(rule)

        logger.info("Redirect import: %s", result.message)
        return result


def _source_exists(source: str) -> RuleValidationError:
    return RuleValidationError(
        code="source_exists",
        message=f"A redirect for '{source}' already exists",
        field="source",
    )


# --- Factory ---


def create_redirect_service(
    store: RuleStorePort,
    config: RedirectConfig | None = None,
) -> RedirectService:
    """Create a RedirectService."""
    return RedirectService(store=store, config=config)

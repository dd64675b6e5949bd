"""
RedirectResolver - request-time rule matching.

Resolution order:
1. Exact phase: indexed lookup of a non-regex rule for the normalized path.
   An exact rule always wins over any regex rule.
2. Regex phase: regex rules in insertion order; the first full-path match
   wins. A malformed stored pattern is skipped, never raised.

On a winning rule the hit counter is incremented atomically at the store.
A failed increment is logged and the request is still answered.
"""

from __future__ import annotations

import logging
import re

from seokit.core.entities import REDIRECT_STATUS_CODES, RedirectRule
from seokit.core.ports.db import RuleStorePort

from ._impl import DEFAULT_CONFIG, DEFAULT_STATUS_CODE, RedirectConfig, normalize_path
from ._pattern import RedirectPattern, substitute_captures
from .models import NO_MATCH, Gone, Redirect, RedirectAction

logger = logging.getLogger(__name__)


class RedirectResolver:
    """Maps a request path to a Redirect, Gone or NoMatch action."""

    def __init__(
        self,
        store: RuleStorePort,
        config: RedirectConfig | None = None,
    ) -> None:
        self._store = store
        self._config = config or DEFAULT_CONFIG

    def resolve(self, path: str) -> RedirectAction:
        if not self._config.enabled:
            return NO_MATCH

        normalized = normalize_path(path)

        rule = self._store.find_exact(normalized)
        match: re.Match[str] | None = None
        if rule is None:
            rule, match = self._match_regex(normalized)
        if rule is None:
            return NO_MATCH

        self._record_hit(rule)

        if rule.is_gone:
            return Gone(rule_id=rule.id)

        destination = rule.destination
        if match is not None:
            destination = substitute_captures(destination, match)

        status_code = rule.status_code
        if status_code not in REDIRECT_STATUS_CODES:
            status_code = DEFAULT_STATUS_CODE

        return Redirect(destination=destination, status_code=status_code, rule_id=rule.id)

    def _match_regex(
        self, normalized: str
    ) -> tuple[RedirectRule | None, re.Match[str] | None]:
        for candidate in self._store.list_regex():
            try:
                match = RedirectPattern(candidate.source).match(normalized)
            except re.error:
                logger.warning(
                    "Skipping redirect rule %d: malformed pattern %r",
                    candidate.id,
                    candidate.source,
                )
                continue
            if match is not None:
                return candidate, match
        return None, None

    def _record_hit(self, rule: RedirectRule) -> None:
        try:
            self._store.increment_hits(rule.id)
        except Exception:
            logger.warning("Hit count update failed for rule %d", rule.id, exc_info=True)

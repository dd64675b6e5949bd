"""
AutoRedirector - creates a 301 when a published item's address changes.

Fires only when:
- auto_redirect_on_rename is enabled
- the item was published both before and after the change
- the normalized old and new paths differ

Idempotent: if any rule already exists for the old path nothing is
written, so replaying the same event never duplicates a rule.
"""

from __future__ import annotations

import logging

from seokit.core.entities import PUBLISHED, RedirectRule

from ._impl import RedirectService, absolute_address, address_to_path

logger = logging.getLogger(__name__)


class AutoRedirector:
    """Subscribes to content rename events."""

    def __init__(self, service: RedirectService) -> None:
        self._service = service

    def on_rename(
        self,
        item_id: str,
        address_before: str,
        address_after: str,
        status_before: str,
        status_after: str,
    ) -> RedirectRule | None:
        """
        Handle an address change.

        Returns:
            The created rule, or None when the event was skipped
        """
        config = self._service.config
        if not config.auto_redirect_on_rename:
            return None

        if status_before != PUBLISHED or status_after != PUBLISHED:
            return None

        if not address_before or not address_after:
            return None

        old_path = address_to_path(address_before)
        new_path = address_to_path(address_after)
        if old_path == new_path:
            return None

        if self._service.lookup(old_path) is not None:
            logger.debug("Auto-redirect for %s skipped: rule exists", old_path)
            return None

        destination = absolute_address(address_after, config.base_url)
        rule, errors = self._service.add_rule(old_path, destination, 301)
        if rule is None:
            # Lost a race with a concurrent rename of the same item
            logger.info(
                "Auto-redirect for item %s not created: %s",
                item_id,
                "; ".join(e.message for e in errors),
            )
            return None

        logger.info("Auto-redirect for item %s: %s -> %s", item_id, old_path, destination)
        return rule

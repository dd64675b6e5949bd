"""
Clock adapters implementing TimePort.

SystemClock reads the wall clock; FrozenClock returns a settable instant
for deterministic cache-expiry and freshness-window tests.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock:
    """
    Clock that returns a fixed time until advanced.

    Useful for deterministic testing.
    """

    def __init__(self, frozen_utc: datetime) -> None:
        if frozen_utc.tzinfo is None:
            frozen_utc = frozen_utc.replace(tzinfo=UTC)
        self._frozen_utc = frozen_utc.astimezone(UTC)

    def now_utc(self) -> datetime:
        """Get frozen UTC time."""
        return self._frozen_utc

    def advance(self, seconds: float = 0, **kwargs: float) -> datetime:
        """Move the clock forward; accepts timedelta keyword arguments."""
        self._frozen_utc += timedelta(seconds=seconds, **kwargs)
        return self._frozen_utc

    def set(self, moment: datetime) -> None:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=UTC)
        self._frozen_utc = moment.astimezone(UTC)

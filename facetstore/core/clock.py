"""
Clocks for record timestamps.

Every commit stamps all of its records with a single instant taken from a
clock. Production code uses SystemClock; tests use FixedClock so record
contents are reproducible.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FixedClock:
    """
    Deterministic time source.

    Immutable: tick() returns a new instance.
    """
    current: datetime = datetime(2020, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        """Get current time without advancing."""
        return self.current

    def tick(self, milliseconds: int = 1) -> "FixedClock":
        """Advance by ``milliseconds`` and return the new clock."""
        return FixedClock(self.current + timedelta(milliseconds=milliseconds))

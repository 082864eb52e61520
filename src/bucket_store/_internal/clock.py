"""Time source for rule expiry.

Expiry instants are always timezone-aware and compared against
``Clock.now()``; tests swap in a clock they can advance.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


def require_aware(instant: datetime | None, what: str = "expires_at") -> None:
    """Reject naive datetimes; an expiry without a timezone is ambiguous."""
    if instant is not None and instant.tzinfo is None:
        raise ValueError(f"{what} must be timezone-aware, got {instant.isoformat()}")

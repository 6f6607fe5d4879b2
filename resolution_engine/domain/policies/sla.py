"""SLA arithmetic — deadlines and pause accounting.

All timestamps are timezone-aware UTC; mixing naive and aware values is a
programming error and raises ``TypeError`` from ``datetime`` itself.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def compute_deadline(start: datetime, sla_hours: int) -> datetime:
    return start + timedelta(hours=sla_hours)


def paused_minutes(paused_at: datetime, now: datetime) -> int:
    """Whole minutes elapsed since the pause, floored, never negative."""
    elapsed = (now - paused_at).total_seconds()
    return max(0, int(elapsed // 60))


def extend_deadline(deadline: datetime | None, minutes: int) -> datetime | None:
    if deadline is None:
        return None
    return deadline + timedelta(minutes=minutes)


def is_breached(deadline: datetime | None, now: datetime, paused: bool = False) -> bool:
    """A paused SLA never counts as breached."""
    if deadline is None or paused:
        return False
    return now > deadline

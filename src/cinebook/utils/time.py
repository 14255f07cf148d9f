"""Datetime helpers shared by services and jobs."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Return an aware UTC datetime.

    Naive values are assumed to already be in UTC, which is what clients
    are asked to send.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def intervals_overlap(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
) -> bool:
    """Half-open [start, end) overlap: neither interval ends before the other starts."""
    return start_a < end_b and start_b < end_a

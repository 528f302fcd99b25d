"""Time utilities for timezone-aware UTC datetimes."""

from datetime import UTC, date, datetime, time


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime for defaults and onupdate hooks."""
    return datetime.now(UTC)


def as_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Return naive datetimes covering ``start`` through ``end`` inclusive."""
    return datetime.combine(start, time.min), datetime.combine(end, time.max)

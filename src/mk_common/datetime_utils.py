"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def hours_from_now(hours: int) -> datetime:
    return utc_now() + timedelta(hours=hours)

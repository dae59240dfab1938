"""Date utilities."""

import math
from datetime import date, datetime, time, timedelta, timezone

SECONDS_PER_DAY: int = 86400


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def expiry_instant(expiry_date: date) -> datetime:
    """Get the instant an expiry date starts (midnight UTC).

    Args:
        expiry_date (date): The calendar expiry date.

    Returns:
        datetime: Midnight UTC of the expiry date.
    """
    return datetime.combine(expiry_date, time.min, tzinfo=timezone.utc)


def ensure_aware(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC.

    Args:
        moment (datetime): The datetime to normalize.

    Returns:
        datetime: A timezone-aware datetime.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def calculate_days_until_expiry(now: datetime, expiry_date: date) -> int:
    """Calculate the number of days until the expiration date.

    The remaining time is rounded up, so an item expiring today
    yields 0 and one that expired yesterday yields -1.

    Args:
        now (datetime):
            The reference instant.
        expiry_date (date):
            The expiration date to calculate against.

    Returns:
        int: The number of days until the expiration date.
    """
    remaining: timedelta = expiry_instant(expiry_date) - ensure_aware(now)
    return math.ceil(remaining.total_seconds() / SECONDS_PER_DAY)

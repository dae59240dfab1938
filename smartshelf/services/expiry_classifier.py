"""Expiry classification of fridge items."""

from datetime import date, datetime

from smartshelf.core.models import ExpiryStatus
from smartshelf.schemas.classification import ExpiryClassification
from smartshelf.utils.dates import calculate_days_until_expiry

NEAR_EXPIRY_DAYS: int = 3

STATUS_COLORS: dict[ExpiryStatus, str] = {
    ExpiryStatus.SAFE: "#4caf50",
    ExpiryStatus.NEAR_EXPIRY: "#ff9800",
    ExpiryStatus.EXPIRED: "#f44336",
}

STATUS_LABELS: dict[ExpiryStatus, str] = {
    ExpiryStatus.SAFE: "Safe",
    ExpiryStatus.NEAR_EXPIRY: "Near Expiry",
    ExpiryStatus.EXPIRED: "Expired",
}


def _plural(count: int) -> str:
    return "day" if count == 1 else "days"


def status_for_days(days: int) -> ExpiryStatus:
    """Map a signed day count onto a freshness status.

    Args:
        days (int): Days until expiry, negative once expired.

    Returns:
        ExpiryStatus: The matching status.
    """
    match days:
        case d if d < 0:
            return ExpiryStatus.EXPIRED
        case d if d <= NEAR_EXPIRY_DAYS:
            return ExpiryStatus.NEAR_EXPIRY
        case _:
            return ExpiryStatus.SAFE


def expiry_message(days: int) -> str:
    """Short countdown message shown in item lists.

    Days above one always read "Expires in N days", near expiry or not.

    Args:
        days (int): Days until expiry, negative once expired.

    Returns:
        str: The countdown message.
    """
    match days:
        case d if d < 0:
            return f"Expired {abs(d)} {_plural(abs(d))} ago"
        case 0:
            return "Expires today!"
        case 1:
            return "Expires tomorrow"
        case d:
            return f"Expires in {d} days"


def expiry_detail_message(days: int) -> str:
    """Longer sentence shown on the item detail view.

    Args:
        days (int): Days until expiry, negative once expired.

    Returns:
        str: The detail message.
    """
    match days:
        case d if d < 0:
            return f"This item expired {abs(d)} {_plural(abs(d))} ago."
        case 0:
            return "This item expires today!"
        case d if d <= NEAR_EXPIRY_DAYS:
            return f"This item expires in {d} {_plural(d)}."
        case d:
            return f"This item is good for {d} more {_plural(d)}."


def classify(now: datetime, expiry: date) -> ExpiryClassification:
    """Classify an expiry date relative to ``now``.

    Args:
        now (datetime): The reference instant.
        expiry (date): The item's expiry date.

    Returns:
        ExpiryClassification: Status, day count and messages.
    """
    days: int = calculate_days_until_expiry(now, expiry)
    status: ExpiryStatus = status_for_days(days)
    return ExpiryClassification(
        status=status,
        days_until_expiry=days,
        message=expiry_message(days),
        detail_message=expiry_detail_message(days),
        label=STATUS_LABELS[status],
        color=STATUS_COLORS[status],
    )

"""Background service for classifying items and topping up expired alerts."""

import logging
import typing as t
from collections import defaultdict
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from smartshelf.core.database import ASYNC_SESSION_MAKER
from smartshelf.core.globals import HOST_REGISTRY
from smartshelf.core.models import ExpiryStatus, FridgeItem
from smartshelf.schemas.classification import ExpiryClassification
from smartshelf.services.expiry_classifier import classify
from smartshelf.services.notification_host import NotificationHostRegistry
from smartshelf.services.notification_orchestrator import (
    ExpiryNotificationOrchestrator,
)
from smartshelf.utils.dates import expiry_instant, utc_now

LOGGER = logging.getLogger(__name__)


def summarize_items(
    items: t.Iterable[FridgeItem], now: datetime
) -> t.Dict[str, t.Any]:
    """Group items by freshness status.

    Args:
        items (t.Iterable[FridgeItem]): The items to classify.
        now (datetime): The reference instant.

    Returns:
        t.Dict[str, t.Any]: Item summaries keyed by status value.
    """
    summary: t.Dict[str, t.Any] = {
        status.value: [] for status in ExpiryStatus
    }
    for item in items:
        classification: ExpiryClassification = classify(now, item.expiry_date)
        summary[classification.status.value].append(
            {
                "id": item.id,
                "name": item.name,
                "quantity": item.quantity,
                "expiry_date": item.expiry_date.isoformat(),
                "message": classification.message,
            }
        )
    summary["checked_at"] = now.isoformat()
    return summary


def format_expiration_report(summary: t.Dict[str, t.Any]) -> str:
    """Format an item summary into a readable report.

    Args:
        summary (t.Dict[str, t.Any]): Output of ``summarize_items``.

    Returns:
        str: The formatted expiration report.
    """
    lines: t.List[str] = [
        "=" * 50,
        "SMARTSHELF EXPIRATION REPORT",
        f"Generated: {summary['checked_at']}",
        "=" * 50,
        "",
    ]

    sections: t.List[t.Tuple[ExpiryStatus, str]] = [
        (ExpiryStatus.EXPIRED, "EXPIRED ITEMS:"),
        (ExpiryStatus.NEAR_EXPIRY, "NEAR EXPIRY:"),
    ]
    for status, heading in sections:
        if not summary[status.value]:
            continue
        lines.append(heading)
        lines.append("-" * 30)
        for item in summary[status.value]:
            lines.append(
                f"  • {item['name']} (x{item['quantity']})"
                f" - {item['message']}"
            )
        lines.append("")

    if not summary[ExpiryStatus.EXPIRED.value] and not summary[
        ExpiryStatus.NEAR_EXPIRY.value
    ]:
        lines.append("All items are fresh! No expiration alerts.")

    lines.append(f"Safe items: {len(summary[ExpiryStatus.SAFE.value])}")
    return "\n".join(lines)


async def ensure_expired_alerts(
    session: AsyncSession,
    registry: NotificationHostRegistry,
    items: t.Iterable[FridgeItem],
    now: datetime,
) -> int:
    """Schedule expired alerts for expired items that have none.

    Users who signed out get nothing until they come back.

    Args:
        session (AsyncSession): The database session.
        registry (NotificationHostRegistry): Hosts per user.
        items (t.Iterable[FridgeItem]): All stored items.
        now (datetime): The reference instant.

    Returns:
        int: Number of alerts scheduled.
    """
    expired_by_user: t.Dict[str, t.List[FridgeItem]] = defaultdict(list)
    for item in items:
        if expiry_instant(item.expiry_date) <= now:
            expired_by_user[item.user_id].append(item)

    scheduled: int = 0
    for user_id, expired in expired_by_user.items():
        if registry.is_signed_out(user_id):
            LOGGER.debug("Skipping expired alerts for signed-out %s", user_id)
            continue
        orchestrator: ExpiryNotificationOrchestrator = (
            ExpiryNotificationOrchestrator.for_user(
                session, user_id, registry.host_for(user_id)
            )
        )
        scheduled += await orchestrator.ensure_expired_alerts(expired)
    return scheduled


async def check_expiring_items_task(
    registry: NotificationHostRegistry | None = None,
    session_maker: async_sessionmaker[AsyncSession] = ASYNC_SESSION_MAKER,
) -> None:
    """Background task to report on items and schedule expired alerts.

    Args:
        registry (NotificationHostRegistry | None):
            Hosts per user, defaults to the application registry.
        session_maker (async_sessionmaker[AsyncSession]):
            Session factory.
    """
    LOGGER.info("Running expiration check...")

    if registry is None:
        registry = HOST_REGISTRY

    try:
        async with session_maker() as session:
            items: t.Sequence[FridgeItem] = (
                (await session.execute(select(FridgeItem))).scalars().all()
            )
            now: datetime = utc_now()

            LOGGER.info(
                "\n%s", format_expiration_report(summarize_items(items, now))
            )

            scheduled: int = await ensure_expired_alerts(
                session, registry, items, now
            )
            await session.commit()

        if scheduled > 0:
            LOGGER.info("Scheduled %d new expired alert(s)", scheduled)

    except Exception:  # pylint: disable=broad-except
        LOGGER.exception("Error in expiration check task")

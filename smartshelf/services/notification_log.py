"""Durable bookkeeping of scheduled notifications."""

import typing as t
from collections import defaultdict
from datetime import date, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from smartshelf.core.models import NotificationKind, ScheduledNotification


class ScheduledNotificationLog:
    """Records schedules and cancellations for a single user.

    Writes run inside a savepoint, so a failed write leaves the caller's
    session usable.
    """

    db: AsyncSession
    user_id: str

    def __init__(self, db: AsyncSession, user_id: str) -> None:
        """Initialize the log.

        Args:
            db (AsyncSession): The database session.
            user_id (str): The owner of the notifications.
        """
        self.db = db
        self.user_id = user_id

    async def record(  # pylint: disable=too-many-arguments,too-many-positional-arguments,line-too-long  # noqa: E501
        self,
        item_id: str,
        notification_id: str,
        kind: NotificationKind,
        scheduled_for: datetime,
        expiry_date: date,
    ) -> ScheduledNotification:
        """Record a trigger that was registered with the host.

        Args:
            item_id (str): The item the trigger refers to.
            notification_id (str): The host-assigned id.
            kind (NotificationKind): The notification kind.
            scheduled_for (datetime): The first fire time.
            expiry_date (date): The item's expiry date at scheduling time.

        Returns:
            ScheduledNotification: The stored row.
        """
        entry: ScheduledNotification = ScheduledNotification(
            user_id=self.user_id,
            item_id=item_id,
            notification_id=notification_id,
            type=kind,
            scheduled_for=scheduled_for,
            expiry_date=expiry_date,
        )
        async with self.db.begin_nested():
            self.db.add(entry)
        return entry

    async def mark_cancelled(self, notification_ids: t.Iterable[str]) -> None:
        """Flag log rows as cancelled.

        Args:
            notification_ids (t.Iterable[str]): Host ids to flag.
        """
        ids: t.List[str] = list(notification_ids)
        if not ids:
            return
        async with self.db.begin_nested():
            await self.db.execute(
                update(ScheduledNotification)
                .where(
                    ScheduledNotification.user_id == self.user_id,
                    ScheduledNotification.notification_id.in_(ids),
                    ScheduledNotification.is_sent.is_(False),
                )
                .values(is_cancelled=True)
            )

    async def mark_all_cancelled(self) -> None:
        """Flag every pending row of the user as cancelled."""
        async with self.db.begin_nested():
            await self.db.execute(
                update(ScheduledNotification)
                .where(
                    ScheduledNotification.user_id == self.user_id,
                    ScheduledNotification.is_cancelled.is_(False),
                    ScheduledNotification.is_sent.is_(False),
                )
                .values(is_cancelled=True)
            )

    async def mark_sent(self, notification_id: str) -> None:
        """Flag a one-shot trigger as delivered.

        Args:
            notification_id (str): The host id that fired.
        """
        await self.db.execute(
            update(ScheduledNotification)
            .where(
                ScheduledNotification.user_id == self.user_id,
                ScheduledNotification.notification_id == notification_id,
            )
            .values(is_sent=True)
        )

    async def dismissed_alerts(self) -> t.Set[t.Tuple[str, date]]:
        """Expired alerts that were cancelled and never scheduled again.

        An alert counts as dismissed for an (item, expiry date) pair when
        every logged alert for that pair is cancelled. Re-dating an item
        starts a new pair.

        Returns:
            t.Set[t.Tuple[str, date]]: Dismissed (item id, expiry date).
        """
        rows = await self.db.execute(
            select(
                ScheduledNotification.item_id,
                ScheduledNotification.expiry_date,
                ScheduledNotification.is_cancelled,
            ).where(
                ScheduledNotification.user_id == self.user_id,
                ScheduledNotification.type == NotificationKind.EXPIRED_ALERT,
            )
        )
        cancelled: t.Dict[t.Tuple[str, date], bool] = defaultdict(
            lambda: True
        )
        for item_id, expiry_date, is_cancelled in rows:
            key: t.Tuple[str, date] = (item_id, expiry_date)
            cancelled[key] = cancelled[key] and is_cancelled
        return {key for key, dismissed in cancelled.items() if dismissed}

"""Keeps scheduled notifications in step with items, settings and sessions."""

import logging
import typing as t
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from smartshelf.core.models import NotificationKind
from smartshelf.schemas.notifications import (
    ScheduledNotificationRecord,
    ScheduleResult,
)
from smartshelf.services.notification_host import NotificationHost
from smartshelf.services.notification_log import ScheduledNotificationLog
from smartshelf.services.notification_scheduler import (
    ExpiringItem,
    NotificationScheduler,
)
from smartshelf.services.notification_settings import (
    NotificationSettingsRepository,
    SettingToggled,
)

LOGGER: logging.Logger = logging.getLogger(__name__)


class ExpiryNotificationOrchestrator:
    """Reacts to item, settings and session events.

    Item persistence has already committed when these hooks run; none of
    them raise, so a notification problem never fails the caller.
    """

    scheduler: NotificationScheduler
    settings: NotificationSettingsRepository | None

    def __init__(
        self,
        scheduler: NotificationScheduler,
        settings: NotificationSettingsRepository | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            scheduler (NotificationScheduler):
                The scheduler to drive.
            settings (NotificationSettingsRepository | None):
                Settings whose toggle events trigger bulk cancellation.
        """
        self.scheduler = scheduler
        self.settings = settings
        if settings is not None:
            settings.subscribe(self.handle_setting_toggled)

    @classmethod
    def for_user(
        cls, db: AsyncSession, user_id: str, host: NotificationHost
    ) -> "ExpiryNotificationOrchestrator":
        """Wire up scheduler, settings and log for a user.

        Args:
            db (AsyncSession): The database session.
            user_id (str): The signed-in user.
            host (NotificationHost): The user's notification host.

        Returns:
            ExpiryNotificationOrchestrator: The orchestrator.
        """
        settings: NotificationSettingsRepository = (
            NotificationSettingsRepository(db, user_id)
        )
        scheduler: NotificationScheduler = NotificationScheduler(
            host, settings, log=ScheduledNotificationLog(db, user_id)
        )
        return cls(scheduler, settings)

    async def on_item_created(
        self, item: ExpiringItem
    ) -> t.List[ScheduleResult]:
        """Attempt the reminder and the expired alert for a new item.

        Each attempt no-ops on its own when its precondition fails.

        Args:
            item (ExpiringItem): The committed item.

        Returns:
            t.List[ScheduleResult]: One result per attempt.
        """
        results: t.List[ScheduleResult] = []
        attempts: t.List[
            t.Callable[[ExpiringItem], t.Awaitable[ScheduleResult]]
        ] = [
            self.scheduler.schedule_expiry_reminder,
            self.scheduler.schedule_expired_alert,
        ]
        for attempt in attempts:
            try:
                results.append(await attempt(item))
            except Exception:  # pylint: disable=broad-except
                LOGGER.exception(
                    "Error scheduling notifications for %s", item.id
                )
        return results

    async def on_item_updated(
        self, item: ExpiringItem
    ) -> t.List[ScheduleResult]:
        """Drop stale triggers of an edited item and schedule fresh ones.

        Args:
            item (ExpiringItem): The committed, edited item.

        Returns:
            t.List[ScheduleResult]: Results of the fresh attempts.
        """
        try:
            await self.scheduler.cancel_all_for_item(item.id)
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Error cancelling notifications for %s", item.id)
            return []
        return await self.on_item_created(item)

    async def on_item_deleted(self, item_id: str) -> int:
        """Cancel every trigger of a deleted item.

        Args:
            item_id (str): The deleted item's id.

        Returns:
            int: Number of triggers cancelled.
        """
        try:
            return await self.scheduler.cancel_all_for_item(item_id)
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Error cancelling notifications for %s", item_id)
            return 0

    async def handle_setting_toggled(self, event: SettingToggled) -> None:
        """Cancel every trigger of a kind once it is switched off.

        Args:
            event (SettingToggled): The toggle event.
        """
        if event.enabled:
            return
        try:
            await self.scheduler.cancel_all_of_kind(event.kind)
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception(
                "Error cancelling %s notifications", event.kind.value
            )

    async def on_signed_out(self) -> None:
        """Cancel everything before the session is torn down."""
        try:
            await self.scheduler.cancel_all()
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Error clearing notifications on sign-out")

    async def ensure_expired_alerts(
        self, items: t.Iterable[ExpiringItem]
    ) -> int:
        """Schedule an expired alert for items that have none yet.

        Items whose alerts were all cancelled for their current expiry
        date are left alone.

        Args:
            items (t.Iterable[ExpiringItem]): Items known to be expired.

        Returns:
            int: Number of alerts scheduled.
        """
        scheduled: t.List[ScheduledNotificationRecord] = (
            await self.scheduler.list_scheduled()
        )
        alerted: t.Set[str] = {
            record.item_id
            for record in scheduled
            if record.kind == NotificationKind.EXPIRED_ALERT
        }

        dismissed: t.Set[t.Tuple[str, date]] = set()
        if self.scheduler.log is not None:
            dismissed = await self.scheduler.log.dismissed_alerts()

        created: int = 0
        for item in items:
            if item.id in alerted or (item.id, item.expiry_date) in dismissed:
                continue
            result: ScheduleResult = (
                await self.scheduler.schedule_expired_alert(item)
            )
            if result.scheduled:
                created += 1
        return created

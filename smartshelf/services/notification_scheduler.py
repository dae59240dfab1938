"""Scheduling and cancellation of expiry notifications."""

import logging
import typing as t
from datetime import date, datetime, timedelta

from pydantic import ValidationError

from smartshelf.core.config import SETTINGS
from smartshelf.core.models import NotificationKind, UserNotificationSettings
from smartshelf.schemas.notifications import (
    ExpiredAlertPayload,
    ExpiryReminderPayload,
    ScheduledNotificationRecord,
    ScheduleOutcome,
    ScheduleResult,
    parse_payload,
)
from smartshelf.services.notification_host import (
    HostNotificationRequest,
    NotificationChannel,
    NotificationHost,
    PermissionStatus,
)
from smartshelf.services.notification_log import ScheduledNotificationLog
from smartshelf.services.notification_settings import is_kind_enabled
from smartshelf.utils.dates import expiry_instant, utc_now

LOGGER: logging.Logger = logging.getLogger(__name__)

DEFAULT_CHANNEL: NotificationChannel = NotificationChannel(
    name=SETTINGS.notification_channel_name
)


class ExpiringItem(t.Protocol):
    """Anything carrying the fields a notification is built from."""

    id: str
    name: str
    expiry_date: date


class SettingsSource(t.Protocol):  # pylint: disable=too-few-public-methods
    """Where the scheduler reads notification preferences from."""

    async def get(self) -> UserNotificationSettings:
        """Current settings of the user."""


class NotificationScheduler:
    """Schedules reminders and alerts for one user's items."""

    host: NotificationHost
    settings: SettingsSource
    log: ScheduledNotificationLog | None
    clock: t.Callable[[], datetime]

    def __init__(
        self,
        host: NotificationHost,
        settings: SettingsSource,
        log: ScheduledNotificationLog | None = None,
        clock: t.Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the scheduler.

        Args:
            host (NotificationHost): The notification primitive.
            settings (SettingsSource): Source of notification preferences.
            log (ScheduledNotificationLog | None): Optional durable log.
            clock (Callable[[], datetime]): Returns the current instant.
        """
        self.host = host
        self.settings = settings
        self.log = log
        self.clock = clock

    async def request_permission(self) -> bool:
        """Make sure notifications may be delivered.

        Returns:
            bool: True if permission is granted.
        """
        try:
            status: PermissionStatus = await self.host.get_permission_status()
            if status != PermissionStatus.GRANTED:
                status = await self.host.request_permission()

            if status != PermissionStatus.GRANTED:
                LOGGER.info("Notification permission denied")
                return False

            if (
                self.host.requires_channel
                and not await self.host.has_channel()
            ):
                await self.host.configure_channel(DEFAULT_CHANNEL)

            return True
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Error requesting notification permissions")
            return False

    async def _precheck(
        self, kind: NotificationKind
    ) -> ScheduleOutcome | None:
        if not is_kind_enabled(await self.settings.get(), kind):
            LOGGER.debug("Not scheduling %s: disabled in settings", kind.value)
            return ScheduleOutcome.DISABLED

        if not await self.request_permission():
            LOGGER.info("Cannot schedule notification: permission denied")
            return ScheduleOutcome.PERMISSION_DENIED

        return None

    async def _write_log(
        self,
        action: str,
        write: t.Callable[[ScheduledNotificationLog], t.Awaitable[t.Any]],
    ) -> None:
        # Log failures never undo or hide what the host already did
        if self.log is None:
            return
        try:
            await write(self.log)
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Error updating notification log: %s", action)

    async def _record(
        self,
        item: ExpiringItem,
        notification_id: str,
        kind: NotificationKind,
        scheduled_for: datetime,
    ) -> None:
        await self._write_log(
            f"record {notification_id}",
            lambda log: log.record(
                item.id,
                notification_id,
                kind,
                scheduled_for,
                item.expiry_date,
            ),
        )

    async def schedule_expiry_reminder(
        self, item: ExpiringItem
    ) -> ScheduleResult:
        """Schedule a one-shot reminder ahead of the item's expiry.

        Args:
            item (ExpiringItem): The item to remind about.

        Returns:
            ScheduleResult: The host id, or why nothing was scheduled.
        """
        kind: NotificationKind = NotificationKind.EXPIRY_REMINDER
        blocked: ScheduleOutcome | None = await self._precheck(kind)
        if blocked is not None:
            return ScheduleResult(outcome=blocked, kind=kind)

        reminder_time: datetime = expiry_instant(item.expiry_date) - timedelta(
            days=SETTINGS.reminder_lead_days
        )
        if reminder_time <= self.clock():
            LOGGER.debug(
                "Cannot schedule reminder for %s: date is in the past",
                item.name,
            )
            return ScheduleResult(
                outcome=ScheduleOutcome.TRIGGER_IN_PAST, kind=kind
            )

        payload: ExpiryReminderPayload = ExpiryReminderPayload(
            item_id=item.id,
            item_name=item.name,
            expiry_date=item.expiry_date,
        )
        try:
            notification_id: str = await self.host.schedule_one_shot(
                payload.to_host(), reminder_time
            )
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Error scheduling expiry reminder")
            return ScheduleResult(
                outcome=ScheduleOutcome.HOST_FAILURE, kind=kind
            )

        LOGGER.info(
            "Scheduled expiry reminder for %s: %s", item.name, notification_id
        )
        await self._record(item, notification_id, kind, reminder_time)
        return ScheduleResult(
            outcome=ScheduleOutcome.SCHEDULED,
            notification_id=notification_id,
            kind=kind,
            scheduled_for=reminder_time,
        )

    async def schedule_expired_alert(
        self, item: ExpiringItem
    ) -> ScheduleResult:
        """Schedule a repeating alert for an item that already expired.

        Args:
            item (ExpiringItem): The expired item.

        Returns:
            ScheduleResult: The host id, or why nothing was scheduled.
        """
        kind: NotificationKind = NotificationKind.EXPIRED_ALERT
        blocked: ScheduleOutcome | None = await self._precheck(kind)
        if blocked is not None:
            return ScheduleResult(outcome=blocked, kind=kind)

        now: datetime = self.clock()
        if expiry_instant(item.expiry_date) > now:
            LOGGER.debug(
                "Cannot schedule expired alert for %s: not yet expired",
                item.name,
            )
            return ScheduleResult(
                outcome=ScheduleOutcome.NOT_EXPIRED, kind=kind
            )

        first_trigger: datetime = now + timedelta(
            seconds=SETTINGS.expired_alert_first_delay_seconds
        )
        payload: ExpiredAlertPayload = ExpiredAlertPayload(
            item_id=item.id,
            item_name=item.name,
            expiry_date=item.expiry_date,
        )
        try:
            notification_id: str = await self.host.schedule_repeating(
                payload.to_host(),
                first_trigger,
                timedelta(hours=SETTINGS.expired_alert_interval_hours),
            )
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Error scheduling expired alert")
            return ScheduleResult(
                outcome=ScheduleOutcome.HOST_FAILURE, kind=kind
            )

        LOGGER.info(
            "Scheduled expired alert for %s: %s", item.name, notification_id
        )
        await self._record(item, notification_id, kind, first_trigger)
        return ScheduleResult(
            outcome=ScheduleOutcome.SCHEDULED,
            notification_id=notification_id,
            kind=kind,
            scheduled_for=first_trigger,
        )

    async def schedule_test_notification(
        self, delay_seconds: int = 5
    ) -> ScheduleResult:
        """Schedule a one-off reminder for a sample item.

        Args:
            delay_seconds (int): Seconds until the test fires.

        Returns:
            ScheduleResult: The host id, or why nothing was scheduled.
        """
        kind: NotificationKind = NotificationKind.EXPIRY_REMINDER
        if not await self.request_permission():
            return ScheduleResult(
                outcome=ScheduleOutcome.PERMISSION_DENIED, kind=kind
            )

        now: datetime = self.clock()
        trigger_at: datetime = now + timedelta(seconds=delay_seconds)
        payload: ExpiryReminderPayload = ExpiryReminderPayload(
            item_id="test-notification",
            item_name="Test Item",
            expiry_date=(
                now + timedelta(days=SETTINGS.reminder_lead_days)
            ).date(),
        )
        try:
            notification_id: str = await self.host.schedule_one_shot(
                payload.to_host(), trigger_at
            )
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Error scheduling test notification")
            return ScheduleResult(
                outcome=ScheduleOutcome.HOST_FAILURE, kind=kind
            )

        return ScheduleResult(
            outcome=ScheduleOutcome.SCHEDULED,
            notification_id=notification_id,
            kind=kind,
            scheduled_for=trigger_at,
        )

    async def cancel(self, notification_id: str) -> bool:
        """Cancel a trigger. Unknown or fired ids are a no-op.

        Args:
            notification_id (str): The host id to cancel.

        Returns:
            bool: True if a trigger was removed.
        """
        try:
            cancelled: bool = await self.host.cancel(notification_id)
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception(
                "Error cancelling notification %s", notification_id
            )
            return False

        if cancelled:
            LOGGER.info("Cancelled notification: %s", notification_id)
        await self._write_log(
            f"cancel {notification_id}",
            lambda log: log.mark_cancelled([notification_id]),
        )
        return cancelled

    async def _cancel_matching(
        self, predicate: t.Callable[[ScheduledNotificationRecord], bool]
    ) -> int:
        cancelled: int = 0
        for record in await self.list_scheduled():
            if predicate(record) and await self.cancel(record.notification_id):
                cancelled += 1
        return cancelled

    async def cancel_all_for_item(self, item_id: str) -> int:
        """Cancel every trigger that refers to an item.

        Args:
            item_id (str): The item whose triggers to cancel.

        Returns:
            int: Number of triggers cancelled.
        """
        cancelled: int = await self._cancel_matching(
            lambda record: record.item_id == item_id
        )
        if cancelled:
            LOGGER.info(
                "Cancelled %d notification(s) for item %s", cancelled, item_id
            )
        return cancelled

    async def cancel_all_of_kind(self, kind: NotificationKind) -> int:
        """Cancel every trigger of a kind.

        Args:
            kind (NotificationKind): The kind to cancel.

        Returns:
            int: Number of triggers cancelled.
        """
        cancelled: int = await self._cancel_matching(
            lambda record: record.kind == kind
        )
        LOGGER.info("Cancelled %d %s notification(s)", cancelled, kind.value)
        return cancelled

    async def cancel_all(self) -> None:
        """Cancel every trigger unconditionally."""
        try:
            removed: int = await self.host.cancel_all()
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Error clearing all notifications")
            return

        await self._write_log(
            "cancel all", lambda log: log.mark_all_cancelled()
        )
        LOGGER.info("Cleared all notifications (%d removed)", removed)

    async def list_scheduled(self) -> t.List[ScheduledNotificationRecord]:
        """Snapshot of the triggers currently registered with the host.

        Returns:
            t.List[ScheduledNotificationRecord]: The scheduled triggers.
        """
        try:
            requests: t.List[HostNotificationRequest] = (
                await self.host.list_all()
            )
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Error getting scheduled notifications")
            return []

        records: t.List[ScheduledNotificationRecord] = []
        for request in requests:
            try:
                payload: ExpiryReminderPayload | ExpiredAlertPayload = (
                    parse_payload(request.payload)
                )
            except ValidationError:
                LOGGER.warning(
                    "Ignoring notification %s with unknown payload",
                    request.identifier,
                )
                continue
            records.append(
                ScheduledNotificationRecord(
                    notification_id=request.identifier,
                    item_id=payload.item_id,
                    kind=payload.kind,
                    scheduled_for=request.trigger_at,
                    repeats=request.repeats,
                    payload=payload,
                )
            )
        return records

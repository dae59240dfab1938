"""Fakes and constants shared by the tests."""

import typing as t
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from smartshelf.core.auth import create_access_token
from smartshelf.core.models import UserNotificationSettings
from smartshelf.services.notification_host import (
    HostNotificationRequest,
    NotificationChannel,
    NotificationHostError,
    PermissionStatus,
)

# Midnight UTC, so whole-day offsets land exactly on expiry instants
NOW: datetime = datetime(2026, 1, 10, tzinfo=timezone.utc)
TODAY: date = NOW.date()

USER_ID: str = "alice"
OTHER_USER_ID: str = "bob"


@dataclass
class Item:
    """Minimal item carrying the fields notifications are built from."""

    id: str
    name: str
    expiry_date: date


class FakeHost:  # pylint: disable=too-many-instance-attributes
    """In-memory notification host with switchable failures."""

    def __init__(
        self,
        permission: PermissionStatus = PermissionStatus.GRANTED,
        requires_channel: bool = True,
    ) -> None:
        self.permission = permission
        self.grant_on_request = True
        self.channel: NotificationChannel | None = None
        self._requires_channel = requires_channel
        self.requests: t.Dict[str, HostNotificationRequest] = {}
        self.intervals: t.Dict[str, timedelta] = {}
        self.fail_schedule = False
        self.fail_list = False
        self._counter = 0

    @property
    def requires_channel(self) -> bool:
        return self._requires_channel

    async def get_permission_status(self) -> PermissionStatus:
        return self.permission

    async def request_permission(self) -> PermissionStatus:
        if (
            self.permission == PermissionStatus.UNDETERMINED
            and self.grant_on_request
        ):
            self.permission = PermissionStatus.GRANTED
        return self.permission

    async def has_channel(self) -> bool:
        return self.channel is not None

    async def configure_channel(self, channel: NotificationChannel) -> None:
        self.channel = channel

    def _add(
        self,
        payload: t.Mapping[str, t.Any],
        trigger_at: datetime,
        repeats: bool,
    ) -> str:
        if self.fail_schedule:
            raise NotificationHostError("host unavailable")
        self._counter += 1
        identifier: str = f"fake-{self._counter}"
        self.requests[identifier] = HostNotificationRequest(
            identifier=identifier,
            payload=dict(payload),
            trigger_at=trigger_at,
            repeats=repeats,
        )
        return identifier

    async def schedule_one_shot(
        self, payload: t.Mapping[str, t.Any], trigger_at: datetime
    ) -> str:
        return self._add(payload, trigger_at, repeats=False)

    async def schedule_repeating(
        self,
        payload: t.Mapping[str, t.Any],
        first_trigger_at: datetime,
        interval: timedelta,
    ) -> str:
        identifier: str = self._add(payload, first_trigger_at, repeats=True)
        self.intervals[identifier] = interval
        return identifier

    async def cancel(self, notification_id: str) -> bool:
        return self.requests.pop(notification_id, None) is not None

    async def cancel_all(self) -> int:
        removed: int = len(self.requests)
        self.requests.clear()
        return removed

    async def list_all(self) -> t.List[HostNotificationRequest]:
        if self.fail_list:
            raise NotificationHostError("host unavailable")
        return list(self.requests.values())

    def payloads(self) -> t.List[t.Dict[str, t.Any]]:
        """Payloads of every registered trigger."""
        return [request.payload for request in self.requests.values()]


class StaticSettings:  # pylint: disable=too-few-public-methods
    """Settings source with fixed values."""

    def __init__(
        self,
        expiry_reminders_enabled: bool = True,
        expired_alerts_enabled: bool = True,
    ) -> None:
        self.value = UserNotificationSettings(
            user_id=USER_ID,
            expiry_reminders_enabled=expiry_reminders_enabled,
            expired_alerts_enabled=expired_alerts_enabled,
        )

    async def get(self) -> UserNotificationSettings:
        return self.value


async def noop_fire(**_: t.Any) -> None:
    """Job function that does nothing."""


def auth_headers(user_id: str) -> t.Dict[str, str]:
    """Authorization header for a user.

    Args:
        user_id (str): The user to sign in as.

    Returns:
        t.Dict[str, str]: The request headers.
    """
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


class FailingLog:
    """Notification log whose every write fails."""

    def __init__(self) -> None:
        self.attempts: t.List[str] = []

    async def record(self, item_id: str, *_: t.Any) -> None:
        self.attempts.append(f"record:{item_id}")
        raise RuntimeError("database is locked")

    async def mark_cancelled(self, notification_ids: t.Iterable[str]) -> None:
        self.attempts.append(f"cancel:{','.join(notification_ids)}")
        raise RuntimeError("database is locked")

    async def mark_all_cancelled(self) -> None:
        self.attempts.append("cancel-all")
        raise RuntimeError("database is locked")

    async def dismissed_alerts(self) -> t.Set[t.Tuple[str, date]]:
        return set()

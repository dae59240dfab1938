"""Notification settings repository with toggle events."""

import logging
import typing as t
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smartshelf.core.models import NotificationKind, UserNotificationSettings

LOGGER: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettingToggled:
    """Emitted when a notification kind is switched on or off."""

    user_id: str
    kind: NotificationKind
    enabled: bool


SettingsListener = t.Callable[[SettingToggled], t.Awaitable[None]]

KIND_FIELDS: t.Dict[NotificationKind, str] = {
    NotificationKind.EXPIRY_REMINDER: "expiry_reminders_enabled",
    NotificationKind.EXPIRED_ALERT: "expired_alerts_enabled",
}


def is_kind_enabled(
    settings: UserNotificationSettings, kind: NotificationKind
) -> bool:
    """Check whether new notifications of a kind may be created.

    Args:
        settings (UserNotificationSettings): The user's settings.
        kind (NotificationKind): The notification kind.

    Returns:
        bool: True if the kind is enabled.
    """
    return bool(getattr(settings, KIND_FIELDS[kind]))


class NotificationSettingsRepository:
    """Persisted notification preferences of a single user."""

    db: AsyncSession
    user_id: str

    def __init__(self, db: AsyncSession, user_id: str) -> None:
        """Initialize the repository.

        Args:
            db (AsyncSession): The database session.
            user_id (str): The owner of the settings.
        """
        self.db = db
        self.user_id = user_id
        self._listeners: t.List[SettingsListener] = []

    def subscribe(self, listener: SettingsListener) -> None:
        """Register a listener for toggle events.

        Listeners live as long as the repository, which is per request.

        Args:
            listener (SettingsListener): Coroutine called per toggle.
        """
        self._listeners.append(listener)

    async def get(self) -> UserNotificationSettings:
        """Get the user's settings, creating defaults on first read.

        Returns:
            UserNotificationSettings: The stored settings.
        """
        settings: UserNotificationSettings | None = (
            await self.db.execute(
                select(UserNotificationSettings).where(
                    UserNotificationSettings.user_id == self.user_id
                )
            )
        ).scalar_one_or_none()

        if settings is None:
            settings = UserNotificationSettings(
                user_id=self.user_id,
                expiry_reminders_enabled=True,
                expired_alerts_enabled=True,
            )
            self.db.add(settings)
            await self.db.flush()

        return settings

    async def update(
        self,
        expiry_reminders_enabled: bool | None = None,
        expired_alerts_enabled: bool | None = None,
        email: str | None = None,
    ) -> UserNotificationSettings:
        """Persist new settings, then notify listeners of each toggle.

        Args:
            expiry_reminders_enabled (bool | None):
                New value for expiry reminders.
            expired_alerts_enabled (bool | None):
                New value for expired alerts.
            email (str | None):
                New e-mail address for notification delivery.

        Returns:
            UserNotificationSettings: The updated settings.
        """
        settings: UserNotificationSettings = await self.get()
        requested: t.Dict[NotificationKind, bool | None] = {
            NotificationKind.EXPIRY_REMINDER: expiry_reminders_enabled,
            NotificationKind.EXPIRED_ALERT: expired_alerts_enabled,
        }

        toggled: t.List[SettingToggled] = []
        for kind, value in requested.items():
            if value is None or value == is_kind_enabled(settings, kind):
                continue
            setattr(settings, KIND_FIELDS[kind], value)
            toggled.append(SettingToggled(self.user_id, kind, value))

        if email is not None:
            settings.email = email or None

        await self.db.flush()

        for event in toggled:
            LOGGER.info(
                "User %s turned %s %s",
                event.user_id,
                "on" if event.enabled else "off",
                event.kind.value,
            )
            for listener in list(self._listeners):
                await listener(event)

        return settings

"""Tests for the notification settings repository."""

from sqlalchemy.ext.asyncio import AsyncSession

from smartshelf.core.models import NotificationKind, UserNotificationSettings
from smartshelf.services.notification_settings import (
    NotificationSettingsRepository,
    SettingToggled,
    is_kind_enabled,
)

from .fakes import USER_ID


class TestNotificationSettingsRepository:
    """Persistence and toggle events."""

    async def test_defaults_created_on_first_read(
        self, db: AsyncSession
    ) -> None:
        settings: UserNotificationSettings = (
            await NotificationSettingsRepository(db, USER_ID).get()
        )

        assert settings.user_id == USER_ID
        assert settings.expiry_reminders_enabled
        assert settings.expired_alerts_enabled
        assert settings.email is None

    async def test_update_emits_only_real_changes(
        self, db: AsyncSession
    ) -> None:
        repository = NotificationSettingsRepository(db, USER_ID)
        events: list[SettingToggled] = []

        async def listener(event: SettingToggled) -> None:
            events.append(event)

        repository.subscribe(listener)

        await repository.update(
            expiry_reminders_enabled=False, expired_alerts_enabled=True
        )
        await repository.update(expiry_reminders_enabled=False)

        assert events == [
            SettingToggled(USER_ID, NotificationKind.EXPIRY_REMINDER, False)
        ]

    async def test_listener_sees_persisted_value(
        self, db: AsyncSession
    ) -> None:
        repository = NotificationSettingsRepository(db, USER_ID)
        seen: list[bool] = []

        async def listener(event: SettingToggled) -> None:
            stored: UserNotificationSettings = await repository.get()
            seen.append(is_kind_enabled(stored, event.kind))

        repository.subscribe(listener)
        await repository.update(expired_alerts_enabled=False)

        assert seen == [False]

    async def test_every_listener_receives_event(
        self, db: AsyncSession
    ) -> None:
        repository = NotificationSettingsRepository(db, USER_ID)
        received: list[str] = []

        async def first(event: SettingToggled) -> None:
            received.append(f"first:{event.kind.value}")

        async def second(event: SettingToggled) -> None:
            received.append(f"second:{event.kind.value}")

        repository.subscribe(first)
        repository.subscribe(second)
        await repository.update(expired_alerts_enabled=False)

        assert received == ["first:expired-alert", "second:expired-alert"]

    async def test_email_can_be_set_and_cleared(
        self, db: AsyncSession
    ) -> None:
        repository = NotificationSettingsRepository(db, USER_ID)

        assert (await repository.update(email="a@example.com")).email == (
            "a@example.com"
        )
        assert (await repository.update(email="")).email is None

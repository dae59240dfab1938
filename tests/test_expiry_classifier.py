"""Tests for expiry classification."""

from datetime import timedelta

import pytest

from smartshelf.core.models import ExpiryStatus
from smartshelf.schemas.classification import ExpiryClassification
from smartshelf.schemas.notifications import ScheduleOutcome, ScheduleResult
from smartshelf.services.expiry_classifier import (
    STATUS_COLORS,
    classify,
    expiry_detail_message,
    status_for_days,
)
from smartshelf.services.notification_orchestrator import (
    ExpiryNotificationOrchestrator,
)
from smartshelf.services.notification_scheduler import NotificationScheduler
from smartshelf.utils.dates import calculate_days_until_expiry, expiry_instant

from .fakes import NOW, TODAY, FakeHost, Item, StaticSettings


class TestClassify:
    """Status and message for whole-day offsets."""

    @pytest.mark.parametrize(
        "days, status, message",
        [
            (-10, ExpiryStatus.EXPIRED, "Expired 10 days ago"),
            (-1, ExpiryStatus.EXPIRED, "Expired 1 day ago"),
            (0, ExpiryStatus.NEAR_EXPIRY, "Expires today!"),
            (1, ExpiryStatus.NEAR_EXPIRY, "Expires tomorrow"),
            (2, ExpiryStatus.NEAR_EXPIRY, "Expires in 2 days"),
            (3, ExpiryStatus.NEAR_EXPIRY, "Expires in 3 days"),
            (4, ExpiryStatus.SAFE, "Expires in 4 days"),
            (10, ExpiryStatus.SAFE, "Expires in 10 days"),
        ],
    )
    def test_thresholds(
        self, days: int, status: ExpiryStatus, message: str
    ) -> None:
        """Day offsets map onto the documented status and message."""
        result: ExpiryClassification = classify(
            NOW, TODAY + timedelta(days=days)
        )

        assert result.days_until_expiry == days
        assert result.status == status
        assert result.message == message
        assert result.color == STATUS_COLORS[status]

    def test_later_the_same_day_is_still_today(self) -> None:
        """Partial days round up, so the expiry day reads as today."""
        result: ExpiryClassification = classify(
            NOW + timedelta(hours=12), TODAY
        )

        assert result.days_until_expiry == 0
        assert result.status == ExpiryStatus.NEAR_EXPIRY
        assert result.message == "Expires today!"

    def test_hour_before_midnight_is_tomorrow(self) -> None:
        result: ExpiryClassification = classify(
            NOW - timedelta(hours=1), TODAY
        )

        assert result.days_until_expiry == 1
        assert result.message == "Expires tomorrow"

    def test_naive_now_is_treated_as_utc(self) -> None:
        assert calculate_days_until_expiry(
            NOW.replace(tzinfo=None), TODAY + timedelta(days=5)
        ) == 5

    @pytest.mark.parametrize(
        "days, status",
        [(-1, ExpiryStatus.EXPIRED), (3, ExpiryStatus.NEAR_EXPIRY)],
    )
    def test_status_for_days(self, days: int, status: ExpiryStatus) -> None:
        assert status_for_days(days) == status

    def test_detail_messages(self) -> None:
        assert expiry_detail_message(-2) == "This item expired 2 days ago."
        assert expiry_detail_message(0) == "This item expires today!"
        assert expiry_detail_message(1) == "This item expires in 1 day."
        assert (
            expiry_detail_message(7) == "This item is good for 7 more days."
        )


class TestItemLifecycle:
    """An item is classified consistently with the notifications it gets."""

    async def test_reminder_then_expired_alert(self) -> None:
        """Reminder three days out, alert once the date has passed."""
        item: Item = Item(
            id="item-1", name="Yogurt", expiry_date=TODAY + timedelta(days=10)
        )
        host: FakeHost = FakeHost()
        settings: StaticSettings = StaticSettings()

        created: ScheduleResult = await NotificationScheduler(
            host, settings, clock=lambda: NOW
        ).schedule_expiry_reminder(item)
        assert created.scheduled
        assert created.scheduled_for is not None

        at_reminder: ExpiryClassification = classify(
            created.scheduled_for, item.expiry_date
        )
        assert at_reminder.status == ExpiryStatus.NEAR_EXPIRY
        assert at_reminder.message == "Expires in 3 days"

        day_after = expiry_instant(item.expiry_date) + timedelta(days=1)
        assert classify(day_after, item.expiry_date).message == (
            "Expired 1 day ago"
        )

        alert: ScheduleResult = await NotificationScheduler(
            host, settings, clock=lambda: day_after
        ).schedule_expired_alert(item)
        assert alert.scheduled
        assert alert.scheduled_for == day_after + timedelta(seconds=60)

    async def test_item_expiring_in_five_days(self) -> None:
        """Reminder two days from now, no alert, then the status walks on."""
        item: Item = Item(
            id="item-5", name="Cream", expiry_date=TODAY + timedelta(days=5)
        )
        host: FakeHost = FakeHost()
        orchestrator: ExpiryNotificationOrchestrator = (
            ExpiryNotificationOrchestrator(
                NotificationScheduler(
                    host, StaticSettings(), clock=lambda: NOW
                )
            )
        )

        results: list[ScheduleResult] = await orchestrator.on_item_created(
            item
        )

        assert [r.outcome for r in results] == [
            ScheduleOutcome.SCHEDULED,
            ScheduleOutcome.NOT_EXPIRED,
        ]
        assert [r.trigger_at for r in host.requests.values()] == [
            NOW + timedelta(days=2)
        ]
        assert [p["type"] for p in host.payloads()] == ["expiry-reminder"]
        assert classify(NOW, item.expiry_date).status == ExpiryStatus.SAFE

        three_days_before: ExpiryClassification = classify(
            NOW + timedelta(days=2), item.expiry_date
        )
        assert three_days_before.status == ExpiryStatus.NEAR_EXPIRY
        assert three_days_before.message == "Expires in 3 days"
        two_days_before: ExpiryClassification = classify(
            NOW + timedelta(days=3), item.expiry_date
        )
        assert two_days_before.status == ExpiryStatus.NEAR_EXPIRY
        assert two_days_before.message == "Expires in 2 days"

        day_after: ExpiryClassification = classify(
            NOW + timedelta(days=6), item.expiry_date
        )
        assert day_after.status == ExpiryStatus.EXPIRED
        assert day_after.message == "Expired 1 day ago"

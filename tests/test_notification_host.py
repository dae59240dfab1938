"""Tests for the APScheduler-backed notification host."""

from datetime import datetime, timedelta

import pytest
from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from smartshelf.services.notification_host import (
    APSchedulerNotificationHost,
    ChannelNotConfiguredError,
    HostNotificationRequest,
    NotificationChannel,
    NotificationHostRegistry,
    PermissionNotGrantedError,
    PermissionStatus,
)
from smartshelf.utils.dates import utc_now

from .fakes import noop_fire

PAYLOAD = {
    "type": "expiry-reminder",
    "itemId": "item-1",
    "itemName": "Milk",
    "expiryDate": "2026-01-20",
}
CHANNEL: NotificationChannel = NotificationChannel(name="default")


async def ready_host(
    registry: NotificationHostRegistry, namespace: str
) -> APSchedulerNotificationHost:
    """Host with permission granted and channel configured."""
    host: APSchedulerNotificationHost = registry.host_for(namespace)
    await host.request_permission()
    await host.configure_channel(CHANNEL)
    return host


class TestReadiness:
    """Scheduling requires permission and a channel."""

    async def test_schedule_without_permission_raises(
        self, registry: NotificationHostRegistry
    ) -> None:
        host: APSchedulerNotificationHost = registry.host_for("alice")

        with pytest.raises(PermissionNotGrantedError):
            await host.schedule_one_shot(
                PAYLOAD, utc_now() + timedelta(days=1)
            )

    async def test_schedule_without_channel_raises(
        self, registry: NotificationHostRegistry
    ) -> None:
        host: APSchedulerNotificationHost = registry.host_for("alice")
        assert await host.request_permission() == PermissionStatus.GRANTED

        with pytest.raises(ChannelNotConfiguredError):
            await host.schedule_one_shot(
                PAYLOAD, utc_now() + timedelta(days=1)
            )

    async def test_channel_optional_when_not_required(
        self, aps_scheduler: AsyncIOScheduler
    ) -> None:
        registry: NotificationHostRegistry = NotificationHostRegistry(
            scheduler=aps_scheduler,
            on_fire=noop_fire,
            requires_channel=False,
        )
        host: APSchedulerNotificationHost = registry.host_for("alice")
        await host.request_permission()

        notification_id: str = await host.schedule_one_shot(
            PAYLOAD, utc_now() + timedelta(days=1)
        )

        assert notification_id.startswith("alice:")

    async def test_without_auto_grant_client_decides(
        self, aps_scheduler: AsyncIOScheduler
    ) -> None:
        registry: NotificationHostRegistry = NotificationHostRegistry(
            scheduler=aps_scheduler, on_fire=noop_fire, auto_grant=False
        )
        host: APSchedulerNotificationHost = registry.host_for("alice")

        assert (
            await host.request_permission() == PermissionStatus.UNDETERMINED
        )
        assert host.set_permission(False) == PermissionStatus.DENIED
        assert await host.request_permission() == PermissionStatus.DENIED
        assert host.set_permission(True) == PermissionStatus.GRANTED

    async def test_sign_out_forgets_state_until_next_request(
        self, registry: NotificationHostRegistry
    ) -> None:
        await ready_host(registry, "alice")
        await ready_host(registry, "bob")

        registry.sign_out("alice")

        assert list(registry.states) == ["bob"]
        assert registry.is_signed_out("alice")
        assert not registry.is_signed_out("bob")

        returning: APSchedulerNotificationHost = registry.host_for("alice")
        assert not registry.is_signed_out("alice")
        assert (
            await returning.get_permission_status()
            == PermissionStatus.UNDETERMINED
        )
        assert not await returning.has_channel()

    def test_registry_shares_state_per_namespace(
        self, registry: NotificationHostRegistry
    ) -> None:
        assert registry.host_for("alice").state is (
            registry.host_for("alice").state
        )
        assert registry.host_for("alice").state is not (
            registry.host_for("bob").state
        )


class TestScheduling:
    """Jobs registered on the scheduler."""

    async def test_one_shot_round_trips_payload(
        self,
        registry: NotificationHostRegistry,
        aps_scheduler: AsyncIOScheduler,
    ) -> None:
        host: APSchedulerNotificationHost = await ready_host(registry, "alice")
        trigger_at: datetime = utc_now() + timedelta(days=2)

        notification_id: str = await host.schedule_one_shot(
            PAYLOAD, trigger_at
        )

        job: Job | None = aps_scheduler.get_job(notification_id)
        assert job is not None
        assert job.kwargs["namespace"] == "alice"
        assert job.kwargs["notification_id"] == notification_id

        requests: list[HostNotificationRequest] = await host.list_all()
        assert len(requests) == 1
        assert requests[0].identifier == notification_id
        assert requests[0].payload == PAYLOAD
        assert requests[0].trigger_at == trigger_at
        assert not requests[0].repeats

    async def test_repeating_uses_interval(
        self,
        registry: NotificationHostRegistry,
        aps_scheduler: AsyncIOScheduler,
    ) -> None:
        host: APSchedulerNotificationHost = await ready_host(registry, "alice")
        first: datetime = utc_now() + timedelta(minutes=1)

        notification_id: str = await host.schedule_repeating(
            {**PAYLOAD, "type": "expired-alert"}, first, timedelta(hours=24)
        )

        job: Job | None = aps_scheduler.get_job(notification_id)
        assert job is not None
        assert job.trigger.interval == timedelta(hours=24)

        requests: list[HostNotificationRequest] = await host.list_all()
        assert requests[0].repeats
        assert requests[0].trigger_at == first


class TestCancellation:
    """Cancelling jobs inside a namespace."""

    async def test_cancel_unknown_id_returns_false(
        self, registry: NotificationHostRegistry
    ) -> None:
        host: APSchedulerNotificationHost = await ready_host(registry, "alice")

        assert not await host.cancel("alice:missing")
        assert not await host.cancel("unrelated")

    async def test_cancel_twice(
        self, registry: NotificationHostRegistry
    ) -> None:
        host: APSchedulerNotificationHost = await ready_host(registry, "alice")
        notification_id: str = await host.schedule_one_shot(
            PAYLOAD, utc_now() + timedelta(days=1)
        )

        assert await host.cancel(notification_id)
        assert not await host.cancel(notification_id)
        assert await host.list_all() == []

    async def test_namespaces_are_isolated(
        self, registry: NotificationHostRegistry
    ) -> None:
        alice: APSchedulerNotificationHost = await ready_host(
            registry, "alice"
        )
        bob: APSchedulerNotificationHost = await ready_host(registry, "bob")
        await alice.schedule_one_shot(PAYLOAD, utc_now() + timedelta(days=1))
        bob_id: str = await bob.schedule_one_shot(
            PAYLOAD, utc_now() + timedelta(days=1)
        )

        assert not await alice.cancel(bob_id)
        assert await alice.cancel_all() == 1

        assert await alice.list_all() == []
        assert [r.identifier for r in await bob.list_all()] == [bob_id]

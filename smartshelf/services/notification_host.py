"""Notification host backed by APScheduler jobs.

Every signed-in user owns a namespace of jobs on a shared
``AsyncIOScheduler``. One-shot reminders are ``DateTrigger`` jobs and
repeating alerts are ``IntervalTrigger`` jobs; the notification payload
travels as job kwargs and comes back unchanged from ``list_all``.
"""

import enum
import logging
import typing as t
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

LOGGER: logging.Logger = logging.getLogger(__name__)

FireCallback = t.Callable[..., t.Awaitable[None]]


class PermissionStatus(str, enum.Enum):
    """Permission to deliver notifications in a namespace."""

    UNDETERMINED = "undetermined"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(frozen=True)
class NotificationChannel:
    """Delivery channel a host may require before scheduling."""

    name: str
    importance: str = "max"
    vibration_pattern: t.Tuple[int, ...] = (0, 250, 250, 250)
    light_color: str = "#FF231F7C"


@dataclass(frozen=True)
class HostNotificationRequest:
    """A trigger as reported by the host."""

    identifier: str
    payload: t.Dict[str, t.Any]
    trigger_at: datetime | None
    repeats: bool


class NotificationHostError(Exception):
    """Raised when the host refuses a scheduling call."""


class ChannelNotConfiguredError(NotificationHostError):
    """Raised when scheduling before the required channel exists."""

    namespace: str

    def __init__(self, namespace: str) -> None:
        """Initialize the exception.

        Args:
            namespace (str): The namespace missing a channel.
        """
        self.namespace = namespace
        super().__init__(
            f"No notification channel configured for '{namespace}'"
        )


class PermissionNotGrantedError(NotificationHostError):
    """Raised when scheduling without notification permission."""

    namespace: str

    def __init__(self, namespace: str) -> None:
        """Initialize the exception.

        Args:
            namespace (str): The namespace lacking permission.
        """
        self.namespace = namespace
        super().__init__(
            f"Notification permission not granted for '{namespace}'"
        )


class NotificationHost(t.Protocol):
    """Primitive the notification scheduler is built on."""

    @property
    def requires_channel(self) -> bool:
        """Whether a channel must be configured before scheduling."""

    async def get_permission_status(self) -> PermissionStatus:
        """Current permission status without prompting."""

    async def request_permission(self) -> PermissionStatus:
        """Ask for permission and return the resulting status."""

    async def has_channel(self) -> bool:
        """Whether the delivery channel is configured."""

    async def configure_channel(self, channel: NotificationChannel) -> None:
        """Configure the delivery channel."""

    async def schedule_one_shot(
        self, payload: t.Mapping[str, t.Any], trigger_at: datetime
    ) -> str:
        """Register a trigger that fires once and return its id."""

    async def schedule_repeating(
        self,
        payload: t.Mapping[str, t.Any],
        first_trigger_at: datetime,
        interval: timedelta,
    ) -> str:
        """Register a recurring trigger and return its id."""

    async def cancel(self, notification_id: str) -> bool:
        """Cancel a trigger; unknown ids return False."""

    async def cancel_all(self) -> int:
        """Cancel every trigger and return how many were removed."""

    async def list_all(self) -> t.List[HostNotificationRequest]:
        """Snapshot of all registered triggers."""


@dataclass
class NamespaceState:
    """Permission and channel state of one namespace."""

    permission: PermissionStatus = PermissionStatus.UNDETERMINED
    channel: NotificationChannel | None = None


def _next_fire_time(job: Job) -> datetime | None:
    # Jobs added before the scheduler starts have no next_run_time yet
    next_run: datetime | None = getattr(job, "next_run_time", None)
    if next_run is not None:
        return next_run
    trigger: t.Any = job.trigger
    if isinstance(trigger, DateTrigger):
        return trigger.run_date
    if isinstance(trigger, IntervalTrigger):
        return trigger.start_date
    return None


class APSchedulerNotificationHost:
    """Notification host for a single namespace."""

    scheduler: BaseScheduler
    namespace: str
    state: NamespaceState
    on_fire: FireCallback
    auto_grant: bool

    def __init__(  # pylint: disable=too-many-arguments,too-many-positional-arguments,line-too-long  # noqa: E501
        self,
        scheduler: BaseScheduler,
        namespace: str,
        state: NamespaceState,
        on_fire: FireCallback,
        auto_grant: bool = True,
        requires_channel: bool = True,
    ) -> None:
        """Initialize the host.

        Args:
            scheduler (BaseScheduler): The shared APScheduler instance.
            namespace (str): The namespace (user id) of this host.
            state (NamespaceState): Permission and channel state.
            on_fire (FireCallback): Coroutine run when a trigger fires.
            auto_grant (bool): Grant permission on first request.
            requires_channel (bool): Require a channel before scheduling.
        """
        self.scheduler = scheduler
        self.namespace = namespace
        self.state = state
        self.on_fire = on_fire
        self.auto_grant = auto_grant
        self._requires_channel = requires_channel

    @property
    def prefix(self) -> str:
        """Job id prefix owned by this namespace."""
        return f"{self.namespace}:"

    @property
    def requires_channel(self) -> bool:
        """Whether a channel must be configured before scheduling."""
        return self._requires_channel

    async def get_permission_status(self) -> PermissionStatus:
        return self.state.permission

    async def request_permission(self) -> PermissionStatus:
        if (
            self.state.permission == PermissionStatus.UNDETERMINED
            and self.auto_grant
        ):
            self.state.permission = PermissionStatus.GRANTED
        return self.state.permission

    def set_permission(self, granted: bool) -> PermissionStatus:
        """Record the permission decision reported by the client.

        Args:
            granted (bool): Whether the user allowed notifications.

        Returns:
            PermissionStatus: The new status.
        """
        self.state.permission = (
            PermissionStatus.GRANTED if granted else PermissionStatus.DENIED
        )
        return self.state.permission

    async def has_channel(self) -> bool:
        return self.state.channel is not None

    async def configure_channel(self, channel: NotificationChannel) -> None:
        self.state.channel = channel
        LOGGER.debug(
            "Configured channel '%s' for %s", channel.name, self.namespace
        )

    def _ensure_ready(self) -> None:
        if self.state.permission != PermissionStatus.GRANTED:
            raise PermissionNotGrantedError(self.namespace)
        if self._requires_channel and self.state.channel is None:
            raise ChannelNotConfiguredError(self.namespace)

    def _new_job_id(self) -> str:
        return f"{self.prefix}{uuid.uuid4().hex}"

    async def schedule_one_shot(
        self, payload: t.Mapping[str, t.Any], trigger_at: datetime
    ) -> str:
        self._ensure_ready()
        job_id: str = self._new_job_id()
        self.scheduler.add_job(
            self.on_fire,
            trigger=DateTrigger(run_date=trigger_at, timezone=timezone.utc),
            id=job_id,
            name=f"{payload.get('type')} for {payload.get('itemId')}",
            kwargs={
                "namespace": self.namespace,
                "notification_id": job_id,
                "payload": dict(payload),
            },
            misfire_grace_time=None,
        )
        return job_id

    async def schedule_repeating(
        self,
        payload: t.Mapping[str, t.Any],
        first_trigger_at: datetime,
        interval: timedelta,
    ) -> str:
        self._ensure_ready()
        job_id: str = self._new_job_id()
        self.scheduler.add_job(
            self.on_fire,
            trigger=IntervalTrigger(
                seconds=int(interval.total_seconds()),
                start_date=first_trigger_at,
                timezone=timezone.utc,
            ),
            id=job_id,
            name=f"{payload.get('type')} for {payload.get('itemId')}",
            kwargs={
                "namespace": self.namespace,
                "notification_id": job_id,
                "payload": dict(payload),
            },
            misfire_grace_time=None,
            coalesce=True,
        )
        return job_id

    async def cancel(self, notification_id: str) -> bool:
        if not notification_id.startswith(self.prefix):
            return False
        try:
            self.scheduler.remove_job(notification_id)
        except JobLookupError:
            return False
        return True

    def _own_jobs(self) -> t.List[Job]:
        return [
            job
            for job in self.scheduler.get_jobs()
            if job.id.startswith(self.prefix)
        ]

    async def cancel_all(self) -> int:
        removed: int = 0
        for job in self._own_jobs():
            try:
                self.scheduler.remove_job(job.id)
                removed += 1
            except JobLookupError:
                continue
        return removed

    async def list_all(self) -> t.List[HostNotificationRequest]:
        return [
            HostNotificationRequest(
                identifier=job.id,
                payload=dict(job.kwargs.get("payload", {})),
                trigger_at=_next_fire_time(job),
                repeats=isinstance(job.trigger, IntervalTrigger),
            )
            for job in self._own_jobs()
        ]


@dataclass
class NotificationHostRegistry:
    """Hands out one host per namespace over a shared scheduler.

    A namespace stays signed out from ``sign_out`` until a request calls
    ``host_for`` for it again. The expiry sweep skips such namespaces.
    """

    scheduler: BaseScheduler
    on_fire: FireCallback
    auto_grant: bool = True
    requires_channel: bool = True
    states: t.Dict[str, NamespaceState] = field(default_factory=dict)
    signed_out: t.Set[str] = field(default_factory=set)

    def host_for(self, namespace: str) -> APSchedulerNotificationHost:
        """Get the host of a namespace, signing it back in if needed.

        Args:
            namespace (str): The namespace, usually the user id.

        Returns:
            APSchedulerNotificationHost: The namespace's host.
        """
        self.signed_out.discard(namespace)
        state: NamespaceState = self.states.setdefault(
            namespace, NamespaceState()
        )
        return APSchedulerNotificationHost(
            self.scheduler,
            namespace,
            state,
            self.on_fire,
            auto_grant=self.auto_grant,
            requires_channel=self.requires_channel,
        )

    def sign_out(self, namespace: str) -> None:
        """Forget a namespace's permission and channel state.

        Args:
            namespace (str): The namespace whose session ended.
        """
        self.states.pop(namespace, None)
        self.signed_out.add(namespace)
        LOGGER.debug("Namespace %s signed out", namespace)

    def is_signed_out(self, namespace: str) -> bool:
        """Check whether a namespace signed out and has not returned.

        Args:
            namespace (str): The namespace to check.

        Returns:
            bool: True if the namespace is signed out.
        """
        return namespace in self.signed_out

"""Schemas for notification payloads, schedules and settings."""

import enum
import typing as t
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from smartshelf.core.models import NotificationKind


class _PayloadBase(BaseModel):
    """Fields carried by every notification payload."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    item_id: str = Field(..., alias="itemId", min_length=1)
    item_name: str = Field(..., alias="itemName")
    expiry_date: date = Field(..., alias="expiryDate")

    @property
    def kind(self) -> NotificationKind:
        """The notification kind this payload belongs to."""
        return NotificationKind(getattr(self, "type"))

    def to_host(self) -> t.Dict[str, t.Any]:
        """Serialize the payload the way it is handed to the host."""
        return self.model_dump(mode="json", by_alias=True)


class ExpiryReminderPayload(_PayloadBase):
    """Payload of the one-shot reminder sent before expiry."""

    type: t.Literal["expiry-reminder"] = "expiry-reminder"


class ExpiredAlertPayload(_PayloadBase):
    """Payload of the repeating alert sent after expiry."""

    type: t.Literal["expired-alert"] = "expired-alert"


NotificationPayload = t.Annotated[
    t.Union[ExpiryReminderPayload, ExpiredAlertPayload],
    Field(discriminator="type"),
]

PAYLOAD_ADAPTER: TypeAdapter[
    ExpiryReminderPayload | ExpiredAlertPayload
] = TypeAdapter(NotificationPayload)


def parse_payload(
    data: t.Mapping[str, t.Any],
) -> ExpiryReminderPayload | ExpiredAlertPayload:
    """Validate raw host data into a tagged payload.

    Args:
        data (t.Mapping[str, t.Any]): The raw payload from the host.

    Raises:
        pydantic.ValidationError: If the data matches no payload variant.

    Returns:
        ExpiryReminderPayload | ExpiredAlertPayload: The typed payload.
    """
    return PAYLOAD_ADAPTER.validate_python(dict(data))


class ScheduledNotificationRecord(BaseModel):
    """Snapshot of a trigger currently registered with the host."""

    notification_id: str
    item_id: str
    kind: NotificationKind
    scheduled_for: datetime | None
    repeats: bool
    payload: NotificationPayload


class ScheduleOutcome(str, enum.Enum):
    """Why a schedule request did or did not register a trigger."""

    SCHEDULED = "scheduled"
    DISABLED = "disabled"
    PERMISSION_DENIED = "permission_denied"
    TRIGGER_IN_PAST = "trigger_in_past"
    NOT_EXPIRED = "not_expired"
    HOST_FAILURE = "host_failure"


class ScheduleResult(BaseModel):
    """Result of a schedule request."""

    model_config = ConfigDict(frozen=True)

    outcome: ScheduleOutcome
    notification_id: str | None = None
    kind: NotificationKind
    scheduled_for: datetime | None = None

    @property
    def scheduled(self) -> bool:
        """Whether a trigger was registered."""
        return self.outcome == ScheduleOutcome.SCHEDULED


class NotificationSettingsResponse(BaseModel):
    """Notification settings of the current user."""

    model_config = ConfigDict(from_attributes=True)

    expiry_reminders_enabled: bool
    expired_alerts_enabled: bool
    email: str | None = None


class NotificationSettingsUpdate(BaseModel):
    """Partial update of notification settings."""

    expiry_reminders_enabled: bool | None = None
    expired_alerts_enabled: bool | None = None
    email: str | None = Field(None, max_length=255)


class PermissionRequest(BaseModel):
    """Permission decision reported by the client.

    Leaving ``granted`` unset asks the host to decide.
    """

    granted: bool | None = None


class PermissionResponse(BaseModel):
    """Permission state after a request."""

    granted: bool


class NotificationTapRequest(BaseModel):
    """Body sent by the client when a notification is tapped."""

    notification_id: str
    payload: t.Dict[str, t.Any]


class NotificationTapResponse(BaseModel):
    """Where the client should navigate after a tap."""

    item_id: str
    kind: NotificationKind


class NotificationHistoryResponse(BaseModel):
    """A delivered notification."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    item_id: str
    notification_id: str
    type: NotificationKind
    sent_at: datetime
    was_clicked: bool
    clicked_at: datetime | None = None

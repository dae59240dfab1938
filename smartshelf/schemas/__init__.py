"""Schemas package."""

from smartshelf.schemas.auth import SignOutResult, TokenData
from smartshelf.schemas.classification import ExpiryClassification
from smartshelf.schemas.food_item import (
    FridgeItemCreate,
    FridgeItemListResponse,
    FridgeItemResponse,
    FridgeItemUpdate,
)
from smartshelf.schemas.notifications import (
    ExpiredAlertPayload,
    ExpiryReminderPayload,
    NotificationHistoryResponse,
    NotificationSettingsResponse,
    NotificationSettingsUpdate,
    NotificationTapRequest,
    NotificationTapResponse,
    PermissionRequest,
    PermissionResponse,
    ScheduledNotificationRecord,
    ScheduleOutcome,
    ScheduleResult,
    parse_payload,
)

__all__ = [
    "ExpiredAlertPayload",
    "ExpiryClassification",
    "ExpiryReminderPayload",
    "FridgeItemCreate",
    "FridgeItemListResponse",
    "FridgeItemResponse",
    "FridgeItemUpdate",
    "NotificationHistoryResponse",
    "NotificationSettingsResponse",
    "NotificationSettingsUpdate",
    "NotificationTapRequest",
    "NotificationTapResponse",
    "PermissionRequest",
    "PermissionResponse",
    "ScheduleOutcome",
    "ScheduleResult",
    "ScheduledNotificationRecord",
    "SignOutResult",
    "TokenData",
    "parse_payload",
]

"""Services package."""

from smartshelf.services.item_service import (
    ItemNotFoundError,
    ItemService,
    QRCodeNotFoundError,
)
from smartshelf.services.notification_dispatcher import (
    fire_notification,
    handle_notification_response,
    list_history,
)
from smartshelf.services.notification_host import (
    APSchedulerNotificationHost,
    ChannelNotConfiguredError,
    NotificationHostError,
    NotificationHostRegistry,
    PermissionNotGrantedError,
    PermissionStatus,
)
from smartshelf.services.notification_orchestrator import (
    ExpiryNotificationOrchestrator,
)
from smartshelf.services.notification_scheduler import NotificationScheduler
from smartshelf.services.notification_settings import (
    NotificationSettingsRepository,
    SettingToggled,
)

__all__ = [
    "APSchedulerNotificationHost",
    "ChannelNotConfiguredError",
    "ExpiryNotificationOrchestrator",
    "ItemNotFoundError",
    "ItemService",
    "NotificationHostError",
    "NotificationHostRegistry",
    "NotificationScheduler",
    "NotificationSettingsRepository",
    "PermissionNotGrantedError",
    "PermissionStatus",
    "QRCodeNotFoundError",
    "SettingToggled",
    "fire_notification",
    "handle_notification_response",
    "list_history",
]

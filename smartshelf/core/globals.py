"""Global variables."""

from datetime import timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from smartshelf.core.config import SETTINGS
from smartshelf.services.notification_dispatcher import fire_notification
from smartshelf.services.notification_host import NotificationHostRegistry

OPENAPI_TAGS = [
    {
        "name": "Fridge Items",
        "description": "CRUD operations and QR lookup for fridge items",
    },
    {
        "name": "Notifications",
        "description": (
            "Notification settings, permission,"
            " scheduled reminders and taps"
        ),
    },
    {
        "name": "Session",
        "description": "Session lifecycle hooks such as sign-out cleanup",
    },
    {
        "name": "Health",
        "description": "Application health check endpoints",
    },
]

SCHEDULER: AsyncIOScheduler = AsyncIOScheduler(timezone=timezone.utc)

HOST_REGISTRY: NotificationHostRegistry = NotificationHostRegistry(
    scheduler=SCHEDULER,
    on_fire=fire_notification,
    auto_grant=SETTINGS.notifications_auto_grant,
    requires_channel=SETTINGS.notification_channel_required,
)

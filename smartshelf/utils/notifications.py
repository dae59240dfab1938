"""Notification dependencies shared by the routers."""

import typing as t

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from smartshelf.core.auth import get_current_user
from smartshelf.core.database import get_db
from smartshelf.core.globals import HOST_REGISTRY
from smartshelf.schemas.auth import TokenData
from smartshelf.services.notification_host import (
    APSchedulerNotificationHost,
    NotificationHostRegistry,
)
from smartshelf.services.notification_log import ScheduledNotificationLog
from smartshelf.services.notification_orchestrator import (
    ExpiryNotificationOrchestrator,
)
from smartshelf.services.notification_scheduler import NotificationScheduler
from smartshelf.services.notification_settings import (
    NotificationSettingsRepository,
)


def get_host_registry() -> NotificationHostRegistry:
    """Dependency returning the application's host registry.

    Returns:
        NotificationHostRegistry: The registry.
    """
    return HOST_REGISTRY


def get_notification_host(
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
    registry: t.Annotated[
        NotificationHostRegistry, Depends(get_host_registry)
    ],
) -> APSchedulerNotificationHost:
    """Dependency returning the current user's notification host.

    Args:
        current_user (TokenData): The authenticated user.
        registry (NotificationHostRegistry): The host registry.

    Returns:
        APSchedulerNotificationHost: The user's host.
    """
    return registry.host_for(current_user.user_id)


def get_settings_repository(
    db: t.Annotated[AsyncSession, Depends(get_db)],
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
) -> NotificationSettingsRepository:
    """Dependency returning the current user's settings repository.

    Args:
        db (AsyncSession): The database session.
        current_user (TokenData): The authenticated user.

    Returns:
        NotificationSettingsRepository: The repository.
    """
    return NotificationSettingsRepository(db, current_user.user_id)


def get_orchestrator(
    db: t.Annotated[AsyncSession, Depends(get_db)],
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
    host: t.Annotated[
        APSchedulerNotificationHost, Depends(get_notification_host)
    ],
    settings: t.Annotated[
        NotificationSettingsRepository, Depends(get_settings_repository)
    ],
) -> ExpiryNotificationOrchestrator:
    """Dependency wiring the current user's notification orchestrator.

    The orchestrator subscribes to the same settings repository the
    request uses, so toggles made during the request reach it.

    Args:
        db (AsyncSession): The database session.
        current_user (TokenData): The authenticated user.
        host (APSchedulerNotificationHost): The user's host.
        settings (NotificationSettingsRepository): The user's settings.

    Returns:
        ExpiryNotificationOrchestrator: The orchestrator.
    """
    scheduler: NotificationScheduler = NotificationScheduler(
        host,
        settings,
        log=ScheduledNotificationLog(db, current_user.user_id),
    )
    return ExpiryNotificationOrchestrator(scheduler, settings)

"""Notification settings, scheduling and tap endpoints."""

import typing as t

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from smartshelf.core.auth import get_current_user
from smartshelf.core.database import get_db
from smartshelf.core.models import UserNotificationSettings
from smartshelf.schemas.auth import TokenData
from smartshelf.schemas.notifications import (
    NotificationHistoryResponse,
    NotificationSettingsResponse,
    NotificationSettingsUpdate,
    NotificationTapRequest,
    NotificationTapResponse,
    PermissionRequest,
    PermissionResponse,
    ScheduledNotificationRecord,
    ScheduleResult,
)
from smartshelf.services import (
    APSchedulerNotificationHost,
    ExpiryNotificationOrchestrator,
    NotificationSettingsRepository,
    handle_notification_response,
    list_history,
)
from smartshelf.utils.notifications import (
    get_notification_host,
    get_orchestrator,
    get_settings_repository,
)

ROUTER = APIRouter(prefix="/notifications", tags=["Notifications"])


@ROUTER.get("/settings", response_model=NotificationSettingsResponse)
async def get_notification_settings(
    settings: t.Annotated[
        NotificationSettingsRepository, Depends(get_settings_repository)
    ],
) -> NotificationSettingsResponse:
    """Get the current notification settings.

    Args:
        settings (NotificationSettingsRepository): The user's settings.

    Returns:
        NotificationSettingsResponse: The notification settings.
    """
    return NotificationSettingsResponse.model_validate(await settings.get())


@ROUTER.put(
    "/settings",
    response_model=NotificationSettingsResponse,
    dependencies=[Depends(get_orchestrator)],
)
async def update_notification_settings(
    settings_data: NotificationSettingsUpdate,
    settings: t.Annotated[
        NotificationSettingsRepository, Depends(get_settings_repository)
    ],
) -> NotificationSettingsResponse:
    """Update notification settings.

    Switching a kind off cancels every scheduled notification of it.

    Args:
        settings_data (NotificationSettingsUpdate): The new settings.
        settings (NotificationSettingsRepository): The user's settings.

    Returns:
        NotificationSettingsResponse: The updated notification settings.
    """
    updated: UserNotificationSettings = await settings.update(
        expiry_reminders_enabled=settings_data.expiry_reminders_enabled,
        expired_alerts_enabled=settings_data.expired_alerts_enabled,
        email=settings_data.email,
    )
    return NotificationSettingsResponse.model_validate(updated)


@ROUTER.post("/permission", response_model=PermissionResponse)
async def request_notification_permission(
    permission: PermissionRequest,
    host: t.Annotated[
        APSchedulerNotificationHost, Depends(get_notification_host)
    ],
    orchestrator: t.Annotated[
        ExpiryNotificationOrchestrator, Depends(get_orchestrator)
    ],
) -> PermissionResponse:
    """Request notification permission, or report the user's decision.

    Args:
        permission (PermissionRequest): The client's decision, if any.
        host (APSchedulerNotificationHost): The user's host.
        orchestrator (ExpiryNotificationOrchestrator):
            Wires the user's scheduler.

    Returns:
        PermissionResponse: Whether notifications may be delivered.
    """
    if permission.granted is not None:
        host.set_permission(permission.granted)

    return PermissionResponse(
        granted=await orchestrator.scheduler.request_permission()
    )


@ROUTER.get(
    "/scheduled", response_model=t.List[ScheduledNotificationRecord]
)
async def list_scheduled_notifications(
    orchestrator: t.Annotated[
        ExpiryNotificationOrchestrator, Depends(get_orchestrator)
    ],
) -> t.List[ScheduledNotificationRecord]:
    """List the notifications currently scheduled for the user.

    Args:
        orchestrator (ExpiryNotificationOrchestrator):
            Wires the user's scheduler.

    Returns:
        t.List[ScheduledNotificationRecord]: The scheduled notifications.
    """
    return await orchestrator.scheduler.list_scheduled()


@ROUTER.delete(
    "/scheduled/{notification_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def cancel_scheduled_notification(
    notification_id: str,
    orchestrator: t.Annotated[
        ExpiryNotificationOrchestrator, Depends(get_orchestrator)
    ],
) -> Response:
    """Cancel a scheduled notification. Unknown ids are ignored.

    Args:
        notification_id (str): The notification to cancel.
        orchestrator (ExpiryNotificationOrchestrator):
            Wires the user's scheduler.

    Returns:
        Response: Empty response.
    """
    await orchestrator.scheduler.cancel(notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@ROUTER.post("/test", response_model=ScheduleResult)
async def send_test_notification(
    orchestrator: t.Annotated[
        ExpiryNotificationOrchestrator, Depends(get_orchestrator)
    ],
    delay_seconds: int = Query(5, ge=1, le=3600),
) -> ScheduleResult:
    """Schedule a test notification for a sample item.

    Args:
        orchestrator (ExpiryNotificationOrchestrator):
            Wires the user's scheduler.
        delay_seconds (int): Seconds until the test fires.

    Returns:
        ScheduleResult: The outcome of the request.
    """
    return await orchestrator.scheduler.schedule_test_notification(
        delay_seconds=delay_seconds
    )


@ROUTER.post("/response", response_model=NotificationTapResponse)
async def notification_tapped(
    tap: NotificationTapRequest,
    db: t.Annotated[AsyncSession, Depends(get_db)],
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
) -> NotificationTapResponse:
    """Handle a tap on a delivered notification.

    Args:
        tap (NotificationTapRequest): The tapped notification.
        db (AsyncSession): The database session.
        current_user (TokenData): The currently authenticated user.

    Returns:
        NotificationTapResponse: The item the client should open.
    """
    try:
        return await handle_notification_response(
            db, current_user.user_id, tap.notification_id, tap.payload
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Unknown notification payload",
        ) from exc


@ROUTER.get("/history", response_model=t.List[NotificationHistoryResponse])
async def get_notification_history(
    db: t.Annotated[AsyncSession, Depends(get_db)],
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
    limit: int = Query(50, ge=1, le=200, description="Maximum entries"),
) -> t.List[NotificationHistoryResponse]:
    """List recently delivered notifications.

    Args:
        db (AsyncSession): The database session.
        current_user (TokenData): The currently authenticated user.
        limit (int): Maximum number of entries.

    Returns:
        t.List[NotificationHistoryResponse]: Newest first.
    """
    return [
        NotificationHistoryResponse.model_validate(entry)
        for entry in await list_history(db, current_user.user_id, limit)
    ]

"""Session lifecycle endpoints."""

import typing as t

from fastapi import APIRouter, Depends

from smartshelf.core.auth import get_current_user
from smartshelf.schemas.auth import SignOutResult, TokenData
from smartshelf.services import (
    ExpiryNotificationOrchestrator,
    NotificationHostRegistry,
)
from smartshelf.utils.notifications import get_host_registry, get_orchestrator

ROUTER = APIRouter(prefix="/session", tags=["Session"])


@ROUTER.post("/sign-out", response_model=SignOutResult)
async def sign_out(
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
    orchestrator: t.Annotated[
        ExpiryNotificationOrchestrator, Depends(get_orchestrator)
    ],
    registry: t.Annotated[
        NotificationHostRegistry, Depends(get_host_registry)
    ],
) -> SignOutResult:
    """Clear the user's scheduled notifications before signing out.

    The namespace is marked signed out so the expiry sweep leaves it
    alone. The client discards its token afterwards; the auth service
    owns the session itself.

    Args:
        current_user (TokenData): The authenticated user.
        orchestrator (ExpiryNotificationOrchestrator):
            Wires the user's scheduler.
        registry (NotificationHostRegistry): The host registry.

    Returns:
        SignOutResult: The result of the cleanup.
    """
    await orchestrator.on_signed_out()
    registry.sign_out(current_user.user_id)
    return SignOutResult(
        success=True, message="Scheduled notifications cleared"
    )

"""API routes package."""

from fastapi import APIRouter

from smartshelf.routers.api import items, notifications, session

# Create main API router with /api prefix
ROUTER = APIRouter(prefix="/api")

# Include all sub-routers
ROUTER.include_router(items.ROUTER)
ROUTER.include_router(notifications.ROUTER)
ROUTER.include_router(session.ROUTER)

__all__ = [
    "items",
    "notifications",
    "session",
    "ROUTER",
]

"""Routers package."""

from smartshelf.routers.api import ROUTER as api_router

__all__ = ["api_router"]

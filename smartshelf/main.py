"""SmartShelf HTTP service."""

import logging
import typing as t
from contextlib import asynccontextmanager

from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smartshelf.core.config import SETTINGS
from smartshelf.core.database import close_db, init_db
from smartshelf.core.globals import OPENAPI_TAGS, SCHEDULER
from smartshelf.routers import api_router
from smartshelf.services.expiration_checker import check_expiring_items_task

logging.basicConfig(
    level=logging.DEBUG if SETTINGS.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
LOGGER: logging.Logger = logging.getLogger(__name__)

EXPIRY_SWEEP_JOB_ID: str = "expiration_check"


def schedule_expiry_sweep() -> None:
    """Register the periodic sweep that re-arms missing expired alerts."""
    hours: int = SETTINGS.check_expiration_interval_hours
    SCHEDULER.add_job(
        check_expiring_items_task,
        trigger=IntervalTrigger(hours=hours),
        id=EXPIRY_SWEEP_JOB_ID,
        name="Re-arm expired item alerts",
        replace_existing=True,
    )
    LOGGER.info("Expiry sweep runs every %d hours", hours)


@asynccontextmanager
async def lifespan(_: FastAPI) -> t.AsyncGenerator[None, None]:
    """Create tables, start the notification scheduler and stop it on exit.

    Args:
        _ (FastAPI): Unused application instance.
    """
    LOGGER.info("Starting %s %s", SETTINGS.app_name, SETTINGS.app_version)
    await init_db()

    schedule_expiry_sweep()
    SCHEDULER.start()
    # Catch up on items that expired while the service was down.
    await check_expiring_items_task()

    yield

    LOGGER.info("Stopping %s", SETTINGS.app_name)
    SCHEDULER.shutdown(wait=False)
    await close_db()


APPLICATION: FastAPI = FastAPI(
    title=SETTINGS.app_name,
    description="SmartShelf - fridge inventory with expiry notifications",
    version=SETTINGS.app_version,
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

APPLICATION.add_middleware(
    CORSMiddleware,
    allow_origins=SETTINGS.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

APPLICATION.include_router(api_router)


@APPLICATION.get("/health", tags=["Health"])
async def health_check() -> t.Dict[str, str]:
    """Liveness probe.

    Returns:
        t.Dict[str, str]: Always ``{"status": "healthy"}``.
    """
    return {"status": "healthy"}

"""Startup tasks for the application."""

import asyncio
import logging
from contextlib import asynccontextmanager

from .config import settings
from .maintenance_service import VisitorDataMaintenanceService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def startup_tasks(maintenance_service: VisitorDataMaintenanceService):
    """Manage startup and shutdown of background services."""
    if not settings.MAINTENANCE_ENABLED:
        logger.info("Visitor data maintenance disabled")
        yield
        return

    logger.info("🚀 Starting background services...")
    maintenance_service.start()

    try:
        yield
    finally:
        logger.info("🛑 Shutting down background services...")
        maintenance_task = maintenance_service.stop()
        if maintenance_task is not None:
            try:
                await maintenance_task
            except asyncio.CancelledError:
                logger.info("✅ Maintenance task cancelled")
        logger.info("✅ Background services stopped")

"""System endpoints for health checks and data maintenance."""

from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from ..core.config import settings
from ..core.security import require_admin
from .. import schemas

router = APIRouter(prefix="/system", tags=["System"])


@router.get("/health", summary="Service health check")
async def health_check() -> dict:
    """Check the health and status of the API."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc),
        "version": settings.APP_VERSION,
        "app_name": settings.APP_NAME
    }


@router.post("/maintenance", response_model=schemas.MaintenanceReport, summary="Run a maintenance pass now")
async def run_maintenance(request: Request, _: str = Depends(require_admin)) -> schemas.MaintenanceReport:
    """Trigger a one-off retention pass outside the regular schedule."""
    maintenance_service = request.app.state.maintenance_service
    return await run_in_threadpool(maintenance_service.perform_maintenance)


@router.get("/maintenance/stats", response_model=schemas.MaintenanceStats, summary="Stored visitor data footprint")
async def maintenance_stats(request: Request, _: str = Depends(require_admin)) -> schemas.MaintenanceStats:
    maintenance_service = request.app.state.maintenance_service
    return await run_in_threadpool(maintenance_service.get_maintenance_stats)

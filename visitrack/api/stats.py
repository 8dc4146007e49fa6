"""Visitor statistics endpoints."""

from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..core.security import require_admin
from ..core import stats_service
from .. import schemas

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("", response_model=schemas.VisitorStatsResponse, summary="Global visitor counters")
async def visitor_stats(db: Session = Depends(get_db)) -> schemas.VisitorStatsResponse:
    """Global counters with the last 7 recorded days."""
    return stats_service.get_visitor_stats(db)


@router.get("/daily", response_model=List[schemas.DailyStat], summary="Daily visitor counters")
async def daily_stats(
    days: int = Query(7, ge=1, le=90),
    db: Session = Depends(get_db)
) -> List[schemas.DailyStat]:
    return stats_service.get_daily_stats(db, days)


@router.get("/sessions", response_model=List[schemas.VisitorSessionOut], summary="Recent visitor sessions")
async def visitor_sessions(
    limit: int = Query(50, ge=1, le=500),
    _: str = Depends(require_admin),
    db: Session = Depends(get_db)
) -> List[schemas.VisitorSessionOut]:
    return stats_service.get_visitor_sessions(db, limit)

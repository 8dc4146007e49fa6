"""Read side of the visitor counters. Readers degrade to empty results on store errors."""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud
from ..schemas import DailyStat, VisitorSessionOut, VisitorStatsResponse

logger = logging.getLogger(__name__)

DEFAULT_DAILY_STATS_DAYS = 7


def get_daily_stats(db: Session, days: int = DEFAULT_DAILY_STATS_DAYS) -> List[DailyStat]:
    """Counters for the most recent ``days`` recorded dates, oldest first."""
    try:
        rows = crud.get_recent_daily_stats(db, days)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching daily stats: {e}")
        db.rollback()
        return []
    return [
        DailyStat(date=row.date, unique_visitors=row.unique_visitors or 0, page_views=row.page_views or 0)
        for row in rows
    ]


def get_visitor_stats(db: Session) -> VisitorStatsResponse:
    try:
        stats = crud.get_global_stats(db)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching visitor stats: {e}")
        db.rollback()
        return VisitorStatsResponse()

    if stats is None:
        return VisitorStatsResponse(daily_stats=get_daily_stats(db))
    return VisitorStatsResponse(
        unique_visitors=stats.unique_visitors or 0,
        page_views=stats.page_views or 0,
        last_visit=stats.last_visit,
        daily_stats=get_daily_stats(db),
    )


def get_visitor_sessions(db: Session, max_results: int = 50) -> List[VisitorSessionOut]:
    """Most recently seen visitors first."""
    try:
        rows = crud.get_recent_visitor_sessions(db, max_results)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching visitor sessions: {e}")
        db.rollback()
        return []
    return [
        VisitorSessionOut(
            id=row.id,
            fingerprint=row.fingerprint,
            client_hash=row.client_hash,
            first_visit=row.first_visit,
            last_visit=row.last_visit,
            page_views=row.page_views or 1,
            user_agent=row.user_agent or "Unknown",
            is_bot=bool(row.is_bot),
            location=row.location or {},
        )
        for row in rows
    ]

"""Counter CRUD operations for global and daily visitor stats.

Every increment is a single ``UPDATE ... SET col = col + 1`` so concurrent
writers never overwrite each other with a stale value. A missing row is
created with the counter already at 1; if another writer creates it first the
update is simply retried.
"""

from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import insert, func

from ..models import VisitorStats, DailyVisitorStats, GLOBAL_STATS_ID


def _increment_or_create(db: Session, model, key_column, key: str, field: str,
                         touch_last_visit: bool, insert_values: Dict) -> None:
    """Atomically add 1 to ``field`` on the row keyed by ``key``, creating it if absent."""
    column = getattr(model, field)
    update_values = {column: column + 1, model.last_update: func.now()}
    if touch_last_visit:
        update_values[model.last_visit] = func.now()

    updated = db.query(model).filter(key_column == key).update(update_values, synchronize_session=False)
    if updated:
        db.commit()
        return

    values = {"unique_visitors": 0, "page_views": 0, "last_update": func.now(), **insert_values}
    values[field] = 1
    if touch_last_visit:
        values["last_visit"] = func.now()
    try:
        db.execute(insert(model).values(**values))
        db.commit()
    except IntegrityError:
        # Lost the create race; the row exists now
        db.rollback()
        db.query(model).filter(key_column == key).update(update_values, synchronize_session=False)
        db.commit()


def increment_page_views(db: Session, date: str) -> None:
    """Add one page view to the global and the given day's counters."""
    _increment_or_create(db, VisitorStats, VisitorStats.id, GLOBAL_STATS_ID, "page_views",
                         touch_last_visit=False, insert_values={"id": GLOBAL_STATS_ID})
    _increment_or_create(db, DailyVisitorStats, DailyVisitorStats.date, date, "page_views",
                         touch_last_visit=False, insert_values={"date": date})


def increment_unique_visitors(db: Session, date: str) -> None:
    """Add one unique visitor to the global and the given day's counters."""
    _increment_or_create(db, VisitorStats, VisitorStats.id, GLOBAL_STATS_ID, "unique_visitors",
                         touch_last_visit=True, insert_values={"id": GLOBAL_STATS_ID})
    _increment_or_create(db, DailyVisitorStats, DailyVisitorStats.date, date, "unique_visitors",
                         touch_last_visit=True, insert_values={"date": date})


def get_global_stats(db: Session) -> Optional[VisitorStats]:
    return db.query(VisitorStats).filter(VisitorStats.id == GLOBAL_STATS_ID).first()


def get_daily_stats(db: Session, date: str) -> Optional[DailyVisitorStats]:
    return db.query(DailyVisitorStats).filter(DailyVisitorStats.date == date).first()


def get_recent_daily_stats(db: Session, days: int) -> List[DailyVisitorStats]:
    """Get the most recent ``days`` daily rows, oldest first."""
    rows = db.query(DailyVisitorStats).order_by(DailyVisitorStats.date.desc()).limit(days).all()
    return list(reversed(rows))


def count_daily_stats(db: Session) -> int:
    return db.query(func.count(DailyVisitorStats.date)).scalar() or 0


def get_daily_stats_dates_before(db: Session, cutoff_date: str, limit: int) -> List[str]:
    """Get up to ``limit`` daily keys strictly older than ``cutoff_date``."""
    rows = db.query(DailyVisitorStats.date).filter(
        DailyVisitorStats.date < cutoff_date
    ).order_by(DailyVisitorStats.date.asc()).limit(limit).all()
    return [row.date for row in rows]


def delete_daily_stats(db: Session, dates: List[str]) -> int:
    if not dates:
        return 0
    deleted = db.query(DailyVisitorStats).filter(
        DailyVisitorStats.date.in_(dates)
    ).delete(synchronize_session=False)
    db.commit()
    return deleted

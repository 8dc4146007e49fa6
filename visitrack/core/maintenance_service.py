"""Background retention maintenance for visitor data.

Each pass runs three independent sweeps:
- delete visitor sessions idle longer than the retention window, in batches,
  continuing while full batches come back;
- delete the least recently seen sessions beyond the session cap;
- delete one batch of daily aggregates older than their retention window.

A failing sweep is logged and does not stop the others or later passes.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .database import SessionLocal
from .. import crud
from ..schemas import MaintenanceReport, MaintenanceStats

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VisitorDataMaintenanceService:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        interval_seconds: int = settings.MAINTENANCE_INTERVAL_SECONDS,
        session_retention_days: int = settings.SESSION_RETENTION_DAYS,
        max_sessions: int = settings.MAX_SESSIONS,
        session_sample_margin: int = settings.SESSION_SAMPLE_MARGIN,
        old_session_batch_size: int = settings.OLD_SESSION_BATCH_SIZE,
        daily_stats_retention_days: int = settings.DAILY_STATS_RETENTION_DAYS,
        daily_stats_batch_size: int = settings.DAILY_STATS_BATCH_SIZE,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self.session_retention_days = session_retention_days
        self.max_sessions = max_sessions
        self.session_sample_margin = session_sample_margin
        self.old_session_batch_size = old_session_batch_size
        self.daily_stats_retention_days = daily_stats_retention_days
        self.daily_stats_batch_size = daily_stats_batch_size
        self.clock = clock
        self.last_maintenance: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Run a pass now and then every ``interval_seconds``. Needs a running event loop."""
        if self.is_running:
            logger.warning("Visitor data maintenance service is already running")
            return
        logger.info("🧹 Starting visitor data maintenance service")
        self._task = asyncio.get_running_loop().create_task(self._run_loop())

    def stop(self) -> Optional[asyncio.Task]:
        """Cancel the scheduled passes. Returns the cancelled task so callers can await it."""
        task, self._task = self._task, None
        if task is None:
            return None
        task.cancel()
        logger.info("🛑 Visitor data maintenance service stopped")
        return task

    async def _run_loop(self) -> None:
        while True:
            try:
                # Sweeps use blocking DB calls; keep them off the event loop
                await asyncio.to_thread(self.perform_maintenance)
            except Exception as e:
                logger.error(f"Error during visitor data maintenance: {e}")
            await asyncio.sleep(self.interval_seconds)

    def perform_maintenance(self) -> MaintenanceReport:
        """Run all three sweeps once."""
        started_at = self.clock()
        logger.info("Running visitor data maintenance...")

        old_sessions = self.cleanup_old_sessions()
        excess_sessions = self.cleanup_excess_sessions()
        old_daily_stats = self.cleanup_old_daily_stats()

        finished_at = self.clock()
        self.last_maintenance = finished_at
        logger.info(
            f"✅ Visitor data maintenance completed: old_sessions={old_sessions}, "
            f"excess_sessions={excess_sessions}, old_daily_stats={old_daily_stats}"
        )
        return MaintenanceReport(
            old_sessions_deleted=old_sessions,
            excess_sessions_deleted=excess_sessions,
            old_daily_stats_deleted=old_daily_stats,
            started_at=started_at,
            finished_at=finished_at,
        )

    def cleanup_old_sessions(self) -> int:
        """Remove visitor sessions whose last visit is older than the retention window."""
        cutoff = self.clock() - timedelta(days=self.session_retention_days)
        deleted = 0
        db = self.session_factory()
        try:
            while True:
                batch = crud.get_visitor_session_ids_idle_since(db, cutoff, self.old_session_batch_size)
                if not batch:
                    break
                deleted += crud.delete_visitor_sessions(db, batch)
                # A full batch means more may remain
                if len(batch) < self.old_session_batch_size:
                    break
        except SQLAlchemyError as e:
            logger.error(f"Error cleaning up old visitor sessions: {e}")
            db.rollback()
        finally:
            db.close()

        if deleted:
            logger.info(f"🗑️ Cleaned up {deleted} old visitor sessions")
        else:
            logger.debug("No old visitor sessions to clean up")
        return deleted

    def cleanup_excess_sessions(self) -> int:
        """Keep at most ``max_sessions`` visitors, dropping the least recently seen."""
        deleted = 0
        db = self.session_factory()
        try:
            while True:
                sample = crud.get_visitor_session_ids_by_recency(
                    db, self.max_sessions + self.session_sample_margin
                )
                if len(sample) <= self.max_sessions:
                    logger.debug(f"Session count ({len(sample)}) is within limits")
                    break
                deleted += crud.delete_visitor_sessions(db, sample[self.max_sessions:])
        except SQLAlchemyError as e:
            logger.error(f"Error cleaning up excess visitor sessions: {e}")
            db.rollback()
        finally:
            db.close()

        if deleted:
            logger.info(f"🗑️ Cleaned up {deleted} excess visitor sessions")
        return deleted

    def cleanup_old_daily_stats(self) -> int:
        """Remove one batch of daily aggregates older than their retention window."""
        cutoff_date = (self.clock() - timedelta(days=self.daily_stats_retention_days)).date().isoformat()
        deleted = 0
        db = self.session_factory()
        try:
            dates = crud.get_daily_stats_dates_before(db, cutoff_date, self.daily_stats_batch_size)
            deleted = crud.delete_daily_stats(db, dates)
        except SQLAlchemyError as e:
            logger.error(f"Error cleaning up old daily stats: {e}")
            db.rollback()
        finally:
            db.close()

        if deleted:
            logger.info(f"🗑️ Cleaned up {deleted} old daily stats")
        else:
            logger.debug("No old daily stats to clean up")
        return deleted

    def get_maintenance_stats(self) -> MaintenanceStats:
        """Current storage footprint, or zeros if the store is unreachable."""
        cutoff = self.clock() - timedelta(days=self.session_retention_days)
        db = self.session_factory()
        try:
            return MaintenanceStats(
                total_sessions=crud.count_visitor_sessions(db),
                old_sessions=crud.count_visitor_sessions_idle_since(db, cutoff),
                total_daily_stats=crud.count_daily_stats(db),
                last_maintenance=self.last_maintenance,
                is_running=self.is_running,
            )
        except SQLAlchemyError as e:
            logger.error(f"Error getting maintenance stats: {e}")
            return MaintenanceStats(last_maintenance=self.last_maintenance, is_running=self.is_running)
        finally:
            db.close()

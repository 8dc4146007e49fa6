"""Global and daily visitor counters."""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from .. import crud

logger = logging.getLogger(__name__)


def today_string(now: Optional[datetime] = None) -> str:
    """Current UTC calendar date as YYYY-MM-DD."""
    return (now or datetime.now(timezone.utc)).date().isoformat()


class CounterAggregator:
    """Applies atomic +1 increments to the global singleton and the day's row.

    Every page load goes through ``record_page_view`` before the visitor is
    classified; only loads classified as unique also go through
    ``record_unique_visitor``.
    """

    def record_page_view(self, db: Session, date: Optional[str] = None) -> None:
        date = date or today_string()
        crud.increment_page_views(db, date)
        logger.debug(f"Page view recorded for {date}")

    def record_unique_visitor(self, db: Session, date: Optional[str] = None) -> None:
        date = date or today_string()
        crud.increment_unique_visitors(db, date)
        logger.debug(f"Unique visitor recorded for {date}")


counter_aggregator = CounterAggregator()

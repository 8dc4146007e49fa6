"""Per-page-load visitor tracking: the engine entry point."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from sqlalchemy.orm import Session

from .aggregation_service import CounterAggregator, counter_aggregator, today_string
from .bot_filter import is_bot
from .config import settings
from .dedup import DedupResolver, dedup_resolver
from .fingerprint import generate_client_hash, generate_fingerprint
from .geolocation import LocationEnricher, location_enricher
from .session_tokens import SessionTokenStore
from ..schemas import ClientSignals

logger = logging.getLogger(__name__)

# Receives (func, *args) and runs func(*args) later, e.g. BackgroundTasks.add_task
TaskScheduler = Callable[..., Any]


@dataclass
class TrackResult:
    tracked: bool
    is_unique: bool = False
    is_reload: bool = False
    session_id: Optional[str] = None
    fingerprint: Optional[str] = None
    visitor_id: Optional[str] = None
    reason: Optional[str] = None


class VisitorTracker:
    """Runs the tracking steps for one page load.

    Order: excluded path and bot checks, page view increment, visitor
    classification, then for new visitors the unique increment and a
    scheduled location lookup.
    """

    def __init__(
        self,
        aggregator: CounterAggregator = counter_aggregator,
        resolver: DedupResolver = dedup_resolver,
        enricher: LocationEnricher = location_enricher,
        excluded_path_prefixes: Iterable[str] = settings.TRACKING_EXCLUDED_PATH_PREFIXES,
    ):
        self.aggregator = aggregator
        self.resolver = resolver
        self.enricher = enricher
        self.excluded_path_prefixes = tuple(excluded_path_prefixes)

    def is_excluded_path(self, path: Optional[str]) -> bool:
        return bool(path) and any(path.startswith(prefix) for prefix in self.excluded_path_prefixes)

    def track_visit(
        self,
        db: Session,
        signals: ClientSignals,
        tokens: SessionTokenStore,
        user_agent: Optional[str] = None,
        client_ip: Optional[str] = None,
        schedule: Optional[TaskScheduler] = None,
        date: Optional[str] = None,
    ) -> TrackResult:
        """Track one page load. Never raises."""
        try:
            if self.is_excluded_path(signals.path):
                logger.debug(f"Skipping visitor tracking for excluded path {signals.path}")
                return TrackResult(tracked=False, reason="excluded_path")

            user_agent = signals.user_agent or user_agent or ""
            if is_bot(user_agent):
                logger.debug(f"Bot detected, skipping visitor tracking: {user_agent}")
                return TrackResult(tracked=False, reason="bot")

            fingerprint = generate_fingerprint(signals, user_agent)
            client_hash = generate_client_hash(signals, user_agent)
            session_id = tokens.get_or_create_session_id()
            # Exposed to callers; it does not change how the load is counted
            is_reload = tokens.is_page_reload_within_tab()
            date = date or today_string()

            self.aggregator.record_page_view(db, date)

            outcome = self.resolver.resolve(
                db,
                session_id=session_id,
                fingerprint=fingerprint,
                client_hash=client_hash,
                user_agent=user_agent,
            )

            if outcome.is_unique:
                self.aggregator.record_unique_visitor(db, date)
                if schedule is not None:
                    schedule(self.enricher.enrich_visitor_session, outcome.visitor_id, client_ip)
                logger.info(f"New unique visitor tracked: {fingerprint}")
            else:
                logger.debug(f"Returning visitor - page view tracked: {fingerprint}")

            return TrackResult(
                tracked=True,
                is_unique=outcome.is_unique,
                is_reload=is_reload,
                session_id=session_id,
                fingerprint=fingerprint,
                visitor_id=outcome.visitor_id,
            )

        except Exception as e:
            logger.error(f"Error in visitor tracking: {e}", exc_info=True)
            db.rollback()
            return TrackResult(tracked=False, reason="error")


visitor_tracker = VisitorTracker()

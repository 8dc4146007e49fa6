"""Classify a page load as a new or returning visitor."""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud

logger = logging.getLogger(__name__)


@dataclass
class DedupResult:
    is_unique: bool
    visitor_id: Optional[str] = None
    matched_by: Optional[str] = None  # "fingerprint", "session", or None for new visitors


class DedupResolver:
    """Two-key identity lookup: fingerprint first, session token as fallback.

    The fingerprint is the primary identity. The session token only matters
    when the fingerprint changed between visits from the same browser (e.g. a
    different canvas rendering), and it never overrides a fingerprint match.
    """

    def resolve(
        self,
        db: Session,
        session_id: str,
        fingerprint: str,
        client_hash: str = "",
        user_agent: str = "",
    ) -> DedupResult:
        """Record this load against a known visitor, or insert a new one.

        Store errors are logged and reported as a returning visitor, so a
        failure can only under-count unique visitors.
        """
        try:
            visitor_id = crud.get_visitor_session_id_by_fingerprint(db, fingerprint)
            if visitor_id:
                crud.touch_visitor_session(db, visitor_id, session_id=session_id)
                return DedupResult(is_unique=False, visitor_id=visitor_id, matched_by="fingerprint")

            visitor_id = crud.get_visitor_session_id_by_session_token(db, session_id)
            if visitor_id:
                crud.touch_visitor_session(db, visitor_id)
                return DedupResult(is_unique=False, visitor_id=visitor_id, matched_by="session")

            try:
                visitor_id = crud.create_visitor_session(
                    db,
                    fingerprint=fingerprint,
                    client_hash=client_hash,
                    session_id=session_id,
                    user_agent=user_agent,
                )
            except IntegrityError:
                # A concurrent load inserted the same fingerprint first
                db.rollback()
                logger.info(f"Fingerprint {fingerprint} was inserted concurrently; counting as returning visitor")
                visitor_id = crud.get_visitor_session_id_by_fingerprint(db, fingerprint)
                if visitor_id:
                    crud.touch_visitor_session(db, visitor_id, session_id=session_id)
                return DedupResult(is_unique=False, visitor_id=visitor_id, matched_by="fingerprint")

            return DedupResult(is_unique=True, visitor_id=visitor_id)

        except SQLAlchemyError as e:
            logger.error(f"Error checking unique visitor: {e}", exc_info=True)
            db.rollback()
            return DedupResult(is_unique=False)


dedup_resolver = DedupResolver()

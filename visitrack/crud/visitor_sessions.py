"""Visitor session CRUD operations."""

from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid
from sqlalchemy.orm import Session
from sqlalchemy import insert, func

from ..models import VisitorSession


def get_visitor_session_id_by_fingerprint(db: Session, fingerprint: str) -> Optional[str]:
    row = db.query(VisitorSession.id).filter(VisitorSession.fingerprint == fingerprint).limit(1).first()
    return row.id if row else None


def get_visitor_session_id_by_session_token(db: Session, session_id: str) -> Optional[str]:
    row = db.query(VisitorSession.id).filter(VisitorSession.session_id == session_id).limit(1).first()
    return row.id if row else None


def touch_visitor_session(db: Session, visitor_id: str, session_id: Optional[str] = None) -> int:
    """Record another page view on an existing visitor.

    When ``session_id`` is given the visitor is re-associated with it.
    """
    values: Dict[Any, Any] = {
        VisitorSession.last_visit: func.now(),
        VisitorSession.page_views: VisitorSession.page_views + 1,
    }
    if session_id is not None:
        values[VisitorSession.session_id] = session_id
    updated = db.query(VisitorSession).filter(
        VisitorSession.id == visitor_id
    ).update(values, synchronize_session=False)
    db.commit()
    return updated


def create_visitor_session(
    db: Session,
    fingerprint: str,
    client_hash: str,
    session_id: str,
    user_agent: str,
) -> str:
    """Insert a first-seen visitor. Raises IntegrityError if the fingerprint exists."""
    visitor_id = str(uuid.uuid4())
    db.execute(insert(VisitorSession).values(
        id=visitor_id,
        fingerprint=fingerprint,
        client_hash=client_hash,
        session_id=session_id,
        first_visit=func.now(),
        last_visit=func.now(),
        page_views=1,
        user_agent=user_agent,
        is_bot=False,
        location=None,
    ))
    db.commit()
    return visitor_id


def set_visitor_location(db: Session, visitor_id: str, location: Dict[str, str]) -> int:
    updated = db.query(VisitorSession).filter(
        VisitorSession.id == visitor_id
    ).update({VisitorSession.location: location}, synchronize_session=False)
    db.commit()
    return updated


def get_recent_visitor_sessions(db: Session, limit: int = 50) -> List[VisitorSession]:
    """Get visitor sessions ordered by last visit, newest first."""
    return db.query(VisitorSession).order_by(VisitorSession.last_visit.desc()).limit(limit).all()


def get_visitor_session_ids_idle_since(db: Session, cutoff: datetime, limit: int) -> List[str]:
    """Get up to ``limit`` visitors whose last visit is older than ``cutoff``."""
    rows = db.query(VisitorSession.id).filter(
        VisitorSession.last_visit < cutoff
    ).limit(limit).all()
    return [row.id for row in rows]


def get_visitor_session_ids_by_recency(db: Session, limit: int) -> List[str]:
    """Get up to ``limit`` visitor ids ordered by last visit, newest first."""
    rows = db.query(VisitorSession.id).order_by(
        VisitorSession.last_visit.desc(), VisitorSession.id.desc()
    ).limit(limit).all()
    return [row.id for row in rows]


def delete_visitor_sessions(db: Session, visitor_ids: List[str]) -> int:
    if not visitor_ids:
        return 0
    deleted = db.query(VisitorSession).filter(
        VisitorSession.id.in_(visitor_ids)
    ).delete(synchronize_session=False)
    db.commit()
    return deleted


def count_visitor_sessions(db: Session) -> int:
    return db.query(func.count(VisitorSession.id)).scalar() or 0


def count_visitor_sessions_idle_since(db: Session, cutoff: datetime) -> int:
    return db.query(func.count(VisitorSession.id)).filter(
        VisitorSession.last_visit < cutoff
    ).scalar() or 0

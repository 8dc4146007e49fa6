"""Visitor identification, deduplication and aggregation engine."""

from .core.database import Base, engine, SessionLocal, get_db
from .models import VisitorSession, VisitorStats, DailyVisitorStats

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "VisitorSession",
    "VisitorStats",
    "DailyVisitorStats",
]

# models.py
# Table blueprints for the visitor tracking store: one row per known visitor
# fingerprint, one global counter row, and one counter row per calendar day.

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, JSON
from sqlalchemy.sql import func
import uuid

from .core.database import Base

GLOBAL_STATS_ID = "global"


class VisitorSession(Base):
    """
    Blueprint for the 'visitor_sessions' table.
    One row per distinct fingerprint, created on its first page load.
    """
    __tablename__ = "visitor_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Unique: concurrent first visits with the same fingerprint collapse into one row
    fingerprint = Column(String(32), nullable=False, unique=True, index=True)
    client_hash = Column(String(32), index=True)
    session_id = Column(String(64), nullable=False, index=True)

    first_visit = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_visit = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    page_views = Column(Integer, nullable=False, default=1)

    user_agent = Column(Text)
    is_bot = Column(Boolean, nullable=False, default=False)
    # NULL while geolocation is pending, {} when it failed
    location = Column(JSON, nullable=True)


class VisitorStats(Base):
    """
    Blueprint for the 'visitor_stats' table.
    Holds exactly one row, keyed by GLOBAL_STATS_ID.
    """
    __tablename__ = "visitor_stats"

    id = Column(String(16), primary_key=True, default=GLOBAL_STATS_ID)
    unique_visitors = Column(Integer, nullable=False, default=0)
    page_views = Column(Integer, nullable=False, default=0)
    last_visit = Column(DateTime(timezone=True))
    last_update = Column(DateTime(timezone=True), server_default=func.now())


class DailyVisitorStats(Base):
    """
    Blueprint for the 'daily_visitor_stats' table.
    One row per calendar date, keyed by the ISO date string (YYYY-MM-DD).
    """
    __tablename__ = "daily_visitor_stats"

    date = Column(String(10), primary_key=True)
    unique_visitors = Column(Integer, nullable=False, default=0)
    page_views = Column(Integer, nullable=False, default=0)
    last_visit = Column(DateTime(timezone=True))
    last_update = Column(DateTime(timezone=True), server_default=func.now())

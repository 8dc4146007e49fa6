"""Core module for the visitor tracking engine."""

from .config import settings
from .database import get_db, engine, Base, SessionLocal

__all__ = [
    "settings",
    "get_db",
    "engine",
    "Base",
    "SessionLocal",
]

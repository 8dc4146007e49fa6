"""Database configuration and session management."""

from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import settings


def is_memory_sqlite(url: str) -> bool:
    return url == "sqlite://" or ":memory:" in url or "mode=memory" in url


def create_db_engine(url: str) -> Engine:
    """Build an engine for ``url``.

    An in-memory SQLite database exists only on its one connection, so it gets
    a StaticPool. File databases keep the default pool, one connection per
    thread at a time.
    """
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if is_memory_sqlite(url):
            return create_engine(
                url,
                pool_pre_ping=True,
                echo=settings.DEBUG,
                poolclass=StaticPool,
                connect_args=connect_args
            )
        return create_engine(
            url,
            pool_pre_ping=True,
            echo=settings.DEBUG,
            connect_args=connect_args
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        echo=settings.DEBUG
    )


# Database engine configuration
engine = create_db_engine(settings.DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Database dependency for FastAPI endpoints."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Initialize database tables."""
    # Models must be registered on Base before create_all
    from .. import models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def close_db() -> None:
    """Close database connections."""
    engine.dispose()

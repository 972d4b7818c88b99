"""
Database connection and session management.
"""

from contextlib import contextmanager
from typing import Iterator, Optional
import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from weather_ingest.core.api_errors import PersistenceFailure
from weather_ingest.core.config import get_settings
from weather_ingest.core.models import Base

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Singleton engine & session factory, created once and reused everywhere
# ---------------------------------------------------------------------------
_engine = None
_SessionLocal = None


def get_engine():
    """
    Get the shared database engine (singleton).

    The engine is created once and reused for the lifetime of the process.
    """
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine(
            settings.database_url,
            pool_pre_ping=True,  # Verify connections before using
            echo=False,
        )
    return _engine


def create_tables(engine=None):
    """
    Create all tables if they don't exist.

    Idempotent - safe to call multiple times. Alembic owns schema changes
    after the first deploy.
    """
    if engine is None:
        engine = get_engine()

    logger.info("Creating tables if they don't exist...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tables ready")


def get_session_factory():
    """Get the shared session factory (singleton)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=get_engine()
        )
    return _SessionLocal


@contextmanager
def session_scope(
    session_factory=None, source: Optional[str] = None
) -> Iterator[Session]:
    """
    One transaction: commit on success, roll back on any error.

    Database errors surface as PersistenceFailure so callers can tell a
    failed commit apart from a failed fetch.

    Usage:
        with session_scope(factory, source="nhc") as session:
            session.add_all(records)
    """
    factory = session_factory or get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Transaction rolled back ({source or 'unknown'}): {e}")
        raise PersistenceFailure(f"Commit failed: {e}", source=source) from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

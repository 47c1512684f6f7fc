"""Database setup and session management."""

import logging
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


@lru_cache
def get_engine():
    """Get or create the database engine (cached).

    SQLite URLs get ``check_same_thread=False`` so FastAPI's threadpool can
    share connections; every other backend uses ``pool_pre_ping`` so a
    dropped connection surfaces as a fresh connect instead of a failed run.
    """
    database_url = settings.DATABASE_URL

    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    else:
        engine = create_engine(database_url, pool_pre_ping=True, echo=False)

    logger.debug("Database engine created for %s", engine.url.get_backend_name())
    return engine


def get_session_local():
    """Get a sessionmaker bound to the engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db():
    """Dependency that provides a database session.

    Transaction conventions:
    - Default: services ``flush()``, API layer ``commit()``
    - Exceptions that commit internally:
      - ``JobQueue.claim_next()``: commits the claim so other workers see it
      - ``JobProcessor.process()``: commits each job's terminal state
      - ``SchedulerMonitor.record()``: commits the telemetry row on its own
    """
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

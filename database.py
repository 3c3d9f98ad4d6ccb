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

    SQLite connections get ``check_same_thread=False`` (FastAPI runs sync
    endpoints in a threadpool) and a busy timeout so a locked database
    surfaces as an error instead of blocking the request indefinitely.
    """
    connect_args = {}
    database_url = settings.DATABASE_URL

    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = settings.DATABASE_TIMEOUT_SECONDS
        engine = create_engine(database_url, connect_args=connect_args, echo=False)
    else:
        engine = create_engine(
            database_url,
            echo=False,
            pool_pre_ping=True,
            pool_timeout=settings.DATABASE_TIMEOUT_SECONDS,
        )

    logger.debug("Database engine created for %s", engine.url.get_backend_name())
    return engine


def get_session_local():
    """Get a sessionmaker bound to the engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def init_db() -> None:
    """Create all tables that do not exist yet."""
    import models  # noqa: F401  (registers the mappers on Base.metadata)

    Base.metadata.create_all(bind=get_engine())


def get_db():
    """Dependency that provides a database session.

    Writes go through ``SQLRecordStore``, which commits each record on its
    own; the session here is only rolled back if a handler raises.
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

"""
Engine and session management for the Match Record Store.

Scheduler jobs open sessions through SessionLocal directly; request
handlers receive one per request from get_db().
"""
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, Session

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Build the engine for a SQLite file (development) or PostgreSQL (production).
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        # The scheduler and the request threadpool share one SQLite file
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo
        )

    return create_engine(
        database_url,
        pool_size=settings.LIVE_SYNC_CONCURRENCY * 2,
        max_overflow=10,
        pool_pre_ping=True,
        echo=echo
    )


engine = create_db_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create the matches and sync_metadata tables if missing."""
    from app.models.unified import Base
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info(f"Match store ready ({engine.url.get_backend_name()})")

"""Shared pytest fixtures for live-score sync tests."""
import os
import sys
import uuid
from pathlib import Path
from datetime import timedelta
from typing import Any, Dict, Generator, List, Tuple
from unittest.mock import AsyncMock

# Settings are read at import time; point them at a throwaway database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(scope="function")
def db_engine():
    """In-memory SQLite engine shared by every connection in one test."""
    from app.models.unified import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory bound to the test engine."""
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    session = session_factory()
    yield session
    session.close()


def create_match(db: Session, **kwargs):
    """Helper function to store a Match with all required fields.

    Usage:
        match = create_match(db_session, match_id='evt123', sport='football', status='live')
    """
    from app.models import Match
    from app.utils.timezone import utcnow

    now = utcnow()
    defaults = {
        'id': str(uuid.uuid4()),
        'match_id': f"evt{uuid.uuid4().hex[:8]}",
        'sport': 'football',
        'league': 'English Premier League',
        'home_team_id': '133604',
        'home_team_name': 'Arsenal',
        'home_score': 0,
        'away_team_id': '133610',
        'away_team_name': 'Chelsea',
        'away_score': 0,
        'status': 'live',
        'start_time': now - timedelta(minutes=30),
        'last_updated': now - timedelta(minutes=1),
        'venue_name': 'Emirates Stadium',
        'venue_city': 'London',
        'venue_country': 'England',
        'created_at': now - timedelta(days=1),
        'updated_at': now - timedelta(minutes=1),
    }
    defaults.update(kwargs)
    match = Match(**defaults)
    db.add(match)
    db.commit()
    return match


class RecordingNotifier:
    """Change Notifier that records every publish."""

    def __init__(self, fail: bool = False):
        self.published: List[Tuple[str, Dict[str, Any]]] = []
        self.fail = fail

    async def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("subscriber transport down")
        self.published.append((topic, payload))

    def topics(self) -> List[str]:
        return [topic for topic, _ in self.published]


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


def sportsdb_body(match_id: str, **event) -> Dict[str, Any]:
    """A TheSportsDB eventslive body with one event."""
    defaults = {
        'idEvent': match_id,
        'strHomeTeam': 'Arsenal',
        'strAwayTeam': 'Chelsea',
        'intHomeScore': '0',
        'intAwayScore': '0',
        'strStatus': 'In Progress',
        'strProgress': '',
        'strEvents': None,
    }
    defaults.update(event)
    return {'events': [defaults]}


def cricapi_body(match_id: str, **data) -> Dict[str, Any]:
    """A CricAPI match_info body."""
    defaults = {
        'id': match_id,
        'teams': ['India', 'Australia'],
        'status': 'live',
        'score': [
            {'r': 187, 'w': 4, 'o': 32.3},
            {'r': 0, 'w': 0, 'o': 0},
        ],
    }
    defaults.update(data)
    return {'status': 'success', 'data': defaults}


@pytest.fixture
def sportsdb_client():
    """Fake TheSportsDB client; set ``fetch_match.side_effect`` per test."""
    client = AsyncMock()
    client.fetch_match.return_value = {'events': None}
    client.fetch_next_events.return_value = []
    return client


@pytest.fixture
def cricapi_client():
    """Fake CricAPI client; set ``fetch_match.side_effect`` per test."""
    client = AsyncMock()
    client.fetch_match.return_value = {'status': 'success'}
    return client


@pytest.fixture
def providers(sportsdb_client, cricapi_client):
    from app.services.live_scores.mappers import SPORTSDB, CRICAPI
    return {SPORTSDB: sportsdb_client, CRICAPI: cricapi_client}


@pytest.fixture
def live_config():
    from app.services.live_scores import LiveSyncConfig
    return LiveSyncConfig(
        live_interval_seconds=30,
        discovery_interval_seconds=3600,
        live_sync_concurrency=3,
        discovery_on_startup=False,
    )


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture(scope="function")
def test_client(db_session):
    """
    Create FastAPI TestClient with a fresh database for each test.

    Note: We don't use context manager (with TestClient) so the lifespan
    (database init and scheduler start) does not run.
    """
    from fastapi.testclient import TestClient
    from app.main import app
    from app.core.database import get_db

    test_db_session = db_session

    def override_get_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()

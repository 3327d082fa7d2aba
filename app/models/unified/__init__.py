"""
Unified Multi-Sport Models for the live-score service.

A single ``matches`` table holds every sport. Sport-specific live payloads are
JSON columns that are only populated for the sports that use them:

- live_data: football, basketball, tennis (and any future ball-and-goal sport)
- cricket_data: cricket

Query by sport:
    football = db.query(Match).filter(Match.sport == Sport.FOOTBALL.value).all()
"""
import enum
from typing import Any, Dict

from sqlalchemy import Column, String, Integer, DateTime, Text, Index, UniqueConstraint, JSON
from sqlalchemy.orm import declarative_base

from app.utils.timezone import isoformat_utc

Base = declarative_base()


class Sport(str, enum.Enum):
    """Sports a Match can belong to."""
    CRICKET = "cricket"
    FOOTBALL = "football"
    BASKETBALL = "basketball"
    TENNIS = "tennis"
    BASEBALL = "baseball"
    HOCKEY = "hockey"


class MatchStatus(str, enum.Enum):
    """
    Match lifecycle.

    scheduled -> live -> finished in practice; cancelled and postponed are
    reachable from scheduled and are terminal.
    """
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"


# Which JSON payload column belongs to which sport
CRICKET_PAYLOAD = "cricket_data"
LIVE_PAYLOAD = "live_data"


def payload_field_for(sport: str) -> str:
    """Name of the only live payload column a sport may populate."""
    return CRICKET_PAYLOAD if sport == Sport.CRICKET.value else LIVE_PAYLOAD


# =============================================================================
# MATCH MODEL
# =============================================================================

class Match(Base):
    """
    A scheduled, live or finished sporting event.

    ``match_id`` is the provider event id and the identity used by every
    sync operation; ``id`` is an internal surrogate key.
    """
    __tablename__ = "matches"

    id = Column(String(36), primary_key=True)
    match_id = Column(String(64), unique=True, nullable=False, index=True)

    sport = Column(String(16), nullable=False, index=True)
    league = Column(String(255), nullable=False)

    # Participants
    home_team_id = Column(String(64), nullable=True)
    home_team_name = Column(String(255), nullable=True, index=True)
    home_team_logo = Column(String(512), nullable=True)
    home_score = Column(Integer, nullable=False, default=0)

    away_team_id = Column(String(64), nullable=True)
    away_team_name = Column(String(255), nullable=True, index=True)
    away_team_logo = Column(String(512), nullable=True)
    away_score = Column(Integer, nullable=False, default=0)

    status = Column(String(16), nullable=False, index=True, default=MatchStatus.SCHEDULED.value)

    # Temporal
    start_time = Column(DateTime, nullable=False, index=True)
    last_updated = Column(DateTime, nullable=True)

    # Venue (immutable after creation)
    venue_name = Column(String(255), nullable=True)
    venue_city = Column(String(255), nullable=True)
    venue_country = Column(String(255), nullable=True)

    # -------------------------------------------------------------------------
    # SPORT-SPECIFIC PAYLOADS (mutually exclusive by sport)
    # -------------------------------------------------------------------------
    # {"current_time", "period", "events": [...], "stats": {...}}
    live_data = Column(JSON, nullable=True)
    # {"overs", "wickets", "run_rate", "current_batsmen", "current_bowler"}
    cricket_data = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index('ix_matches_sport_status_start', 'sport', 'status', 'start_time'),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Canonical serialized record, as published to subscribers and returned by the API."""
        return {
            "match_id": self.match_id,
            "sport": self.sport,
            "league": self.league,
            "home_team": {
                "id": self.home_team_id,
                "name": self.home_team_name,
                "logo_url": self.home_team_logo,
                "score": self.home_score or 0,
            },
            "away_team": {
                "id": self.away_team_id,
                "name": self.away_team_name,
                "logo_url": self.away_team_logo,
                "score": self.away_score or 0,
            },
            "status": self.status,
            "start_time": isoformat_utc(self.start_time),
            "last_updated": isoformat_utc(self.last_updated),
            "venue": {
                "name": self.venue_name,
                "city": self.venue_city,
                "country": self.venue_country,
            },
            "live_data": self.live_data,
            "cricket_data": self.cricket_data,
        }

    def __repr__(self) -> str:
        return f"<Match {self.match_id} {self.sport} {self.home_team_name} vs {self.away_team_name} ({self.status})>"


# Columns the live sync path is allowed to write
LIVE_UPDATABLE_FIELDS = frozenset({
    "home_team_name",
    "home_score",
    "away_team_name",
    "away_score",
    "status",
    "live_data",
    "cricket_data",
})


# =============================================================================
# SYNC TRACKING
# =============================================================================

class SyncMetadata(Base):
    """Outcome of the most recent run of each sync job."""
    __tablename__ = "sync_metadata"

    id = Column(String(36), primary_key=True)
    source = Column(String(32), nullable=False)
    data_type = Column(String(32), nullable=False)
    last_sync_started_at = Column(DateTime, nullable=True)
    last_sync_completed_at = Column(DateTime, nullable=True, index=True)
    last_sync_status = Column(String(16), nullable=True, index=True)
    records_processed = Column(Integer, nullable=False, default=0)
    records_updated = Column(Integer, nullable=False, default=0)
    records_failed = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    sync_duration_ms = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint('source', 'data_type', name='uq_sync_metadata_source_type'),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "data_type": self.data_type,
            "last_sync_started_at": isoformat_utc(self.last_sync_started_at),
            "last_sync_completed_at": isoformat_utc(self.last_sync_completed_at),
            "last_sync_status": self.last_sync_status,
            "records_processed": self.records_processed,
            "records_updated": self.records_updated,
            "records_failed": self.records_failed,
            "error_message": self.error_message,
            "sync_duration_ms": self.sync_duration_ms,
        }

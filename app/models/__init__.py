"""
Models Module

Usage:
    from app.models import Match, MatchStatus, Sport

    live = db.query(Match).filter(Match.status == MatchStatus.LIVE.value).all()
"""
from app.models.unified import (
    Base,
    Sport,
    MatchStatus,
    Match,
    SyncMetadata,
    LIVE_UPDATABLE_FIELDS,
    CRICKET_PAYLOAD,
    LIVE_PAYLOAD,
    payload_field_for,
)

__all__ = [
    "Base",
    "Sport",
    "MatchStatus",
    "Match",
    "SyncMetadata",
    "LIVE_UPDATABLE_FIELDS",
    "CRICKET_PAYLOAD",
    "LIVE_PAYLOAD",
    "payload_field_for",
]

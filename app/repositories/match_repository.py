"""
Match Repository: the Match Record Store used by the sync loop and the API.

Usage:
    repo = MatchRepository(db)
    live = repo.find_by_status(MatchStatus.LIVE)
    match = repo.merge_update("evt123", {"home_score": 2, "status": "finished"})
    repo.save()
"""
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import or_

from app.core.logging import get_logger
from app.models import Match, MatchStatus, LIVE_UPDATABLE_FIELDS
from app.repositories.base import BaseRepository
from app.utils.timezone import utcnow

logger = get_logger(__name__)

StatusLike = Union[MatchStatus, str]


def _status_value(status: StatusLike) -> str:
    return status.value if isinstance(status, MatchStatus) else status


class MatchRepository(BaseRepository[Match]):
    """Repository for Match records, keyed by provider ``match_id``."""

    def __init__(self, db):
        super().__init__(Match, db)

    # ========================================================================
    # Identity Lookups
    # ========================================================================

    def find_by_match_id(self, match_id: str) -> Optional[Match]:
        """Find a match by its provider id."""
        return self.where_first(Match.match_id == match_id)

    def exists(self, match_id: str) -> bool:
        """Check whether a match with this provider id is stored."""
        return self.exists_where(Match.match_id == match_id)

    def find_by_status(self, status: StatusLike) -> List[Match]:
        """All matches with the given status, earliest start first."""
        return self.query().filter(
            Match.status == _status_value(status)
        ).order_by(Match.start_time).all()

    # ========================================================================
    # Sync Writes
    # ========================================================================

    def merge_update(
        self,
        match_id: str,
        fields: Dict[str, Any],
        synced_at: Optional[datetime] = None
    ) -> Optional[Match]:
        """
        Merge a partial update into the stored match and stamp ``last_updated``.

        Only live-updatable columns are written; identity, start time and
        venue are never touched. This never creates a record: a match that
        does not exist yields None.

        Args:
            match_id: Provider id of the match
            fields: Partial column values produced by a sport mapper
            synced_at: Sync timestamp (defaults to now)

        Returns:
            The updated (uncommitted) match, or None if not stored
        """
        match = self.find_by_match_id(match_id)
        if match is None:
            return None

        ignored = set(fields) - LIVE_UPDATABLE_FIELDS
        if ignored:
            logger.debug(
                f"Ignoring non-updatable fields for match {match_id}: {sorted(ignored)}",
                extra={"match_id": match_id}
            )

        for key, value in fields.items():
            if key in LIVE_UPDATABLE_FIELDS:
                setattr(match, key, value)

        now = synced_at or utcnow()
        match.last_updated = now
        match.updated_at = now
        return match

    def insert(self, fields: Dict[str, Any]) -> Match:
        """
        Stage a new match built from discovery fields.

        Args:
            fields: Column values; must include match_id, sport, league, start_time

        Returns:
            The new (uncommitted) match
        """
        now = utcnow()
        values = {
            "status": MatchStatus.SCHEDULED.value,
            "home_score": 0,
            "away_score": 0,
            **fields,
        }
        match = Match(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            last_updated=now,
            **values
        )
        return self.add(match)

    # ========================================================================
    # API Queries
    # ========================================================================

    def find_filtered(
        self,
        statuses: Sequence[StatusLike],
        sport: Optional[str] = None,
        limit: int = 20
    ) -> List[Match]:
        """Matches in any of ``statuses``, optionally for one sport, earliest first."""
        query = self.query().filter(
            Match.status.in_([_status_value(s) for s in statuses])
        )
        if sport:
            query = query.filter(Match.sport == sport)
        return query.order_by(Match.start_time, Match.status).limit(limit).all()

    def find_upcoming(
        self,
        days: int = 7,
        sport: Optional[str] = None,
        limit: int = 50
    ) -> List[Match]:
        """Scheduled matches starting within the next ``days`` days."""
        now = utcnow()
        query = self.query().filter(
            Match.status == MatchStatus.SCHEDULED.value,
            Match.start_time >= now,
            Match.start_time <= now + timedelta(days=days)
        )
        if sport:
            query = query.filter(Match.sport == sport)
        return query.order_by(Match.start_time).limit(limit).all()

    def find_finished(
        self,
        days: int = 7,
        sport: Optional[str] = None,
        limit: int = 50
    ) -> List[Match]:
        """Finished matches that started within the last ``days`` days, newest first."""
        now = utcnow()
        query = self.query().filter(
            Match.status == MatchStatus.FINISHED.value,
            Match.start_time >= now - timedelta(days=days),
            Match.start_time <= now
        )
        if sport:
            query = query.filter(Match.sport == sport)
        return query.order_by(Match.start_time.desc()).limit(limit).all()

    def find_by_team(self, team_name: str, limit: int = 20) -> List[Match]:
        """Matches where either side's name contains ``team_name`` (case-insensitive)."""
        pattern = f"%{team_name}%"
        return self.query().filter(
            or_(
                Match.home_team_name.ilike(pattern),
                Match.away_team_name.ilike(pattern)
            )
        ).order_by(Match.start_time.desc()).limit(limit).all()

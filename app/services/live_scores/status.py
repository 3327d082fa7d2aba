"""
Provider status vocabularies and their canonical MatchStatus mapping.

Each provider's status strings are an Enum, and a StatusTable maps every
member to a MatchStatus. The table refuses to build if any member is left
unmapped, so adding a provider string without deciding its meaning fails at
import time rather than silently falling through.

Unrecognised strings resolve to ``scheduled``. This is a best-effort policy,
not validation: a provider that starts sending a new vocabulary keeps
syncing scores, and the warning below keeps the gap visible.
"""
import enum
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Type

from app.core.logging import get_logger
from app.models import MatchStatus

logger = get_logger(__name__)


class SportsDbStatus(str, enum.Enum):
    """strStatus values published by TheSportsDB event feeds."""
    NOT_STARTED = "Not Started"
    NOT_STARTED_SHORT = "NS"
    TO_BE_DEFINED = "TBD"
    IN_PROGRESS = "In Progress"
    HALF_TIME = "Half Time"
    HALF_TIME_SHORT = "HT"
    FIRST_HALF = "1H"
    SECOND_HALF = "2H"
    EXTRA_TIME = "ET"
    PENALTIES_IN_PROGRESS = "P"
    BREAK_TIME = "BT"
    MATCH_FINISHED = "Match Finished"
    FULL_TIME = "Full Time"
    FULL_TIME_SHORT = "FT"
    AFTER_EXTRA_TIME = "AET"
    AFTER_PENALTIES = "PEN"
    POSTPONED = "Match Postponed"
    POSTPONED_SHORT = "PST"
    CANCELLED = "Match Cancelled"
    CANCELLED_SHORT = "CANC"


class CricApiStatus(str, enum.Enum):
    """Match state strings published by CricAPI match_info."""
    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"


@dataclass(frozen=True)
class StatusTable:
    """
    Total mapping from one provider's status vocabulary to MatchStatus.

    Attributes:
        provider: Provider name, used in log lines
        vocabulary: Enum of recognised provider strings
        mapping: Canonical status for every vocabulary member
        default: Status for unrecognised or missing strings
    """
    provider: str
    vocabulary: Type[enum.Enum]
    mapping: Mapping[enum.Enum, MatchStatus]
    default: MatchStatus = MatchStatus.SCHEDULED
    _by_value: Dict[str, MatchStatus] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        unmapped = [member.value for member in self.vocabulary if member not in self.mapping]
        if unmapped:
            raise ValueError(f"{self.provider} status table is missing mappings for: {unmapped}")
        object.__setattr__(
            self,
            "_by_value",
            {member.value: self.mapping[member] for member in self.vocabulary}
        )

    def resolve(self, raw: Optional[str], match_id: Optional[str] = None) -> MatchStatus:
        """
        Map a raw provider status string to a MatchStatus.

        Args:
            raw: Status string as received (may be None)
            match_id: Match being synced, for diagnostics

        Returns:
            The mapped status, or ``default`` for anything unrecognised
        """
        if raw is not None:
            status = self._by_value.get(str(raw).strip())
            if status is not None:
                return status

        logger.warning(
            f"Unrecognised {self.provider} status {raw!r}, defaulting to {self.default.value}",
            extra={"match_id": match_id, "provider": self.provider}
        )
        return self.default

    def recognised(self) -> Dict[str, MatchStatus]:
        """Copy of the raw-string to status table."""
        return dict(self._by_value)


SPORTSDB_STATUS = StatusTable(
    provider="thesportsdb",
    vocabulary=SportsDbStatus,
    mapping={
        SportsDbStatus.NOT_STARTED: MatchStatus.SCHEDULED,
        SportsDbStatus.NOT_STARTED_SHORT: MatchStatus.SCHEDULED,
        SportsDbStatus.TO_BE_DEFINED: MatchStatus.SCHEDULED,
        SportsDbStatus.IN_PROGRESS: MatchStatus.LIVE,
        SportsDbStatus.HALF_TIME: MatchStatus.LIVE,
        SportsDbStatus.HALF_TIME_SHORT: MatchStatus.LIVE,
        SportsDbStatus.FIRST_HALF: MatchStatus.LIVE,
        SportsDbStatus.SECOND_HALF: MatchStatus.LIVE,
        SportsDbStatus.EXTRA_TIME: MatchStatus.LIVE,
        SportsDbStatus.PENALTIES_IN_PROGRESS: MatchStatus.LIVE,
        SportsDbStatus.BREAK_TIME: MatchStatus.LIVE,
        SportsDbStatus.MATCH_FINISHED: MatchStatus.FINISHED,
        SportsDbStatus.FULL_TIME: MatchStatus.FINISHED,
        SportsDbStatus.FULL_TIME_SHORT: MatchStatus.FINISHED,
        SportsDbStatus.AFTER_EXTRA_TIME: MatchStatus.FINISHED,
        SportsDbStatus.AFTER_PENALTIES: MatchStatus.FINISHED,
        SportsDbStatus.POSTPONED: MatchStatus.POSTPONED,
        SportsDbStatus.POSTPONED_SHORT: MatchStatus.POSTPONED,
        SportsDbStatus.CANCELLED: MatchStatus.CANCELLED,
        SportsDbStatus.CANCELLED_SHORT: MatchStatus.CANCELLED,
    }
)

CRICAPI_STATUS = StatusTable(
    provider="cricapi",
    vocabulary=CricApiStatus,
    mapping={
        CricApiStatus.UPCOMING: MatchStatus.SCHEDULED,
        CricApiStatus.LIVE: MatchStatus.LIVE,
        CricApiStatus.COMPLETED: MatchStatus.FINISHED,
    }
)


# Basketball progress labels shortened for display
BASKETBALL_PERIODS = {
    "1st Quarter": "Q1",
    "2nd Quarter": "Q2",
    "3rd Quarter": "Q3",
    "4th Quarter": "Q4",
    "Overtime": "OT",
}


def basketball_period(progress: Optional[str]) -> str:
    """Short period label for a basketball progress string; unknown labels pass through."""
    if not progress:
        return ""
    return BASKETBALL_PERIODS.get(progress, progress)

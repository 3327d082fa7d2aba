"""
Per-sport field mappers: provider response -> partial Match update.

Every mapper is a pure function ``(response, match_id) -> Optional[dict]``:

- ``response`` is the raw JSON body returned by the sport's provider
- the result holds only Match columns derivable from that body
  (team names and scores, status, and the sport's live payload)
- None means the response has no event for ``match_id``; the caller treats
  that as "nothing to update this cycle", not as an error

Mappers never raise on missing optional fields. Absent scores become 0,
absent event lists become [], and unknown statuses become ``scheduled``
(see status.StatusTable). Each of those defaults is logged so bad provider
data stays visible.

A mapper only ever produces the payload column of its own sport
(``cricket_data`` for cricket, ``live_data`` for everything else).
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from app.core.logging import get_logger
from app.models import MatchStatus, Sport
from app.services.live_scores.status import SPORTSDB_STATUS, CRICAPI_STATUS, basketball_period
from app.utils.timezone import parse_event_start

logger = get_logger(__name__)

MatchUpdate = Dict[str, Any]
Mapper = Callable[[Any, str], Optional[MatchUpdate]]

SPORTSDB = "thesportsdb"
CRICAPI = "cricapi"

# Score columns are 32-bit integers
MAX_SCORE = 2**31 - 1


# =============================================================================
# FIELD HELPERS
# =============================================================================

def to_score(value: Any, match_id: Optional[str] = None, field_name: str = "score") -> int:
    """
    Parse a provider score into a non-negative integer, defaulting to 0.

    TheSportsDB sends scores as strings ("2") or null before kick-off.
    """
    if value is None or value == "":
        logger.debug(
            f"Missing {field_name}, defaulting to 0",
            extra={"match_id": match_id}
        )
        return 0
    try:
        score = int(float(value))
    except (TypeError, ValueError, OverflowError):
        score = None
    if score is None or not 0 <= score <= MAX_SCORE:
        logger.warning(
            f"Unparseable {field_name} {value!r}, defaulting to 0",
            extra={"match_id": match_id}
        )
        return 0
    return score


def to_number(value: Any) -> float:
    """Parse an optional numeric field; anything unusable is 0."""
    try:
        return float(value) if value not in (None, "") else 0
    except (TypeError, ValueError):
        return 0


def parse_events(events: Optional[str]) -> List[Dict[str, str]]:
    """
    Parse TheSportsDB's ``strEvents`` string into event dicts.

    Format: ``"12:Goal Saka;45+2:Yellow card Rice"``. Segments without a
    description keep an empty one; blank segments are dropped.
    """
    if not events or not isinstance(events, str):
        return []

    parsed = []
    for segment in events.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        time, _, description = segment.partition(":")
        parsed.append({
            "time": time.strip(),
            "description": description.strip(),
            "type": "event",
        })
    return parsed


def parse_stats(event: Dict[str, Any]) -> Dict[str, Dict[str, int]]:
    """Aggregate stats published on a TheSportsDB football event."""
    return {
        "shots": {
            "home": to_score(event.get("intHomeShots"), field_name="intHomeShots"),
            "away": to_score(event.get("intAwayShots"), field_name="intAwayShots"),
        },
    }


def run_rate(innings: Optional[Dict[str, Any]]) -> float:
    """Runs per over for one innings, two decimals; 0 when runs or overs are missing."""
    if not innings:
        return 0
    runs = to_number(innings.get("r"))
    overs = to_number(innings.get("o"))
    if not runs or not overs:
        return 0
    return round(runs / overs, 2)


def select_event(response: Any, match_id: str) -> Optional[Dict[str, Any]]:
    """
    Pick the event for ``match_id`` out of a TheSportsDB ``{"events": [...]}`` body.

    An event without ``idEvent`` is accepted as the requested one; the
    endpoint is queried by id and some feeds omit it.
    """
    if not isinstance(response, dict):
        return None
    events = response.get("events") or []
    if not isinstance(events, list):
        return None
    for event in events:
        if not isinstance(event, dict):
            continue
        event_id = event.get("idEvent")
        if event_id in (None, "") or str(event_id) == str(match_id):
            return event
    return None


def _team_fields(event: Dict[str, Any], match_id: str, score_key: str = "int{side}Score") -> MatchUpdate:
    update: MatchUpdate = {}
    for side, prefix in (("Home", "home"), ("Away", "away")):
        name = event.get(f"str{side}Team")
        if name:
            update[f"{prefix}_team_name"] = name
        key = score_key.format(side=side)
        update[f"{prefix}_score"] = to_score(event.get(key), match_id, key)
    return update


# =============================================================================
# SPORT MAPPERS
# =============================================================================

def map_football(response: Any, match_id: str) -> Optional[MatchUpdate]:
    """TheSportsDB live football event -> partial Match."""
    event = select_event(response, match_id)
    if event is None:
        return None

    progress = event.get("strProgress") or ""
    update = _team_fields(event, match_id)
    update["status"] = SPORTSDB_STATUS.resolve(event.get("strStatus"), match_id).value
    update["live_data"] = {
        "current_time": progress,
        "period": progress,
        "events": parse_events(event.get("strEvents")),
        "stats": parse_stats(event),
    }
    return update


def map_basketball(response: Any, match_id: str) -> Optional[MatchUpdate]:
    """TheSportsDB live basketball event -> partial Match."""
    event = select_event(response, match_id)
    if event is None:
        return None

    progress = event.get("strProgress") or ""
    update = _team_fields(event, match_id)
    update["status"] = SPORTSDB_STATUS.resolve(event.get("strStatus"), match_id).value
    update["live_data"] = {
        "current_time": progress,
        "period": basketball_period(progress),
        "events": parse_events(event.get("strEvents")),
    }
    return update


def map_tennis(response: Any, match_id: str) -> Optional[MatchUpdate]:
    """
    TheSportsDB live tennis event -> partial Match.

    Tennis publishes sets won in ``strHomeScore``/``strAwayScore``.
    """
    event = select_event(response, match_id)
    if event is None:
        return None

    progress = event.get("strProgress") or ""
    update = _team_fields(event, match_id, score_key="str{side}Score")
    update["status"] = SPORTSDB_STATUS.resolve(event.get("strStatus"), match_id).value
    update["live_data"] = {
        "current_time": progress,
        "period": progress,
        "events": [],
    }
    return update


def map_cricket(response: Any, match_id: str) -> Optional[MatchUpdate]:
    """
    CricAPI match_info -> partial Match.

    ``data.score`` is a list of innings ``{"r": runs, "w": wickets, "o": overs}``;
    the first belongs to the home side and the second to the away side.
    """
    if not isinstance(response, dict):
        return None
    data = response.get("data")
    if not isinstance(data, dict):
        return None
    if "id" in data and str(data["id"]) != str(match_id):
        return None

    teams = data.get("teams") or []
    innings = data.get("score") or []
    home_innings = innings[0] if len(innings) > 0 and isinstance(innings[0], dict) else {}
    away_innings = innings[1] if len(innings) > 1 and isinstance(innings[1], dict) else {}

    update: MatchUpdate = {}
    if len(teams) > 0 and teams[0]:
        update["home_team_name"] = teams[0]
    if len(teams) > 1 and teams[1]:
        update["away_team_name"] = teams[1]

    update["home_score"] = to_score(home_innings.get("r"), match_id, "home runs")
    update["away_score"] = to_score(away_innings.get("r"), match_id, "away runs")
    update["status"] = CRICAPI_STATUS.resolve(data.get("status"), match_id).value
    update["cricket_data"] = {
        "overs": {
            "home": to_number(home_innings.get("o")),
            "away": to_number(away_innings.get("o")),
        },
        "wickets": {
            "home": to_score(home_innings.get("w"), match_id, "home wickets"),
            "away": to_score(away_innings.get("w"), match_id, "away wickets"),
        },
        "run_rate": {
            "home": run_rate(home_innings),
            "away": run_rate(away_innings),
        },
        "current_batsmen": [],
        "current_bowler": None,
    }
    return update


@dataclass(frozen=True)
class SportFeed:
    """Which provider serves a sport's live data, and how to map it."""
    provider: str
    mapper: Mapper


# Sports without an entry (baseball, hockey) are skipped by the live sync
SPORT_FEEDS: Dict[str, SportFeed] = {
    Sport.FOOTBALL.value: SportFeed(provider=SPORTSDB, mapper=map_football),
    Sport.BASKETBALL.value: SportFeed(provider=SPORTSDB, mapper=map_basketball),
    Sport.TENNIS.value: SportFeed(provider=SPORTSDB, mapper=map_tennis),
    Sport.CRICKET.value: SportFeed(provider=CRICAPI, mapper=map_cricket),
}


# =============================================================================
# DISCOVERY MAPPING
# =============================================================================

def map_upcoming_event(event: Dict[str, Any], sport: str) -> Optional[Dict[str, Any]]:
    """
    TheSportsDB ``eventsnext`` event -> full column set for a new scheduled Match.

    Events without an id or a usable start date cannot be stored and yield None.
    No live payload is set; it is filled in once the match goes live.
    """
    match_id = event.get("idEvent")
    if not match_id:
        logger.warning(f"Skipping upcoming {sport} event without idEvent", extra={"sport": sport})
        return None

    start_time = parse_event_start(
        event.get("dateEvent"),
        event.get("strTime"),
        event.get("strTimestamp")
    )
    if start_time is None:
        logger.warning(
            f"Skipping upcoming {sport} event {match_id} without a start date",
            extra={"match_id": match_id, "sport": sport}
        )
        return None

    return {
        "match_id": str(match_id),
        "sport": sport,
        "league": event.get("strLeague") or "Unknown",
        "home_team_id": event.get("idHomeTeam"),
        "home_team_name": event.get("strHomeTeam"),
        "home_team_logo": event.get("strHomeTeamBadge"),
        "away_team_id": event.get("idAwayTeam"),
        "away_team_name": event.get("strAwayTeam"),
        "away_team_logo": event.get("strAwayTeamBadge"),
        "start_time": start_time,
        "venue_name": event.get("strVenue"),
        "venue_city": event.get("strCity"),
        "venue_country": event.get("strCountry"),
        "status": MatchStatus.SCHEDULED.value,
    }

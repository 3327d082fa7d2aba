"""
Upcoming-match discovery: the only path that creates Match records.

For each configured sport, fetch the provider's "next events" list and
insert a scheduled Match for every event whose id is not stored yet.
Existing matches are never modified here, so running discovery again over
an unchanged list creates nothing.

A failing sport is logged and skipped; the other sports still run. Inside a
sport, each insert is committed on its own so one bad event cannot discard
the others.
"""
from typing import Any, Dict, Iterable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import metrics
from app.core.logging import get_logger
from app.repositories import MatchRepository
from app.services.live_scores.mappers import SPORT_FEEDS, SPORTSDB, map_upcoming_event

logger = get_logger(__name__)


def unsyncable_discovery_sports(sports: Iterable[str]) -> List[str]:
    """
    Discovered sports whose live feed is not TheSportsDB.

    Discovery stores TheSportsDB event ids; a sport whose live data comes
    from another provider (cricket via CricAPI) is looked up there by that
    same id, so its discovered matches never receive live updates.
    """
    return [
        sport for sport in sports
        if sport in SPORT_FEEDS and SPORT_FEEDS[sport].provider != SPORTSDB
    ]


class UpcomingMatchDiscovery:
    """
    Creates scheduled matches from TheSportsDB's upcoming events.

    Attributes:
        db: Session used for lookups and inserts
        client: SportsDbClient (anything with ``fetch_next_events(sport)``)
        sports: Sports to discover, in order
    """

    def __init__(self, db: Session, client: Any, sports: Iterable[str]):
        self.db = db
        self.repo = MatchRepository(db)
        self.client = client
        self.sports = list(sports)

    async def discover(self) -> Dict[str, Any]:
        """
        Run discovery for every configured sport.

        Returns:
            Totals plus per-sport created counts and the sports that failed
        """
        results: Dict[str, Any] = {
            "created": 0,
            "existing": 0,
            "invalid": 0,
            "by_sport": {},
            "failed_sports": [],
        }

        for sport in self.sports:
            try:
                sport_result = await self.discover_sport(sport)
            except Exception as e:
                metrics.record_discovery_failure(sport)
                logger.error(f"Error fetching upcoming {sport} matches: {e}", extra={"sport": sport})
                results["failed_sports"].append(sport)
                continue

            results["by_sport"][sport] = sport_result["created"]
            for key in ("created", "existing", "invalid"):
                results[key] += sport_result[key]

        logger.info(
            f"Discovery: {results['created']} new matches across {len(self.sports)} sports "
            f"({results['existing']} already stored, {len(results['failed_sports'])} sports failed)"
        )
        return results

    async def discover_sport(self, sport: str) -> Dict[str, int]:
        """
        Store new upcoming matches for one sport.

        Raises:
            ProviderError: If the provider list cannot be fetched
        """
        events = await self.client.fetch_next_events(sport)
        counts = {"created": 0, "existing": 0, "invalid": 0}

        for event in events:
            fields = map_upcoming_event(event, sport)
            if fields is None:
                counts["invalid"] += 1
                continue

            match_id = fields["match_id"]
            if self.repo.exists(match_id):
                counts["existing"] += 1
                continue

            try:
                match = self.repo.insert(fields)
                self.repo.save()
            except IntegrityError:
                # Stored concurrently (e.g. listed twice); nothing to add
                self.repo.rollback()
                counts["existing"] += 1
                continue
            except Exception as e:
                self.repo.rollback()
                counts["invalid"] += 1
                logger.error(
                    f"Error saving upcoming match {match_id}: {e}",
                    extra={"match_id": match_id, "sport": sport}
                )
                continue

            counts["created"] += 1
            logger.info(
                f"Saved upcoming match: {match.home_team_name} vs {match.away_team_name}",
                extra={"match_id": match_id, "sport": sport}
            )

        metrics.record_discovery_created(sport, counts["created"])
        return counts

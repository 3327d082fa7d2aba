"""
Match Updater: synchronizes persisted live matches with provider data.

For one match:
1. Pick the SportFeed for the match's sport (no feed -> skipped, not an error)
2. Fetch the provider body and map it to a partial update
3. Merge the update into the stored record and commit
4. Publish the merged record on the match's topic

Any failure in steps 2-3 is logged with the match id and sport and stays
with that match: the rest of the cycle carries on. There is no retry; the
next fast cycle polls again. A failed publish is logged and leaves the
committed write in place.
"""
import asyncio
import enum
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core import metrics
from app.core.logging import get_logger
from app.models import Match, MatchStatus, CRICKET_PAYLOAD, LIVE_PAYLOAD, payload_field_for
from app.repositories import MatchRepository
from app.services.live_scores.exceptions import ProviderError
from app.services.live_scores.mappers import SPORT_FEEDS, SportFeed, MatchUpdate
from app.services.live_scores.notifier import ChangeNotifier
from app.utils.timezone import utcnow

logger = get_logger(__name__)


class SyncOutcome(str, enum.Enum):
    """Result of syncing one match."""
    UPDATED = "updated"
    NO_UPDATE = "no_update"
    SKIPPED = "skipped"
    FAILED = "failed"


def restrict_payload(sport: str, update: MatchUpdate, match_id: str) -> MatchUpdate:
    """Drop a live payload that does not belong to ``sport``."""
    allowed = payload_field_for(sport)
    foreign = {CRICKET_PAYLOAD, LIVE_PAYLOAD} - {allowed}
    stray = foreign & set(update)
    if not stray:
        return update

    logger.error(
        f"Mapper for {sport} produced {sorted(stray)}; dropping it",
        extra={"match_id": match_id, "sport": sport}
    )
    return {k: v for k, v in update.items() if k not in stray}


class MatchUpdater:
    """
    Applies provider snapshots to live matches.

    Attributes:
        db: Session used for reads and writes
        providers: Provider name -> client (see providers.build_providers)
        notifier: Change Notifier receiving updated matches
        concurrency: Maximum provider calls in flight per cycle
        feeds: Sport -> SportFeed registry
    """

    def __init__(
        self,
        db: Session,
        providers: Dict[str, Any],
        notifier: ChangeNotifier,
        concurrency: int = 5,
        feeds: Optional[Dict[str, SportFeed]] = None
    ):
        self.db = db
        self.repo = MatchRepository(db)
        self.providers = providers
        self.notifier = notifier
        self.feeds = SPORT_FEEDS if feeds is None else feeds
        self._semaphore = asyncio.Semaphore(concurrency)

    async def sync_match(self, match: Match) -> SyncOutcome:
        """Synchronize one stored match with its provider."""
        return await self._sync(match.match_id, match.sport)

    async def sync_live_matches(self) -> Dict[str, Any]:
        """
        Run the updater against every match currently marked live.

        Matches are independent and may complete in any order.

        Returns:
            Counts per outcome plus the number of live matches found
        """
        live = self.repo.find_by_status(MatchStatus.LIVE)
        # Capture identities up front; commits expire the ORM instances
        targets: List[Tuple[str, str]] = [(m.match_id, m.sport) for m in live]
        metrics.live_matches_in_cycle.set(len(targets))

        results = {outcome.value: 0 for outcome in SyncOutcome}
        results["live_matches"] = len(targets)

        if not targets:
            logger.debug("No live matches to sync")
            return results

        outcomes = await asyncio.gather(*(self._sync_bounded(mid, sport) for mid, sport in targets))
        for outcome in outcomes:
            results[outcome.value] += 1

        logger.info(
            f"Live sync: {results['updated']}/{len(targets)} updated, "
            f"{results['no_update']} unchanged, {results['skipped']} skipped, {results['failed']} failed"
        )
        return results

    async def _sync_bounded(self, match_id: str, sport: str) -> SyncOutcome:
        async with self._semaphore:
            return await self._sync(match_id, sport)

    async def _sync(self, match_id: str, sport: str) -> SyncOutcome:
        try:
            outcome = await self._apply(match_id, sport)
        except Exception as e:
            self.repo.rollback()
            logger.error(
                f"Unexpected error syncing {match_id}: {e}",
                extra={"match_id": match_id, "sport": sport},
                exc_info=True
            )
            outcome = SyncOutcome.FAILED
        metrics.record_live_sync_outcome(sport, outcome.value)
        return outcome

    async def _apply(self, match_id: str, sport: str) -> SyncOutcome:
        context = {"match_id": match_id, "sport": sport}

        feed = self.feeds.get(sport)
        if feed is None:
            logger.info(f"Sport {sport} not supported for live updates", extra=context)
            return SyncOutcome.SKIPPED

        provider = self.providers.get(feed.provider)
        if provider is None:
            logger.info(f"No {feed.provider} client configured; skipping {sport} match", extra=context)
            return SyncOutcome.SKIPPED

        # Fetch and map
        try:
            body = await provider.fetch_match(match_id)
            update = feed.mapper(body, match_id)
        except ProviderError as e:
            logger.error(f"Error fetching {sport} data for {match_id}: {e}", extra=context)
            return SyncOutcome.FAILED
        except Exception as e:
            logger.error(f"Error mapping {sport} data for {match_id}: {e}", extra=context, exc_info=True)
            return SyncOutcome.FAILED

        if not update:
            logger.debug(f"No provider event for {match_id}", extra=context)
            return SyncOutcome.NO_UPDATE

        update = restrict_payload(sport, update, match_id)

        # Persist (no awaits between merge and commit)
        try:
            match = self.repo.merge_update(match_id, update, synced_at=utcnow())
            if match is None:
                logger.warning(f"Match {match_id} disappeared before it could be updated", extra=context)
                return SyncOutcome.NO_UPDATE
            self.repo.save()
            payload = match.to_dict()
        except Exception as e:
            # Any failed flush leaves the shared session needing a rollback
            self.repo.rollback()
            logger.error(f"Error storing update for {match_id}: {e}", extra=context)
            return SyncOutcome.FAILED

        # Notify
        try:
            await self.notifier.publish(match_id, payload)
        except Exception as e:
            logger.warning(f"Failed to publish update for {match_id}: {e}", extra=context)

        logger.info(
            f"Updated match: {payload['home_team']['name']} vs {payload['away_team']['name']} "
            f"({payload['home_team']['score']}-{payload['away_team']['score']}, {payload['status']})",
            extra={**context, "outcome": SyncOutcome.UPDATED.value}
        )
        return SyncOutcome.UPDATED

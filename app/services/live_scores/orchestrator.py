"""Sync orchestrator for the live-score loop.

This orchestrator coordinates:
- Fast cycle: refresh every live match from its provider
- Slow cycle: discover upcoming matches for each configured sport
- Sync metadata tracking
- Health monitoring

Sync Schedule (see app.core.scheduler):
- live_scores_sync: every LIVE_SYNC_INTERVAL_SECONDS (30s)
- upcoming_matches_discovery: every DISCOVERY_INTERVAL_SECONDS (1h)
"""
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models import SyncMetadata
from app.services.live_scores.config import LiveSyncConfig
from app.services.live_scores.discovery import UpcomingMatchDiscovery
from app.services.live_scores.mappers import SPORTSDB
from app.services.live_scores.notifier import ChangeNotifier
from app.services.live_scores.updater import MatchUpdater
from app.utils.timezone import utcnow

logger = get_logger(__name__)

LIVE_SOURCE = ("live_scores", "live_matches")
DISCOVERY_SOURCE = (SPORTSDB, "upcoming_matches")

# A job that has not completed for this long is reported as stale
STALE_AFTER = {
    LIVE_SOURCE: timedelta(minutes=10),
    DISCOVERY_SOURCE: timedelta(hours=3),
}


class LiveSyncOrchestrator:
    """
    Runs sync cycles against one database session.

    This is the entry point used by the scheduler, the manual refresh
    route and the standalone runner.
    """

    def __init__(
        self,
        db: Session,
        providers: Dict[str, Any],
        notifier: ChangeNotifier,
        config: LiveSyncConfig
    ):
        """
        Args:
            db: SQLAlchemy database session
            providers: Provider name -> client
            notifier: Change Notifier for updated matches
            config: Loop configuration
        """
        self.db = db
        self.config = config
        self.updater = MatchUpdater(
            db,
            providers,
            notifier,
            concurrency=config.live_sync_concurrency
        )
        self.discovery = UpcomingMatchDiscovery(
            db,
            providers.get(SPORTSDB),
            config.discovery_sports
        )

    async def run_live_cycle(self) -> Dict[str, Any]:
        """
        One fast cycle: sync every live match.

        Zero live matches is a normal, empty cycle.

        Returns:
            Outcome counts with ``success`` and ``duration_ms``
        """
        start_time = utcnow()
        metadata = self._start_metadata(LIVE_SOURCE, start_time)

        try:
            results = await self.updater.sync_live_matches()
        except Exception as e:
            logger.error(f"Live sync cycle failed: {e}", exc_info=True)
            self._fail_metadata(LIVE_SOURCE, start_time, str(e))
            return {'success': False, 'error': str(e)}

        duration_ms = self._elapsed_ms(start_time)
        metadata = self._refresh_metadata(metadata, LIVE_SOURCE)
        metadata.last_sync_completed_at = utcnow()
        metadata.last_sync_status = 'success' if results['failed'] == 0 else 'partial'
        metadata.records_processed = results['live_matches']
        metadata.records_updated = results['updated']
        metadata.records_failed = results['failed']
        metadata.error_message = None
        metadata.sync_duration_ms = duration_ms
        self.db.commit()

        return {'success': True, **results, 'duration_ms': duration_ms}

    async def run_discovery_cycle(self) -> Dict[str, Any]:
        """
        One slow cycle: discover upcoming matches for every configured sport.

        Returns:
            Discovery counts with ``success`` and ``duration_ms``
        """
        start_time = utcnow()
        metadata = self._start_metadata(DISCOVERY_SOURCE, start_time)

        if self.discovery.client is None:
            error = f"No {SPORTSDB} client configured"
            logger.error(error)
            self._fail_metadata(DISCOVERY_SOURCE, start_time, error)
            return {'success': False, 'error': error}

        try:
            results = await self.discovery.discover()
        except Exception as e:
            logger.error(f"Discovery cycle failed: {e}", exc_info=True)
            self._fail_metadata(DISCOVERY_SOURCE, start_time, str(e))
            return {'success': False, 'error': str(e)}

        duration_ms = self._elapsed_ms(start_time)
        failed = results['failed_sports']
        metadata = self._refresh_metadata(metadata, DISCOVERY_SOURCE)
        metadata.last_sync_completed_at = utcnow()
        if not failed:
            metadata.last_sync_status = 'success'
        elif len(failed) < len(self.discovery.sports):
            metadata.last_sync_status = 'partial'
        else:
            metadata.last_sync_status = 'failed'
        metadata.records_processed = results['created'] + results['existing'] + results['invalid']
        metadata.records_updated = results['created']
        metadata.records_failed = len(failed)
        metadata.error_message = f"Failed sports: {', '.join(failed)}" if failed else None
        metadata.sync_duration_ms = duration_ms
        self.db.commit()

        return {'success': not failed, **results, 'duration_ms': duration_ms}

    def get_sync_status(self) -> Dict[str, Any]:
        """
        Summarise the latest run of every sync job.

        Health:
        - unknown: no job has run yet
        - healthy: every job's last run succeeded recently
        - degraded: some runs were partial, failed or stale
        - unhealthy: every job's last run failed
        """
        records = self.db.query(SyncMetadata).all()
        if not records:
            return {'health_status': 'unknown', 'total_jobs': 0, 'jobs': []}

        now = utcnow()
        jobs = []
        success_count = 0
        failed_count = 0
        for record in records:
            job = record.to_dict()
            threshold = STALE_AFTER.get((record.source, record.data_type))
            completed = record.last_sync_completed_at
            job['stale'] = bool(threshold and (completed is None or now - completed > threshold))
            jobs.append(job)

            if record.last_sync_status == 'success' and not job['stale']:
                success_count += 1
            elif record.last_sync_status == 'failed':
                failed_count += 1

        if success_count == len(records):
            health = 'healthy'
        elif failed_count == len(records):
            health = 'unhealthy'
        else:
            health = 'degraded'

        return {
            'health_status': health,
            'total_jobs': len(records),
            'success_count': success_count,
            'failed_count': failed_count,
            'jobs': jobs,
        }

    # ========================================================================
    # Metadata helpers
    # ========================================================================

    def _get_or_create_metadata(self, key) -> SyncMetadata:
        source, data_type = key
        metadata = self.db.query(SyncMetadata).filter(
            SyncMetadata.source == source,
            SyncMetadata.data_type == data_type
        ).first()
        if metadata is None:
            metadata = SyncMetadata(
                id=str(uuid.uuid4()),
                source=source,
                data_type=data_type,
                records_processed=0,
                records_updated=0,
                records_failed=0
            )
            self.db.add(metadata)
        return metadata

    def _start_metadata(self, key, start_time: datetime) -> SyncMetadata:
        metadata = self._get_or_create_metadata(key)
        metadata.last_sync_started_at = start_time
        self.db.commit()
        return metadata

    def _refresh_metadata(self, metadata: Optional[SyncMetadata], key) -> SyncMetadata:
        # A per-match rollback during the cycle detaches nothing, but may expire it
        return metadata if metadata in self.db else self._get_or_create_metadata(key)

    def _fail_metadata(self, key, start_time: datetime, error: str):
        self.db.rollback()
        metadata = self._get_or_create_metadata(key)
        metadata.last_sync_completed_at = utcnow()
        metadata.last_sync_status = 'failed'
        metadata.error_message = error[:2000]
        metadata.sync_duration_ms = self._elapsed_ms(start_time)
        self.db.commit()

    @staticmethod
    def _elapsed_ms(start_time: datetime) -> int:
        return int((utcnow() - start_time).total_seconds() * 1000)

"""Sync API routes for live-score synchronization health and management.

Provides endpoints for:
- Sync health monitoring
- Scheduler status
- Manual discovery trigger
"""
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.logging import get_logger, sync_cycle_context
from app.core.scheduler import get_scheduler
from app.services.live_scores import (
    LiveSyncConfig,
    LiveSyncOrchestrator,
    build_providers,
    close_providers,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


def get_orchestrator(request: Request, db: Session = Depends(get_db)) -> LiveSyncOrchestrator:
    """Dependency to get a read-only sync orchestrator (no provider clients)."""
    config = LiveSyncConfig.from_settings(settings)
    return LiveSyncOrchestrator(db, {}, request.app.state.room_manager, config)


@router.get("/status")
async def get_sync_status(
    orchestrator: LiveSyncOrchestrator = Depends(get_orchestrator)
) -> Dict:
    """
    Get overall sync health status dashboard.

    Returns the last run of each sync job with:
    - Health status (healthy, degraded, unhealthy, unknown)
    - Last start/completion times and durations
    - Processed/updated/failed counts
    - Whether a job has gone stale
    """
    return orchestrator.get_sync_status()


@router.get("/scheduler")
async def get_scheduler_status() -> Dict:
    """Get the scheduler's state and its jobs' next run times."""
    scheduler = get_scheduler()
    if scheduler is None or not scheduler.running:
        return {"running": False, "jobs": []}

    return {
        "running": True,
        "live_interval_seconds": scheduler.config.live_interval_seconds,
        "discovery_interval_seconds": scheduler.config.discovery_interval_seconds,
        "jobs": scheduler.get_jobs_info()
    }


@router.post("/discovery")
async def trigger_discovery(
    request: Request,
    db: Session = Depends(get_db)
) -> Dict:
    """
    Manually trigger upcoming-match discovery for every configured sport.

    Returns:
        Discovery results with counts
    """
    scheduler = get_scheduler()
    if scheduler is not None:
        config, providers, owned = scheduler.config, scheduler.providers, False
    else:
        config = LiveSyncConfig.from_settings(settings)
        providers, owned = build_providers(config), True

    try:
        with sync_cycle_context('discovery'):
            orchestrator = LiveSyncOrchestrator(db, providers, request.app.state.room_manager, config)
            results = await orchestrator.run_discovery_cycle()
    finally:
        if owned:
            await close_providers(providers)

    if 'created' not in results:
        raise HTTPException(status_code=500, detail=f"Discovery failed: {results.get('error')}")

    return {
        'status': 'completed' if results['success'] else 'partial',
        'results': results
    }

"""
Live score routes.

Read access to stored matches, a manual trigger for the fast sync cycle, and
the WebSocket endpoint subscribers use to receive match updates.
"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, WebSocket
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.logging import get_logger, sync_cycle_context
from app.core.scheduler import get_scheduler
from app.models import Match, MatchStatus, Sport
from app.repositories import MatchRepository
from app.services.live_scores import (
    LiveSyncConfig,
    LiveSyncOrchestrator,
    build_providers,
    close_providers,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/live-scores", tags=["live-scores"])


def get_match_repository(db: Session = Depends(get_db)) -> MatchRepository:
    """Dependency to get a match repository."""
    return MatchRepository(db)


def _matches(matches: List[Match]) -> Dict:
    return {
        "success": True,
        "count": len(matches),
        "matches": [m.to_dict() for m in matches]
    }


@router.get("")
async def get_live_scores(
    sport: Optional[Sport] = Query(None, description="Filter by sport"),
    status: Optional[MatchStatus] = Query(None, description="Filter by status (default: live and scheduled)"),
    limit: int = Query(20, ge=1, le=50, description="Maximum matches to return"),
    repo: MatchRepository = Depends(get_match_repository)
) -> Dict:
    """
    Get matches ordered by start time.

    Without a status filter, live and scheduled matches are returned.
    """
    statuses = [status] if status else [MatchStatus.LIVE, MatchStatus.SCHEDULED]
    matches = repo.find_filtered(
        statuses,
        sport=sport.value if sport else None,
        limit=limit
    )
    return _matches(matches)


@router.get("/status/live")
async def get_live_matches(
    repo: MatchRepository = Depends(get_match_repository)
) -> Dict:
    """Get every match currently in progress."""
    return _matches(repo.find_by_status(MatchStatus.LIVE))


@router.get("/status/upcoming")
async def get_upcoming_matches(
    sport: Optional[Sport] = Query(None, description="Filter by sport"),
    days: int = Query(7, ge=1, le=30, description="Days to look ahead"),
    repo: MatchRepository = Depends(get_match_repository)
) -> Dict:
    """Get scheduled matches starting within the next ``days`` days."""
    matches = repo.find_upcoming(days=days, sport=sport.value if sport else None)
    return _matches(matches)


@router.get("/status/finished")
async def get_finished_matches(
    sport: Optional[Sport] = Query(None, description="Filter by sport"),
    days: int = Query(7, ge=1, le=30, description="Days to look back"),
    repo: MatchRepository = Depends(get_match_repository)
) -> Dict:
    """Get finished matches from the last ``days`` days, newest first."""
    matches = repo.find_finished(days=days, sport=sport.value if sport else None)
    return _matches(matches)


@router.get("/team/{team_name}")
async def get_team_matches(
    team_name: str,
    repo: MatchRepository = Depends(get_match_repository)
) -> Dict:
    """Get recent matches for a team (case-insensitive name match on either side)."""
    return _matches(repo.find_by_team(team_name))


@router.post("/refresh")
async def refresh_live_scores(
    request: Request,
    db: Session = Depends(get_db)
) -> Dict:
    """
    Run one fast sync cycle now.

    Uses the running scheduler's provider clients when there is one;
    otherwise temporary clients are created and closed for this request.
    """
    scheduler = get_scheduler()
    if scheduler is not None:
        config = scheduler.config
        providers = scheduler.providers
        owned = False
    else:
        config = LiveSyncConfig.from_settings(settings)
        providers = build_providers(config)
        owned = True

    notifier = request.app.state.room_manager
    try:
        with sync_cycle_context('refresh'):
            result = await LiveSyncOrchestrator(db, providers, notifier, config).run_live_cycle()
    finally:
        if owned:
            await close_providers(providers)

    if not result.get('success'):
        raise HTTPException(status_code=500, detail=f"Live sync failed: {result.get('error')}")

    return {
        "success": True,
        "message": "Live scores refreshed",
        "results": result
    }


@router.get("/{match_id}")
async def get_match(
    match_id: str,
    repo: MatchRepository = Depends(get_match_repository)
) -> Dict:
    """Get one match by its provider id."""
    match = repo.find_by_match_id(match_id)
    if match is None:
        raise HTTPException(status_code=404, detail="Match not found")

    return {
        "success": True,
        "match": match.to_dict()
    }


@router.websocket("/ws")
async def live_scores_socket(websocket: WebSocket):
    """
    Subscribe to match updates.

    Send ``{"op": "subscribe", "match_id": "..."}`` to join a match's topic;
    every update the sync loop stores for it is pushed as
    ``{"type": "matchUpdate", "topic": "...", "data": {...}}``.
    """
    await websocket.app.state.room_manager.handle_connection(websocket)

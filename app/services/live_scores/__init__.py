"""
Live-score synchronization services.

Fast cycle: MatchUpdater refreshes every live match from its provider.
Slow cycle: UpcomingMatchDiscovery stores new scheduled matches.
LiveSyncOrchestrator runs both and records SyncMetadata.
"""
from app.services.live_scores.config import LiveSyncConfig
from app.services.live_scores.discovery import UpcomingMatchDiscovery
from app.services.live_scores.exceptions import (
    ProviderError,
    ProviderUnavailableError,
    MalformedResponseError,
)
from app.services.live_scores.mappers import (
    SPORT_FEEDS,
    SportFeed,
    map_football,
    map_basketball,
    map_tennis,
    map_cricket,
    map_upcoming_event,
)
from app.services.live_scores.notifier import ChangeNotifier, MatchRoomManager
from app.services.live_scores.orchestrator import LiveSyncOrchestrator
from app.services.live_scores.providers import (
    SportsDbClient,
    CricApiClient,
    build_providers,
    close_providers,
)
from app.services.live_scores.updater import MatchUpdater, SyncOutcome

__all__ = [
    "LiveSyncConfig",
    "UpcomingMatchDiscovery",
    "ProviderError",
    "ProviderUnavailableError",
    "MalformedResponseError",
    "SPORT_FEEDS",
    "SportFeed",
    "map_football",
    "map_basketball",
    "map_tennis",
    "map_cricket",
    "map_upcoming_event",
    "ChangeNotifier",
    "MatchRoomManager",
    "LiveSyncOrchestrator",
    "SportsDbClient",
    "CricApiClient",
    "build_providers",
    "close_providers",
    "MatchUpdater",
    "SyncOutcome",
]

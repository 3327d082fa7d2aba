"""Runtime configuration for the match synchronization loop."""
from dataclasses import dataclass, field
from typing import Tuple

from app.models import Sport


@dataclass(frozen=True)
class LiveSyncConfig:
    """
    Everything the sync loop needs, resolved once at process start.

    Built from Settings by ``from_settings`` and passed into the scheduler,
    which hands it on to the orchestrator and provider clients.
    """
    sportsdb_api_key: str = "3"
    sportsdb_base_url: str = "https://www.thesportsdb.com/api/v1/json"
    cricapi_api_key: str = ""
    cricapi_base_url: str = "https://api.cricapi.com/v1"
    provider_timeout_seconds: float = 10.0
    live_interval_seconds: int = 30
    discovery_interval_seconds: int = 3600
    live_sync_concurrency: int = 5
    discovery_sports: Tuple[str, ...] = field(default_factory=lambda: (
        Sport.FOOTBALL.value,
        Sport.CRICKET.value,
        Sport.BASKETBALL.value,
        Sport.TENNIS.value,
    ))
    discovery_on_startup: bool = True

    def __post_init__(self):
        if self.live_interval_seconds <= 0 or self.discovery_interval_seconds <= 0:
            raise ValueError("Sync intervals must be positive")
        if self.live_sync_concurrency < 1:
            raise ValueError("live_sync_concurrency must be at least 1")
        unknown = [s for s in self.discovery_sports if s not in {sport.value for sport in Sport}]
        if unknown:
            raise ValueError(f"Unknown discovery sports: {unknown}")

    @classmethod
    def from_settings(cls, settings) -> "LiveSyncConfig":
        """Build the config from application Settings."""
        return cls(
            sportsdb_api_key=settings.THESPORTSDB_API_KEY,
            sportsdb_base_url=settings.THESPORTSDB_BASE_URL,
            cricapi_api_key=settings.CRICAPI_API_KEY,
            cricapi_base_url=settings.CRICAPI_BASE_URL,
            provider_timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
            live_interval_seconds=settings.LIVE_SYNC_INTERVAL_SECONDS,
            discovery_interval_seconds=settings.DISCOVERY_INTERVAL_SECONDS,
            live_sync_concurrency=settings.LIVE_SYNC_CONCURRENCY,
            discovery_sports=tuple(settings.DISCOVERY_SPORTS),
            discovery_on_startup=settings.DISCOVERY_ON_STARTUP,
        )

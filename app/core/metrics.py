"""
Prometheus metrics for the live-score service.

Metrics exposed:
- Live sync outcomes per sport
- Upcoming-match discovery counts per sport
- Provider request failures
- Scheduler status gauges

HTTP request metrics are added separately by prometheus-fastapi-instrumentator.
"""
from prometheus_client import Counter, Gauge

# Sync Metrics
live_sync_matches_total = Counter(
    "live_sync_matches_total",
    "Live matches processed by the fast sync cycle",
    ["sport", "outcome"]
)

live_matches_in_cycle = Gauge(
    "live_matches_in_cycle",
    "Live matches found by the most recent fast sync cycle"
)

discovery_matches_created_total = Counter(
    "discovery_matches_created_total",
    "Matches created by upcoming-match discovery",
    ["sport"]
)

discovery_sport_failures_total = Counter(
    "discovery_sport_failures_total",
    "Discovery runs that failed for one sport",
    ["sport"]
)

# External API Metrics
provider_requests_failure_total = Counter(
    "provider_requests_failure_total",
    "Failed score provider requests",
    ["provider", "error_type"]
)

# Scheduler Metrics
scheduler_running = Gauge(
    "scheduler_running",
    "Whether the sync scheduler is running (1=running, 0=stopped)"
)

scheduler_jobs_total = Gauge(
    "scheduler_jobs_total",
    "Total number of scheduled jobs"
)


def record_live_sync_outcome(sport: str, outcome: str):
    """Count one match processed by the fast cycle."""
    live_sync_matches_total.labels(sport=sport, outcome=outcome).inc()


def record_discovery_created(sport: str, count: int):
    """Count matches created by discovery for one sport."""
    if count:
        discovery_matches_created_total.labels(sport=sport).inc(count)


def record_discovery_failure(sport: str):
    """Count a discovery run that failed for one sport."""
    discovery_sport_failures_total.labels(sport=sport).inc()


def record_provider_failure(provider: str, error_type: str = "unknown"):
    """Record a failed provider request."""
    provider_requests_failure_total.labels(provider=provider, error_type=error_type).inc()


def update_scheduler_metrics():
    """
    Update scheduler metrics.

    Call this periodically to update scheduler status.
    """
    from app.core.scheduler import get_scheduler

    scheduler = get_scheduler()
    if scheduler and scheduler.running:
        scheduler_running.set(1)
        if scheduler.scheduler:
            scheduler_jobs_total.set(len(scheduler.scheduler.get_jobs()))
    else:
        scheduler_running.set(0)
        scheduler_jobs_total.set(0)

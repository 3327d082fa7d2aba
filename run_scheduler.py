#!/usr/bin/env python3
"""
Background runner for the live-score sync scheduler.

This script runs the sync loop as a standalone background service, without
the HTTP API. It can be run via systemd, supervisor, or directly. Updates are
published to an in-process room manager; WebSocket subscribers are only
served by the API process (app.main).

Usage:
    python run_scheduler.py                    # Run in foreground
    python run_scheduler.py --once live        # Run one fast cycle and exit
    python run_scheduler.py --once discovery   # Run one discovery cycle and exit
    python run_scheduler.py --list-jobs        # Show the job schedule and exit
"""
import asyncio
import argparse
import json
import signal
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from app.core.config import settings
from app.core.database import init_db
from app.core.logging import configure_logging, get_logger
from app.core.scheduler import LiveSyncScheduler, LIVE_JOB_ID, DISCOVERY_JOB_ID
from app.services.live_scores import LiveSyncConfig, MatchRoomManager
from app.services.live_scores.providers import close_providers

configure_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
logger = get_logger(__name__)


class SchedulerRunner:
    """Runner for the live sync scheduler."""

    def __init__(self, config: LiveSyncConfig):
        self.config = config
        self.scheduler: LiveSyncScheduler = None
        self.shutdown = asyncio.Event()

    async def start(self):
        """Start the scheduler and run until shutdown."""
        logger.info("Starting scheduler runner...")

        init_db()
        self.scheduler = LiveSyncScheduler(self.config, MatchRoomManager())
        await self.scheduler.start()

        logger.info("Scheduler is now running")
        logger.info("Press Ctrl+C to stop")

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._set_shutdown)

        await self.shutdown.wait()

        await self.scheduler.stop()
        logger.info("Scheduler runner stopped")

    def _set_shutdown(self):
        """Set shutdown flag."""
        logger.info("Shutdown signal received")
        self.shutdown.set()


async def run_once(config: LiveSyncConfig, cycle: str) -> bool:
    """Run a single cycle and print its result."""
    init_db()
    scheduler = LiveSyncScheduler(config, MatchRoomManager())
    try:
        if cycle == 'live':
            result = await scheduler.run_live_cycle()
        else:
            result = await scheduler.run_discovery_cycle()
    finally:
        await close_providers(scheduler.providers)

    print(json.dumps(result, indent=2, default=str))
    return bool(result and result.get('success'))


def list_jobs(config: LiveSyncConfig):
    """Print the job schedule."""
    print("=" * 60)
    print("SCHEDULED SYNC JOBS")
    print("=" * 60)
    print()
    print("📋 Live Scores Sync")
    print(f"   ID: {LIVE_JOB_ID}")
    print(f"   Schedule: every {config.live_interval_seconds}s")
    print()
    print("📋 Upcoming Matches Discovery")
    print(f"   ID: {DISCOVERY_JOB_ID}")
    print(f"   Schedule: every {config.discovery_interval_seconds}s"
          f"{' (and at startup)' if config.discovery_on_startup else ''}")
    print(f"   Sports: {', '.join(config.discovery_sports)}")
    print()
    print("=" * 60)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Run the live-score sync scheduler'
    )

    parser.add_argument(
        '--once',
        choices=['live', 'discovery'],
        help='Run a single cycle and exit'
    )

    parser.add_argument(
        '--list-jobs',
        action='store_true',
        help='List all scheduled jobs and exit'
    )

    args = parser.parse_args()
    config = LiveSyncConfig.from_settings(settings)

    if args.list_jobs:
        list_jobs(config)
        return 0

    if args.once:
        return 0 if asyncio.run(run_once(config, args.once)) else 1

    runner = SchedulerRunner(config)

    try:
        asyncio.run(runner.start())
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down...")
        return 0
    except Exception as e:
        logger.error(f"Scheduler error: {e}", exc_info=True)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())

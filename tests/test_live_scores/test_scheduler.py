"""Tests for LiveSyncScheduler wiring and cycle wrappers."""
import logging
from dataclasses import replace
from datetime import timedelta

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
from conftest import create_match, sportsdb_body

from app.core import scheduler as scheduler_module
from app.core.scheduler import LiveSyncScheduler, LIVE_JOB_ID, DISCOVERY_JOB_ID
from app.models import Match


class TestSchedulerJobs:

    @pytest.mark.asyncio
    async def test_jobs_are_registered(self, live_config, notifier, providers, session_factory):
        scheduler = LiveSyncScheduler(live_config, notifier, session_factory, providers)

        await scheduler.start()
        try:
            live = scheduler.scheduler.get_job(LIVE_JOB_ID)
            discovery = scheduler.scheduler.get_job(DISCOVERY_JOB_ID)

            assert live.trigger.interval == timedelta(seconds=30)
            assert discovery.trigger.interval == timedelta(hours=1)
            for job in (live, discovery):
                assert job.max_instances == 1
                assert job.coalesce is True
            assert {j["id"] for j in scheduler.get_jobs_info()} == {LIVE_JOB_ID, DISCOVERY_JOB_ID}
        finally:
            await scheduler.stop()

        assert scheduler.running is False
        for client in providers.values():
            client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_discovery_on_startup(self, live_config, notifier, providers, session_factory):
        config = replace(live_config, discovery_on_startup=True)
        scheduler = LiveSyncScheduler(config, notifier, session_factory, providers)

        await scheduler.start()
        try:
            live = scheduler.scheduler.get_job(LIVE_JOB_ID)
            discovery = scheduler.scheduler.get_job(DISCOVERY_JOB_ID)
            assert discovery.next_run_time < live.next_run_time
        finally:
            await scheduler.stop()

    @pytest.mark.asyncio
    async def test_start_twice_is_harmless(self, live_config, notifier, providers, session_factory):
        scheduler = LiveSyncScheduler(live_config, notifier, session_factory, providers)

        await scheduler.start()
        first = scheduler.scheduler
        await scheduler.start()

        assert scheduler.scheduler is first
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_global_scheduler(self, live_config, notifier):
        assert scheduler_module.get_scheduler() is None

        started = await scheduler_module.start_scheduler(live_config, notifier)
        try:
            assert scheduler_module.get_scheduler() is started
            assert started.running
            assert await scheduler_module.start_scheduler(live_config, notifier) is started
        finally:
            await scheduler_module.stop_scheduler()

        assert scheduler_module.get_scheduler() is None


class TestCycles:

    @pytest.mark.asyncio
    async def test_live_cycle_uses_its_own_session(self, live_config, notifier, providers, sportsdb_client, session_factory, db_session):
        create_match(db_session, match_id="evt1")
        sportsdb_client.fetch_match.return_value = sportsdb_body("evt1", intHomeScore="1")
        scheduler = LiveSyncScheduler(live_config, notifier, session_factory, providers)

        result = await scheduler.run_live_cycle()

        assert result["success"] is True
        assert result["updated"] == 1
        db_session.expire_all()
        assert db_session.query(Match).one().home_score == 1
        assert notifier.topics() == ["evt1"]

    @pytest.mark.asyncio
    async def test_discovery_cycle(self, live_config, notifier, providers, sportsdb_client, session_factory, db_session):
        sportsdb_client.fetch_next_events.side_effect = lambda sport: [
            {"idEvent": f"{sport}-1", "dateEvent": "2026-11-01", "strHomeTeam": "A", "strAwayTeam": "B"}
        ]
        scheduler = LiveSyncScheduler(live_config, notifier, session_factory, providers)

        result = await scheduler.run_discovery_cycle()

        assert result["created"] == len(live_config.discovery_sports)
        assert db_session.query(Match).count() == len(live_config.discovery_sports)

    @pytest.mark.asyncio
    async def test_cycle_never_raises(self, live_config, notifier, providers):
        def broken_factory():
            raise RuntimeError("database unreachable")

        scheduler = LiveSyncScheduler(live_config, notifier, broken_factory, providers)

        assert await scheduler.run_live_cycle() is None
        assert await scheduler.run_discovery_cycle() is None

    @pytest.mark.asyncio
    async def test_orchestrator_error_is_logged_not_raised(self, live_config, notifier, providers, session_factory, monkeypatch):
        async def explode(self):
            raise RuntimeError("boom")

        monkeypatch.setattr(
            "app.services.live_scores.orchestrator.LiveSyncOrchestrator.run_discovery_cycle",
            explode
        )
        scheduler = LiveSyncScheduler(live_config, notifier, session_factory, providers)

        assert await scheduler.run_discovery_cycle() is None


class TestStartupWarnings:

    @pytest.mark.asyncio
    async def test_warns_about_cricket_discovery(self, live_config, notifier, providers, session_factory, caplog):
        scheduler = LiveSyncScheduler(live_config, notifier, session_factory, providers)

        with caplog.at_level(logging.WARNING, logger="app.core.scheduler"):
            await scheduler.start()
        await scheduler.stop()

        assert any("cricket" in r.getMessage() and r.levelno == logging.WARNING for r in caplog.records)

    @pytest.mark.asyncio
    async def test_no_warning_without_cricket(self, live_config, notifier, providers, session_factory, caplog):
        config = replace(live_config, discovery_sports=("football", "tennis"))
        scheduler = LiveSyncScheduler(config, notifier, session_factory, providers)

        with caplog.at_level(logging.WARNING, logger="app.core.scheduler"):
            await scheduler.start()
        await scheduler.stop()

        assert not [r for r in caplog.records if r.name == "app.core.scheduler" and r.levelno >= logging.WARNING]

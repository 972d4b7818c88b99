"""
Unit tests for weather_ingest/jobs/weather_scheduler.py

Adapters, locations and retention are mocked; no DB, no network.
"""
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from weather_ingest.core.api_errors import FetchFailure, PersistenceFailure
from weather_ingest.core.ingest_base import IngestResult
from weather_ingest.core.models import ForecastSource, RecordKind
from weather_ingest.jobs.weather_scheduler import (
    WEATHER_JOB_IDS,
    WeatherPollingOrchestrator,
    get_weather_schedule_status,
    is_storm_season,
    register_weather_schedules,
    should_run_storm_tick,
    unregister_weather_schedules,
)


def _location(id, code=None):
    location = MagicMock()
    location.id = id
    location.airport_code = code
    return location


def _ingestor(source, side_effect=None):
    ingestor = MagicMock()

    async def fetch_and_store(target=None):
        return IngestResult(source=source, target=str(target), appended=2)

    ingestor.fetch_and_store = AsyncMock(side_effect=side_effect or fetch_and_store)
    return ingestor


@pytest.fixture
def reference():
    locations = MagicMock()
    locations.list_airports.return_value = [
        _location(1, "KDEN"), _location(2, "KJFK"), _location(3, "KMIA"),
    ]
    locations.list_all.return_value = [_location(1), _location(2), _location(3)]
    return locations


@pytest.fixture
def ingestors():
    return {
        "aviation": _ingestor("aviation"),
        "nws": _ingestor("nws"),
        "openweathermap": _ingestor("openweathermap"),
        "nhc": _ingestor("nhc"),
    }


@pytest.fixture
def retention():
    manager = MagicMock()
    manager.deactivate.return_value = 4
    manager.purge.return_value = 1
    return manager


def _orchestrator(settings, ingestors, reference, retention):
    return WeatherPollingOrchestrator(
        settings=settings, ingestors=ingestors, locations=reference, retention=retention
    )


class TestStormSeasonGate:

    @pytest.mark.parametrize("month", [6, 7, 8, 9, 10, 11])
    def test_in_season_every_hour(self, month):
        assert is_storm_season(datetime(2024, month, 1))
        assert should_run_storm_tick(datetime(2024, month, 1, 7))

    @pytest.mark.parametrize("month", [1, 5, 12])
    def test_off_season_only_every_sixth_hour(self, month):
        assert not is_storm_season(datetime(2024, month, 1))
        assert should_run_storm_tick(datetime(2024, month, 1, 0))
        assert should_run_storm_tick(datetime(2024, month, 1, 18))
        assert not should_run_storm_tick(datetime(2024, month, 1, 7))


class TestAviationTick:

    @pytest.mark.asyncio
    async def test_one_failing_target_does_not_stop_the_tick(
        self, settings, ingestors, reference, retention
    ):
        async def fetch(code):
            if code == "KJFK":
                raise FetchFailure("upstream down", source="aviation", status_code=503)
            return IngestResult(source="aviation", target=code, appended=2)

        ingestors["aviation"] = _ingestor("aviation", side_effect=fetch)
        orchestrator = _orchestrator(settings, ingestors, reference, retention)

        summary = await orchestrator.run_aviation_tick()

        assert summary.targets == 3
        assert summary.successful == 2
        assert summary.failed == 1
        assert summary.records == 4
        assert [c.args[0] for c in ingestors["aviation"].fetch_and_store.await_args_list] == [
            "KDEN", "KJFK", "KMIA",
        ]

    @pytest.mark.asyncio
    async def test_persistence_failure_is_isolated(self, settings, ingestors, reference, retention):
        async def fetch(code):
            if code == "KDEN":
                raise PersistenceFailure("commit failed", source="aviation")
            return IngestResult(source="aviation", target=code, appended=1)

        ingestors["aviation"] = _ingestor("aviation", side_effect=fetch)
        summary = await _orchestrator(settings, ingestors, reference, retention).run_aviation_tick()

        assert summary.successful == 2
        assert summary.failed == 1

    @pytest.mark.asyncio
    async def test_disabled_source_does_not_fetch(self, settings, ingestors, reference, retention):
        settings.scheduler_aviation_enabled = False
        orchestrator = _orchestrator(settings, ingestors, reference, retention)

        summary = await orchestrator.run_aviation_tick()

        assert summary.ran is False
        ingestors["aviation"].fetch_and_store.assert_not_called()
        reference.list_airports.assert_not_called()

    @pytest.mark.asyncio
    async def test_force_overrides_disabled_switch(self, settings, ingestors, reference, retention):
        settings.scheduler_aviation_enabled = False
        orchestrator = _orchestrator(settings, ingestors, reference, retention)

        summary = await orchestrator.run_aviation_tick(force=True)

        assert summary.successful == 3

    @pytest.mark.asyncio
    async def test_reference_lookup_failure_is_contained(
        self, settings, ingestors, reference, retention
    ):
        reference.list_airports.side_effect = PersistenceFailure("db gone")
        summary = await _orchestrator(settings, ingestors, reference, retention).run_aviation_tick()

        assert summary.failed == 1
        ingestors["aviation"].fetch_and_store.assert_not_called()

    @pytest.mark.asyncio
    async def test_not_found_targets_are_counted(self, settings, ingestors, reference, retention):
        async def fetch(code):
            return IngestResult(source="aviation", target=code, target_found=code != "KMIA")

        ingestors["aviation"] = _ingestor("aviation", side_effect=fetch)
        summary = await _orchestrator(settings, ingestors, reference, retention).run_aviation_tick()

        assert summary.successful == 3
        assert summary.not_found == 1


class TestAreaForecastTick:

    @pytest.mark.asyncio
    async def test_primary_runs_nws_for_every_location(
        self, settings, ingestors, reference, retention
    ):
        summary = await _orchestrator(
            settings, ingestors, reference, retention
        ).run_area_forecast_tick(ForecastSource.PRIMARY)

        assert summary.source == "nws"
        assert summary.successful == 3
        assert ingestors["nws"].fetch_and_store.await_count == 3
        ingestors["openweathermap"].fetch_and_store.assert_not_called()

    @pytest.mark.asyncio
    async def test_secondary_without_adapter_is_skipped(
        self, settings, ingestors, reference, retention
    ):
        ingestors["openweathermap"] = None
        summary = await _orchestrator(
            settings, ingestors, reference, retention
        ).run_area_forecast_tick(ForecastSource.SECONDARY)

        assert summary.ran is False
        reference.list_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_secondary_disabled_by_default(self, clean_env, ingestors, reference, retention):
        from weather_ingest.core.config import Settings

        settings = Settings(_env_file=None, database_url="sqlite://")
        summary = await _orchestrator(
            settings, ingestors, reference, retention
        ).run_area_forecast_tick(ForecastSource.SECONDARY)

        assert summary.ran is False
        ingestors["openweathermap"].fetch_and_store.assert_not_called()


class TestStormTick:

    @pytest.mark.asyncio
    async def test_runs_in_season(self, settings, ingestors, reference, retention):
        summary = await _orchestrator(settings, ingestors, reference, retention).run_storm_tick(
            now=datetime(2024, 9, 10, 7)
        )

        assert summary.successful == 1
        ingestors["nhc"].fetch_and_store.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_skips_off_cadence_hour_out_of_season(
        self, settings, ingestors, reference, retention
    ):
        summary = await _orchestrator(settings, ingestors, reference, retention).run_storm_tick(
            now=datetime(2024, 1, 10, 7)
        )

        assert summary.ran is False
        ingestors["nhc"].fetch_and_store.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_does_not_raise(self, settings, ingestors, reference, retention):
        ingestors["nhc"] = _ingestor("nhc", side_effect=FetchFailure("timeout", source="nhc"))
        summary = await _orchestrator(settings, ingestors, reference, retention).run_storm_tick(
            now=datetime(2024, 1, 10, 12)
        )

        assert summary.failed == 1
        assert summary.successful == 0


class TestRetentionTick:

    @pytest.mark.asyncio
    async def test_sweeps_every_kind_with_one_cutoff(
        self, settings, ingestors, reference, retention
    ):
        now = datetime(2024, 8, 20, 2, 0)
        summary = await _orchestrator(settings, ingestors, reference, retention).run_retention_tick(
            now=now
        )

        cutoffs = {c.args[1] for c in retention.deactivate.call_args_list}
        kinds = [c.args[0] for c in retention.deactivate.call_args_list]
        assert cutoffs == {datetime(2024, 8, 13, 2, 0)}
        assert kinds == list(RecordKind)
        assert summary.records == 12
        retention.purge.assert_not_called()

    @pytest.mark.asyncio
    async def test_purge_when_enabled(self, settings, ingestors, reference, retention):
        settings.retention_purge_enabled = True
        summary = await _orchestrator(settings, ingestors, reference, retention).run_retention_tick(
            now=datetime(2024, 8, 20)
        )

        assert retention.purge.call_count == 3
        assert summary.records == 15

    @pytest.mark.asyncio
    async def test_one_kind_failing_does_not_stop_the_sweep(
        self, settings, ingestors, reference, retention
    ):
        retention.deactivate.side_effect = [4, PersistenceFailure("locked"), 4]
        summary = await _orchestrator(settings, ingestors, reference, retention).run_retention_tick(
            now=datetime(2024, 8, 20)
        )

        assert summary.successful == 2
        assert summary.failed == 1


class TestRegistration:

    def test_registers_one_job_per_source(self, settings, ingestors, reference, retention):
        scheduler = AsyncIOScheduler(timezone="UTC")
        orchestrator = _orchestrator(settings, ingestors, reference, retention)

        results = register_weather_schedules(orchestrator, settings, scheduler)

        assert results == {job_id: True for job_id in WEATHER_JOB_IDS}
        for job_id in WEATHER_JOB_IDS:
            job = scheduler.get_job(job_id)
            assert job.max_instances == 1
            assert job.coalesce is True

        assert scheduler.get_job("weather_openweather_forecast").args == (
            ForecastSource.SECONDARY,
        )

    def test_status_and_unregister(self, settings, ingestors, reference, retention):
        scheduler = AsyncIOScheduler(timezone="UTC")
        register_weather_schedules(
            _orchestrator(settings, ingestors, reference, retention), settings, scheduler
        )

        status = get_weather_schedule_status(scheduler)
        assert status["scheduler_running"] is False
        assert all(job["active"] for job in status["scheduled_jobs"])

        unregister_weather_schedules(scheduler)
        status = get_weather_schedule_status(scheduler)
        assert not any(job["active"] for job in status["scheduled_jobs"])

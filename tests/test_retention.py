"""
Tests for the two-tier retention policy.
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from weather_ingest.core.models import (
    AirportWeatherObservation,
    AreaForecastPeriod,
    ForecastSource,
    RecordKind,
    ReportKind,
    StormAdvisory,
)
from weather_ingest.core.record_store import RecordStore
from weather_ingest.core.retention import RetentionManager, retention_cutoff

NOW = datetime(2024, 8, 20, 2, 0)


def _observation(fetched_at, airport_id=None):
    return AirportWeatherObservation(
        location_id=airport_id,
        airport_code="KDEN",
        report_type=ReportKind.METAR,
        observation_time=fetched_at,
        fetched_at=fetched_at,
        raw_text="KDEN 151253Z 20012KT 10SM CLR 03/M04 A3007",
        is_active=True,
    )


def _forecast(fetched_at):
    return AreaForecastPeriod(
        source=ForecastSource.PRIMARY,
        provider="nws",
        forecast_time=fetched_at,
        valid_from=fetched_at,
        valid_to=fetched_at + timedelta(hours=12),
        fetched_at=fetched_at,
        latitude=Decimal("25.7617000"),
        longitude=Decimal("-80.1918000"),
        forecast_data={},
        is_active=True,
    )


def _advisory(fetched_at):
    return StormAdvisory(
        storm_id="AL052024",
        basin="AL",
        storm_number=5,
        advisory_time=fetched_at,
        forecast_time=fetched_at,
        fetched_at=fetched_at,
        forecast_data={},
        is_active=True,
    )


@pytest.fixture
def seeded(test_db):
    old = NOW - timedelta(days=10)
    fresh = NOW - timedelta(days=1)
    test_db.add_all([
        _observation(old), _observation(old), _observation(fresh),
        _forecast(old), _forecast(fresh),
        _advisory(old),
    ])
    test_db.commit()
    test_db.close()
    return test_db


class TestRetentionManager:

    def test_deactivate_flips_only_aged_active_rows(self, session_factory, seeded):
        manager = RetentionManager(session_factory)
        cutoff = retention_cutoff(7, NOW)

        assert manager.deactivate(RecordKind.AIRPORT_WEATHER, cutoff) == 2

        rows = seeded.query(AirportWeatherObservation).order_by(AirportWeatherObservation.id).all()
        assert [row.is_active for row in rows] == [False, False, True]

    def test_deactivate_twice_affects_nothing_the_second_time(self, session_factory, seeded):
        manager = RetentionManager(session_factory)
        cutoff = retention_cutoff(7, NOW)

        first = manager.deactivate_all(cutoff)
        second = manager.deactivate_all(cutoff)

        assert first == {"airport_weather": 2, "area_forecast": 1, "storm_advisory": 1}
        assert second == {"airport_weather": 0, "area_forecast": 0, "storm_advisory": 0}

    def test_purge_removes_regardless_of_active_flag(self, session_factory, seeded):
        manager = RetentionManager(session_factory)
        cutoff = retention_cutoff(7, NOW)
        manager.deactivate(RecordKind.AIRPORT_WEATHER, cutoff)

        assert manager.purge_all(cutoff) == {
            "airport_weather": 2,
            "area_forecast": 1,
            "storm_advisory": 1,
        }
        assert manager.purge_all(cutoff) == {
            "airport_weather": 0,
            "area_forecast": 0,
            "storm_advisory": 0,
        }
        assert seeded.query(AirportWeatherObservation).count() == 1
        assert seeded.query(StormAdvisory).count() == 0

    def test_cutoff_is_strict(self, session_factory, test_db):
        boundary = NOW - timedelta(days=7)
        test_db.add(_observation(boundary))
        test_db.commit()
        test_db.close()

        manager = RetentionManager(session_factory)
        assert manager.deactivate(RecordKind.AIRPORT_WEATHER, retention_cutoff(7, NOW)) == 0


class TestRecordStore:

    def test_count_by_kind(self, seeded):
        counts = RecordStore().count_by_kind(seeded)
        assert counts["airport_weather"] == {"total": 3, "active": 3}
        assert counts["area_forecast"] == {"total": 2, "active": 2}
        assert counts["storm_advisory"] == {"total": 1, "active": 1}

    def test_append_batch_empty(self, test_db):
        assert RecordStore().append_batch(test_db, []) == 0

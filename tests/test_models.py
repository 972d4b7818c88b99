"""
Tests for the record model and the location repository.
"""
from datetime import datetime
from decimal import Decimal

import pytest

from weather_ingest.core.api_errors import PersistenceFailure
from weather_ingest.core.models import (
    AirportWeatherObservation,
    Location,
    LocationType,
    RECORD_MODELS,
    RecordKind,
    ReportKind,
)


class TestLocation:

    def test_airport_code_is_normalized(self):
        location = Location(
            name="Denver", latitude=Decimal("39.8"), longitude=Decimal("-104.6"),
            location_type=LocationType.AIRPORT, airport_code=" kden ",
        )
        assert location.airport_code == "KDEN"

    def test_airport_without_code_is_invalid(self):
        location = Location(
            name="Nowhere", latitude=Decimal("0"), longitude=Decimal("0"),
            location_type=LocationType.AIRPORT, airport_code="  ",
        )
        with pytest.raises(ValueError):
            location.validate()

    def test_city_without_code_is_valid(self):
        location = Location(
            name="Miami", latitude=Decimal("25.7"), longitude=Decimal("-80.1"),
            location_type=LocationType.CITY,
        )
        location.validate()

    def test_record_models_cover_every_kind(self):
        assert set(RECORD_MODELS) == set(RecordKind)


class TestLocationRepository:

    def test_create_and_lookup(self, locations, airport, city):
        assert locations.find_by_airport_code("kden").id == airport.id
        assert locations.find_by_airport_code("KXYZ") is None
        assert locations.get(city.id).name == "Miami"
        assert [loc.id for loc in locations.list_all()] == [airport.id, city.id]
        assert [loc.airport_code for loc in locations.list_airports()] == ["KDEN"]
        assert locations.count_airports() == 1

    def test_create_airport_without_code_fails(self, locations):
        with pytest.raises(ValueError):
            locations.create(
                name="Unnamed strip", latitude=Decimal("1"), longitude=Decimal("1"),
                location_type=LocationType.AIRPORT,
            )

    def test_duplicate_airport_code_is_persistence_failure(self, locations, airport):
        with pytest.raises(PersistenceFailure):
            locations.create(
                name="Denver again", latitude=Decimal("1"), longitude=Decimal("1"),
                location_type=LocationType.AIRPORT, airport_code="KDEN",
            )

    def test_update(self, locations, city):
        updated = locations.update(city.id, name="Miami Beach", state="FL")
        assert updated.name == "Miami Beach"
        assert locations.get(city.id).name == "Miami Beach"

    def test_update_missing_location(self, locations):
        assert locations.update(999, name="Ghost") is None

    def test_update_rejects_unknown_fields(self, locations, city):
        with pytest.raises(ValueError):
            locations.update(city.id, id=5)

    def test_update_cannot_strip_airport_code(self, locations, airport):
        with pytest.raises(ValueError):
            locations.update(airport.id, airport_code=None)


class TestRecordOwnership:

    def test_deleting_location_keeps_records(self, test_db, airport):
        test_db.add(
            AirportWeatherObservation(
                location_id=airport.id,
                airport_code="KDEN",
                report_type=ReportKind.METAR,
                observation_time=datetime(2024, 1, 15, 12, 53),
                fetched_at=datetime(2024, 1, 15, 13, 0),
                raw_text="KDEN 151253Z 20012KT 10SM CLR 03/M04 A3007",
            )
        )
        test_db.commit()

        test_db.delete(test_db.get(Location, airport.id))
        test_db.commit()

        row = test_db.query(AirportWeatherObservation).one()
        assert row.location_id is None
        assert row.is_active is True

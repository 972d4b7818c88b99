"""
Unit tests for weather_ingest/core/units.py

Every rounding and classification boundary is covered.
"""
from datetime import datetime
from decimal import Decimal

import pytest

from weather_ingest.core.units import (
    celsius_to_fahrenheit,
    compass_to_degrees,
    fahrenheit_to_celsius,
    flight_category,
    hpa_to_inches,
    knots_to_mph,
    parse_timestamp,
    parse_wind_speed,
    storm_category,
    to_decimal,
    to_int,
)


class TestFahrenheitToCelsius:

    def test_freezing_point(self):
        assert fahrenheit_to_celsius(32) == Decimal("0.00")

    def test_boiling_point(self):
        assert fahrenheit_to_celsius(212) == Decimal("100.00")

    def test_rounds_to_two_places(self):
        # (70 - 32) * 5 / 9 = 21.111...
        assert fahrenheit_to_celsius(70) == Decimal("21.11")

    def test_rounds_half_up(self):
        # (32.9 - 32) * 5 / 9 = 0.5
        assert fahrenheit_to_celsius("32.9") == Decimal("0.50")
        # (32.009 - 32) * 5 / 9 = 0.005 exactly
        assert fahrenheit_to_celsius("32.009") == Decimal("0.01")

    def test_negative(self):
        assert fahrenheit_to_celsius(-40) == Decimal("-40.00")

    def test_string_input(self):
        assert fahrenheit_to_celsius("50") == Decimal("10.00")

    def test_none_and_garbage(self):
        assert fahrenheit_to_celsius(None) is None
        assert fahrenheit_to_celsius("warm") is None


class TestCelsiusToFahrenheit:

    def test_known_points(self):
        assert celsius_to_fahrenheit(0) == Decimal("32.00")
        assert celsius_to_fahrenheit(100) == Decimal("212.00")

    def test_none(self):
        assert celsius_to_fahrenheit(None) is None


class TestKnotsToMph:

    def test_hundred_knots(self):
        assert knots_to_mph(100) == 115

    def test_rounds_to_nearest_integer(self):
        # 10 * 1.15078 = 11.5078
        assert knots_to_mph(10) == 12
        # 64 * 1.15078 = 73.64992
        assert knots_to_mph(64) == 74

    def test_zero(self):
        assert knots_to_mph(0) == 0

    def test_none(self):
        assert knots_to_mph(None) is None


class TestCompassToDegrees:

    @pytest.mark.parametrize(
        "label,degrees",
        [
            ("N", 0), ("NNE", 22), ("NE", 45), ("ENE", 67),
            ("E", 90), ("ESE", 112), ("SE", 135), ("SSE", 157),
            ("S", 180), ("SSW", 202), ("SW", 225), ("WSW", 247),
            ("W", 270), ("WNW", 292), ("NW", 315), ("NNW", 337),
        ],
    )
    def test_all_sixteen_points(self, label, degrees):
        assert compass_to_degrees(label) == degrees

    def test_case_and_whitespace_insensitive(self):
        assert compass_to_degrees(" ne ") == 45

    def test_unrecognized_label_is_none(self):
        assert compass_to_degrees("XYZ") is None

    def test_empty_is_none(self):
        assert compass_to_degrees("") is None
        assert compass_to_degrees(None) is None


class TestStormCategory:

    @pytest.mark.parametrize(
        "mph,category",
        [
            (0, 0), (73, 0),
            (74, 1), (95, 1),
            (96, 2), (110, 2),
            (111, 3), (129, 3),
            (130, 4), (156, 4),
            (157, 5), (200, 5),
        ],
    )
    def test_boundaries(self, mph, category):
        assert storm_category(mph) == category

    def test_unknown_wind_is_tropical_storm(self):
        assert storm_category(None) == 0


class TestFlightCategory:

    def test_vfr(self):
        assert flight_category(5000, Decimal("10")) == "VFR"

    def test_mvfr_boundaries(self):
        assert flight_category(3000, Decimal("10")) == "MVFR"
        assert flight_category(None, Decimal("5")) == "MVFR"

    def test_ifr(self):
        assert flight_category(999, None) == "IFR"
        assert flight_category(None, Decimal("2.5")) == "IFR"

    def test_lifr(self):
        assert flight_category(499, Decimal("10")) == "LIFR"
        assert flight_category(5000, Decimal("0.5")) == "LIFR"

    def test_unknown(self):
        assert flight_category(None, None) is None


class TestParsers:

    def test_wind_speed_takes_first_number(self):
        assert parse_wind_speed("10 to 20 mph") == Decimal("10")
        assert parse_wind_speed("5 mph") == Decimal("5")

    def test_wind_speed_without_number(self):
        assert parse_wind_speed("calm") is None
        assert parse_wind_speed(None) is None

    def test_timestamp_iso_with_offset_is_naive_utc(self):
        assert parse_timestamp("2024-08-01T06:00:00-04:00") == datetime(2024, 8, 1, 10, 0)

    def test_timestamp_trailing_z(self):
        assert parse_timestamp("2024-08-01T10:00:00Z") == datetime(2024, 8, 1, 10, 0)

    def test_timestamp_epoch(self):
        assert parse_timestamp(1704067200) == datetime(2024, 1, 1, 0, 0)
        assert parse_timestamp("1704067200") == datetime(2024, 1, 1, 0, 0)

    def test_timestamp_garbage(self):
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None

    def test_to_decimal_and_int(self):
        assert to_decimal("1.50") == Decimal("1.50")
        assert to_decimal(True) is None
        assert to_decimal("NaN") is None
        assert to_int("12.9") == 12
        assert to_int("n/a") is None

    def test_hpa_to_inches(self):
        assert hpa_to_inches(1013.25) == Decimal("29.92")

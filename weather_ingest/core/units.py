"""
Unit and classification normalization.

Pure functions shared by all source adapters. Roundings here are exact
contracts: Celsius is rounded half-up to two decimals, mph half-up to an
integer, and storm categories follow the Saffir-Simpson thresholds in mph.
Unrecognized input yields None rather than raising.
"""
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional
import re

KNOTS_TO_MPH = Decimal("1.15078")
HPA_TO_INHG = Decimal("0.0295299830714")

_TWO_PLACES = Decimal("0.01")
_WHOLE = Decimal("1")

COMPASS_DEGREES = {
    "N": 0,
    "NNE": 22,
    "NE": 45,
    "ENE": 67,
    "E": 90,
    "ESE": 112,
    "SE": 135,
    "SSE": 157,
    "S": 180,
    "SSW": 202,
    "SW": 225,
    "WSW": 247,
    "W": 270,
    "WNW": 292,
    "NW": 315,
    "NNW": 337,
}

# (minimum mph, category), checked from the top down
STORM_CATEGORY_THRESHOLDS = (
    (157, 5),
    (130, 4),
    (111, 3),
    (96, 2),
    (74, 1),
)

_FIRST_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a JSON/XML scalar to Decimal, None when not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def to_int(value: Any) -> Optional[int]:
    """Convert a scalar to int (truncating decimals), None when not numeric."""
    number = to_decimal(value)
    if number is None:
        return None
    return int(number)


def fahrenheit_to_celsius(fahrenheit: Any) -> Optional[Decimal]:
    """(F - 32) * 5 / 9, rounded half-up to 2 decimal places."""
    value = to_decimal(fahrenheit)
    if value is None:
        return None
    return ((value - 32) * 5 / 9).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def celsius_to_fahrenheit(celsius: Any) -> Optional[Decimal]:
    """C * 9 / 5 + 32, rounded half-up to 2 decimal places."""
    value = to_decimal(celsius)
    if value is None:
        return None
    return (value * 9 / 5 + 32).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def knots_to_mph(knots: Any) -> Optional[int]:
    """knots * 1.15078, rounded half-up to the nearest integer."""
    value = to_decimal(knots)
    if value is None:
        return None
    return int((value * KNOTS_TO_MPH).quantize(_WHOLE, rounding=ROUND_HALF_UP))


def hpa_to_inches(hpa: Any) -> Optional[Decimal]:
    """Pressure in hectopascals to inches of mercury, 2 decimal places."""
    value = to_decimal(hpa)
    if value is None:
        return None
    return (value * HPA_TO_INHG).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def compass_to_degrees(label: Optional[str]) -> Optional[int]:
    """16-point compass label to degrees; unknown labels map to None."""
    if not label:
        return None
    return COMPASS_DEGREES.get(str(label).strip().upper())


def storm_category(max_wind_mph: Optional[int]) -> int:
    """
    Saffir-Simpson category from maximum sustained wind in mph.

    Below 74 mph (or unknown) is 0, a tropical storm.
    """
    if max_wind_mph is None:
        return 0
    for minimum, category in STORM_CATEGORY_THRESHOLDS:
        if max_wind_mph >= minimum:
            return category
    return 0


def flight_category(
    ceiling_feet: Optional[int], visibility_miles: Optional[Decimal]
) -> Optional[str]:
    """
    FAA flight category from ceiling (ft AGL) and visibility (statute miles).

    Returns None when neither value is known.
    """
    if ceiling_feet is None and visibility_miles is None:
        return None
    if (ceiling_feet is not None and ceiling_feet < 500) or (
        visibility_miles is not None and visibility_miles < 1
    ):
        return "LIFR"
    if (ceiling_feet is not None and ceiling_feet < 1000) or (
        visibility_miles is not None and visibility_miles < 3
    ):
        return "IFR"
    if (ceiling_feet is not None and ceiling_feet <= 3000) or (
        visibility_miles is not None and visibility_miles <= 5
    ):
        return "MVFR"
    return "VFR"


def parse_wind_speed(text: Optional[str]) -> Optional[Decimal]:
    """
    Parse the leading number out of strings like "10 mph" or "10 to 20 mph".
    """
    if text is None:
        return None
    match = _FIRST_NUMBER.search(str(text))
    if not match:
        return None
    return Decimal(match.group(0))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string or epoch seconds into a naive UTC datetime.

    Returns None when the value cannot be interpreted.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    if text.isdigit():
        return parse_timestamp(int(text))

    # The legacy feed writes "2024-01-15 12:00:00" and some feeds trail a "Z"
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

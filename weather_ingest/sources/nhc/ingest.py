"""
Tropical storm advisory ingestion.

Every active system in the NHC document becomes one StormAdvisory row; the
whole document is appended in one transaction.

Storm codes look like ``AL012024``: a two letter basin, a two digit
sequence number and, optionally, a four digit year.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from weather_ingest.core.api_errors import ParseFailure
from weather_ingest.core.ingest_base import BaseSourceIngestor, IngestResult, ParsedBatch
from weather_ingest.core.models import StormAdvisory
from weather_ingest.core.units import (
    compass_to_degrees,
    knots_to_mph,
    parse_timestamp,
    storm_category,
    to_decimal,
    to_int,
)

logger = logging.getLogger(__name__)


def decode_storm_code(code: Optional[str]) -> Tuple[str, int, Optional[int]]:
    """
    Split a compound storm code into (basin, number, year).

    The year is None unless the code carries one.

    Raises:
        ParseFailure: If the code is shorter than 4 characters or the
            sequence number is not numeric
    """
    text = (code or "").strip().upper()
    if len(text) < 4:
        raise ParseFailure(f"Storm code too short: {code!r}", source="nhc")

    basin = text[0:2]
    try:
        number = int(text[2:4])
    except ValueError:
        raise ParseFailure(f"Storm code has no sequence number: {code!r}", source="nhc")

    year = None
    if len(text) >= 8 and text[4:8].isdigit():
        year = int(text[4:8])
    return basin, number, year


def _movement(storm: Dict[str, Any]) -> Tuple[Optional[int], Any, Any]:
    """(direction degrees, speed knots, speed mph) from either movement shape."""
    movement = storm.get("movement")
    if isinstance(movement, dict):
        direction = to_int(movement.get("degrees"))
        if direction is None:
            direction = compass_to_degrees(movement.get("direction"))
        return direction, to_decimal(movement.get("kts")), to_decimal(movement.get("mph"))

    direction = to_int(storm.get("movementDir"))
    return direction, None, to_decimal(storm.get("movementSpeed"))


def _position(storm: Dict[str, Any]) -> Tuple[Any, Any]:
    position = storm.get("latestPosition")
    if isinstance(position, dict):
        return to_decimal(position.get("lat")), to_decimal(position.get("lon"))
    return to_decimal(storm.get("latitudeNumeric")), to_decimal(storm.get("longitudeNumeric"))


def _scalar(value: Any, key: str) -> Any:
    # Intensity and pressure come either bare or as {"kts": 65} / {"mb": 987}
    if isinstance(value, dict):
        return value.get(key)
    return value


def build_advisory(storm: Dict[str, Any], fetched_at: datetime) -> Optional[StormAdvisory]:
    storm_id = storm.get("id")
    if not storm_id:
        return None

    basin, number, year = decode_storm_code(storm_id)

    advisory_time = parse_timestamp(storm.get("lastUpdate")) or fetched_at
    latitude, longitude = _position(storm)

    winds_knots = to_int(_scalar(storm.get("intensity"), "kts"))
    winds_mph = knots_to_mph(winds_knots)
    direction, speed_knots, speed_mph = _movement(storm)
    if speed_mph is None and speed_knots is not None:
        speed_mph = to_decimal(knots_to_mph(speed_knots))

    intensity = storm.get("intensity")
    return StormAdvisory(
        storm_id=str(storm_id).strip().upper(),
        storm_name=storm.get("name"),
        basin=basin,
        storm_number=number,
        year=year or advisory_time.year,
        advisory_time=advisory_time,
        forecast_time=advisory_time,
        fetched_at=fetched_at,
        latitude=latitude,
        longitude=longitude,
        category=storm_category(winds_mph),
        max_sustained_winds_knots=winds_knots,
        max_sustained_winds_mph=winds_mph,
        min_central_pressure_mb=to_int(_scalar(storm.get("pressure"), "mb")),
        movement_direction=direction,
        movement_speed_knots=speed_knots,
        movement_speed_mph=speed_mph,
        classification=storm.get("classification"),
        intensity=None if intensity is None or isinstance(intensity, dict) else str(intensity),
        status="active",
        forecast_data=storm,
        is_active=True,
    )


class NHCStormIngestor(BaseSourceIngestor):
    """Adapter for the NHC active-storm document."""

    SOURCE_NAME = "nhc"

    async def fetch_and_store(self, target: Any = None) -> IngestResult:
        """
        Fetch and append advisories for every active storm.

        Raises:
            FetchFailure: If the document cannot be fetched
            PersistenceFailure: If the commit fails
        """
        logger.info("Fetching NHC storm advisories")
        payload = await self.client.get_current_storms()
        fetched_at = datetime.utcnow()

        if payload is None:
            storms = []
        elif isinstance(payload, dict) and isinstance(payload.get("activeStorms", []), list):
            storms = payload.get("activeStorms", [])
        else:
            logger.warning(f"[{self.SOURCE_NAME}] Unexpected storm document shape")
            return self._result(None, ParsedBatch(records=[], parse_failures=1), 0)

        if not storms:
            logger.info("No active storms")
            return IngestResult(source=self.SOURCE_NAME)

        batch = self.parse_items(storms, lambda storm: build_advisory(storm, fetched_at))
        appended = self.store(batch.records)
        logger.info(f"Stored {appended} storm advisories ({batch.parse_failures} unparsable)")
        return self._result(None, batch, appended)

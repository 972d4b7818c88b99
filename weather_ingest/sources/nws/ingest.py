"""
NWS area forecast ingestion (primary forecast source).
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from weather_ingest.core.api_errors import ParseFailure, TargetNotFound
from weather_ingest.core.ingest_base import BaseSourceIngestor, IngestResult, ParsedBatch
from weather_ingest.core.models import AreaForecastPeriod, ForecastSource, Location
from weather_ingest.core.units import (
    celsius_to_fahrenheit,
    compass_to_degrees,
    fahrenheit_to_celsius,
    parse_timestamp,
    parse_wind_speed,
    to_decimal,
    to_int,
)

logger = logging.getLogger(__name__)


class NWSForecastIngestor(BaseSourceIngestor):
    """Resolves point metadata, then stores every gridpoint forecast period."""

    SOURCE_NAME = "nws"

    async def fetch_and_store(self, location_id: int) -> IngestResult:
        """
        Fetch and append the NWS forecast for one location.

        A point without a forecast URL is logged and yields an empty result.

        Raises:
            FetchFailure: If either request fails
            PersistenceFailure: If the commit fails
        """
        try:
            location = self.resolve_location(location_id)
        except TargetNotFound as e:
            return self._not_found(e)

        logger.info(f"Fetching NWS forecast for location: {location.name}")
        point = await self.client.get_point(location.latitude, location.longitude)
        properties = point.get("properties") if isinstance(point, dict) else None
        forecast_url = properties.get("forecast") if isinstance(properties, dict) else None
        if not forecast_url or not isinstance(forecast_url, str):
            logger.warning(f"No forecast URL in NWS point data for location: {location.name}")
            return IngestResult(source=self.SOURCE_NAME, target=str(location_id))

        forecast = await self.client.get_forecast(forecast_url)
        fetched_at = datetime.utcnow()

        properties = forecast.get("properties") if isinstance(forecast, dict) else None
        if not isinstance(properties, dict):
            properties = {}
        periods = properties.get("periods")
        if not isinstance(periods, list):
            logger.warning(f"[{self.SOURCE_NAME}] Forecast for {location.name} has no periods")
            return self._result(location_id, ParsedBatch(records=[], parse_failures=1), 0)

        issued_at = (
            parse_timestamp(properties.get("generatedAt"))
            or parse_timestamp(properties.get("updateTime"))
            or fetched_at
        )

        batch = self.parse_items(
            periods, lambda period: build_period(period, location, issued_at, fetched_at)
        )
        appended = self.store(batch.records)
        logger.info(f"Stored {appended} NWS forecasts for location: {location.name}")
        return self._result(location_id, batch, appended)


def _nested_value(period: Dict[str, Any], key: str) -> Optional[int]:
    # Quantitative values arrive as {"unitCode": "wmoUnit:percent", "value": 20}
    value = period.get(key)
    if isinstance(value, dict):
        value = value.get("value")
    return to_int(value)


def build_period(
    period: Dict[str, Any],
    location: Location,
    issued_at: datetime,
    fetched_at: datetime,
) -> AreaForecastPeriod:
    valid_from = parse_timestamp(period.get("startTime"))
    valid_to = parse_timestamp(period.get("endTime"))
    if valid_from is None or valid_to is None:
        raise ParseFailure("Forecast period has no usable start/end time", source="nws", record=period)

    temperature = to_decimal(period.get("temperature"))
    if isinstance(period.get("temperature"), dict):
        temperature = to_decimal(period["temperature"].get("value"))

    unit = (period.get("temperatureUnit") or "F").upper()
    if unit == "C":
        temperature_c = temperature
        temperature_f = celsius_to_fahrenheit(temperature)
    else:
        temperature_f = temperature
        temperature_c = fahrenheit_to_celsius(temperature)

    return AreaForecastPeriod(
        location_id=location.id,
        source=ForecastSource.PRIMARY,
        provider="nws",
        forecast_time=issued_at,
        valid_from=valid_from,
        valid_to=valid_to,
        fetched_at=fetched_at,
        latitude=location.latitude,
        longitude=location.longitude,
        forecast_data=period,
        temperature_fahrenheit=temperature_f,
        temperature_celsius=temperature_c,
        precipitation_probability=_nested_value(period, "probabilityOfPrecipitation"),
        humidity=_nested_value(period, "relativeHumidity"),
        wind_speed_mph=parse_wind_speed(period.get("windSpeed")),
        wind_direction=compass_to_degrees(period.get("windDirection")),
        weather_short_description=period.get("shortForecast"),
        weather_description=period.get("detailedForecast"),
        is_active=True,
    )

"""
OpenWeatherMap forecast ingestion (secondary forecast source).

The feed returns a flat ``list`` of 3-hour periods; each becomes one
AreaForecastPeriod tagged as the secondary source.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from weather_ingest.core.api_errors import ParseFailure, TargetNotFound
from weather_ingest.core.ingest_base import BaseSourceIngestor, IngestResult, ParsedBatch
from weather_ingest.core.models import AreaForecastPeriod, ForecastSource, Location
from weather_ingest.core.units import (
    fahrenheit_to_celsius,
    parse_timestamp,
    to_decimal,
    to_int,
)

logger = logging.getLogger(__name__)

PERIOD_LENGTH = timedelta(hours=3)


class OpenWeatherMapIngestor(BaseSourceIngestor):

    SOURCE_NAME = "openweathermap"

    async def fetch_and_store(self, location_id: int) -> IngestResult:
        """
        Fetch and append the 3-hourly forecast for one location.

        Raises:
            FetchFailure: If the request fails
            PersistenceFailure: If the commit fails
        """
        try:
            location = self.resolve_location(location_id)
        except TargetNotFound as e:
            return self._not_found(e)

        logger.info(f"Fetching OpenWeatherMap forecast for location: {location.name}")
        payload = await self.client.get_forecast(location.latitude, location.longitude)
        fetched_at = datetime.utcnow()

        items = payload.get("list") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            logger.warning(
                f"[{self.SOURCE_NAME}] Forecast for {location.name} has no period list"
            )
            return self._result(location_id, ParsedBatch(records=[], parse_failures=1), 0)

        batch = self.parse_items(items, lambda item: build_period(item, location, fetched_at))
        appended = self.store(batch.records)
        logger.info(f"Stored {appended} OpenWeatherMap forecasts for location: {location.name}")
        return self._result(location_id, batch, appended)


def build_period(
    item: Dict[str, Any], location: Location, fetched_at: datetime
) -> AreaForecastPeriod:
    valid_from = parse_timestamp(item.get("dt"))
    if valid_from is None:
        raise ParseFailure("Forecast item has no usable 'dt'", source="openweathermap", record=item)

    main = item.get("main") or {}
    wind = item.get("wind") or {}
    weather = item.get("weather") or []
    condition: Optional[Dict[str, Any]] = weather[0] if weather else None

    temperature_f = to_decimal(main.get("temp"))
    # "pop" is a 0..1 probability
    pop = to_decimal(item.get("pop"))

    return AreaForecastPeriod(
        location_id=location.id,
        source=ForecastSource.SECONDARY,
        provider="openweathermap",
        forecast_time=fetched_at,
        valid_from=valid_from,
        valid_to=valid_from + PERIOD_LENGTH,
        fetched_at=fetched_at,
        latitude=location.latitude,
        longitude=location.longitude,
        forecast_data=item,
        temperature_fahrenheit=temperature_f,
        temperature_celsius=fahrenheit_to_celsius(temperature_f),
        precipitation_probability=None if pop is None else int(pop * 100),
        humidity=to_int(main.get("humidity")),
        wind_speed_mph=to_decimal(wind.get("speed")),
        wind_direction=to_int(wind.get("deg")),
        weather_short_description=condition.get("main") if condition else None,
        weather_description=condition.get("description") if condition else None,
        is_active=True,
    )

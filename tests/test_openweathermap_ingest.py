"""
Tests for the OpenWeatherMap secondary forecast adapter and client.
"""
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from weather_ingest.core.api_errors import ConfigurationError
from weather_ingest.core.models import AreaForecastPeriod, ForecastSource
from weather_ingest.sources.openweathermap import OpenWeatherMapClient, OpenWeatherMapIngestor

PAYLOAD = {
    "cod": "200",
    "list": [
        {
            "dt": 1722513600,
            "main": {"temp": 86.5, "humidity": 74},
            "weather": [{"id": 500, "main": "Rain", "description": "light rain"}],
            "wind": {"speed": 9.2, "deg": 120},
            "pop": 0.35,
        },
        {
            "main": {"temp": 84.0},
        },
    ],
}


class TestOpenWeatherMapFetchAndStore:

    @pytest.mark.asyncio
    async def test_stores_three_hour_periods(self, session_factory, locations, city, test_db):
        client = MagicMock()
        client.get_forecast = AsyncMock(return_value=PAYLOAD)
        ingestor = OpenWeatherMapIngestor(client, locations=locations, session_factory=session_factory)

        result = await ingestor.fetch_and_store(city.id)

        assert result.appended == 1
        assert result.parse_failures == 1

        row = test_db.query(AreaForecastPeriod).one()
        assert row.source == ForecastSource.SECONDARY
        assert row.provider == "openweathermap"
        assert row.valid_from == datetime(2024, 8, 1, 12, 0)
        assert row.valid_to == datetime(2024, 8, 1, 15, 0)
        assert row.temperature_fahrenheit == Decimal("86.50")
        assert row.temperature_celsius == Decimal("30.28")
        assert row.humidity == 74
        assert row.precipitation_probability == 35
        assert row.wind_speed_mph == Decimal("9.20")
        assert row.wind_direction == 120
        assert row.weather_short_description == "Rain"
        assert row.weather_description == "light rain"

    @pytest.mark.asyncio
    async def test_payload_without_list(self, session_factory, locations, city):
        client = MagicMock()
        client.get_forecast = AsyncMock(return_value={"cod": "401", "message": "Invalid API key"})
        ingestor = OpenWeatherMapIngestor(client, locations=locations, session_factory=session_factory)

        result = await ingestor.fetch_and_store(city.id)

        assert result.appended == 0
        assert result.parse_failures == 1


class TestOpenWeatherMapClient:

    def test_requires_api_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            OpenWeatherMapClient(api_key="")
        assert exc_info.value.missing_config == "openweather_api_key"

    @pytest.mark.asyncio
    async def test_sends_appid_and_imperial_units(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=PAYLOAD)

        client = OpenWeatherMapClient(
            api_key="secret",
            rate_limit_interval=None,
            transport=httpx.MockTransport(handler),
        )
        try:
            payload = await client.get_forecast(Decimal("25.7617000"), Decimal("-80.1918000"))
        finally:
            await client.close()

        assert payload["cod"] == "200"
        assert seen["path"] == "/data/2.5/forecast"
        assert seen["params"]["appid"] == "secret"
        assert seen["params"]["units"] == "imperial"
        assert seen["params"]["lat"] == "25.7617000"

"""
OpenWeatherMap 5 day / 3 hour forecast client.

Authentication is an ``appid`` query parameter. Temperatures are requested
in Fahrenheit (``units=imperial``), so wind speed arrives in mph.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from weather_ingest.core.api_errors import ConfigurationError
from weather_ingest.core.api_registry import get_api_config
from weather_ingest.core.http_client import BaseAPIClient

logger = logging.getLogger(__name__)


class OpenWeatherMapClient(BaseAPIClient):
    """HTTP client for api.openweathermap.org."""

    SOURCE_NAME = "openweathermap"
    BASE_URL = get_api_config("openweathermap").base_url

    def __init__(
        self,
        api_key: str,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        **kwargs: Any,
    ):
        """
        Args:
            api_key: OpenWeatherMap API key
            max_retries: Maximum attempts for failed requests
            backoff_factor: Exponential backoff multiplier

        Raises:
            ConfigurationError: If api_key is empty
        """
        if not api_key:
            raise ConfigurationError(
                "OpenWeatherMap API key is required",
                source=self.SOURCE_NAME,
                missing_config="openweather_api_key",
            )

        config = get_api_config("openweathermap")
        kwargs.setdefault("timeout", config.timeout_seconds)
        kwargs.setdefault("connect_timeout", config.connect_timeout_seconds)
        kwargs.setdefault("rate_limit_interval", config.get_rate_limit_interval())
        super().__init__(max_retries=max_retries, backoff_factor=backoff_factor, **kwargs)
        self.api_key = api_key

    def _add_auth_to_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        params["appid"] = self.api_key
        return params

    async def get_forecast(
        self, latitude: Union[Decimal, float], longitude: Union[Decimal, float]
    ) -> Optional[Dict[str, Any]]:
        """3-hourly forecast for a coordinate."""
        params = {
            "lat": str(latitude),
            "lon": str(longitude),
            "units": "imperial",
        }
        return await self.get_json(
            "/forecast", params=params, resource_id=f"forecast {latitude},{longitude}"
        )

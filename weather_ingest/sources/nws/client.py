"""
National Weather Service API client.

Forecasts take two requests: /points/{lat},{lon} returns metadata whose
``properties.forecast`` is the URL of the gridpoint forecast, which is
then fetched as-is.

Documentation: https://www.weather.gov/documentation/services-web-api
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from weather_ingest.core.api_registry import get_api_config
from weather_ingest.core.http_client import BaseAPIClient

logger = logging.getLogger(__name__)


class NWSClient(BaseAPIClient):
    """HTTP client for api.weather.gov."""

    SOURCE_NAME = "nws"
    BASE_URL = get_api_config("nws").base_url

    def __init__(
        self,
        user_agent: str,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        **kwargs: Any,
    ):
        """
        Args:
            user_agent: Identifying User-Agent (required by the NWS)
            max_retries: Maximum attempts for failed requests
            backoff_factor: Exponential backoff multiplier
        """
        config = get_api_config("nws")
        kwargs.setdefault("timeout", config.timeout_seconds)
        kwargs.setdefault("connect_timeout", config.connect_timeout_seconds)
        kwargs.setdefault("rate_limit_interval", config.get_rate_limit_interval())
        super().__init__(max_retries=max_retries, backoff_factor=backoff_factor, **kwargs)
        self.user_agent = user_agent

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/geo+json",
            "User-Agent": self.user_agent,
        }

    async def get_point(
        self, latitude: Union[Decimal, float], longitude: Union[Decimal, float]
    ) -> Optional[Dict[str, Any]]:
        """Point metadata; the API redirects on more than 4 decimal places."""
        point = f"{float(latitude):.4f},{float(longitude):.4f}"
        return await self.get_json(f"/points/{point}", resource_id=f"point {point}")

    async def get_forecast(self, forecast_url: str) -> Optional[Dict[str, Any]]:
        """Fetch the forecast resource named by point metadata."""
        return await self.get_json(forecast_url, resource_id=forecast_url)

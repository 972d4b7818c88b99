"""
Aviation Weather Center client.

Two generations of the API are supported:
- current JSON API: /api/data/metar and /api/data/taf
- legacy XML dataserver: /cgi-bin/data/dataserver.php

Documentation: https://aviationweather.gov/data/api/
"""

import logging
from typing import Any, Dict, List, Optional, Union

from weather_ingest.core.api_registry import get_api_config
from weather_ingest.core.http_client import BaseAPIClient
from weather_ingest.core.models import ReportKind

logger = logging.getLogger(__name__)


class AviationWeatherClient(BaseAPIClient):
    """HTTP client for METAR and TAF reports."""

    SOURCE_NAME = "aviation"
    BASE_URL = get_api_config("aviation").base_url

    JSON_PATHS = {
        ReportKind.METAR: "/api/data/metar",
        ReportKind.TAF: "/api/data/taf",
    }
    XML_PATH = "/cgi-bin/data/dataserver.php"
    XML_DATA_SOURCES = {
        ReportKind.METAR: "metars",
        ReportKind.TAF: "tafs",
    }

    def __init__(
        self,
        feed_format: str = "json",
        hours_before_now: int = 2,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        **kwargs: Any,
    ):
        """
        Args:
            feed_format: 'json' (current API) or 'xml' (legacy dataserver)
            hours_before_now: How many hours of reports to request
            max_retries: Maximum attempts for failed requests
            backoff_factor: Exponential backoff multiplier
        """
        config = get_api_config("aviation")
        kwargs.setdefault("timeout", config.timeout_seconds)
        kwargs.setdefault("connect_timeout", config.connect_timeout_seconds)
        kwargs.setdefault("rate_limit_interval", config.get_rate_limit_interval())
        super().__init__(
            max_retries=max_retries,
            backoff_factor=backoff_factor,
            **kwargs,
        )
        self.feed_format = feed_format.lower()
        self.hours_before_now = hours_before_now

    def _build_headers(self) -> Dict[str, str]:
        headers = super()._build_headers()
        if self.feed_format == "xml":
            headers["Accept"] = "application/xml"
        return headers

    async def get_reports(
        self, airport_code: str, kind: ReportKind
    ) -> Union[List[Dict[str, Any]], str, None]:
        """
        Fetch METAR or TAF reports for one airport.

        Returns:
            A JSON array (json format) or the XML document text (xml format)
        """
        resource_id = f"{kind.value} {airport_code}"
        logger.info(f"Fetching {resource_id} ({self.feed_format})")

        if self.feed_format == "xml":
            params = {
                "dataSource": self.XML_DATA_SOURCES[kind],
                "requestType": "retrieve",
                "format": "xml",
                "stationString": airport_code,
                "hoursBeforeNow": self.hours_before_now,
            }
            return await self.get_text(self.XML_PATH, params=params, resource_id=resource_id)

        params = {
            "ids": airport_code,
            "format": "json",
            "hours": self.hours_before_now,
        }
        return await self.get_json(
            self.JSON_PATHS[kind], params=params, resource_id=resource_id
        )

    async def get_metar(self, airport_code: str):
        return await self.get_reports(airport_code, ReportKind.METAR)

    async def get_taf(self, airport_code: str):
        return await self.get_reports(airport_code, ReportKind.TAF)

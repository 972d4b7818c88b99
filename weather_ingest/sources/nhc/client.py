"""
National Hurricane Center client.

The active-storm list is one global document; there are no per-target
requests.
"""

import logging
from typing import Any, Dict, Optional

from weather_ingest.core.api_registry import get_api_config
from weather_ingest.core.http_client import BaseAPIClient

logger = logging.getLogger(__name__)


class NHCClient(BaseAPIClient):
    """HTTP client for www.nhc.noaa.gov."""

    SOURCE_NAME = "nhc"
    BASE_URL = get_api_config("nhc").base_url

    def __init__(self, max_retries: int = 3, backoff_factor: float = 2.0, **kwargs: Any):
        config = get_api_config("nhc")
        kwargs.setdefault("timeout", config.timeout_seconds)
        kwargs.setdefault("connect_timeout", config.connect_timeout_seconds)
        kwargs.setdefault("rate_limit_interval", config.get_rate_limit_interval())
        super().__init__(max_retries=max_retries, backoff_factor=backoff_factor, **kwargs)

    async def get_current_storms(self) -> Optional[Dict[str, Any]]:
        """Active tropical systems across all basins."""
        return await self.get_json("/CurrentStorms.json", resource_id="current storms")

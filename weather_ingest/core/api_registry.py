"""
Centralized upstream feed registry.

Consolidates feed-specific settings in one place:
- Base URLs
- Rate limits
- Timeouts

Secrets and enable switches live in Settings; this module only holds
static facts about each feed.
"""

from dataclasses import dataclass
from typing import Optional, Dict


@dataclass
class APIConfig:
    """Configuration for a single upstream feed."""

    source_name: str
    base_url: str
    docs_url: str

    # Rate limiting
    rate_limit_per_minute: Optional[int] = None  # None = no specific limit
    rate_limit_interval: Optional[float] = None  # Seconds between requests

    # Request settings
    timeout_seconds: float = 30.0
    connect_timeout_seconds: float = 10.0

    notes: Optional[str] = None

    def get_rate_limit_interval(self) -> Optional[float]:
        """Calculate rate limit interval from per-minute limit."""
        if self.rate_limit_interval is not None:
            return self.rate_limit_interval
        if self.rate_limit_per_minute is not None:
            return 60.0 / self.rate_limit_per_minute
        return None


API_REGISTRY: Dict[str, APIConfig] = {
    "aviation": APIConfig(
        source_name="aviation",
        base_url="https://aviationweather.gov",
        docs_url="https://aviationweather.gov/data/api/",
        rate_limit_per_minute=100,
        notes="METAR/TAF; JSON at /api/data/*, legacy XML at /cgi-bin/data/dataserver.php",
    ),
    "nws": APIConfig(
        source_name="nws",
        base_url="https://api.weather.gov",
        docs_url="https://www.weather.gov/documentation/services-web-api",
        rate_limit_interval=0.5,
        notes="Requires an identifying User-Agent header",
    ),
    "openweathermap": APIConfig(
        source_name="openweathermap",
        base_url="https://api.openweathermap.org/data/2.5",
        docs_url="https://openweathermap.org/api",
        rate_limit_per_minute=60,
        notes="Free tier: 60 calls/min",
    ),
    "nhc": APIConfig(
        source_name="nhc",
        base_url="https://www.nhc.noaa.gov",
        docs_url="https://www.nhc.noaa.gov/",
        timeout_seconds=60.0,
    ),
}


def get_api_config(source: str) -> APIConfig:
    """
    Get feed configuration for a source.

    Raises:
        KeyError: If source not found in registry
    """
    source_lower = source.lower()
    if source_lower not in API_REGISTRY:
        available = ", ".join(sorted(API_REGISTRY.keys()))
        raise KeyError(
            f"Unknown API source: {source}. " f"Available sources: {available}"
        )
    return API_REGISTRY[source_lower]

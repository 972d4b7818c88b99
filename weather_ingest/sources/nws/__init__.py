"""
National Weather Service source adapter (primary area forecasts).

Documentation: https://www.weather.gov/documentation/services-web-api
"""

from weather_ingest.sources.nws.client import NWSClient
from weather_ingest.sources.nws.ingest import NWSForecastIngestor

__all__ = ["NWSClient", "NWSForecastIngestor"]

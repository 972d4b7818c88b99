"""
OpenWeatherMap source adapter (secondary area forecasts).

Requires OPENWEATHER_API_KEY.
Documentation: https://openweathermap.org/forecast5
"""

from weather_ingest.sources.openweathermap.client import OpenWeatherMapClient
from weather_ingest.sources.openweathermap.ingest import OpenWeatherMapIngestor

__all__ = ["OpenWeatherMapClient", "OpenWeatherMapIngestor"]

"""
Aviation Weather Center source adapter (METAR and TAF).

Supports the current JSON API and the legacy XML dataserver; both map
onto AirportWeatherObservation.

Documentation: https://aviationweather.gov/data/api/
"""

from weather_ingest.sources.aviation.client import AviationWeatherClient
from weather_ingest.sources.aviation.ingest import AviationWeatherIngestor

__all__ = ["AviationWeatherClient", "AviationWeatherIngestor"]

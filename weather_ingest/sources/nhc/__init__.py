"""
National Hurricane Center source adapter (tropical storm advisories).

Documentation: https://www.nhc.noaa.gov/productexamples/NHC_JSON_Sample.json
"""

from weather_ingest.sources.nhc.client import NHCClient
from weather_ingest.sources.nhc.ingest import NHCStormIngestor, decode_storm_code

__all__ = ["NHCClient", "NHCStormIngestor", "decode_storm_code"]

"""
Weather, aviation and tropical-storm ingestion pipeline.

Polls upstream feeds, normalizes each payload into canonical time-series
records and persists them for later query.
"""

__version__ = "0.1.0"

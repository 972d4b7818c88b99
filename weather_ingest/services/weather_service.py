"""
On-demand entry points into the ingestion pipeline.

Manual refreshes go through the same adapters the scheduler drives; the
``refresh_all_*`` methods reuse the orchestrator so one failing target
never stops the rest.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from weather_ingest.core.config import Settings, get_settings
from weather_ingest.core.database import get_session_factory, session_scope
from weather_ingest.core.ingest_base import IngestResult
from weather_ingest.core.locations import LocationRepository
from weather_ingest.core.models import ForecastSource
from weather_ingest.core.record_store import RecordStore
from weather_ingest.core.retention import RetentionManager, retention_cutoff
from weather_ingest.jobs.weather_scheduler import (
    FORECAST_PROVIDERS,
    TickSummary,
    WeatherPollingOrchestrator,
)
from weather_ingest.sources.aviation import AviationWeatherClient, AviationWeatherIngestor
from weather_ingest.sources.nhc import NHCClient, NHCStormIngestor
from weather_ingest.sources.nws import NWSClient, NWSForecastIngestor
from weather_ingest.sources.openweathermap import OpenWeatherMapClient, OpenWeatherMapIngestor

logger = logging.getLogger(__name__)


class WeatherService:
    """Facade over the adapters, retention manager and orchestrator."""

    def __init__(
        self,
        settings: Settings,
        ingestors: Dict[str, Any],
        locations: LocationRepository,
        retention: RetentionManager,
        session_factory=None,
        record_store: Optional[RecordStore] = None,
    ):
        self.settings = settings
        self.ingestors = ingestors
        self.locations = locations
        self.retention = retention
        self.session_factory = session_factory or get_session_factory()
        self.record_store = record_store or RecordStore()
        self.orchestrator = WeatherPollingOrchestrator(
            settings=settings,
            ingestors=ingestors,
            locations=locations,
            retention=retention,
        )

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, session_factory=None
    ) -> "WeatherService":
        """
        Build clients and adapters from configuration.

        The OpenWeatherMap adapter is only built when an API key is set.
        """
        settings = settings or get_settings()
        session_factory = session_factory or get_session_factory()
        locations = LocationRepository(session_factory)
        record_store = RecordStore()
        retry = {
            "max_retries": settings.max_retries,
            "backoff_factor": settings.retry_backoff_factor,
        }
        shared = {
            "locations": locations,
            "record_store": record_store,
            "session_factory": session_factory,
        }

        ingestors: Dict[str, Any] = {
            "aviation": AviationWeatherIngestor(
                AviationWeatherClient(
                    feed_format=settings.aviation_feed_format,
                    hours_before_now=settings.aviation_hours_before_now,
                    **retry,
                ),
                **shared,
            ),
            "nws": NWSForecastIngestor(
                NWSClient(user_agent=settings.nws_user_agent, **retry), **shared
            ),
            "nhc": NHCStormIngestor(NHCClient(**retry), **shared),
            "openweathermap": None,
        }
        if settings.openweather_api_key:
            ingestors["openweathermap"] = OpenWeatherMapIngestor(
                OpenWeatherMapClient(api_key=settings.openweather_api_key, **retry),
                **shared,
            )
        else:
            logger.debug("OPENWEATHER_API_KEY not set; secondary forecasts disabled")

        return cls(
            settings=settings,
            ingestors=ingestors,
            locations=locations,
            retention=RetentionManager(session_factory, record_store),
            session_factory=session_factory,
            record_store=record_store,
        )

    async def close(self) -> None:
        """Close every adapter's HTTP client."""
        for ingestor in self.ingestors.values():
            if ingestor is not None:
                await ingestor.client.close()

    # -------------------------------------------------------------------------
    # Single-target operations
    # -------------------------------------------------------------------------

    async def fetch_and_store_airport_weather(self, airport_code: str) -> IngestResult:
        return await self.ingestors["aviation"].fetch_and_store(airport_code)

    async def fetch_and_store_area_forecast(
        self, location_id: int, source: ForecastSource = ForecastSource.PRIMARY
    ) -> IngestResult:
        """
        Raises:
            ConfigurationError: If the secondary source is asked for without an API key
        """
        provider = FORECAST_PROVIDERS[ForecastSource(source)]
        ingestor = self.ingestors.get(provider)
        if ingestor is None:
            self.settings.require_openweather_api_key()
        return await ingestor.fetch_and_store(location_id)

    async def fetch_and_store_storm_advisories(self) -> IngestResult:
        return await self.ingestors["nhc"].fetch_and_store()

    # -------------------------------------------------------------------------
    # Multi-target refreshes (per-target isolation, one summary)
    # -------------------------------------------------------------------------

    async def refresh_all_airports(self) -> TickSummary:
        return await self.orchestrator.run_aviation_tick(force=True)

    async def refresh_all_area_forecasts(
        self, source: ForecastSource = ForecastSource.PRIMARY
    ) -> TickSummary:
        return await self.orchestrator.run_area_forecast_tick(source, force=True)

    # -------------------------------------------------------------------------
    # Retention
    # -------------------------------------------------------------------------

    def deactivate_all(self, older_than: Optional[datetime] = None) -> Dict[str, int]:
        """Retire every record kind; the cutoff defaults to the retention horizon."""
        older_than = older_than or retention_cutoff(self.settings.retention_days)
        return self.retention.deactivate_all(older_than)

    def purge_all(self, older_than: Optional[datetime] = None) -> Dict[str, int]:
        older_than = older_than or retention_cutoff(self.settings.retention_days)
        return self.retention.purge_all(older_than)

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def get_data_status(self) -> Dict[str, Any]:
        """Row counts per record kind plus the number of airports monitored."""
        with session_scope(self.session_factory, source="status") as session:
            counts = self.record_store.count_by_kind(session)

        return {
            "records": counts,
            "airports": self.locations.count_airports(),
            "sources_enabled": dict(self.orchestrator.enabled),
            "checked_at": datetime.utcnow().isoformat(),
        }

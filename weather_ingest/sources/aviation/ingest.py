"""
METAR/TAF ingestion.

One invocation handles one airport: it fetches the METAR and the TAF
reports, parses each report independently and appends everything that
parsed in a single transaction.
"""
import logging
from datetime import datetime
from typing import Any, Optional

from weather_ingest.core.api_errors import ParseFailure, TargetNotFound
from weather_ingest.core.ingest_base import BaseSourceIngestor, IngestResult, ParsedBatch, split_batches
from weather_ingest.core.models import AirportWeatherObservation, Location, ReportKind
from weather_ingest.sources.aviation.client import AviationWeatherClient
from weather_ingest.sources.aviation.parsers import AviationReport, get_parser

logger = logging.getLogger(__name__)


class AviationWeatherIngestor(BaseSourceIngestor):
    """Airport weather adapter, for either aviation feed format."""

    SOURCE_NAME = "aviation"

    def __init__(self, client: AviationWeatherClient, *args: Any, **kwargs: Any):
        super().__init__(client, *args, **kwargs)
        self.parser = get_parser(client.feed_format)

    async def fetch_and_store(self, airport_code: str) -> IngestResult:
        """
        Fetch and append METAR and TAF reports for one airport.

        Returns:
            IngestResult; target_found is False when no location has the code

        Raises:
            FetchFailure: If the upstream feed cannot be reached
            PersistenceFailure: If the commit fails
        """
        try:
            location = self.resolve_airport(airport_code)
        except TargetNotFound as e:
            return self._not_found(e)

        code = location.airport_code
        fetched_at = datetime.utcnow()

        batches = []
        for kind in (ReportKind.METAR, ReportKind.TAF):
            payload = await self.client.get_reports(code, kind)
            batches.append(self._parse_payload(payload, kind, location, fetched_at))

        records, failures, dropped = split_batches(*batches)
        if not records:
            logger.warning(f"No airport weather reports available for {code}")

        appended = self.store(records)
        logger.info(
            f"Stored {appended} airport weather reports for {code} "
            f"({failures} unparsable, {dropped} dropped)"
        )
        return IngestResult(
            source=self.SOURCE_NAME,
            target=code,
            appended=appended,
            parse_failures=failures,
            dropped=dropped,
        )

    def _parse_payload(
        self,
        payload: Any,
        kind: ReportKind,
        location: Location,
        fetched_at: datetime,
    ) -> ParsedBatch:
        try:
            items = self.parser.split(payload, kind)
        except ParseFailure as e:
            logger.warning(f"[{self.SOURCE_NAME}] Unusable {kind.value} payload: {e}")
            return ParsedBatch(records=[], parse_failures=1)

        def parse_one(item: Any) -> Optional[AirportWeatherObservation]:
            report = self.parser.parse(item, kind)
            if not report.has_target:
                return None
            return build_observation(report, location, fetched_at)

        return self.parse_items(items, parse_one)


def build_observation(
    report: AviationReport, location: Location, fetched_at: datetime
) -> AirportWeatherObservation:
    """
    Tie a parsed report to its location.

    Missing airport code or coordinates fall back to the location's own.
    """
    return AirportWeatherObservation(
        location_id=location.id,
        airport_code=report.airport_code or location.airport_code,
        report_type=report.report_type,
        observation_time=report.observation_time,
        fetched_at=fetched_at,
        latitude=report.latitude if report.latitude is not None else location.latitude,
        longitude=report.longitude if report.longitude is not None else location.longitude,
        raw_text=report.raw_text,
        report_data=report.report_data,
        temperature_celsius=report.temperature_celsius,
        dewpoint_celsius=report.dewpoint_celsius,
        wind_speed_knots=report.wind_speed_knots,
        wind_direction=report.wind_direction,
        wind_gust_knots=report.wind_gust_knots,
        visibility_miles=report.visibility_miles,
        altimeter_inches=report.altimeter_inches,
        flight_category=report.flight_category,
        ceiling_feet=report.ceiling_feet,
        sky_condition=report.sky_condition,
        weather_conditions=report.weather_conditions,
        is_active=True,
    )

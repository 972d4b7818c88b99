"""
Weather Polling Scheduler.

Each source polls on its own cron cadence. A tick over a multi-target
source (all airports, all locations) walks the targets one after another;
one target failing is logged and counted, and the tick moves on. Every
tick ends with one summary line.

Overlapping firings of the same job are skipped (max_instances=1,
coalesce=True), so a slow tick delays only its own source.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from apscheduler.triggers.cron import CronTrigger

from weather_ingest.core.config import Settings
from weather_ingest.core.ingest_base import BaseSourceIngestor
from weather_ingest.core.locations import LocationRepository
from weather_ingest.core.models import ForecastSource, RecordKind
from weather_ingest.core.retention import RetentionManager, retention_cutoff
from weather_ingest.core.scheduler_service import get_scheduler

logger = logging.getLogger(__name__)

STORM_SEASON_MONTHS = range(6, 12)
OFF_SEASON_HOUR_STEP = 6

# Area-forecast source -> ingestor key
FORECAST_PROVIDERS = {
    ForecastSource.PRIMARY: "nws",
    ForecastSource.SECONDARY: "openweathermap",
}


def is_storm_season(now: datetime) -> bool:
    """Atlantic hurricane season: June through November."""
    return now.month in STORM_SEASON_MONTHS


def should_run_storm_tick(now: datetime) -> bool:
    """Hourly in season; every sixth hour otherwise."""
    return is_storm_season(now) or now.hour % OFF_SEASON_HOUR_STEP == 0


@dataclass
class TickSummary:
    """What one firing of one cadence did."""

    source: str
    ran: bool = True
    targets: int = 0
    successful: int = 0
    failed: int = 0
    # Appended for ingestion ticks, retired or removed for retention
    records: int = 0
    not_found: int = 0
    details: Dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "ran": self.ran,
            "targets": self.targets,
            "successful": self.successful,
            "failed": self.failed,
            "records": self.records,
            "not_found": self.not_found,
            "details": self.details,
            "started_at": self.started_at.isoformat(),
        }


class WeatherPollingOrchestrator:
    """
    Drives the source adapters and the retention sweep.

    Settings are read once at construction; enable switches are checked at
    the start of every tick so a disabled source never fetches.
    """

    def __init__(
        self,
        settings: Settings,
        ingestors: Dict[str, Optional[BaseSourceIngestor]],
        locations: LocationRepository,
        retention: RetentionManager,
    ):
        self.settings = settings
        self.ingestors = ingestors
        self.locations = locations
        self.retention = retention

        self.enabled = {
            "aviation": settings.scheduler_aviation_enabled,
            "nws": settings.scheduler_nws_enabled,
            "openweathermap": settings.scheduler_openweather_enabled,
            "nhc": settings.scheduler_nhc_enabled,
            "retention": settings.scheduler_retention_enabled,
        }

    def _is_enabled(self, source: str, force: bool) -> bool:
        if force or self.enabled.get(source, False):
            return True
        logger.debug(f"Polling for {source} is disabled; skipping tick")
        return False

    async def _run_targets(
        self,
        source: str,
        targets: List[Any],
        fetch: Callable[[Any], Awaitable[Any]],
    ) -> TickSummary:
        """Invoke ``fetch`` for each target in turn, isolating failures."""
        summary = TickSummary(source=source, targets=len(targets))

        for target in targets:
            try:
                result = await fetch(target)
            except Exception as e:
                summary.failed += 1
                logger.error(f"[{source}] Failed for target {target}: {e}", exc_info=True)
                continue

            summary.successful += 1
            summary.records += result.appended
            if not result.target_found:
                summary.not_found += 1

        self._log_summary(summary)
        return summary

    def _log_summary(self, summary: TickSummary) -> None:
        duration = (datetime.utcnow() - summary.started_at).total_seconds()
        logger.info(
            f"{summary.source} tick complete: "
            f"{summary.successful}/{summary.targets} targets succeeded, "
            f"{summary.failed} failed, {summary.records} records in {duration:.1f}s"
        )

    def _skipped(self, source: str) -> TickSummary:
        return TickSummary(source=source, ran=False)

    async def run_aviation_tick(self, force: bool = False) -> TickSummary:
        """METAR and TAF for every airport."""
        if not self._is_enabled("aviation", force):
            return self._skipped("aviation")

        ingestor = self.ingestors["aviation"]
        try:
            codes = [airport.airport_code for airport in self.locations.list_airports()]
        except Exception as e:
            logger.error(f"[aviation] Could not list airports: {e}", exc_info=True)
            return TickSummary(source="aviation", failed=1)

        return await self._run_targets("aviation", codes, ingestor.fetch_and_store)

    async def run_area_forecast_tick(
        self, source: ForecastSource = ForecastSource.PRIMARY, force: bool = False
    ) -> TickSummary:
        """One forecast provider for every location."""
        provider = FORECAST_PROVIDERS[ForecastSource(source)]
        if not self._is_enabled(provider, force):
            return self._skipped(provider)

        ingestor = self.ingestors.get(provider)
        if ingestor is None:
            logger.debug(f"No {provider} adapter configured; skipping tick")
            return self._skipped(provider)

        try:
            location_ids = [location.id for location in self.locations.list_all()]
        except Exception as e:
            logger.error(f"[{provider}] Could not list locations: {e}", exc_info=True)
            return TickSummary(source=provider, failed=1)

        return await self._run_targets(provider, location_ids, ingestor.fetch_and_store)

    async def run_storm_tick(
        self, now: Optional[datetime] = None, force: bool = False
    ) -> TickSummary:
        """The global active-storm document, subject to the seasonal gate."""
        if not self._is_enabled("nhc", force):
            return self._skipped("nhc")

        now = now or datetime.utcnow()
        if not force and not should_run_storm_tick(now):
            logger.debug(f"Outside storm season and hour {now.hour} is off-cadence; skipping")
            return self._skipped("nhc")

        ingestor = self.ingestors["nhc"]
        return await self._run_targets("nhc", ["active storms"], lambda _: ingestor.fetch_and_store())

    async def run_retention_tick(
        self, now: Optional[datetime] = None, force: bool = False
    ) -> TickSummary:
        """Retire (and optionally purge) every record kind with one cutoff."""
        if not self._is_enabled("retention", force):
            return self._skipped("retention")

        cutoff = retention_cutoff(self.settings.retention_days, now)
        purge = self.settings.retention_purge_enabled
        summary = TickSummary(source="retention", targets=len(RecordKind))
        summary.details["cutoff"] = cutoff.isoformat()

        for kind in RecordKind:
            try:
                count = self.retention.deactivate(kind, cutoff)
                if purge:
                    count += self.retention.purge(kind, cutoff)
            except Exception as e:
                summary.failed += 1
                logger.error(f"[retention] Sweep failed for {kind.value}: {e}", exc_info=True)
                continue

            summary.successful += 1
            summary.records += count
            summary.details[kind.value] = count

        self._log_summary(summary)
        return summary


# =============================================================================
# APScheduler Registration
# =============================================================================

WEATHER_JOB_IDS = [
    "weather_aviation",
    "weather_nws_forecast",
    "weather_openweather_forecast",
    "weather_nhc_storms",
    "weather_retention",
]


def register_weather_schedules(
    orchestrator: WeatherPollingOrchestrator,
    settings: Settings,
    scheduler=None,
) -> Dict[str, bool]:
    """
    Register one cron job per source.

    Disabled sources are registered too; their ticks return without
    fetching.

    Returns:
        Dictionary of job_id -> registration success
    """
    scheduler = scheduler or get_scheduler()

    jobs = [
        (
            "weather_aviation",
            "Airport METAR/TAF Polling",
            orchestrator.run_aviation_tick,
            [],
            CronTrigger(minute=settings.aviation_cron_minute),
        ),
        (
            "weather_nws_forecast",
            "NWS Area Forecast Polling",
            orchestrator.run_area_forecast_tick,
            [ForecastSource.PRIMARY],
            CronTrigger(minute=settings.nws_cron_minute),
        ),
        (
            "weather_openweather_forecast",
            "OpenWeatherMap Forecast Polling",
            orchestrator.run_area_forecast_tick,
            [ForecastSource.SECONDARY],
            CronTrigger(hour=settings.openweather_cron_hour, minute=0),
        ),
        (
            "weather_nhc_storms",
            "NHC Storm Advisory Polling",
            orchestrator.run_storm_tick,
            [],
            CronTrigger(minute=settings.nhc_cron_minute),
        ),
        (
            "weather_retention",
            "Daily Record Retention Sweep",
            orchestrator.run_retention_tick,
            [],
            CronTrigger(hour=settings.retention_cron_hour, minute=0),
        ),
    ]

    results = {}
    for job_id, name, func, args, trigger in jobs:
        try:
            scheduler.add_job(
                func,
                trigger=trigger,
                args=args,
                id=job_id,
                name=name,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            results[job_id] = True
            logger.info(f"Registered {name} ({trigger})")
        except Exception as e:
            logger.error(f"Failed to register {job_id}: {e}")
            results[job_id] = False

    return results


def unregister_weather_schedules(scheduler=None) -> Dict[str, bool]:
    """Remove all weather polling jobs."""
    scheduler = scheduler or get_scheduler()

    results = {}
    for job_id in WEATHER_JOB_IDS:
        try:
            if scheduler.get_job(job_id):
                scheduler.remove_job(job_id)
            results[job_id] = True
        except Exception as e:
            logger.error(f"Failed to unregister {job_id}: {e}")
            results[job_id] = False

    return results


def get_weather_schedule_status(scheduler=None) -> Dict[str, Any]:
    """Get status of weather polling jobs."""
    scheduler = scheduler or get_scheduler()

    jobs = []
    for job_id in WEATHER_JOB_IDS:
        job = scheduler.get_job(job_id)
        if job:
            next_run = getattr(job, "next_run_time", None)
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run": next_run.isoformat() if next_run else None,
                    "trigger": str(job.trigger),
                    "active": True,
                }
            )
        else:
            jobs.append(
                {
                    "id": job_id,
                    "name": job_id.replace("weather_", "").replace("_", " ").title(),
                    "next_run": None,
                    "trigger": None,
                    "active": False,
                }
            )

    return {
        "scheduler_running": scheduler.running,
        "scheduled_jobs": jobs,
        "checked_at": datetime.utcnow().isoformat(),
    }

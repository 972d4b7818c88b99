"""
Polling worker entrypoint.

Creates tables if needed, registers one cron job per source and runs until
SIGTERM/SIGINT.

Usage:
    python -m weather_ingest.worker.main

Env vars:
    DATABASE_URL        - Required
    LOG_LEVEL           - Default INFO
    SCHEDULER_*_ENABLED - Per-source switches (see core/config.py)
"""
import asyncio
import logging
import signal

from weather_ingest.core.config import get_settings
from weather_ingest.core.database import create_tables
from weather_ingest.core.scheduler_service import get_scheduler, shutdown_scheduler, start_scheduler
from weather_ingest.jobs.weather_scheduler import register_weather_schedules
from weather_ingest.services.weather_service import WeatherService

logger = logging.getLogger("worker")


async def run() -> None:
    settings = get_settings()
    create_tables()

    service = WeatherService.from_settings(settings)
    results = register_weather_schedules(service.orchestrator, settings, get_scheduler())
    logger.info(f"Registered {sum(results.values())}/{len(results)} polling jobs")

    shutdown = asyncio.Event()

    def _handle_signal(signum):
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        shutdown.set()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(signum, _handle_signal, signum)

    start_scheduler()
    try:
        await shutdown.wait()
    finally:
        shutdown_scheduler(wait=False)
        await service.close()
        logger.info("Worker stopped")


def main():
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting weather polling worker")
    asyncio.run(run())


if __name__ == "__main__":
    main()

"""
Pytest configuration and shared fixtures.
"""
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from weather_ingest.core.config import Settings, reset_settings
from weather_ingest.core.locations import LocationRepository
from weather_ingest.core.models import Base, Location, LocationType


@pytest.fixture(scope="function")
def clean_env(monkeypatch):
    """
    Clean environment for testing.

    Removes all app-related env vars to ensure clean state.
    """
    env_vars = [
        "DATABASE_URL",
        "OPENWEATHER_API_KEY",
        "NWS_USER_AGENT",
        "AVIATION_FEED_FORMAT",
        "LOG_LEVEL",
        "MAX_RETRIES",
        "RETRY_BACKOFF_FACTOR",
        "RETENTION_DAYS",
        "RETENTION_PURGE_ENABLED",
        "SCHEDULER_AVIATION_ENABLED",
        "SCHEDULER_NWS_ENABLED",
        "SCHEDULER_NHC_ENABLED",
        "SCHEDULER_OPENWEATHER_ENABLED",
        "SCHEDULER_RETENTION_ENABLED",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)

    # Reset settings singleton
    reset_settings()

    yield

    # Reset again after test
    reset_settings()


@pytest.fixture
def settings(clean_env):
    """Settings with every source enabled and no .env file."""
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        scheduler_openweather_enabled=True,
    )


@pytest.fixture(scope="function")
def engine():
    """
    In-memory SQLite shared across connections, foreign keys enforced.

    Fresh database for each test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def test_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def locations(session_factory):
    return LocationRepository(session_factory)


@pytest.fixture
def airport(locations) -> Location:
    return locations.create(
        name="Denver International",
        latitude=Decimal("39.8561000"),
        longitude=Decimal("-104.6737000"),
        location_type=LocationType.AIRPORT,
        airport_code="KDEN",
        state="CO",
        country="US",
    )


@pytest.fixture
def city(locations) -> Location:
    return locations.create(
        name="Miami",
        latitude=Decimal("25.7617000"),
        longitude=Decimal("-80.1918000"),
        location_type=LocationType.CITY,
        state="FL",
        country="US",
    )

"""
SQLAlchemy models for the canonical record tables.

Every source adapter maps its payload onto one of three append-only record
shapes (airport observation, area forecast period, storm advisory). Records
point back at a Location by id; they never own it, and deleting records
never touches the locations table.
"""
from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Text,
    JSON,
    Boolean,
    Numeric,
    ForeignKey,
    Enum,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import declarative_base, validates
import enum

Base = declarative_base()


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class LocationType(str, enum.Enum):
    """Kinds of monitored point."""
    AIRPORT = "airport"
    CITY = "city"
    REGION = "region"


class ReportKind(str, enum.Enum):
    """Aviation report kinds."""
    METAR = "METAR"
    TAF = "TAF"


class ForecastSource(str, enum.Enum):
    """Area forecast provenance: NWS is primary, OpenWeatherMap secondary."""
    PRIMARY = "primary"
    SECONDARY = "secondary"


class RecordKind(str, enum.Enum):
    """The three record kinds swept by retention."""
    AIRPORT_WEATHER = "airport_weather"
    AREA_FORECAST = "area_forecast"
    STORM_ADVISORY = "storm_advisory"


class Location(Base):
    """
    A monitored point.

    Airport-typed locations must carry an ICAO code; the code is unique
    when present.
    """
    __tablename__ = "locations"
    __table_args__ = (
        CheckConstraint(
            "location_type != 'airport' OR "
            "(airport_code IS NOT NULL AND airport_code != '')",
            name="ck_location_airport_code",
        ),
        Index("idx_location_coordinates", "latitude", "longitude"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    latitude = Column(Numeric(10, 7), nullable=False)
    longitude = Column(Numeric(10, 7), nullable=False)
    location_type = Column(
        Enum(LocationType, native_enum=False, length=50, values_callable=_enum_values),
        nullable=False,
        index=True,
    )
    airport_code = Column(String(10), nullable=True, unique=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    # "metadata" is reserved on declarative classes
    location_metadata = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @validates("airport_code")
    def _normalize_airport_code(self, key, value):
        if value is None:
            return None
        value = value.strip().upper()
        return value or None

    def validate(self) -> None:
        """Raise ValueError when an airport has no airport code."""
        if self.location_type == LocationType.AIRPORT and not self.airport_code:
            raise ValueError(f"Airport location '{self.name}' requires an airport code")

    def __repr__(self) -> str:
        return (
            f"<Location(id={self.id}, name={self.name}, "
            f"type={self.location_type}, airport_code={self.airport_code})>"
        )


class AirportWeatherObservation(Base):
    """
    One METAR or TAF snapshot for one airport.

    Append-only. Repeated fetches of the same window may add duplicate
    rows; consumers de-duplicate by (airport_code, observation_time).
    """
    __tablename__ = "airport_weather"
    __table_args__ = (
        Index("idx_airport_code_observation", "airport_code", "observation_time"),
        Index("idx_airport_fetched_active", "fetched_at", "is_active"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    location_id = Column(
        Integer, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True
    )
    airport_code = Column(String(10), nullable=False)
    report_type = Column(
        Enum(ReportKind, native_enum=False, length=10, values_callable=_enum_values),
        nullable=False,
        index=True,
    )

    # Time information
    observation_time = Column(DateTime, nullable=False)
    fetched_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Coordinates
    latitude = Column(Numeric(10, 7), nullable=True)
    longitude = Column(Numeric(10, 7), nullable=True)

    # Raw report and full-fidelity payload
    raw_text = Column(Text, nullable=False)
    report_data = Column(JSON, nullable=True)

    # Extracted fields
    temperature_celsius = Column(Numeric(5, 2), nullable=True)
    dewpoint_celsius = Column(Numeric(5, 2), nullable=True)
    wind_speed_knots = Column(Integer, nullable=True)
    wind_direction = Column(Integer, nullable=True)
    wind_gust_knots = Column(Integer, nullable=True)
    visibility_miles = Column(Numeric(5, 2), nullable=True)
    altimeter_inches = Column(Numeric(5, 2), nullable=True)
    flight_category = Column(String(10), nullable=True)
    ceiling_feet = Column(Integer, nullable=True)
    sky_condition = Column(String(255), nullable=True)
    weather_conditions = Column(String(255), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return (
            f"<AirportWeatherObservation(id={self.id}, airport_code={self.airport_code}, "
            f"report_type={self.report_type}, observation_time={self.observation_time})>"
        )


class AreaForecastPeriod(Base):
    """One forecast period for one location from one provider."""
    __tablename__ = "weather_forecasts"
    __table_args__ = (
        Index("idx_forecast_location_valid_from", "location_id", "valid_from"),
        Index("idx_forecast_fetched_active", "fetched_at", "is_active"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    location_id = Column(
        Integer, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True
    )
    source = Column(
        Enum(ForecastSource, native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
        index=True,
    )
    provider = Column(String(50), nullable=False)  # nws, openweathermap

    # Time information
    forecast_time = Column(DateTime, nullable=False)
    valid_from = Column(DateTime, nullable=False)
    valid_to = Column(DateTime, nullable=False)
    fetched_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Coordinates (denormalized from the location)
    latitude = Column(Numeric(10, 7), nullable=False)
    longitude = Column(Numeric(10, 7), nullable=False)

    forecast_data = Column(JSON, nullable=False)

    # Extracted fields
    temperature_fahrenheit = Column(Numeric(5, 2), nullable=True)
    temperature_celsius = Column(Numeric(5, 2), nullable=True)
    precipitation_probability = Column(Integer, nullable=True)
    wind_speed_mph = Column(Numeric(5, 2), nullable=True)
    wind_direction = Column(Integer, nullable=True)
    humidity = Column(Integer, nullable=True)
    weather_short_description = Column(String(255), nullable=True)
    weather_description = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return (
            f"<AreaForecastPeriod(id={self.id}, location_id={self.location_id}, "
            f"provider={self.provider}, valid_from={self.valid_from})>"
        )


class StormAdvisory(Base):
    """One advisory snapshot for one tropical system."""
    __tablename__ = "storm_advisories"
    __table_args__ = (
        Index("idx_storm_id_advisory_time", "storm_id", "advisory_time"),
        Index("idx_storm_fetched_active", "fetched_at", "is_active"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identification (storm_id is the compound basin+number+year code)
    storm_id = Column(String(50), nullable=False)
    storm_name = Column(String(100), nullable=True)
    basin = Column(String(10), nullable=False)
    storm_number = Column(Integer, nullable=False)
    year = Column(Integer, nullable=True)

    # Time information
    advisory_time = Column(DateTime, nullable=False)
    forecast_time = Column(DateTime, nullable=False)
    fetched_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Current position
    latitude = Column(Numeric(10, 7), nullable=True)
    longitude = Column(Numeric(10, 7), nullable=True)

    # Intensity
    category = Column(Integer, nullable=True)
    max_sustained_winds_knots = Column(Integer, nullable=True)
    max_sustained_winds_mph = Column(Integer, nullable=True)
    min_central_pressure_mb = Column(Integer, nullable=True)

    # Movement
    movement_direction = Column(Integer, nullable=True)
    movement_speed_knots = Column(Numeric(5, 2), nullable=True)
    movement_speed_mph = Column(Numeric(5, 2), nullable=True)

    classification = Column(String(50), nullable=True)
    intensity = Column(String(50), nullable=True)
    status = Column(String(50), nullable=True)

    forecast_data = Column(JSON, nullable=False)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return (
            f"<StormAdvisory(id={self.id}, storm_id={self.storm_id}, "
            f"category={self.category}, advisory_time={self.advisory_time})>"
        )


RECORD_MODELS = {
    RecordKind.AIRPORT_WEATHER: AirportWeatherObservation,
    RecordKind.AREA_FORECAST: AreaForecastPeriod,
    RecordKind.STORM_ADVISORY: StormAdvisory,
}

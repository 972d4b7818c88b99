"""
Location reference data.

The scheduler asks this repository which targets exist; adapters ask it to
resolve an airport code or location id. Bulk loading of reference data is
handled elsewhere; only single-row create/update live here.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from weather_ingest.core.database import get_session_factory, session_scope
from weather_ingest.core.models import Location, LocationType

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = (
    "name",
    "latitude",
    "longitude",
    "location_type",
    "airport_code",
    "state",
    "country",
    "location_metadata",
)


class LocationRepository:
    """Read and write access to the locations table."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def list_all(self) -> List[Location]:
        with self._session_factory() as session:
            return session.query(Location).order_by(Location.id).all()

    def list_airports(self) -> List[Location]:
        """Airport-typed locations that carry an airport code."""
        with self._session_factory() as session:
            return (
                session.query(Location)
                .filter(
                    Location.location_type == LocationType.AIRPORT,
                    Location.airport_code.isnot(None),
                )
                .order_by(Location.id)
                .all()
            )

    def find_by_airport_code(self, code: str) -> Optional[Location]:
        if not code:
            return None
        with self._session_factory() as session:
            return (
                session.query(Location)
                .filter(Location.airport_code == code.strip().upper())
                .first()
            )

    def get(self, location_id: int) -> Optional[Location]:
        with self._session_factory() as session:
            return session.get(Location, location_id)

    def count_airports(self) -> int:
        with self._session_factory() as session:
            return (
                session.query(Location)
                .filter(Location.location_type == LocationType.AIRPORT)
                .count()
            )

    def create(
        self,
        name: str,
        latitude: Decimal,
        longitude: Decimal,
        location_type: LocationType,
        airport_code: Optional[str] = None,
        state: Optional[str] = None,
        country: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Location:
        """
        Create a location.

        Raises:
            ValueError: If an airport location has no airport code
            PersistenceFailure: If the insert fails (e.g., duplicate code)
        """
        location = Location(
            name=name,
            latitude=latitude,
            longitude=longitude,
            location_type=LocationType(location_type),
            airport_code=airport_code,
            state=state,
            country=country,
            location_metadata=metadata,
        )
        location.validate()

        with session_scope(self._session_factory, source="locations") as session:
            session.add(location)
            session.flush()
            session.refresh(location)
            session.expunge(location)

        logger.info(f"Created location {location.id} ({location.name})")
        return location

    def update(self, location_id: int, **fields: Any) -> Optional[Location]:
        """
        Update selected fields of a location.

        Returns:
            The updated Location, or None when it does not exist
        """
        unknown = set(fields) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update location fields: {sorted(unknown)}")

        with session_scope(self._session_factory, source="locations") as session:
            location = session.get(Location, location_id)
            if location is None:
                logger.warning(f"Location {location_id} not found for update")
                return None

            for key, value in fields.items():
                if key == "location_type" and value is not None:
                    value = LocationType(value)
                setattr(location, key, value)
            location.validate()

            session.flush()
            session.refresh(location)
            session.expunge(location)

        return location

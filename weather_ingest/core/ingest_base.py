"""
Base ingestion class shared by all source adapters.

Provides reusable logic for:
- Per-record parsing with partial-failure tolerance
- One transactional append per adapter invocation
- A uniform result shape for the scheduler's tick summaries
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Tuple

from weather_ingest.core.api_errors import ParseFailure, TargetNotFound
from weather_ingest.core.database import get_session_factory, session_scope
from weather_ingest.core.locations import LocationRepository
from weather_ingest.core.models import Base, Location
from weather_ingest.core.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of one adapter invocation against one target."""

    source: str
    target: Optional[str] = None
    appended: int = 0
    parse_failures: int = 0
    dropped: int = 0
    target_found: bool = True


@dataclass
class ParsedBatch:
    """Records parsed from one payload plus what was thrown away."""

    records: List[Base]
    parse_failures: int = 0
    dropped: int = 0


class BaseSourceIngestor(ABC):
    """
    Base class for all source adapters.

    Subclasses:
    - Set SOURCE_NAME
    - Implement fetch_and_store(target), which fetches a payload through the
      client, runs parse_items() over it and hands the records to store()
    """

    SOURCE_NAME: str = "unknown"

    def __init__(
        self,
        client: Any,
        locations: Optional[LocationRepository] = None,
        record_store: Optional[RecordStore] = None,
        session_factory=None,
    ):
        """
        Args:
            client: Fetch collaborator for this feed
            locations: Reference-data repository
            record_store: Persistence collaborator
            session_factory: SQLAlchemy session factory (defaults to the shared one)
        """
        self.client = client
        self.session_factory = session_factory or get_session_factory()
        self.locations = locations or LocationRepository(self.session_factory)
        self.record_store = record_store or RecordStore()

    @abstractmethod
    async def fetch_and_store(self, target: Any) -> IngestResult:
        """Fetch, parse, normalize and append records for one target."""

    def parse_items(
        self,
        items: Iterable[Any],
        parse_one: Callable[[Any], Optional[Base]],
    ) -> ParsedBatch:
        """
        Parse each item independently.

        ``parse_one`` returns a record, returns None for an item that carries
        nothing identifying a target (dropped quietly), or raises ParseFailure
        for an item whose required fields are unusable (counted, skipped).
        Type and arithmetic errors from a malformed item are counted the same
        way so one bad value never costs the rest of the payload.
        """
        batch = ParsedBatch(records=[])

        for index, item in enumerate(items):
            try:
                record = parse_one(item)
            except ParseFailure as e:
                batch.parse_failures += 1
                logger.warning(f"[{self.SOURCE_NAME}] Skipping record {index}: {e}")
                continue
            except (TypeError, ValueError, AttributeError, KeyError, ArithmeticError) as e:
                # ArithmeticError covers decimal.InvalidOperation on out-of-range values
                batch.parse_failures += 1
                logger.warning(
                    f"[{self.SOURCE_NAME}] Skipping malformed record {index}: {e}"
                )
                continue

            if record is None:
                batch.dropped += 1
                logger.debug(
                    f"[{self.SOURCE_NAME}] Dropped record {index} without target information"
                )
                continue

            batch.records.append(record)

        return batch

    def store(self, records: List[Base]) -> int:
        """
        Append records in one transaction.

        Raises:
            PersistenceFailure: If the commit fails; nothing is kept
        """
        if not records:
            return 0

        with session_scope(self.session_factory, source=self.SOURCE_NAME) as session:
            return self.record_store.append_batch(session, records)

    def _result(self, target: Any, batch: ParsedBatch, appended: int) -> IngestResult:
        return IngestResult(
            source=self.SOURCE_NAME,
            target=None if target is None else str(target),
            appended=appended,
            parse_failures=batch.parse_failures,
            dropped=batch.dropped,
        )

    def resolve_location(self, location_id: int) -> Location:
        """
        Raises:
            TargetNotFound: If no location has this id
        """
        location = self.locations.get(location_id)
        if location is None:
            raise TargetNotFound(location_id, source=self.SOURCE_NAME)
        return location

    def resolve_airport(self, airport_code: str) -> Location:
        """
        Raises:
            TargetNotFound: If no location carries this airport code
        """
        location = self.locations.find_by_airport_code(airport_code)
        if location is None:
            raise TargetNotFound(airport_code, source=self.SOURCE_NAME)
        return location

    def _not_found(self, error: TargetNotFound) -> IngestResult:
        logger.warning(f"[{self.SOURCE_NAME}] {error}")
        return IngestResult(
            source=self.SOURCE_NAME,
            target=str(error.target),
            target_found=False,
        )


def split_batches(*batches: ParsedBatch) -> Tuple[List[Base], int, int]:
    """Concatenate several parsed batches into one record list and counts."""
    records: List[Base] = []
    failures = 0
    dropped = 0
    for batch in batches:
        records.extend(batch.records)
        failures += batch.parse_failures
        dropped += batch.dropped
    return records, failures, dropped

"""
Two-tier retention for canonical records.

deactivate() retires rows by flipping is_active; purge() hard-deletes them.
Both select on fetched_at strictly before the cutoff and are idempotent:
a second run with the same cutoff changes nothing. Each kind is swept in
its own transaction.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from weather_ingest.core.database import session_scope
from weather_ingest.core.models import RecordKind
from weather_ingest.core.record_store import RecordStore

logger = logging.getLogger(__name__)


def retention_cutoff(days: int, now: Optional[datetime] = None) -> datetime:
    """The fetch time before which records count as aged out."""
    return (now or datetime.utcnow()) - timedelta(days=days)


class RetentionManager:
    """Retire or remove records older than a cutoff."""

    def __init__(self, session_factory=None, record_store: Optional[RecordStore] = None):
        self.session_factory = session_factory
        self.record_store = record_store or RecordStore()

    def deactivate(self, kind: RecordKind, older_than: datetime) -> int:
        kind = RecordKind(kind)
        with session_scope(self.session_factory, source="retention") as session:
            count = self.record_store.deactivate_older_than(session, kind, older_than)
        logger.info(f"Deactivated {count} {kind.value} records fetched before {older_than}")
        return count

    def purge(self, kind: RecordKind, older_than: datetime) -> int:
        kind = RecordKind(kind)
        with session_scope(self.session_factory, source="retention") as session:
            count = self.record_store.delete_older_than(session, kind, older_than)
        logger.info(f"Purged {count} {kind.value} records fetched before {older_than}")
        return count

    def deactivate_all(self, older_than: datetime) -> Dict[str, int]:
        """Deactivate every record kind with one shared cutoff."""
        return {kind.value: self.deactivate(kind, older_than) for kind in RecordKind}

    def purge_all(self, older_than: datetime) -> Dict[str, int]:
        """Hard-delete every record kind with one shared cutoff."""
        return {kind.value: self.purge(kind, older_than) for kind in RecordKind}

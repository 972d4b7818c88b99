"""
Persistence for canonical records.

All writes run inside the caller's session so that one adapter invocation
(or one retention sweep of one kind) is one transaction.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from weather_ingest.core.models import Base, RECORD_MODELS, RecordKind

logger = logging.getLogger(__name__)


class RecordStore:
    """Append, retire and delete canonical records."""

    def append_batch(self, session: Session, records: Iterable[Base]) -> int:
        """Stage records for insert; the surrounding scope commits."""
        records = list(records)
        if records:
            session.add_all(records)
            session.flush()
        return len(records)

    def deactivate_older_than(
        self, session: Session, kind: RecordKind, older_than: datetime
    ) -> int:
        """Flip is_active off for active rows fetched before ``older_than``."""
        model = RECORD_MODELS[RecordKind(kind)]
        result = session.execute(
            update(model)
            .where(model.fetched_at < older_than, model.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def delete_older_than(
        self, session: Session, kind: RecordKind, older_than: datetime
    ) -> int:
        """Hard-delete rows fetched before ``older_than``, active or not."""
        model = RECORD_MODELS[RecordKind(kind)]
        result = session.execute(
            delete(model)
            .where(model.fetched_at < older_than)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def count_by_kind(self, session: Session) -> Dict[str, Dict[str, int]]:
        """Total and active row counts for every record kind."""
        counts = {}
        for kind, model in RECORD_MODELS.items():
            total = session.scalar(select(func.count()).select_from(model)) or 0
            active = session.scalar(
                select(func.count()).select_from(model).where(model.is_active.is_(True))
            ) or 0
            counts[kind.value] = {"total": total, "active": active}
        return counts

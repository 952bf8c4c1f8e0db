"""
Ingestion log bookkeeping for sync jobs.

Each job run writes one ingestion_log row with its record counts and
final status.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List

from ..data.db import Database, IngestionLog

logger = logging.getLogger(__name__)


@dataclass
class SyncContext:
    """Counters collected while a job runs."""

    source: str
    entity_type: str
    started_at: datetime = field(default_factory=datetime.utcnow)
    records_processed: int = 0
    records_inserted: int = 0
    records_updated: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        if not self.errors:
            return "success"
        if self.records_inserted or self.records_updated:
            return "partial"
        return "failure"


def _write_log(db: Database, context: SyncContext) -> None:
    session = db.get_session()

    try:
        session.add(IngestionLog(
            source=context.source,
            entity_type=context.entity_type,
            status=context.status,
            records_processed=context.records_processed,
            records_inserted=context.records_inserted,
            records_updated=context.records_updated,
            error_message="; ".join(context.errors[:20]) or None,
            started_at=context.started_at,
            completed_at=datetime.utcnow()
        ))
        session.commit()

    except Exception as e:
        session.rollback()
        logger.error(f"Error writing ingestion log for {context.entity_type}: {e}")
        raise
    finally:
        session.close()


@contextmanager
def track_sync(db: Database, source: str, entity_type: str) -> Iterator[SyncContext]:
    """
    Record a job run in the ingestion log.

    A job that raises is logged as a failure and the exception propagates.

    Args:
        db: Database holding the ingestion_log table
        source: Data source name (e.g. football-data.co.uk, pitchside)
        entity_type: What the job syncs (fixtures, predictions, ...)

    Yields:
        SyncContext to update with counts and recoverable errors
    """
    context = SyncContext(source=source, entity_type=entity_type)
    logger.info(f"[{entity_type}] Starting sync from {source}")

    try:
        yield context
    except Exception as e:
        context.errors.append(str(e))
        context.records_inserted = context.records_updated = 0
        _write_log(db, context)
        logger.error(f"[{entity_type}] Sync failed: {e}")
        raise

    _write_log(db, context)
    logger.info(
        f"[{entity_type}] Sync {context.status}: processed={context.records_processed}, "
        f"inserted={context.records_inserted}, updated={context.records_updated}, "
        f"errors={len(context.errors)}"
    )

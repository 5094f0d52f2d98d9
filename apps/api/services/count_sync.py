"""
Count synchronizer: re-resolve every stored segment and reconcile cached counts.

The population is read once per pass and segments are resolved concurrently
on a bounded pool. Writes happen afterwards on the calling thread, and only
for segments whose count drifted. A segment that fails to resolve keeps its
cached data and is reported; the rest of the pass still completes.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from apps.api.config import get_settings
from apps.api.models import Segment
from apps.api.services.segment_resolver import SegmentResolver
from packages.shared.criteria import validate_conditions
from packages.shared.exceptions import SegmentationError

logger = structlog.get_logger(__name__)


@dataclass
class SegmentSyncFailure:
    """A segment that could not be resolved during a sync."""

    segment_id: str
    name: str
    error: str

    def to_dict(self) -> Dict[str, str]:
        return {"segment_id": self.segment_id, "name": self.name, "error": self.error}


@dataclass
class SyncReport:
    """Outcome of one synchronization pass."""

    updated: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    failed: List[SegmentSyncFailure] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None

    @property
    def total(self) -> int:
        return len(self.updated) + len(self.unchanged) + len(self.failed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "failed": [failure.to_dict() for failure in self.failed],
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class CountSynchronizer:
    """Reconciles every segment's cached_count with a live resolution."""

    def __init__(self, db: Session, resolver: SegmentResolver, max_workers: Optional[int] = None):
        """
        Initialize synchronizer.

        Args:
            db: Database session used to read and update segments
            resolver: Resolver shared by all segments of the pass
            max_workers: Maximum segments resolved at once
        """
        self.db = db
        self.resolver = resolver
        if max_workers is None:
            max_workers = get_settings().segment_sync_max_workers
        self.max_workers = max(1, max_workers)

    def sync_all(self) -> SyncReport:
        """Run one pass over all stored segments."""
        report = SyncReport()
        segments = self.db.query(Segment).order_by(Segment.created_at).all()
        if not segments:
            report.finished_at = datetime.utcnow()
            return report

        logger.info("Starting segment count sync", segments=len(segments))

        try:
            population = self.resolver.fetch_population()
        except SegmentationError as e:
            logger.error("Segment count sync aborted: population unavailable", error=e.message)
            for segment in segments:
                report.failed.append(SegmentSyncFailure(str(segment.id), segment.name, e.message))
            report.finished_at = datetime.utcnow()
            return report

        # Plain snapshots of the definitions; ORM instances stay on this thread
        definitions = [(segment.id, segment.name, segment.criteria) for segment in segments]

        def recount(definition: tuple) -> tuple:
            segment_id, name, criteria = definition
            try:
                matched = self.resolver.resolve(validate_conditions(criteria), population)
                return segment_id, len(matched), None
            except Exception as e:
                logger.warning("Segment recount failed", segment_id=str(segment_id), name=name, error=str(e))
                return segment_id, None, str(e)

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(definitions))) as executor:
            outcomes = list(executor.map(recount, definitions))

        by_id = {segment.id: segment for segment in segments}
        now = datetime.utcnow()
        for segment_id, count, error in outcomes:
            segment = by_id[segment_id]
            if error is not None:
                report.failed.append(SegmentSyncFailure(str(segment_id), segment.name, error))
            elif count != segment.cached_count:
                segment.cached_count = count
                segment.last_calculated_at = now
                report.updated.append(str(segment_id))
            else:
                report.unchanged.append(str(segment_id))

        if report.updated:
            self.db.commit()

        report.finished_at = datetime.utcnow()
        logger.info(
            "Segment count sync complete",
            updated=len(report.updated),
            unchanged=len(report.unchanged),
            failed=len(report.failed),
        )
        return report

"""Celery task for reconciling cached segment counts."""

import logging
from datetime import datetime

from apps.worker.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="sync_segment_counts", bind=True)
def sync_segment_counts(self):
    """
    Re-resolve every stored segment and write back the counts that drifted.

    Individual segment failures are part of the returned report. Only a
    failure of the pass itself (e.g. the database is down) triggers a retry.

    Returns:
        Dictionary with the sync report
    """
    try:
        logger.info("Starting segment count sync...")
        start_time = datetime.utcnow()

        # Import here to avoid circular imports
        from apps.api.database import get_db_context
        from apps.api.services.count_sync import CountSynchronizer
        from apps.api.services.record_source import SQLRecordSource
        from apps.api.services.segment_resolver import SegmentResolver

        with get_db_context() as db:
            resolver = SegmentResolver(SQLRecordSource(db))
            report = CountSynchronizer(db, resolver).sync_all()

        duration = (datetime.utcnow() - start_time).total_seconds()
        logger.info(
            f"Segment count sync completed in {duration:.2f}s: "
            f"{len(report.updated)} updated, {len(report.unchanged)} unchanged, "
            f"{len(report.failed)} failed"
        )

        return {"status": "success", "duration_seconds": duration, **report.to_dict()}

    except Exception as e:
        logger.error(f"Segment count sync failed: {e}", exc_info=True)
        raise self.retry(exc=e, countdown=300, max_retries=3)  # Retry after 5 min, max 3 times

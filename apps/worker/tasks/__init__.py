"""Worker tasks package."""

from apps.worker.tasks.segments import sync_segment_counts

__all__ = [
    'sync_segment_counts',
]

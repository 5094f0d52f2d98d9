"""Celery application for background tasks."""

from celery import Celery
from celery.schedules import crontab

from apps.api.config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    "backoffice_segments",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # A sync pass holds the whole population in memory; one at a time per worker
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_track_started=True,
)

# Count sync is operator-triggered; the nightly run is opt-in
celery_app.conf.beat_schedule = {}
if settings.segment_sync_schedule_enabled:
    celery_app.conf.beat_schedule['nightly-segment-count-sync'] = {
        'task': 'sync_segment_counts',
        'schedule': crontab(hour=settings.segment_sync_cron_hour, minute=0),
        'options': {
            'expires': 3600,  # Task expires after 1 hour if not picked up
        },
    }

# Auto-discover tasks
celery_app.autodiscover_tasks(["apps.worker.tasks"])

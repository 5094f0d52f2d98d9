"""Admin endpoints for configuration."""

from fastapi import APIRouter
from pydantic import BaseModel

from apps.api.config import get_settings

router = APIRouter()


class ConfigResponse(BaseModel):
    """Segmentation engine configuration."""

    engagement_thresholds: dict
    active_window_days: int
    location_tie_break: str
    stale_after_minutes: int
    sync_max_workers: int
    sync_schedule_enabled: bool


@router.get("/config", response_model=ConfigResponse)
async def get_config():
    """
    Get current segmentation configuration.

    Returns:
        Engagement thresholds, tie-break rule and cache/sync settings
    """
    settings = get_settings()

    return ConfigResponse(
        engagement_thresholds=settings.engagement_thresholds,
        active_window_days=settings.segment_active_window_days,
        location_tie_break=settings.segment_location_tie_break,
        stale_after_minutes=settings.segment_stale_after_minutes,
        sync_max_workers=settings.segment_sync_max_workers,
        sync_schedule_enabled=settings.segment_sync_schedule_enabled,
    )

"""Customer segment endpoints."""

from typing import List, Optional, Union

import structlog
from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from apps.api.config import get_settings
from apps.api.database import get_db
from apps.api.models import Segment, SegmentSnapshot
from apps.api.services.count_sync import CountSynchronizer
from apps.api.services.export import (
    build_campaign_audience,
    export_filename,
    export_segment_csv,
    extract_emails,
)
from apps.api.services.record_source import RecordSource, SQLRecordSource
from apps.api.services.segment_resolver import SegmentResolver
from apps.api.services.segments import SegmentService
from packages.shared.criteria import field_catalog

logger = structlog.get_logger()
router = APIRouter()


# ----------------------------------------------------------------------
# Dependencies
# ----------------------------------------------------------------------


def get_record_source(db: Session = Depends(get_db)) -> RecordSource:
    """Record source for the current request."""
    return SQLRecordSource(db)


def get_resolver(source: RecordSource = Depends(get_record_source)) -> SegmentResolver:
    return SegmentResolver(source)


def get_segment_service(
    db: Session = Depends(get_db), resolver: SegmentResolver = Depends(get_resolver)
) -> SegmentService:
    return SegmentService(db, resolver)


# ----------------------------------------------------------------------
# Schemas
# ----------------------------------------------------------------------


class ConditionSchema(BaseModel):
    """One (field, operator, value) clause; values are stored as strings."""

    field: str
    operator: str
    value: Union[str, int, float] = ""


class SegmentRequest(BaseModel):
    """Create/update payload."""

    name: str
    conditions: List[ConditionSchema]
    expected_version: Optional[int] = Field(
        default=None, description="Reject the update if the segment changed since this version"
    )


class PreviewRequest(BaseModel):
    """Ad-hoc evaluation of a condition list."""

    conditions: List[ConditionSchema]
    limit: Optional[int] = Field(default=None, ge=0, le=1000)


class SegmentResponse(BaseModel):
    """Segment definition with its advisory count."""

    id: str
    name: str
    conditions: List[ConditionSchema]
    cached_count: int
    last_calculated_at: Optional[str]
    is_stale: bool
    version: int
    created_at: str
    updated_at: str


class StatsResponse(BaseModel):
    """Aggregate statistics of a matched set."""

    customer_count: int
    average_value: float
    top_location: str
    top_location_share: int
    engagement_rate: float
    engagement_tier: str


class SegmentCustomersResponse(BaseModel):
    """Live matched customers of a segment."""

    segment_id: str
    count: int
    customers: List[dict]


class PreviewResponse(BaseModel):
    """Result of an ad-hoc evaluation."""

    count: int
    stats: StatsResponse
    customers: List[dict]


class SnapshotResponse(BaseModel):
    """Stored statistics snapshot."""

    id: str
    segment_id: str
    captured_at: str
    customer_count: int
    average_value: float
    top_location: str
    top_location_share: int
    engagement_tier: Optional[str]


class EmailListResponse(BaseModel):
    """Email list for copy/paste distribution."""

    count: int
    emails: List[str]
    joined: str


def _segment_response(segment: Segment, service: SegmentService) -> SegmentResponse:
    return SegmentResponse(
        id=str(segment.id),
        name=segment.name,
        conditions=[ConditionSchema(**condition) for condition in segment.criteria or []],
        cached_count=segment.cached_count,
        last_calculated_at=segment.last_calculated_at.isoformat() if segment.last_calculated_at else None,
        is_stale=service.is_stale(segment),
        version=segment.version,
        created_at=segment.created_at.isoformat(),
        updated_at=segment.updated_at.isoformat(),
    )


def _snapshot_response(snapshot: SegmentSnapshot) -> SnapshotResponse:
    return SnapshotResponse(
        id=str(snapshot.id),
        segment_id=str(snapshot.segment_id),
        captured_at=snapshot.captured_at.isoformat(),
        customer_count=snapshot.customer_count,
        average_value=snapshot.average_value,
        top_location=snapshot.top_location,
        top_location_share=snapshot.top_location_share,
        engagement_tier=snapshot.engagement_tier,
    )


# ----------------------------------------------------------------------
# Definitions
# ----------------------------------------------------------------------


@router.get("", response_model=List[SegmentResponse])
async def list_segments(service: SegmentService = Depends(get_segment_service)):
    """
    List segments, newest first.

    Counts are cached values; `is_stale` marks the ones that may be outdated.
    """
    segments = service.list_segments()
    logger.info("Listed segments", count=len(segments))
    return [_segment_response(segment, service) for segment in segments]


@router.post("", response_model=SegmentResponse, status_code=201)
async def create_segment(request: SegmentRequest, service: SegmentService = Depends(get_segment_service)):
    """Create a segment; its count is computed before it is saved."""
    segment = service.create_segment(
        request.name, [condition.model_dump() for condition in request.conditions]
    )
    return _segment_response(segment, service)


@router.get("/fields")
async def list_fields():
    """Filterable fields with their types and allowed operators."""
    return {"fields": field_catalog()}


@router.post("/preview", response_model=PreviewResponse)
async def preview_segment(request: PreviewRequest, service: SegmentService = Depends(get_segment_service)):
    """
    Evaluate a draft condition list without saving it.

    Unknown fields are not rejected here; they simply match nobody.
    """
    profiles = service.resolver.resolve([condition.model_dump() for condition in request.conditions])
    limit = request.limit if request.limit is not None else get_settings().segment_preview_limit
    stats = service.compute_stats(profiles)
    return PreviewResponse(
        count=len(profiles),
        stats=StatsResponse(**stats.to_dict()),
        customers=[profile.to_dict() for profile in profiles[:limit]],
    )


@router.post("/sync")
async def sync_segment_counts(
    db: Session = Depends(get_db), resolver: SegmentResolver = Depends(get_resolver)
):
    """Re-resolve every segment and update the cached counts that drifted."""
    report = CountSynchronizer(db, resolver).sync_all()
    return report.to_dict()


@router.get("/{segment_id}", response_model=SegmentResponse)
async def get_segment(segment_id: str, service: SegmentService = Depends(get_segment_service)):
    return _segment_response(service.get_segment(segment_id), service)


@router.put("/{segment_id}", response_model=SegmentResponse)
async def update_segment(
    segment_id: str, request: SegmentRequest, service: SegmentService = Depends(get_segment_service)
):
    """Replace a segment's name and conditions; the count is recomputed."""
    segment = service.update_segment(
        segment_id,
        request.name,
        [condition.model_dump() for condition in request.conditions],
        expected_version=request.expected_version,
    )
    return _segment_response(segment, service)


@router.delete("/{segment_id}", status_code=204)
async def delete_segment(segment_id: str, service: SegmentService = Depends(get_segment_service)):
    """Delete a segment. Its snapshots remain available."""
    service.delete_segment(segment_id)
    return Response(status_code=204)


# ----------------------------------------------------------------------
# Members, statistics and distribution
# ----------------------------------------------------------------------


@router.get("/{segment_id}/customers", response_model=SegmentCustomersResponse)
async def get_segment_customers(
    segment_id: str,
    limit: Optional[int] = Query(None, ge=0, description="Maximum customers to return"),
    service: SegmentService = Depends(get_segment_service),
):
    """Live matched customers, with computed profile fields merged in."""
    segment, profiles = service.resolve_members(segment_id)
    shown = profiles if limit is None else profiles[:limit]
    return SegmentCustomersResponse(
        segment_id=str(segment.id),
        count=len(profiles),
        customers=[profile.to_dict() for profile in shown],
    )


@router.get("/{segment_id}/stats", response_model=StatsResponse)
async def get_segment_stats(segment_id: str, service: SegmentService = Depends(get_segment_service)):
    """Live statistics for a segment."""
    _, profiles = service.resolve_members(segment_id)
    return StatsResponse(**service.compute_stats(profiles).to_dict())


@router.get("/{segment_id}/export.csv")
async def export_segment(segment_id: str, service: SegmentService = Depends(get_segment_service)):
    """Download the matched customers as CSV."""
    segment, profiles = service.resolve_members(segment_id)
    logger.info("Exporting segment", segment_id=str(segment.id), count=len(profiles))
    return Response(
        content=export_segment_csv(profiles),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(segment.name)}"'},
    )


@router.get("/{segment_id}/emails", response_model=EmailListResponse)
async def get_segment_emails(segment_id: str, service: SegmentService = Depends(get_segment_service)):
    """Email addresses of the matched customers."""
    _, profiles = service.resolve_members(segment_id)
    emails = extract_emails(profiles)
    return EmailListResponse(count=len(emails), emails=emails, joined=", ".join(emails))


@router.post("/{segment_id}/campaign")
async def start_campaign(segment_id: str, service: SegmentService = Depends(get_segment_service)):
    """Hand the matched audience over to the campaign tool."""
    segment, profiles = service.resolve_members(segment_id)
    audience = build_campaign_audience(segment.id, segment.name, profiles)
    logger.info(
        "Campaign audience prepared",
        segment_id=str(segment.id),
        recipients=audience["recipient_count"],
    )
    return audience


# ----------------------------------------------------------------------
# Snapshots
# ----------------------------------------------------------------------


@router.post("/{segment_id}/snapshots", response_model=SnapshotResponse, status_code=201)
async def create_snapshot(segment_id: str, service: SegmentService = Depends(get_segment_service)):
    """Capture the segment's current statistics."""
    return _snapshot_response(service.take_snapshot(segment_id))


@router.get("/{segment_id}/snapshots", response_model=List[SnapshotResponse])
async def list_snapshots(segment_id: str, service: SegmentService = Depends(get_segment_service)):
    """Snapshot history, newest first (also for deleted segments)."""
    return [_snapshot_response(snapshot) for snapshot in service.list_snapshots(segment_id)]

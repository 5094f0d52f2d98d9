"""Segment store: CRUD over segment definitions and their snapshot history."""

from datetime import datetime, timedelta
from typing import Any, Iterable, List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy.orm import Session

from apps.api.config import Settings, get_settings
from apps.api.models import Segment, SegmentSnapshot
from apps.api.services.segment_resolver import SegmentResolver
from packages.shared.criteria import validate_conditions
from packages.shared.exceptions import InvalidSegment, SegmentNotFound, SegmentVersionConflict
from packages.shared.profiles import ComputedProfile
from packages.shared.segment_stats import (
    EngagementThresholds,
    LocationTieBreak,
    SegmentStats,
    analyze_segment,
)

logger = structlog.get_logger(__name__)


def coerce_segment_id(segment_id: Any) -> UUID:
    """Parse a segment id; malformed ids are reported as not found."""
    if isinstance(segment_id, UUID):
        return segment_id
    try:
        return UUID(str(segment_id))
    except ValueError:
        raise SegmentNotFound(segment_id)


class SegmentService:
    """
    Owns segment definitions.

    Create and update resolve the criteria synchronously so a freshly saved
    segment carries a current cached_count. Outside of that, cached_count is
    advisory: anything needing an authoritative count must go through the
    resolver.
    """

    def __init__(self, db: Session, resolver: SegmentResolver, settings: Optional[Settings] = None):
        """
        Initialize segment service.

        Args:
            db: Database session
            resolver: Resolver used for synchronous recounts and member lookups
            settings: Engine configuration (defaults to application settings)
        """
        self.db = db
        self.resolver = resolver
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def list_segments(self) -> List[Segment]:
        """All segments, newest first."""
        return self.db.query(Segment).order_by(Segment.created_at.desc()).all()

    def get_segment(self, segment_id: Any) -> Segment:
        segment = self.db.query(Segment).filter(Segment.id == coerce_segment_id(segment_id)).first()
        if segment is None:
            raise SegmentNotFound(segment_id)
        return segment

    def create_segment(self, name: str, conditions: Iterable[Any]) -> Segment:
        """
        Validate, count and persist a new segment.

        Raises:
            InvalidSegment: If the name is blank
            InvalidCondition: If the conditions are empty or malformed
            SourceUnavailable: If the population cannot be read (nothing is saved)
        """
        name = self._validate_name(name)
        parsed = validate_conditions(conditions)
        count = self.resolver.count(parsed)

        segment = Segment(
            name=name,
            criteria=[condition.to_dict() for condition in parsed],
            cached_count=count,
            last_calculated_at=datetime.utcnow(),
            version=1,
        )
        self.db.add(segment)
        self.db.commit()
        self.db.refresh(segment)

        logger.info("Segment created", segment_id=str(segment.id), name=name, cached_count=count)
        return segment

    def update_segment(
        self,
        segment_id: Any,
        name: str,
        conditions: Iterable[Any],
        expected_version: Optional[int] = None,
    ) -> Segment:
        """
        Replace a segment's name and conditions and recount it.

        Concurrent edits are last-write-wins unless the caller passes the
        version it last read.

        Raises:
            SegmentNotFound: If the segment does not exist
            SegmentVersionConflict: If expected_version is stale
            InvalidSegment / InvalidCondition: If the new definition is invalid
        """
        segment = self.get_segment(segment_id)
        if expected_version is not None and expected_version != segment.version:
            raise SegmentVersionConflict(segment.id, expected_version, segment.version)

        name = self._validate_name(name)
        parsed = validate_conditions(conditions)
        count = self.resolver.count(parsed)

        segment.name = name
        segment.criteria = [condition.to_dict() for condition in parsed]
        segment.cached_count = count
        segment.last_calculated_at = datetime.utcnow()
        segment.version = (segment.version or 0) + 1
        self.db.commit()
        self.db.refresh(segment)

        logger.info(
            "Segment updated",
            segment_id=str(segment.id),
            version=segment.version,
            cached_count=count,
        )
        return segment

    def delete_segment(self, segment_id: Any) -> None:
        """Hard delete. Snapshots are kept as history."""
        segment = self.get_segment(segment_id)
        self.db.delete(segment)
        self.db.commit()
        logger.info("Segment deleted", segment_id=str(segment_id))

    def is_stale(self, segment: Segment, now: Optional[datetime] = None) -> bool:
        """Whether the cached count is old enough to be flagged as possibly outdated."""
        if segment.last_calculated_at is None:
            return True
        now = now or datetime.utcnow()
        max_age = timedelta(minutes=self.settings.segment_stale_after_minutes)
        return now - segment.last_calculated_at > max_age

    # ------------------------------------------------------------------
    # Members and statistics
    # ------------------------------------------------------------------

    def resolve_members(self, segment_id: Any) -> Tuple[Segment, List[ComputedProfile]]:
        """Live matched set for a stored segment."""
        segment = self.get_segment(segment_id)
        return segment, self.resolver.resolve_segment(segment)

    def compute_stats(
        self, profiles: List[ComputedProfile], now: Optional[datetime] = None
    ) -> SegmentStats:
        """Aggregate statistics using the configured thresholds and tie-break."""
        thresholds = EngagementThresholds(
            high=self.settings.segment_high_engagement_threshold,
            medium=self.settings.segment_medium_engagement_threshold,
            window_days=self.settings.segment_active_window_days,
        )
        return analyze_segment(
            profiles,
            now=now,
            tie_break=LocationTieBreak(self.settings.segment_location_tie_break),
            thresholds=thresholds,
        )

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def create_snapshot(self, segment_id: Any, stats: SegmentStats) -> SegmentSnapshot:
        """Append a snapshot of already computed statistics."""
        snapshot = SegmentSnapshot(
            segment_id=coerce_segment_id(segment_id),
            captured_at=datetime.utcnow(),
            customer_count=stats.customer_count,
            average_value=stats.average_value,
            top_location=stats.top_location,
            top_location_share=stats.top_location_share,
            engagement_tier=stats.engagement_tier.value,
        )
        self.db.add(snapshot)
        self.db.commit()
        self.db.refresh(snapshot)

        logger.info(
            "Segment snapshot captured",
            segment_id=str(snapshot.segment_id),
            customer_count=snapshot.customer_count,
        )
        return snapshot

    def take_snapshot(self, segment_id: Any) -> SegmentSnapshot:
        """Resolve a live segment, analyze it and record the result."""
        segment, profiles = self.resolve_members(segment_id)
        return self.create_snapshot(segment.id, self.compute_stats(profiles))

    def list_snapshots(self, segment_id: Any) -> List[SegmentSnapshot]:
        """Snapshot history, newest first. Works for deleted segments too."""
        return (
            self.db.query(SegmentSnapshot)
            .filter(SegmentSnapshot.segment_id == coerce_segment_id(segment_id))
            .order_by(SegmentSnapshot.captured_at.desc())
            .all()
        )

    @staticmethod
    def _validate_name(name: Optional[str]) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise InvalidSegment("Segment name required")
        return cleaned

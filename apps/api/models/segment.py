"""Segment models - saved customer filters and their statistics history."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String
from sqlalchemy.dialects.postgresql import UUID

from apps.api.database import Base


class Segment(Base):
    """Named, reusable filter over the customer population."""

    __tablename__ = "customer_segments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    criteria = Column(JSON, nullable=False, default=list)  # [{"field", "operator", "value"}, ...]

    # Advisory cache, reconciled by the count synchronizer
    cached_count = Column(Integer, nullable=False, default=0)
    last_calculated_at = Column(DateTime, nullable=True)

    version = Column(Integer, nullable=False, default=1)  # Bumped on every edit
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Segment(id={self.id}, name={self.name}, cached_count={self.cached_count})>"


class SegmentSnapshot(Base):
    """Immutable point-in-time capture of a segment's statistics."""

    __tablename__ = "customer_segment_snapshots"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    # No foreign key: snapshots outlive the segment they were taken from
    segment_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    captured_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    customer_count = Column(Integer, nullable=False, default=0)
    average_value = Column(Float, nullable=False, default=0.0)
    top_location = Column(String(255), nullable=False)
    top_location_share = Column(Integer, nullable=False, default=0)  # Percent, 0-100
    engagement_tier = Column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<SegmentSnapshot(segment_id={self.segment_id}, customer_count={self.customer_count})>"

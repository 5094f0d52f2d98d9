"""
Exception hierarchy for the segmentation engine.

Enrichment and evaluation never raise on malformed customer data; these
errors cover unreadable sources, rejected definitions and missing segments.
"""

from typing import Any, Dict, Optional


class SegmentationError(Exception):
    """Base exception for all segmentation errors."""

    error_code = "SEGMENTATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class SourceUnavailable(SegmentationError):
    """Raised when the record source cannot be read. No partial results are returned."""

    error_code = "SOURCE_UNAVAILABLE"


class InvalidCondition(SegmentationError):
    """Raised when a condition uses an unknown field or an operator its field does not allow."""

    error_code = "INVALID_CONDITION"


class InvalidSegment(SegmentationError):
    """Raised when a segment definition is malformed (e.g. blank name)."""

    error_code = "INVALID_SEGMENT"


class SegmentNotFound(SegmentationError):
    """Raised when a segment id does not exist."""

    error_code = "SEGMENT_NOT_FOUND"

    def __init__(self, segment_id: Any):
        super().__init__(f"Segment not found: {segment_id}", {"segment_id": str(segment_id)})


class SegmentVersionConflict(SegmentationError):
    """Raised when an update carries a version that is no longer current."""

    error_code = "SEGMENT_VERSION_CONFLICT"

    def __init__(self, segment_id: Any, expected_version: int, current_version: int):
        super().__init__(
            f"Segment {segment_id} was modified (expected version {expected_version}, "
            f"current version {current_version})",
            {
                "segment_id": str(segment_id),
                "expected_version": expected_version,
                "current_version": current_version,
            },
        )

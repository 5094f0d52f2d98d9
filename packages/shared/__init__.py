"""Shared segmentation engine: profiles, criteria and statistics."""

from packages.shared.criteria import (
    Condition,
    FieldKey,
    FieldType,
    Operator,
    evaluate_condition,
    matches_all,
    parse_conditions,
    validate_conditions,
)
from packages.shared.profiles import ComputedProfile, CustomerRecord, OrderRecord, enrich_customer
from packages.shared.segment_stats import (
    EngagementThresholds,
    EngagementTier,
    LocationTieBreak,
    SegmentStats,
    analyze_segment,
)

__all__ = [
    "Condition",
    "FieldKey",
    "FieldType",
    "Operator",
    "evaluate_condition",
    "matches_all",
    "parse_conditions",
    "validate_conditions",
    "ComputedProfile",
    "CustomerRecord",
    "OrderRecord",
    "enrich_customer",
    "EngagementThresholds",
    "EngagementTier",
    "LocationTieBreak",
    "SegmentStats",
    "analyze_segment",
]

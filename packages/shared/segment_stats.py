"""
Summary statistics over a segment's matched customers.

average_value = mean realized value (0 for an empty set)
top_location  = most common "City, Country" bucket, share in whole percent
engagement    = share of members active within the window, bucketed
                High (> 0.5), Medium (> 0.2), Low otherwise
"""

import enum
import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from packages.shared.profiles import ComputedProfile

UNKNOWN_LOCATION = "unknown"


class LocationTieBreak(str, enum.Enum):
    """Rule for choosing between equally common locations."""

    first_seen = "first_seen"  # First bucket encountered in population order
    alphabetical = "alphabetical"  # Reproducible regardless of population order


class EngagementTier(str, enum.Enum):
    """Coarse engagement bucket."""

    high = "High"
    medium = "Medium"
    low = "Low"


@dataclass
class EngagementThresholds:
    """Exclusive lower bounds of the engagement tiers."""

    high: float = 0.5
    medium: float = 0.2
    window_days: int = 30


@dataclass
class SegmentStats:
    """Statistics for one matched set."""

    customer_count: int
    average_value: float
    top_location: str
    top_location_share: int
    engagement_rate: float
    engagement_tier: EngagementTier

    def to_dict(self) -> Dict[str, object]:
        return {
            "customer_count": self.customer_count,
            "average_value": self.average_value,
            "top_location": self.top_location,
            "top_location_share": self.top_location_share,
            "engagement_rate": self.engagement_rate,
            "engagement_tier": self.engagement_tier.value,
        }


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def calculate_average_value(profiles: Sequence[ComputedProfile]) -> float:
    """Mean realized value; 0 for an empty set."""
    if not profiles:
        return 0.0
    return float(np.mean([profile.realized_value for profile in profiles]))


def location_bucket(profile: ComputedProfile) -> Optional[str]:
    """Location label for a profile, or None when it has neither city nor country."""
    if profile.city and profile.country:
        return f"{profile.city}, {profile.country}"
    if profile.country:
        return profile.country
    if profile.city:
        return profile.city
    return None


def calculate_top_location(
    profiles: Sequence[ComputedProfile],
    tie_break: LocationTieBreak = LocationTieBreak.first_seen,
) -> Tuple[str, int]:
    """
    Find the most common location and its share of the whole matched set.

    Profiles without any location are left out of the tally but still count
    in the share's denominator.

    Returns:
        (location, share percent); ("unknown", 0) when no profile has a location
    """
    # Counter preserves first-insertion order
    tally = Counter(bucket for bucket in map(location_bucket, profiles) if bucket is not None)
    if not tally:
        return UNKNOWN_LOCATION, 0

    if tie_break == LocationTieBreak.alphabetical:
        top_location, top_count = min(tally.items(), key=lambda item: (-item[1], item[0]))
    else:
        top_location, top_count = None, 0
        for location, count in tally.items():
            if count > top_count:
                top_location, top_count = location, count

    share = round_half_up(top_count / len(profiles) * 100)
    return top_location, max(0, min(100, share))


def is_active(profile: ComputedProfile, now: datetime, window_days: int = 30) -> bool:
    """Active means last seen less than window_days before now."""
    if profile.last_active_at is None:
        return False
    return as_utc(now) - as_utc(profile.last_active_at) < timedelta(days=window_days)


def calculate_engagement(
    profiles: Sequence[ComputedProfile],
    now: datetime,
    thresholds: Optional[EngagementThresholds] = None,
) -> Tuple[float, EngagementTier]:
    """
    Share of active members and the resulting tier.

    Members without last_active_at count as inactive. Bounds are exclusive:
    exactly 50% active is Medium, exactly 20% is Low.
    """
    thresholds = thresholds or EngagementThresholds()
    if not profiles:
        return 0.0, EngagementTier.low

    active = sum(1 for profile in profiles if is_active(profile, now, thresholds.window_days))
    rate = active / len(profiles)

    if rate > thresholds.high:
        return rate, EngagementTier.high
    if rate > thresholds.medium:
        return rate, EngagementTier.medium
    return rate, EngagementTier.low


def analyze_segment(
    profiles: Sequence[ComputedProfile],
    now: Optional[datetime] = None,
    tie_break: LocationTieBreak = LocationTieBreak.first_seen,
    thresholds: Optional[EngagementThresholds] = None,
) -> SegmentStats:
    """Compute all statistics for a matched set. Never raises on an empty set."""
    now = now or datetime.now(timezone.utc)
    top_location, share = calculate_top_location(profiles, tie_break)
    rate, tier = calculate_engagement(profiles, now, thresholds)
    return SegmentStats(
        customer_count=len(profiles),
        average_value=calculate_average_value(profiles),
        top_location=top_location,
        top_location_share=share,
        engagement_rate=rate,
        engagement_tier=tier,
    )

"""Test segment resolution over a population."""

import pytest

from apps.api.services.record_source import RecordSource, StaticRecordSource
from apps.api.services.segment_resolver import SegmentResolver
from packages.shared.exceptions import InvalidCondition, SourceUnavailable
from packages.shared.segment_stats import EngagementTier, analyze_segment


class UnavailableSource(RecordSource):
    def list_customers_with_orders(self):
        raise SourceUnavailable("database unreachable")


@pytest.fixture
def resolver(population):
    return SegmentResolver(StaticRecordSource(population), parallel_workers=1)


def ids(profiles):
    return [profile.id for profile in profiles]


def test_value_segment_scenario(resolver, now):
    """Test realized value > 150 against the reference population."""
    matched = resolver.resolve([{"field": "lifetime_value", "operator": ">", "value": "150"}])
    stats = analyze_segment(matched, now=now)

    assert ids(matched) == ["B"]
    assert matched[0].realized_value == 200
    assert stats.average_value == 200
    assert stats.top_location == "unknown"
    assert stats.top_location_share == 0
    assert stats.engagement_tier == EngagementTier.low


def test_paid_total_above_threshold_includes_both_buyers(resolver, now):
    """Test that A's paid total of 120 clears a threshold of 100 alongside B."""
    matched = resolver.resolve([{"field": "lifetime_value", "operator": ">", "value": "100"}])
    stats = analyze_segment(matched, now=now)

    assert ids(matched) == ["A", "B"]
    assert [profile.realized_value for profile in matched] == [120, 200]
    assert stats.average_value == 160
    assert stats.top_location == "Lagos"
    assert stats.top_location_share == 50
    assert stats.engagement_tier == EngagementTier.medium


def test_city_segment_scenario(resolver, now):
    """Test city contains 'lag' against the reference population."""
    matched = resolver.resolve([{"field": "city", "operator": "contains", "value": "lag"}])
    stats = analyze_segment(matched, now=now)

    assert ids(matched) == ["A", "C"]
    assert stats.average_value == 60
    assert stats.top_location == "Lagos"
    assert stats.top_location_share == 100
    assert stats.engagement_tier == EngagementTier.high


def test_preserves_population_order(resolver):
    """Test that matches come back in source order."""
    matched = resolver.resolve([{"field": "orders_count", "operator": "<", "value": "5"}])
    assert ids(matched) == ["A", "B", "C"]


def test_adding_conditions_never_grows_the_set(resolver):
    """Test AND monotonicity."""
    conditions = [
        {"field": "orders_count", "operator": "<", "value": "3"},
        {"field": "city", "operator": "contains", "value": "lagos"},
        {"field": "lifetime_value", "operator": ">", "value": "0"},
    ]

    sizes = [len(resolver.resolve(conditions[:k])) for k in range(len(conditions) + 1)]

    assert sizes == sorted(sizes, reverse=True)
    assert sizes == [3, 3, 2, 1]


def test_resolution_is_idempotent(resolver, now):
    """Test that resolving twice yields identical sets and statistics."""
    conditions = [{"field": "city", "operator": "contains", "value": "lag"}]

    first = resolver.resolve(conditions)
    second = resolver.resolve(conditions)

    assert ids(first) == ids(second)
    assert analyze_segment(first, now=now) == analyze_segment(second, now=now)


def test_unknown_field_matches_nobody(resolver):
    """Test lenient evaluation of an unknown field."""
    assert resolver.resolve([{"field": "loyalty_points", "operator": ">", "value": "1"}]) == []


def test_parallel_enrichment_matches_sequential(population):
    """Test that the threaded path returns the same ordered result."""
    conditions = [{"field": "lifetime_value", "operator": "<", "value": "150"}]
    sequential = SegmentResolver(StaticRecordSource(population), parallel_workers=1).resolve(conditions)
    parallel = SegmentResolver(StaticRecordSource(population), parallel_workers=4).resolve(conditions)

    assert ids(sequential) == ids(parallel) == ["A", "C"]


def test_prefetched_population_skips_source(population):
    """Test that a supplied population is used instead of the source."""
    resolver = SegmentResolver(UnavailableSource(), parallel_workers=1)

    assert resolver.count([{"field": "orders_count", "operator": "=", "value": "0"}], population) == 1


def test_source_unavailable_propagates():
    """Test all-or-nothing resolution when the source fails."""
    resolver = SegmentResolver(UnavailableSource(), parallel_workers=1)

    with pytest.raises(SourceUnavailable):
        resolver.resolve([{"field": "orders_count", "operator": ">", "value": "0"}])


def test_resolve_segment_rejects_empty_criteria(resolver):
    """Test that a stored segment without conditions is not treated as match-all."""

    class StoredSegment:
        criteria = []

    with pytest.raises(InvalidCondition):
        resolver.resolve_segment(StoredSegment())

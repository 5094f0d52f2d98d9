"""
Segment resolution: enrich the whole population, keep the customers matching
every condition.

This is a full scan, O(customers x conditions). The criteria filter on
derived values (paid-order sums, address fields) that the record store cannot
index without materialized aggregates, so each resolution recomputes every
profile. Fine for customer-list-sized populations; not a sub-second query path
over millions of rows.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, List, Optional, Sequence

import structlog

from apps.api.config import get_settings
from apps.api.services.record_source import RecordSource
from packages.shared.criteria import matches_all, parse_conditions, validate_conditions
from packages.shared.profiles import ComputedProfile, CustomerRecord, enrich_customer

logger = structlog.get_logger(__name__)


class SegmentResolver:
    """Resolves condition lists against a record source."""

    def __init__(self, source: RecordSource, parallel_workers: Optional[int] = None):
        """
        Initialize resolver.

        Args:
            source: Where the customer population is read from
            parallel_workers: Threads used for enrichment; 1 runs sequentially
        """
        self.source = source
        if parallel_workers is None:
            parallel_workers = get_settings().segment_parallel_workers
        self.parallel_workers = max(1, parallel_workers)

    def fetch_population(self) -> List[CustomerRecord]:
        """Read the full population. SourceUnavailable propagates."""
        return self.source.list_customers_with_orders()

    def resolve(
        self,
        conditions: Iterable[Any],
        population: Optional[Sequence[CustomerRecord]] = None,
    ) -> List[ComputedProfile]:
        """
        Return matching profiles in population order.

        Args:
            conditions: Condition objects or their wire-form dicts (AND semantics)
            population: Pre-fetched population; read from the source when omitted

        Returns:
            Matching computed profiles
        """
        parsed = parse_conditions(conditions)
        if population is None:
            population = self.fetch_population()

        def match(record: CustomerRecord) -> Optional[ComputedProfile]:
            profile = enrich_customer(record)
            return profile if matches_all(profile, parsed) else None

        if self.parallel_workers > 1 and len(population) > 1:
            with ThreadPoolExecutor(max_workers=self.parallel_workers) as executor:
                results = list(executor.map(match, population))
        else:
            results = [match(record) for record in population]

        matched = [profile for profile in results if profile is not None]
        logger.debug(
            "Resolved segment criteria",
            conditions=len(parsed),
            population=len(population),
            matched=len(matched),
        )
        return matched

    def resolve_segment(
        self, segment: Any, population: Optional[Sequence[CustomerRecord]] = None
    ) -> List[ComputedProfile]:
        """
        Resolve a stored segment's criteria.

        Raises:
            InvalidCondition: If the stored criteria are empty or malformed
        """
        return self.resolve(validate_conditions(segment.criteria), population)

    def count(
        self, conditions: Iterable[Any], population: Optional[Sequence[CustomerRecord]] = None
    ) -> int:
        """Live (authoritative) number of matching customers."""
        return len(self.resolve(conditions, population))
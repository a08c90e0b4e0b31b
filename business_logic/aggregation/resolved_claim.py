# business_logic/aggregation/resolved_claim.py

from functools import cached_property
from typing import Any, Dict, List, Tuple, Union

from business_logic.aggregation.field_resolver import ClaimFieldResolver
from business_logic.aggregation.variance import resolve_variance


class ResolvedClaim:
    """
    A claim record whose logical fields are resolved on first access and then kept.

    One instance is shared by every aggregator fed the same record, so each field is
    parsed once per record no matter how many aggregations read it.
    """

    def __init__(self, record: Dict[str, Any], resolver: ClaimFieldResolver):
        self.record = record
        self.resolver = resolver

    @cached_property
    def actual_amount(self) -> float:
        return self.resolver.actual_amount(self.record)

    @cached_property
    def predicted_amount(self) -> float:
        return self.resolver.predicted_amount(self.record)

    @cached_property
    def settlement_days(self) -> float:
        return self.resolver.settlement_days(self.record)

    @cached_property
    def venue_rating_point(self) -> float:
        return self.resolver.venue_rating_point(self.record)

    @cached_property
    def variance(self) -> float:
        return resolve_variance(self.record, self.resolver)

    @cached_property
    def year(self) -> int:
        return self.resolver.year(self.record)

    @cached_property
    def severity(self) -> str:
        return self.resolver.severity(self.record)

    @cached_property
    def county(self) -> str:
        return self.resolver.county(self.record)

    @cached_property
    def state(self) -> str:
        return self.resolver.state(self.record)

    @cached_property
    def venue_rating(self) -> str:
        return self.resolver.venue_rating(self.record)

    @cached_property
    def injury_group(self) -> str:
        return self.resolver.injury_group(self.record)

    @cached_property
    def body_region(self) -> str:
        return self.resolver.body_region(self.record)

    @cached_property
    def adjuster(self) -> str:
        return self.resolver.adjuster(self.record)

    @cached_property
    def factor_values(self) -> List[Tuple[str, str]]:
        return self.resolver.factor_values(self.record)


# A raw record from a connector, or one already wrapped for sharing between aggregators
ClaimInput = Union[Dict[str, Any], ResolvedClaim]


def resolve_claim(record: ClaimInput,
                  resolver: ClaimFieldResolver) -> ResolvedClaim:
    """Wrap a raw record, or reuse an already resolved claim built with the same resolver."""
    if isinstance(record, ResolvedClaim):
        if record.resolver is resolver:
            return record
        record = record.record
    return ResolvedClaim(record, resolver)

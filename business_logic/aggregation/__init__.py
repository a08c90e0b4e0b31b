# business_logic/aggregation/__init__.py
"""
Streaming claim aggregation: field resolution, variance statistics and the six
fixed group-by summaries.
"""

from .field_resolver import ClaimFieldResolver, ClaimFields, FieldSpec
from .variance import calculate_variance, resolve_variance, VarianceStats
from .group_aggregators import (
    GroupByAggregator, YearSeverityAggregator, CountyYearAggregator, InjuryGroupAggregator,
    AdjusterPerformanceAggregator, VenueAnalysisAggregator
)
from .variance_drivers import VarianceDriverAggregator
from .resolved_claim import ResolvedClaim, resolve_claim
from .claims_aggregator import ClaimsSummary, SummaryTable, aggregate_claims, build_aggregators

__all__ = [
    'ClaimFieldResolver', 'ClaimFields', 'FieldSpec',
    'calculate_variance', 'resolve_variance', 'VarianceStats',
    'GroupByAggregator', 'YearSeverityAggregator', 'CountyYearAggregator', 'InjuryGroupAggregator',
    'AdjusterPerformanceAggregator', 'VenueAnalysisAggregator', 'VarianceDriverAggregator',
    'ResolvedClaim', 'resolve_claim',
    'ClaimsSummary', 'SummaryTable', 'aggregate_claims', 'build_aggregators',
]

# business_logic/aggregation/group_aggregators.py

"""
Single-pass group-by aggregators for claim records.

Every aggregator owns its group map. Records are fed one at a time through add();
get_summary() turns each group's accumulator into one output row. Group keys are
tuples of the resolved dimension values, so dimension values containing a delimiter
can never collide.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from business_logic.aggregation.field_resolver import ClaimFieldResolver
from business_logic.aggregation.resolved_claim import ClaimInput, ResolvedClaim, resolve_claim
from business_logic.aggregation.variance import VarianceStats, round_half_up, safe_average
from services.aggregation_constants import (
    HIGH_VARIANCE_THRESHOLD, YEAR_SEVERITY_FILE, COUNTY_YEAR_FILE, INJURY_GROUP_FILE,
    ADJUSTER_PERFORMANCE_FILE, VENUE_ANALYSIS_FILE
)

logger = logging.getLogger(__name__)

GroupKey = Tuple[Any, ...]
SummaryRow = Dict[str, Any]


class GroupAccumulator:
    """
    Running totals for one group.

    Variances are kept individually because the over/under/high-variance counts need
    the whole distribution, not just a running mean.
    """

    __slots__ = ('count', 'total_actual', 'total_predicted', 'total_days',
                 'total_venue_point', 'variances')

    def __init__(self):
        self.count = 0
        self.total_actual = 0.0
        self.total_predicted = 0.0
        self.total_days = 0.0
        self.total_venue_point = 0.0
        self.variances: List[float] = []

    def add(self, actual: float, predicted: float, days: float,
            variance: float, venue_point: float = 0.0) -> None:
        self.count += 1
        self.total_actual += actual
        self.total_predicted += predicted
        self.total_days += days
        self.total_venue_point += venue_point
        self.variances.append(variance)

    def merge(self, other: 'GroupAccumulator') -> None:
        """Fold another accumulator for the same key into this one."""
        self.count += other.count
        self.total_actual += other.total_actual
        self.total_predicted += other.total_predicted
        self.total_days += other.total_days
        self.total_venue_point += other.total_venue_point
        self.variances.extend(other.variances)


class GroupByAggregator(ABC):
    """
    Base class for the fixed group-by aggregations.

    Subclasses define the group key, the output row built from an accumulator, and the
    row ordering.

    Args:
        resolver: Field resolver shared with the other aggregators of a run
        variance_threshold: Percentage beyond which a claim counts as high variance
    """

    name: str = ''
    output_file: str = ''
    columns: Tuple[str, ...] = ()
    tracks_venue_point = False

    def __init__(self,
                 resolver: Optional[ClaimFieldResolver] = None,
                 variance_threshold: float = HIGH_VARIANCE_THRESHOLD):
        self.resolver = resolver or ClaimFieldResolver()
        self.variance_threshold = variance_threshold
        self._groups: Dict[GroupKey, GroupAccumulator] = {}
        self._total_records = 0

    @property
    def group_count(self) -> int:
        return len(self._groups)

    @property
    def total_records(self) -> int:
        return self._total_records

    @abstractmethod
    def group_key(self, claim: ResolvedClaim) -> GroupKey:
        """Dimension values of a claim."""

    @abstractmethod
    def make_row(self, key: GroupKey, acc: GroupAccumulator, stats: VarianceStats) -> SummaryRow:
        """Build the output row for one group."""

    @abstractmethod
    def sort_key(self, row: SummaryRow) -> Tuple:
        """Total ordering of output rows."""

    def add(self, record: ClaimInput) -> None:
        """Accumulate one claim record into its group."""
        claim = resolve_claim(record, self.resolver)
        key = self.group_key(claim)
        acc = self._groups.get(key)
        if acc is None:
            acc = self._groups[key] = GroupAccumulator()

        acc.add(
            actual=claim.actual_amount,
            predicted=claim.predicted_amount,
            days=claim.settlement_days,
            variance=claim.variance,
            venue_point=claim.venue_rating_point if self.tracks_venue_point else 0.0,
        )
        self._total_records += 1

    def get_summary(self) -> List[SummaryRow]:
        """Finalize every group into an output row, sorted for this aggregation."""
        rows = []
        for key, acc in self._groups.items():
            if acc.count == 0:
                continue
            stats = VarianceStats.from_values(acc.variances, self.variance_threshold)
            rows.append(self.make_row(key, acc, stats))

        rows.sort(key=self.sort_key)
        logger.debug(f"{self.name}: {len(rows)} groups from {self._total_records} records")
        return rows

    def merge(self, other: 'GroupByAggregator') -> None:
        """
        Combine the groups of another aggregator of the same kind into this one.

        Used to join partial results when the input has been split into shards.
        """
        if type(other) is not type(self):
            raise TypeError(f"Cannot merge {type(other).__name__} into {type(self).__name__}")

        for key, other_acc in other._groups.items():
            acc = self._groups.get(key)
            if acc is None:
                acc = self._groups[key] = GroupAccumulator()
            acc.merge(other_acc)
        self._total_records += other._total_records

    def reset(self) -> None:
        """Discard all accumulated groups."""
        self._groups = {}
        self._total_records = 0


class YearSeverityAggregator(GroupByAggregator):
    """Claims by incident year and severity category, in chronological order."""

    name = 'year_severity'
    output_file = YEAR_SEVERITY_FILE
    columns = (
        'year', 'severity_category', 'claim_count', 'total_actual_settlement',
        'total_predicted_settlement', 'avg_actual_settlement', 'avg_predicted_settlement',
        'avg_variance_pct', 'avg_settlement_days', 'overprediction_count',
        'underprediction_count', 'high_variance_count',
    )

    def group_key(self, claim):
        return (claim.year, claim.severity)

    def make_row(self, key, acc, stats):
        year, severity = key
        return {
            'year': year,
            'severity_category': severity,
            'claim_count': acc.count,
            'total_actual_settlement': round_half_up(acc.total_actual),
            'total_predicted_settlement': round_half_up(acc.total_predicted),
            'avg_actual_settlement': round_half_up(safe_average(acc.total_actual, acc.count)),
            'avg_predicted_settlement': round_half_up(safe_average(acc.total_predicted, acc.count)),
            'avg_variance_pct': round_half_up(stats.mean, 2),
            'avg_settlement_days': round_half_up(safe_average(acc.total_days, acc.count)),
            'overprediction_count': stats.overprediction_count,
            'underprediction_count': stats.underprediction_count,
            'high_variance_count': stats.high_variance_count,
        }

    def sort_key(self, row):
        return (row['year'], row['severity_category'])


class CountyYearAggregator(GroupByAggregator):
    """Claims by county, state, year and venue rating; sorted by year then county."""

    name = 'county_year'
    output_file = COUNTY_YEAR_FILE
    columns = (
        'county', 'state', 'year', 'venue_rating', 'claim_count', 'total_settlement',
        'avg_settlement', 'avg_variance_pct', 'high_variance_count', 'high_variance_pct',
        'overprediction_count', 'underprediction_count',
    )

    def group_key(self, claim):
        return (
            claim.county,
            claim.state,
            claim.year,
            claim.venue_rating,
        )

    def make_row(self, key, acc, stats):
        county, state, year, venue_rating = key
        return {
            'county': county,
            'state': state,
            'year': year,
            'venue_rating': venue_rating,
            'claim_count': acc.count,
            'total_settlement': round_half_up(acc.total_actual),
            'avg_settlement': round_half_up(safe_average(acc.total_actual, acc.count)),
            'avg_variance_pct': round_half_up(stats.mean, 2),
            'high_variance_count': stats.high_variance_count,
            'high_variance_pct': round_half_up(stats.high_variance_pct, 2),
            'overprediction_count': stats.overprediction_count,
            'underprediction_count': stats.underprediction_count,
        }

    def sort_key(self, row):
        return (row['year'], row['county'], row['state'], row['venue_rating'])


class InjuryGroupAggregator(GroupByAggregator):
    """Claims by injury group, body region and severity; largest total settlement first."""

    name = 'injury_group'
    output_file = INJURY_GROUP_FILE
    columns = (
        'injury_group', 'body_region', 'severity_category', 'claim_count', 'avg_settlement',
        'avg_predicted', 'avg_variance_pct', 'avg_settlement_days', 'total_settlement',
    )

    def group_key(self, claim):
        return (
            claim.injury_group,
            claim.body_region,
            claim.severity,
        )

    def make_row(self, key, acc, stats):
        injury_group, body_region, severity = key
        return {
            'injury_group': injury_group,
            'body_region': body_region,
            'severity_category': severity,
            'claim_count': acc.count,
            'avg_settlement': round_half_up(safe_average(acc.total_actual, acc.count)),
            'avg_predicted': round_half_up(safe_average(acc.total_predicted, acc.count)),
            'avg_variance_pct': round_half_up(stats.mean, 2),
            'avg_settlement_days': round_half_up(safe_average(acc.total_days, acc.count)),
            'total_settlement': round_half_up(acc.total_actual),
        }

    def sort_key(self, row):
        return (-row['total_settlement'], row['injury_group'], row['body_region'],
                row['severity_category'])


class AdjusterPerformanceAggregator(GroupByAggregator):
    """Claims by adjuster; busiest adjusters first."""

    name = 'adjuster_performance'
    output_file = ADJUSTER_PERFORMANCE_FILE
    columns = (
        'adjuster_name', 'claim_count', 'avg_actual_settlement', 'avg_predicted_settlement',
        'avg_variance_pct', 'high_variance_count', 'high_variance_pct', 'overprediction_count',
        'underprediction_count', 'avg_settlement_days',
    )

    def group_key(self, claim):
        return (claim.adjuster,)

    def make_row(self, key, acc, stats):
        return {
            'adjuster_name': key[0],
            'claim_count': acc.count,
            'avg_actual_settlement': round_half_up(safe_average(acc.total_actual, acc.count)),
            'avg_predicted_settlement': round_half_up(safe_average(acc.total_predicted, acc.count)),
            'avg_variance_pct': round_half_up(stats.mean, 2),
            'high_variance_count': stats.high_variance_count,
            'high_variance_pct': round_half_up(stats.high_variance_pct, 2),
            'overprediction_count': stats.overprediction_count,
            'underprediction_count': stats.underprediction_count,
            'avg_settlement_days': round_half_up(safe_average(acc.total_days, acc.count)),
        }

    def sort_key(self, row):
        return (-row['claim_count'], row['adjuster_name'])


class VenueAnalysisAggregator(GroupByAggregator):
    """Claims by venue rating, state and county; largest groups first."""

    name = 'venue_analysis'
    output_file = VENUE_ANALYSIS_FILE
    columns = (
        'venue_rating', 'state', 'county', 'claim_count', 'avg_settlement', 'avg_predicted',
        'avg_variance_pct', 'avg_venue_rating_point', 'high_variance_pct',
    )
    tracks_venue_point = True

    def group_key(self, claim):
        return (
            claim.venue_rating,
            claim.state,
            claim.county,
        )

    def make_row(self, key, acc, stats):
        venue_rating, state, county = key
        return {
            'venue_rating': venue_rating,
            'state': state,
            'county': county,
            'claim_count': acc.count,
            'avg_settlement': round_half_up(safe_average(acc.total_actual, acc.count)),
            'avg_predicted': round_half_up(safe_average(acc.total_predicted, acc.count)),
            'avg_variance_pct': round_half_up(stats.mean, 2),
            'avg_venue_rating_point': round_half_up(safe_average(acc.total_venue_point, acc.count), 2),
            'high_variance_pct': round_half_up(stats.high_variance_pct, 2),
        }

    def sort_key(self, row):
        return (-row['claim_count'], row['venue_rating'], row['state'], row['county'])

# business_logic/aggregation/variance_drivers.py

import logging
from typing import Any, Dict, List, Optional, Tuple

from business_logic.aggregation.field_resolver import ClaimFieldResolver
from business_logic.aggregation.resolved_claim import ClaimInput, resolve_claim
from business_logic.aggregation.variance import classify_correlation, round_half_up, safe_average
from services.aggregation_constants import MIN_DRIVER_SUPPORT, TOP_DRIVER_COUNT, VARIANCE_DRIVERS_FILE

logger = logging.getLogger(__name__)

FactorKey = Tuple[str, str]


class DriverAccumulator:
    """Count and absolute-variance total for one (factor, value) pair."""

    __slots__ = ('count', 'total_abs_variance')

    def __init__(self):
        self.count = 0
        self.total_abs_variance = 0.0


class VarianceDriverAggregator:
    """
    Ranks categorical claim factors by how much prediction error they carry.

    Each record fans out into one group per present factor. At finalization, pairs
    seen in fewer than ``min_support`` claims are dropped, the rest are ranked by
    contribution score (mean absolute variance weighted by the share of all claims
    carrying the pair) and the top ``top_n`` are kept.

    Args:
        resolver: Field resolver shared with the other aggregators of a run
        min_support: Minimum number of claims for a pair to be reported
        top_n: Maximum number of rows returned by get_summary()
    """

    name = 'variance_drivers'
    output_file = VARIANCE_DRIVERS_FILE
    columns = (
        'factor_name', 'factor_value', 'claim_count', 'avg_variance_pct',
        'contribution_score', 'correlation_strength',
    )

    def __init__(self,
                 resolver: Optional[ClaimFieldResolver] = None,
                 min_support: int = MIN_DRIVER_SUPPORT,
                 top_n: int = TOP_DRIVER_COUNT):
        self.resolver = resolver or ClaimFieldResolver()
        self.min_support = min_support
        self.top_n = top_n
        self._groups: Dict[FactorKey, DriverAccumulator] = {}
        self.total_claims = 0

    @property
    def group_count(self) -> int:
        return len(self._groups)

    @property
    def total_records(self) -> int:
        return self.total_claims

    def add(self, record: ClaimInput) -> None:
        """Accumulate the absolute variance of a claim under each of its factor values."""
        self.total_claims += 1

        claim = resolve_claim(record, self.resolver)
        factors = claim.factor_values
        if not factors:
            return

        abs_variance = abs(claim.variance)
        for key in factors:
            acc = self._groups.get(key)
            if acc is None:
                acc = self._groups[key] = DriverAccumulator()
            acc.count += 1
            acc.total_abs_variance += abs_variance

    def get_summary(self) -> List[Dict[str, Any]]:
        """Top factor/value pairs by contribution score, highest first."""
        ranked = []
        for (factor_name, factor_value), acc in self._groups.items():
            if acc.count < self.min_support:
                continue

            avg_variance = safe_average(acc.total_abs_variance, acc.count)
            frequency = safe_average(acc.count, self.total_claims)
            contribution = round_half_up(avg_variance * frequency, 2)
            ranked.append((contribution, factor_name, factor_value, acc.count, avg_variance))

        # Rank on the published score so equal scores always fall back to factor and value
        ranked.sort(key=lambda item: (-item[0], item[1], item[2]))

        rows = [
            {
                'factor_name': factor_name,
                'factor_value': factor_value,
                'claim_count': count,
                'avg_variance_pct': round_half_up(avg_variance, 2),
                'contribution_score': contribution,
                'correlation_strength': classify_correlation(avg_variance),
            }
            for contribution, factor_name, factor_value, count, avg_variance in ranked[:self.top_n]
        ]

        logger.debug(f"{self.name}: {len(ranked)} supported pairs of {len(self._groups)}, "
                     f"kept {len(rows)}")
        return rows

    def merge(self, other: 'VarianceDriverAggregator') -> None:
        """Combine the factor groups and claim total of another driver aggregator."""
        if not isinstance(other, VarianceDriverAggregator):
            raise TypeError(f"Cannot merge {type(other).__name__} into {type(self).__name__}")

        for key, other_acc in other._groups.items():
            acc = self._groups.get(key)
            if acc is None:
                acc = self._groups[key] = DriverAccumulator()
            acc.count += other_acc.count
            acc.total_abs_variance += other_acc.total_abs_variance
        self.total_claims += other.total_claims

    def reset(self) -> None:
        """Discard all accumulated groups."""
        self._groups = {}
        self.total_claims = 0

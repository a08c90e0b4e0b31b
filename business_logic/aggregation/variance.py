# business_logic/aggregation/variance.py

"""Variance primitives shared by all claim aggregators."""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional, Union

import numpy as np

from business_logic.aggregation.field_resolver import ClaimFieldResolver
from services.aggregation_constants import (
    HIGH_VARIANCE_THRESHOLD, STRONG_CORRELATION_THRESHOLD, MODERATE_CORRELATION_THRESHOLD
)


def calculate_variance(actual: float, predicted: float) -> float:
    """
    Percentage deviation of the actual settlement from the predicted one.

    Args:
        actual: Actual settlement amount
        predicted: Model-predicted amount

    Returns:
        ((actual - predicted) / predicted) * 100, or 0.0 when predicted is zero
    """
    if predicted == 0:
        return 0.0
    return ((actual - predicted) / predicted) * 100


def resolve_variance(record: Dict[str, Any],
                     resolver: Optional[ClaimFieldResolver] = None) -> float:
    """
    Variance for a single claim.

    A precomputed, non-zero variance column wins; otherwise the variance is computed
    from the resolved actual and predicted amounts.
    """
    resolver = resolver or ClaimFieldResolver()
    precomputed = resolver.precomputed_variance(record)
    if precomputed is not None:
        return precomputed
    return calculate_variance(resolver.actual_amount(record), resolver.predicted_amount(record))


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """
    Round half away from zero.

    Returns an int when digits is 0, otherwise a float.
    """
    exponent = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(float(value))).quantize(exponent, rounding=ROUND_HALF_UP)
    if digits == 0:
        return int(rounded)
    # Adding 0.0 turns a negative zero into 0.0
    return float(rounded) + 0.0


def safe_average(total: float, count: int) -> float:
    """Average that evaluates to 0.0 for an empty group."""
    return total / count if count else 0.0


def classify_correlation(avg_abs_variance: float) -> str:
    """Bucket a mean absolute variance into High / Medium / Low."""
    if avg_abs_variance > STRONG_CORRELATION_THRESHOLD:
        return 'High'
    if avg_abs_variance > MODERATE_CORRELATION_THRESHOLD:
        return 'Medium'
    return 'Low'


@dataclass(frozen=True)
class VarianceStats:
    """
    Distribution statistics for the variances of one group.

    The three counts are independent: values exactly at +/- threshold fall in none of them.
    """
    count: int
    mean: float
    high_variance_count: int
    overprediction_count: int
    underprediction_count: int

    @property
    def high_variance_pct(self) -> float:
        return safe_average(self.high_variance_count * 100, self.count)

    @classmethod
    def from_values(cls, values: Iterable[float],
                    threshold: float = HIGH_VARIANCE_THRESHOLD) -> 'VarianceStats':
        variances = np.fromiter(values, dtype=float)
        if variances.size == 0:
            return cls(count=0, mean=0.0, high_variance_count=0,
                       overprediction_count=0, underprediction_count=0)

        return cls(
            count=int(variances.size),
            mean=float(variances.mean()),
            high_variance_count=int(np.count_nonzero(np.abs(variances) > threshold)),
            overprediction_count=int(np.count_nonzero(variances < -threshold)),
            underprediction_count=int(np.count_nonzero(variances > threshold)),
        )

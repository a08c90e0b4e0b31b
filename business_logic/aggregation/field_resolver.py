# business_logic/aggregation/field_resolver.py

"""
Resolution of logical claim fields from inconsistently named source columns.

Dataset variants use different column names for the same quantity (for example
DOLLARAMOUNTHIGH vs SETTLEMENTAMOUNT for the actual settlement). Each logical field
is described by a FieldSpec listing its candidate columns in priority order.
"""

import math
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

import pandas as pd

from services.aggregation_constants import UNKNOWN_VALUE

CURRENCY_SYMBOLS = ('$', '€', '£')


class FieldSpec(NamedTuple):
    """A logical field, its candidate source columns and its fallback value."""
    name: str
    candidates: Tuple[str, ...]
    default: Any


class ClaimFields:
    """Candidate column lists for every logical claim field."""

    ACTUAL_AMOUNT = FieldSpec('actual_settlement', ('DOLLARAMOUNTHIGH', 'SETTLEMENTAMOUNT'), 0.0)
    PREDICTED_AMOUNT = FieldSpec(
        'predicted_settlement',
        ('CAUSATION_HIGH_RECOMMENDATION', 'CAUSATION__HIGH_RECOMMENDATION', 'predicted_pain_suffering'),
        0.0
    )
    VARIANCE_PCT = FieldSpec('variance_pct', ('VARIANCE_PERCENTAGE', 'variance_pct'), None)
    SETTLEMENT_DAYS = FieldSpec('settlement_days', ('SETTLEMENT_DAYS',), 0.0)
    VENUE_RATING_POINT = FieldSpec('venue_rating_point', ('VENUERATINGPOINT',), 0.0)

    CLAIM_DATE = FieldSpec('claim_date', ('INCIDENTDATE', 'CLAIMCLOSEDATE', 'claim_date'), None)

    SEVERITY = FieldSpec('severity_category', ('INJURY_SEVERITY_CATEGORY', 'CAUTION_LEVEL'), UNKNOWN_VALUE)
    COUNTY = FieldSpec('county', ('COUNTNAME', 'COUNTYNAME'), UNKNOWN_VALUE)
    STATE = FieldSpec('state', ('VENUESTATE',), '')
    VENUE_RATING = FieldSpec('venue_rating', ('VENUERATING', 'VENUERATINGTEXT', 'VENUE_RATING'), UNKNOWN_VALUE)
    INJURY_GROUP = FieldSpec('injury_group', ('PRIMARY_INJURYGROUP_CODE',), UNKNOWN_VALUE)
    BODY_REGION = FieldSpec('body_region', ('BODY_REGION',), UNKNOWN_VALUE)
    ADJUSTER = FieldSpec('adjuster_name', ('ADJUSTERNAME',), UNKNOWN_VALUE)

    # (label, source column) for the categorical variance driver factors
    DRIVER_FACTORS: Tuple[Tuple[str, str], ...] = (
        ('Injury Extent', 'Injury_Extent'),
        ('Treatment Course', 'Treatment_Course'),
        ('Pain Management', 'Pain_Management'),
        ('Physical Therapy', 'Physical_Therapy'),
        ('Vehicle Impact', 'Vehicle_Impact'),
        ('Emergency Treatment', 'Emergency_Treatment'),
        ('Prior Treatment', 'Prior_Treatment'),
        ('Injury Severity', 'INJURY_SEVERITY_CATEGORY'),
        ('Body Region', 'BODY_REGION'),
        ('Consistent Mechanism', 'Consistent_Mechanism'),
        ('Treatment Delays', 'Treatment_Delays'),
    )


def parse_number(value: Any) -> Optional[float]:
    """
    Coerce a raw field value to a finite float.

    Currency symbols and thousands separators are stripped before parsing.

    Args:
        value: Raw value from a claim record

    Returns:
        The parsed number, or None if the value is empty, unparseable, NaN or infinite
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        for symbol in CURRENCY_SYMBOLS:
            text = text.replace(symbol, '')
        try:
            number = float(text.replace(',', ''))
        except ValueError:
            return None

    if not math.isfinite(number):
        return None
    return number


def lookup_numeric(record: Dict[str, Any],
                   candidates: Sequence[str],
                   zero_is_missing: bool = True) -> Optional[float]:
    """
    Find the first usable numeric value among the candidate columns.

    Args:
        record: Claim record
        candidates: Column names in priority order
        zero_is_missing: Treat a parsed zero as absent and keep searching

    Returns:
        The value, or None when no candidate holds a usable number
    """
    for column in candidates:
        number = parse_number(record.get(column))
        if number is None:
            continue
        if zero_is_missing and number == 0:
            continue
        return number
    return None


def resolve_numeric(record: Dict[str, Any],
                    candidates: Sequence[str],
                    default: float = 0.0,
                    zero_is_missing: bool = True) -> float:
    """Like lookup_numeric, but fall back to a default instead of None."""
    number = lookup_numeric(record, candidates, zero_is_missing)
    return default if number is None else number


def resolve_category(record: Dict[str, Any],
                     candidates: Sequence[str],
                     default: str = UNKNOWN_VALUE) -> str:
    """
    Return the first present, non-empty categorical value.

    Args:
        record: Claim record
        candidates: Column names in priority order
        default: Value returned when every candidate is missing or blank

    Returns:
        Categorical value as a string
    """
    for column in candidates:
        value = record.get(column)
        if value is None:
            continue
        if isinstance(value, float) and math.isnan(value):
            continue
        text = str(value).strip()
        if text:
            return text
    return default


@lru_cache(maxsize=8192)
def _parse_year(text: str) -> Optional[int]:
    parsed = pd.to_datetime(text, errors='coerce')
    if pd.isna(parsed):
        return None
    return int(parsed.year)


def resolve_year(record: Dict[str, Any], candidates: Sequence[str]) -> int:
    """
    Extract the year from the first non-empty date candidate.

    An absent or unparseable date resolves to the current year.
    """
    text = resolve_category(record, candidates, default='')
    year = _parse_year(text) if text else None
    if year is None:
        return datetime.now().year
    return year


class ClaimFieldResolver:
    """
    Resolves every logical field the aggregators need from a claim record.

    Args:
        zero_is_missing: Treat numeric zeros as absent and fall through to the next
            candidate column
    """

    def __init__(self, zero_is_missing: bool = True):
        self.zero_is_missing = zero_is_missing

    def numeric(self, record: Dict[str, Any], spec: FieldSpec) -> float:
        return resolve_numeric(record, spec.candidates, spec.default, self.zero_is_missing)

    def category(self, record: Dict[str, Any], spec: FieldSpec) -> str:
        return resolve_category(record, spec.candidates, spec.default)

    def actual_amount(self, record: Dict[str, Any]) -> float:
        return self.numeric(record, ClaimFields.ACTUAL_AMOUNT)

    def predicted_amount(self, record: Dict[str, Any]) -> float:
        return self.numeric(record, ClaimFields.PREDICTED_AMOUNT)

    def precomputed_variance(self, record: Dict[str, Any]) -> Optional[float]:
        # A zero precomputed variance always defers to the computed value
        return lookup_numeric(record, ClaimFields.VARIANCE_PCT.candidates, zero_is_missing=True)

    def settlement_days(self, record: Dict[str, Any]) -> float:
        return self.numeric(record, ClaimFields.SETTLEMENT_DAYS)

    def venue_rating_point(self, record: Dict[str, Any]) -> float:
        return self.numeric(record, ClaimFields.VENUE_RATING_POINT)

    def year(self, record: Dict[str, Any]) -> int:
        return resolve_year(record, ClaimFields.CLAIM_DATE.candidates)

    def severity(self, record: Dict[str, Any]) -> str:
        return self.category(record, ClaimFields.SEVERITY)

    def county(self, record: Dict[str, Any]) -> str:
        return self.category(record, ClaimFields.COUNTY)

    def state(self, record: Dict[str, Any]) -> str:
        return self.category(record, ClaimFields.STATE)

    def venue_rating(self, record: Dict[str, Any]) -> str:
        return self.category(record, ClaimFields.VENUE_RATING)

    def injury_group(self, record: Dict[str, Any]) -> str:
        return self.category(record, ClaimFields.INJURY_GROUP)

    def body_region(self, record: Dict[str, Any]) -> str:
        return self.category(record, ClaimFields.BODY_REGION)

    def adjuster(self, record: Dict[str, Any]) -> str:
        return self.category(record, ClaimFields.ADJUSTER)

    def factor_values(self, record: Dict[str, Any]) -> List[Tuple[str, str]]:
        """Present driver factors as (label, value) pairs, skipping blanks and 'Unknown'."""
        factors = []
        for label, column in ClaimFields.DRIVER_FACTORS:
            value = resolve_category(record, (column,), default='')
            if value and value != UNKNOWN_VALUE:
                factors.append((label, value))
        return factors

# business_logic/aggregation/claims_aggregator.py

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

import pandas as pd

from business_logic.aggregation.field_resolver import ClaimFieldResolver
from business_logic.aggregation.resolved_claim import ResolvedClaim
from business_logic.aggregation.group_aggregators import (
    YearSeverityAggregator, CountyYearAggregator, InjuryGroupAggregator,
    AdjusterPerformanceAggregator, VenueAnalysisAggregator
)
from business_logic.aggregation.variance_drivers import VarianceDriverAggregator
from data_integration.io.summary_writer import write_summary_csv, read_summary_csv, summary_to_frame
from services.aggregation_constants import HIGH_VARIANCE_THRESHOLD, MIN_DRIVER_SUPPORT, TOP_DRIVER_COUNT

logger = logging.getLogger(__name__)

# Fixed feeding and output order
GROUP_AGGREGATOR_TYPES = (
    YearSeverityAggregator,
    CountyYearAggregator,
    InjuryGroupAggregator,
    AdjusterPerformanceAggregator,
    VenueAnalysisAggregator,
)
AGGREGATOR_TYPES = GROUP_AGGREGATOR_TYPES + (VarianceDriverAggregator,)


class SummaryTable(NamedTuple):
    """One finalized aggregation, ready to be written to its output file."""
    name: str
    output_file: str
    columns: Tuple[str, ...]
    rows: List[Dict[str, Any]]


def build_aggregators(variance_threshold: float = HIGH_VARIANCE_THRESHOLD,
                      min_support: int = MIN_DRIVER_SUPPORT,
                      top_n: int = TOP_DRIVER_COUNT,
                      zero_is_missing: bool = True) -> List[Any]:
    """
    Create a fresh set of the six aggregators sharing one field resolver.

    Every call returns new instances, so separate runs never share state.
    """
    resolver = ClaimFieldResolver(zero_is_missing=zero_is_missing)
    aggregators: List[Any] = [
        aggregator_type(resolver=resolver, variance_threshold=variance_threshold)
        for aggregator_type in GROUP_AGGREGATOR_TYPES
    ]
    aggregators.append(VarianceDriverAggregator(resolver=resolver, min_support=min_support, top_n=top_n))
    return aggregators


class ClaimsSummary:
    """
    Container for the six finalized claim summaries.

    Memory-optimized with __slots__; the summaries themselves are small compared with the
    input they were computed from.
    """

    __slots__ = ('tables', 'record_count')

    def __init__(self, tables: List[SummaryTable], record_count: int):
        self.tables = {table.name: table for table in tables}
        self.record_count = record_count

    @classmethod
    def from_aggregators(cls, aggregators: Iterable[Any], record_count: int) -> 'ClaimsSummary':
        """Finalize each aggregator into a table."""
        tables = [
            SummaryTable(agg.name, agg.output_file, tuple(agg.columns), agg.get_summary())
            for agg in aggregators
        ]
        return cls(tables, record_count)

    def __getitem__(self, name: str) -> List[Dict[str, Any]]:
        return self.tables[name].rows

    def row_counts(self) -> Dict[str, int]:
        """Number of output rows per aggregation."""
        return {name: len(table.rows) for name, table in self.tables.items()}

    def to_frames(self) -> Dict[str, pd.DataFrame]:
        """Each summary as a DataFrame with its fixed column order."""
        return {name: summary_to_frame(table.rows, table.columns) for name, table in self.tables.items()}

    def export_to_directory(self, output_dir: Union[str, Path]) -> Dict[str, Path]:
        """
        Write every summary to its output file in the given directory.

        Args:
            output_dir: Destination directory, created if missing

        Returns:
            Mapping of aggregation name to written file path
        """
        output_dir = Path(output_dir)
        written = {}
        for name, table in self.tables.items():
            written[name] = write_summary_csv(table.rows, table.columns, output_dir / table.output_file)
            logger.info(f"  Wrote {table.output_file} ({len(table.rows)} rows)")
        return written

    @classmethod
    def from_directory(cls, output_dir: Union[str, Path], record_count: int = 0) -> 'ClaimsSummary':
        """Reload summaries previously written by export_to_directory."""
        output_dir = Path(output_dir)
        tables = []
        for aggregator_type in AGGREGATOR_TYPES:
            frame = read_summary_csv(output_dir / aggregator_type.output_file)
            tables.append(SummaryTable(
                aggregator_type.name,
                aggregator_type.output_file,
                tuple(frame.columns),
                frame.to_dict(orient='records'),
            ))
        return cls(tables, record_count)


def aggregate_claims(records: Iterable[Dict[str, Any]],
                     aggregators: Optional[List[Any]] = None,
                     on_record: Optional[Callable[[int], None]] = None) -> ClaimsSummary:
    """
    Feed every record to every aggregator in a single pass and finalize the summaries.

    Works the same for a streamed iterator and an in-memory list of records.

    Args:
        records: Claim records in any order
        aggregators: Aggregators to feed; a fresh default set is built when omitted
        on_record: Called with the running record count after each record

    Returns:
        ClaimsSummary with one table per aggregator
    """
    if aggregators is None:
        aggregators = build_aggregators()

    # Aggregators built together share a resolver, so each record is resolved once
    resolver = aggregators[0].resolver if aggregators else ClaimFieldResolver()

    count = 0
    for record in records:
        claim = ResolvedClaim(record, resolver)
        for aggregator in aggregators:
            aggregator.add(claim)
        count += 1
        if on_record is not None:
            on_record(count)

    return ClaimsSummary.from_aggregators(aggregators, count)

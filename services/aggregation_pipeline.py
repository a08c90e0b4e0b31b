# services/aggregation_pipeline.py

"""
Aggregation Pipeline - drives a claims file through the six aggregators and writes
the summary files consumed by the dashboard.
"""

import logging
import time
from contextlib import closing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from business_logic.aggregation.claims_aggregator import ClaimsSummary, aggregate_claims, build_aggregators
from data_integration.connectors import ClaimsCSVConnector, get_connector_for_file
from data_integration.errors.error_handler import ConfigurationError
from services.aggregation_config import AggregationConfig
from services.aggregation_constants import MODE_STREAMING
from services.progress_tracker import ProgressTracker

logger = logging.getLogger(__name__)


@dataclass
class AggregationResult:
    """Result object from an aggregation run."""

    record_count: int
    elapsed_seconds: float
    mode: str
    output_files: Dict[str, Path] = field(default_factory=dict)
    row_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def rate(self) -> float:
        """Records per second."""
        return self.record_count / self.elapsed_seconds if self.elapsed_seconds > 0 else 0.0


class AggregationPipeline:
    """
    Single-pass batch aggregation of a claims file.

    Records are pulled one at a time and handed to every aggregator before the next one
    is read. All summaries are finalized before any output file is written, and each file
    is replaced atomically, so a failed run never leaves half-written output behind.
    """

    def __init__(self,
                 config: Optional[AggregationConfig] = None,
                 progress_callback: Optional[Callable[[int, str], None]] = None):
        """
        Initialize the pipeline.

        Args:
            config: Aggregation configuration (defaults are used when omitted)
            progress_callback: Optional callable receiving (records_processed, status)
        """
        self.config = config or AggregationConfig()
        self.progress_callback = progress_callback

    def create_connector(self) -> ClaimsCSVConnector:
        """Build the connector for the configured input file."""
        params = {
            'encoding': self.config.encoding,
            'chunk_size': self.config.chunk_size,
        }
        if self.config.delimiter:
            params['delimiter'] = self.config.delimiter

        try:
            return get_connector_for_file(self.config.input_path, **params)
        except ValueError as e:
            raise ConfigurationError(str(e), {'input_path': str(self.config.input_path)}) from e

    def create_aggregators(self) -> List[Any]:
        """Fresh aggregators configured for this run."""
        return build_aggregators(
            variance_threshold=self.config.variance_threshold,
            min_support=self.config.min_support,
            top_n=self.config.top_n,
            zero_is_missing=self.config.zero_is_missing,
        )

    def aggregate(self, records: Iterable[Dict[str, Any]],
                  tracker: Optional[ProgressTracker] = None) -> ClaimsSummary:
        """
        Aggregate any iterable of claim records, streamed or in memory.

        Args:
            records: Claim records
            tracker: Progress tracker updated after every record

        Returns:
            ClaimsSummary with the six finalized tables
        """
        on_record = tracker.update if tracker is not None else None
        return aggregate_claims(records, self.create_aggregators(), on_record)

    def run(self) -> AggregationResult:
        """
        Read the input file, aggregate it and write the six summary files.

        Returns:
            AggregationResult describing the run

        Raises:
            InputFileNotFoundError: If the input file does not exist
            DataLoadError: If the input contains a malformed row
            OutputWriteError: If a summary file cannot be written
        """
        start_time = time.monotonic()
        mode = self.config.mode
        logger.debug(f"Configuration: {self.config.to_dict()}")

        connector = self.create_connector()
        with connector:
            info = connector.get_file_info()
            logger.info(f"File: {info['file_name']} ({info['file_size_mb']:.2f} MB)")

            tracker = ProgressTracker(self.config.progress_interval, self.progress_callback)
            tracker.start()

            if mode == MODE_STREAMING:
                logger.info("Processing with streaming (memory-efficient)...")
                with closing(connector.iter_records()) as records:
                    summary = self.aggregate(records, tracker)
            else:
                logger.info("Loading all records into memory...")
                summary = self.aggregate(connector.load_records(), tracker)

            tracker.finish()

        logger.info(f"Generating summaries from {summary.record_count:,} claims")
        row_counts = summary.row_counts()
        for name, count in row_counts.items():
            logger.info(f"  {name}: {count} records")

        logger.info(f"Writing aggregated CSV files to {self.config.output_dir}")
        output_files = summary.export_to_directory(self.config.output_dir)

        result = AggregationResult(
            record_count=summary.record_count,
            elapsed_seconds=time.monotonic() - start_time,
            mode=mode,
            output_files=output_files,
            row_counts=row_counts,
        )

        logger.info(f"Total claims: {result.record_count:,}")
        logger.info(f"Processing time: {result.elapsed_seconds:.1f}s")
        logger.info(f"Rate: {result.rate:,.0f} claims/sec")
        return result

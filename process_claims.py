#!/usr/bin/env python3
"""
Claims variance aggregation.

Reads a claims file (public/dat.csv by default) and writes the six summary CSV files
the dashboard loads:

- year_severity_summary.csv
- county_year_summary.csv
- injury_group_summary.csv
- adjuster_performance_summary.csv
- venue_analysis_summary.csv
- variance_drivers_analysis.csv

Usage:
    claims-aggregate                  # streaming, bounded memory
    claims-aggregate-memory           # loads the whole file first
    claims-aggregate --input data/dat.csv --output-dir public --config aggregation.yaml
"""

import argparse
import logging
import sys
from typing import List, Optional

from data_integration.errors.error_handler import (
    DataIntegrationError, InputFileNotFoundError, ConfigurationError
)
from services.aggregation_config import load_aggregation_config
from services.aggregation_constants import LOG_FORMAT, MODE_STREAMING, MODE_MEMORY
from services.aggregation_pipeline import AggregationPipeline

logger = logging.getLogger("process_claims")


def build_parser(default_mode: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Aggregate claim records into dashboard summary files"
    )
    parser.add_argument('--input', '-i', dest='input_path', help='Claims CSV file (default: public/dat.csv)')
    parser.add_argument('--output-dir', '-o', dest='output_dir', help='Directory for summary files (default: public)')
    parser.add_argument('--config', '-c', help='YAML or JSON configuration file')
    parser.add_argument('--chunk-size', type=int, help='Rows held in memory while streaming')
    parser.add_argument('--mode', choices=[MODE_STREAMING, MODE_MEMORY], default=None,
                        help=f'Processing mode, overriding the config file (default: {default_mode})')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')
    return parser


def main(argv: Optional[List[str]] = None, default_mode: str = MODE_STREAMING) -> int:
    """Main entry point"""
    args = build_parser(default_mode).parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    try:
        config = load_aggregation_config(
            args.config,
            defaults={'mode': default_mode},
            input_path=args.input_path,
            output_dir=args.output_dir,
            chunk_size=args.chunk_size,
            mode=args.mode,
        )
        logger.info(f"Starting {config.mode} claims aggregation")
        AggregationPipeline(config).run()

    except InputFileNotFoundError as e:
        logger.error(f"ERROR: {e.message}")
        return 1
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except DataIntegrationError as e:
        logger.error(f"Aggregation failed: {e}")
        return 1

    logger.info("All aggregated CSV files generated successfully")
    return 0


def main_memory(argv: Optional[List[str]] = None) -> int:
    """Entry point for the in-memory mode"""
    return main(argv, default_mode=MODE_MEMORY)


if __name__ == "__main__":
    sys.exit(main())

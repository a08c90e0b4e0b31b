# services/aggregation_config.py

"""Configuration classes for the claims aggregation pipeline."""

import codecs
import json
import logging
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Dict, Any, Optional, Union

import yaml

from data_integration.errors.error_handler import ConfigurationError
from services.aggregation_constants import (
    DEFAULT_INPUT_PATH, DEFAULT_OUTPUT_DIR, DEFAULT_CHUNK_SIZE, DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_ENCODING, HIGH_VARIANCE_THRESHOLD, MIN_DRIVER_SUPPORT,
    TOP_DRIVER_COUNT, MODE_STREAMING, SUPPORTED_MODES
)

logger = logging.getLogger(__name__)


@dataclass
class AggregationConfig:
    """Configuration for a single aggregation run."""

    # File locations
    input_path: Path = field(default_factory=lambda: Path(DEFAULT_INPUT_PATH))
    output_dir: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_DIR))

    # Reader settings
    mode: str = MODE_STREAMING
    chunk_size: int = DEFAULT_CHUNK_SIZE
    delimiter: Optional[str] = None
    encoding: str = DEFAULT_ENCODING

    # Progress reporting
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL

    # Statistics
    variance_threshold: float = HIGH_VARIANCE_THRESHOLD
    min_support: int = MIN_DRIVER_SUPPORT
    top_n: int = TOP_DRIVER_COUNT
    zero_is_missing: bool = True

    def __post_init__(self):
        """Normalize paths and validate values."""
        self.input_path = Path(self.input_path)
        self.output_dir = Path(self.output_dir)

        if self.mode not in SUPPORTED_MODES:
            raise ConfigurationError(
                f"Unsupported mode: {self.mode}. Supported modes: {SUPPORTED_MODES}",
                {'mode': self.mode}
            )

        for name in ('chunk_size', 'progress_interval', 'min_support', 'top_n'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer", {name: value})

        if not isinstance(self.variance_threshold, (int, float)) or self.variance_threshold < 0:
            raise ConfigurationError("variance_threshold must be a non-negative number",
                                     {'variance_threshold': self.variance_threshold})

        if self.delimiter is not None and len(self.delimiter) != 1:
            raise ConfigurationError("delimiter must be a single character", {'delimiter': self.delimiter})

        try:
            codecs.lookup(self.encoding)
        except (LookupError, TypeError) as e:
            raise ConfigurationError(f"Unknown encoding: {self.encoding}", {'encoding': self.encoding}) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        result = asdict(self)
        result['input_path'] = str(self.input_path)
        result['output_dir'] = str(self.output_dir)
        return result


def load_aggregation_config(config_path: Optional[Union[str, Path]] = None,
                            defaults: Optional[Dict[str, Any]] = None,
                            **overrides: Any) -> AggregationConfig:
    """
    Load aggregation configuration from file or use defaults.

    Args:
        config_path: Path to a configuration file (YAML or JSON)
        defaults: Values that replace the built-in defaults but lose to the file
        **overrides: Explicit values (e.g. from the command line) that win over the file

    Returns:
        AggregationConfig with file values merged over the defaults

    Raises:
        ConfigurationError: If the file cannot be read or contains invalid settings
    """
    file_values: Dict[str, Any] = {}

    if config_path:
        config_path = str(config_path)
        try:
            with open(config_path, 'r') as f:
                if config_path.lower().endswith(('.yaml', '.yml')):
                    file_values = yaml.safe_load(f) or {}
                elif config_path.lower().endswith('.json'):
                    file_values = json.load(f)
                else:
                    raise ConfigurationError(f"Unsupported config file format: {config_path}")
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Error loading configuration: {str(e)}",
                                     {'config_path': config_path}) from e

        if not isinstance(file_values, dict):
            raise ConfigurationError("Configuration file must contain a mapping",
                                     {'config_path': config_path})

        # Settings may be nested under an 'aggregation' section
        file_values = file_values.get('aggregation', file_values)
        if not isinstance(file_values, dict):
            raise ConfigurationError("The aggregation section must contain a mapping",
                                     {'config_path': config_path})

        known = {f.name for f in fields(AggregationConfig)}
        unknown = sorted(set(file_values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {unknown}",
                                     {'config_path': config_path})

        logger.info(f"Loaded aggregation configuration from {config_path}")

    values = dict(defaults or {})
    values.update(file_values)
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return AggregationConfig(**values)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {str(e)}") from e

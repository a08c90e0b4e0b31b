# data_integration/errors/error_handler.py

import logging
import json
import datetime
from typing import Dict, Any, NoReturn, Optional, Callable, Type, TypeVar

import pandas as pd

logger = logging.getLogger(__name__)

T = TypeVar('T')


class DataIntegrationError(Exception):
    """Base class for every error raised while aggregating claims"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.raised_at = datetime.datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Error as a JSON-friendly dictionary, e.g. for a run report"""
        payload = {
            'error_type': type(self).__name__,
            'message': self.message,
            'raised_at': self.raised_at,
        }
        if self.details:
            payload['details'] = self.details
        return payload

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} ({json.dumps(self.details, default=str, sort_keys=True)})"


class ConnectionError(DataIntegrationError):
    """The claims source could not be opened"""


class InputFileNotFoundError(ConnectionError):
    """The claims input file does not exist; the run cannot start"""


class DataLoadError(DataIntegrationError):
    """Claim records could not be read or parsed"""


class ConfigurationError(DataIntegrationError):
    """Aggregation settings are missing or invalid"""


class OutputWriteError(DataIntegrationError):
    """A summary file could not be written"""


class ErrorHandler:
    """
    Translates low-level failures from a claims source into the error hierarchy above.

    Every failure is logged once with the source name, then raised as the matching
    DataIntegrationError subclass with the original exception chained.

    Args:
        log_errors: Log each failure before raising it
    """

    def __init__(self, log_errors: bool = True):
        self.log_errors = log_errors

    def raise_error(self,
                    error: Exception,
                    error_type: Type[DataIntegrationError],
                    message: str,
                    context: Optional[Dict[str, Any]] = None) -> NoReturn:
        """Log and raise ``error`` as ``error_type`` unless it already is a claims error."""
        if isinstance(error, DataIntegrationError):
            translated = error
        else:
            translated = error_type(message, context)

        if self.log_errors:
            logger.error(str(translated))

        if translated is error:
            raise translated
        raise translated from error

    def connection_failed(self,
                          error: Exception,
                          source_name: str,
                          connection_params: Optional[Dict[str, Any]] = None) -> NoReturn:
        """
        Raise a failure to open a claims source.

        A missing file becomes InputFileNotFoundError so callers can tell the fatal
        precondition apart from other connection problems.
        """
        context: Dict[str, Any] = {'source_name': source_name}
        if connection_params:
            context['file_path'] = connection_params.get('file_path')

        if isinstance(error, FileNotFoundError):
            self.raise_error(error, InputFileNotFoundError, str(error), context)
        self.raise_error(error, ConnectionError, f"Cannot open {source_name}: {error}", context)

    def load_failed(self,
                    error: Exception,
                    source_name: str,
                    params: Optional[Dict[str, Any]] = None) -> NoReturn:
        """Raise a failure while reading records from a claims source."""
        context: Dict[str, Any] = {'source_name': source_name}
        if params:
            context.update(params)
        self.raise_error(error, DataLoadError, f"Cannot read claims from {source_name}: {error}", context)


def safe_dataframe_operation(func: Callable[..., T], *args, **kwargs) -> T:
    """
    Run a pandas reader call, reporting parser failures as DataLoadError.

    Raises:
        DataLoadError: On a tokenizer error, an empty file, undecodable bytes or a
            rejected argument
    """
    try:
        return func(*args, **kwargs)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, ValueError) as e:
        name = getattr(func, '__name__', repr(func))
        source = args[0] if args else kwargs.get('filepath_or_buffer')
        raise DataLoadError(f"{name} failed: {e}", {'source': str(source)}) from e

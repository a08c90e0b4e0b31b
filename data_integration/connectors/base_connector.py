# data_integration/connectors/base_connector.py

from abc import ABC, abstractmethod
from typing import Dict, Any, Iterator, List, NoReturn, Optional

from data_integration.errors.error_handler import ErrorHandler

# A claim record maps trimmed header names to trimmed string values
ClaimRecord = Dict[str, str]


class BaseConnector(ABC):
    """
    Abstract source of claim records.

    Subclasses open the source in connect(), release it in disconnect() and produce
    records lazily from iter_records(). Use as a context manager so the source is
    released on every exit path.
    """

    def __init__(self, connection_params: Optional[Dict[str, Any]] = None):
        """
        Args:
            connection_params: Source-specific settings, e.g. file_path for file sources
        """
        self.connection_params = connection_params or {}
        self._is_connected = False
        self.error_handler = ErrorHandler(log_errors=True)

    @abstractmethod
    def connect(self) -> bool:
        """Open the source; returns True once it is ready to be read."""

    @abstractmethod
    def disconnect(self) -> bool:
        """Release whatever the source holds open."""

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    @abstractmethod
    def iter_records(self) -> Iterator[ClaimRecord]:
        """Yield claim records one at a time without materializing the source."""

    def load_records(self) -> List[ClaimRecord]:
        """All claim records in a list, for sources small enough to hold in memory."""
        return list(self.iter_records())

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def handle_connection_error(self, error: Exception) -> NoReturn:
        """Raise a failure to open this source as a ConnectionError."""
        self.error_handler.connection_failed(error, type(self).__name__, self.connection_params)

    def handle_data_load_error(self, error: Exception,
                               params: Optional[Dict[str, Any]] = None) -> NoReturn:
        """Raise a failure while reading this source as a DataLoadError."""
        self.error_handler.load_failed(error, type(self).__name__, params)

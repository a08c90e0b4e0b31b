# data_integration/connectors/csv_connector.py

import os
import datetime
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List, Iterator

import pandas as pd

from .base_connector import BaseConnector, ClaimRecord
from data_integration.errors.error_handler import DataLoadError, safe_dataframe_operation
from services.aggregation_constants import DEFAULT_CHUNK_SIZE, DEFAULT_DELIMITER, DEFAULT_ENCODING

logger = logging.getLogger(__name__)


class ClaimsCSVConnector(BaseConnector):
    """
    Connector that reads claim records from a delimited text file with a header row.

    Records are produced lazily from fixed-size pandas chunks, so memory use is bounded
    by the chunk size rather than the file size. Every value is kept as a trimmed string;
    type coercion is left to the field resolver.
    """

    def __init__(self,
                 connection_params: Optional[Dict[str, Any]] = None):
        """
        Initialize the CSV connector.

        Args:
            connection_params: Dictionary with connection parameters, may include:
                - file_path: Path to the CSV file
                - delimiter: Field delimiter (default: ',')
                - encoding: File encoding (default: utf-8)
                - chunk_size: Rows held in memory at once while streaming (default: 10000)
        """
        super().__init__(connection_params)

        self.file_path = self.connection_params.get('file_path')
        self.delimiter = self.connection_params.get('delimiter') or DEFAULT_DELIMITER
        self.encoding = self.connection_params.get('encoding') or DEFAULT_ENCODING
        self.chunk_size = int(self.connection_params.get('chunk_size') or DEFAULT_CHUNK_SIZE)

        self._reader = None
        self._columns: Optional[List[str]] = None

    def connect(self) -> bool:
        """
        Validate the CSV file is accessible.

        Returns:
            True if file exists and is readable

        Raises:
            InputFileNotFoundError: If the file does not exist
            ConnectionError: If no path was given or the file is not readable
        """
        if not self.file_path:
            self.handle_connection_error(ValueError("No file path provided to CSV connector"))

        file_path = Path(self.file_path)
        if not file_path.is_file():
            self.handle_connection_error(FileNotFoundError(f"Claims file not found: {self.file_path}"))

        if not os.access(file_path, os.R_OK):
            self.handle_connection_error(PermissionError(f"Claims file is not readable: {self.file_path}"))

        self._is_connected = True
        return True

    def disconnect(self) -> bool:
        """
        Close the chunk reader if a stream is still open.

        Returns:
            Always True
        """
        self._close_reader()
        self._is_connected = False
        return True

    @property
    def columns(self) -> Optional[List[str]]:
        """Cleaned header names, available once reading has started."""
        return self._columns

    def iter_records(self) -> Iterator[ClaimRecord]:
        """
        Stream claim records from the file one at a time.

        The underlying reader is closed when the stream is exhausted, when the consumer
        stops early, or when an error is raised.

        Raises:
            DataLoadError: On an empty file or a row with more fields than the header
        """
        if not self._is_connected:
            self.connect()

        params = self._read_params()
        self._columns = None
        try:
            self._reader = safe_dataframe_operation(pd.read_csv, self.file_path,
                                                    chunksize=self.chunk_size, **params)
        except DataLoadError as e:
            self.handle_data_load_error(e)

        records_seen = 0
        try:
            with self._reader as reader:
                for chunk in self._read_chunks(reader, params):
                    frame = self._prepare_frame(chunk)
                    records_seen += len(frame)
                    yield from frame.to_dict(orient='records')
        finally:
            self._reader = None

        logger.debug(f"Streamed {records_seen} records from {self.file_path}")

    def load_dataframe(self) -> pd.DataFrame:
        """
        Load the whole file into a single DataFrame of trimmed strings.

        Raises:
            DataLoadError: On an empty file or a row with more fields than the header
        """
        if not self._is_connected:
            self.connect()

        params = self._read_params()
        self._columns = None
        try:
            raw = safe_dataframe_operation(pd.read_csv, self.file_path, **params)
        except DataLoadError as e:
            self.handle_data_load_error(e)
        return self._prepare_frame(raw)

    def load_records(self) -> List[ClaimRecord]:
        """Load every claim record into memory."""
        return self.load_dataframe().to_dict(orient='records')

    def get_file_info(self) -> Dict[str, Any]:
        """
        Get information about the CSV file.

        Returns:
            Dictionary with file information
        """
        if not self._is_connected:
            self.connect()

        file_size = os.path.getsize(self.file_path)
        return {
            'file_path': str(self.file_path),
            'file_name': os.path.basename(self.file_path),
            'file_size': file_size,
            'file_size_mb': round(file_size / 1024 / 1024, 2),
            'last_modified': datetime.datetime.fromtimestamp(os.path.getmtime(self.file_path)).isoformat()
        }

    def _read_params(self) -> Dict[str, Any]:
        # header=None lets the header line fix the expected field count, so longer rows
        # are rejected by the tokenizer.
        return {
            'sep': self.delimiter,
            'encoding': self.encoding,
            'header': None,
            'dtype': str,
            'keep_default_na': False,
            'skip_blank_lines': True,
        }

    def _read_chunks(self, reader, params: Dict[str, Any]) -> Iterator[pd.DataFrame]:
        iterator = iter(reader)
        while True:
            try:
                chunk = next(iterator)
            except StopIteration:
                return
            except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as e:
                self.handle_data_load_error(e, {'file_path': str(self.file_path),
                                                'delimiter': params['sep']})
            yield chunk

    def _prepare_frame(self, frame: pd.DataFrame) -> pd.DataFrame:
        """
        Turn a raw header-less frame into named, trimmed records.

        The first row seen by a read supplies the column names. Trailing fields missing
        from a short row come back as empty strings.

        Args:
            frame: Raw frame read with header=None

        Returns:
            Frame with cleaned column names and stripped string values
        """
        if self._columns is None:
            if frame.empty:
                self.handle_data_load_error(DataLoadError(
                    f"No header row found in {self.file_path}", {'file_path': str(self.file_path)}))
            header = frame.iloc[0].tolist()
            self._columns = self._clean_column_names(header)
            frame = frame.iloc[1:]

        frame = frame.fillna('')
        frame.columns = self._columns

        for col in frame.columns:
            frame[col] = frame[col].astype(str).str.strip()

        return frame.reset_index(drop=True)

    def _close_reader(self) -> None:
        if self._reader is not None:
            try:
                self._reader.close()
            finally:
                self._reader = None

    def _clean_column_names(self, columns) -> List[str]:
        """
        Clean up column names from the header row.
        - Remove whitespace and byte order marks
        - Make column names unique

        Args:
            columns: Original column names

        Returns:
            Cleaned column names
        """
        cleaned = [
            str(col).replace('\ufeff', '').strip() if isinstance(col, str) else f"Unnamed_{i}"
            for i, col in enumerate(columns)
        ]

        seen = {}
        for i, col in enumerate(cleaned):
            if col in seen:
                seen[col] += 1
                cleaned[i] = f"{col}_{seen[col]}"
            else:
                seen[col] = 0

        return cleaned

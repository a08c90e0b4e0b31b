# data_integration/io/summary_writer.py

import os
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

import pandas as pd

from data_integration.errors.error_handler import OutputWriteError, DataLoadError, safe_dataframe_operation
from services.aggregation_constants import DEFAULT_ENCODING, OUTPUT_LINE_TERMINATOR

logger = logging.getLogger(__name__)


def summary_to_frame(rows: List[Dict[str, Any]], columns: Sequence[str]) -> pd.DataFrame:
    """
    Build a DataFrame with a fixed column order from summary rows.

    Args:
        rows: Summary rows as dictionaries
        columns: Output column order; also used as the header when there are no rows

    Returns:
        DataFrame with exactly the given columns
    """
    return pd.DataFrame(rows, columns=list(columns))


def write_summary_csv(rows: List[Dict[str, Any]],
                      columns: Sequence[str],
                      file_path: Union[str, Path]) -> Path:
    """
    Write summary rows to a CSV file without ever exposing a partial file.

    The data is written to a temporary file in the destination directory and moved into
    place with os.replace. Fields containing a comma, quote or line break are quoted with
    inner quotes doubled; missing values are written as empty fields.

    Args:
        rows: Summary rows as dictionaries
        columns: Output column order
        file_path: Destination path

    Returns:
        Path to the written file

    Raises:
        OutputWriteError: If the file cannot be written
    """
    file_path = Path(file_path)
    frame = summary_to_frame(rows, columns)

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(prefix=f".{file_path.name}.", suffix='.tmp',
                                         dir=str(file_path.parent))
        os.close(fd)
    except OSError as e:
        raise OutputWriteError(f"Cannot prepare output file {file_path}: {str(e)}",
                               {'file_path': str(file_path)}) from e

    try:
        frame.to_csv(temp_path, index=False, encoding=DEFAULT_ENCODING,
                     lineterminator=OUTPUT_LINE_TERMINATOR)
        os.replace(temp_path, file_path)
    except OSError as e:
        _remove_quietly(temp_path)
        raise OutputWriteError(f"Failed to write {file_path}: {str(e)}",
                               {'file_path': str(file_path)}) from e
    except BaseException:
        _remove_quietly(temp_path)
        raise

    logger.debug(f"Wrote {len(frame)} rows to {file_path}")
    return file_path


def read_summary_csv(file_path: Union[str, Path]) -> pd.DataFrame:
    """
    Read a summary file written by write_summary_csv.

    Empty fields stay empty strings rather than becoming NaN.
    """
    if not Path(file_path).is_file():
        raise DataLoadError(f"Summary file not found: {file_path}", {'file_path': str(file_path)})
    return safe_dataframe_operation(pd.read_csv, file_path, keep_default_na=False,
                                    encoding=DEFAULT_ENCODING)


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove temporary file {path}: {str(e)}")

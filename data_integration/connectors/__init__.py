# data_integration/connectors/__init__.py
"""
Connector modules for reading claim records from data sources.
"""

import os

from .base_connector import BaseConnector, ClaimRecord
from .csv_connector import ClaimsCSVConnector

# Dictionary mapping file extensions to appropriate connectors
FILE_EXTENSION_MAPPING = {
    '.csv': ClaimsCSVConnector,
    '.tsv': ClaimsCSVConnector,
    '.txt': ClaimsCSVConnector,
}


def get_connector_for_file(file_path, **kwargs):
    """
    Factory method to get the appropriate connector for a given file path.

    Args:
        file_path: Path to the data file
        **kwargs: Additional parameters to pass to the connector

    Returns:
        Appropriate connector instance for the file type
    """
    _, ext = os.path.splitext(str(file_path).lower())

    if ext not in FILE_EXTENSION_MAPPING:
        raise ValueError(f"Unsupported file extension: {ext}")

    connection_params = kwargs.copy()
    connection_params['file_path'] = str(file_path)
    if ext == '.tsv' and not connection_params.get('delimiter'):
        connection_params['delimiter'] = '\t'
    return FILE_EXTENSION_MAPPING[ext](connection_params)


__all__ = ['BaseConnector', 'ClaimRecord', 'ClaimsCSVConnector', 'get_connector_for_file']

# data_integration/io/__init__.py
"""
I/O utilities for summary export.
"""

from .summary_writer import summary_to_frame, write_summary_csv, read_summary_csv

__all__ = ['summary_to_frame', 'write_summary_csv', 'read_summary_csv']

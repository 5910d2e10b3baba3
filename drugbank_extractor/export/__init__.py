"""
Export module for the drug extraction system.

This module writes extracted tables to flat files.
"""

from .csv_writer import CsvTableWriter

__all__ = [
    'CsvTableWriter'
]

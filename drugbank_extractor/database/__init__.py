"""
Database module for the drug extraction system.

This module bulk inserts extracted tables into SQL Server.
"""

from .table_writer import SqlServerTableWriter, quote_identifier

__all__ = [
    'SqlServerTableWriter',
    'quote_identifier'
]

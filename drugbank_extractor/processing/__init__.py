"""
Processing module for the drug extraction system.

This module folds per-drug extraction results into corpus-wide tables, either
sequentially or on a thread pool, and runs whole extraction contracts.
"""

from .table_aggregator import TableAggregator, ParentOutcome
from .extraction_pipeline import ExtractionPipeline

__all__ = [
    'TableAggregator',
    'ParentOutcome',
    'ExtractionPipeline'
]

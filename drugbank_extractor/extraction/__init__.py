"""
Extraction module for the drug extraction system.

This module provides the extractors that project one parent node into table
records: the scalar drug record, the generic homogeneous sub-table engine, and
the reaction and ATC code extractors for irregular subtrees.
"""

from .scalar_extractor import ScalarRecordExtractor
from .subtable_extractor import SubTableExtractor, flatten_item
from .reaction_extractor import ReactionExtractor, REACTION_FIELDS
from .atc_code_extractor import AtcCodeExtractor
from .composite_extractor import CompositeExtractor

__all__ = [
    'ScalarRecordExtractor',
    'SubTableExtractor',
    'flatten_item',
    'ReactionExtractor',
    'REACTION_FIELDS',
    'AtcCodeExtractor',
    'CompositeExtractor'
]

"""
DrugBank Table Extraction System

A schema-driven tool that projects the nested DrugBank XML drug records into a set of
relational tables: one row per drug in the scalar table, and keyed sub-tables for every
repeated child collection.
"""

__version__ = "1.0.0"
__author__ = "DrugBank Extractor Team"

# Import core models and interfaces for easy access
from .models import (
    ExtractionConfig,
    ExtractionContract,
    SubTableDefinition,
    Table,
    ExtractionResult,
    ExtractionFailure,
    ProcessingResult,
    ErrorPolicy,
    FormatErrorPolicy,
    PARENT_KEY
)

from .interfaces import (
    NodeInterface,
    ExtractorInterface,
    TableWriterInterface,
    ConfigurationManagerInterface,
    PerformanceMonitorInterface
)

from .exceptions import (
    DrugExtractionError,
    XMLParsingError,
    FormatError,
    StructureError,
    ConfigurationError,
    ExtractionCancelledError,
    DatabaseError,
    DatabaseConnectionError,
    TruncationWarning
)

__all__ = [
    # Core models
    "ExtractionConfig",
    "ExtractionContract",
    "SubTableDefinition",
    "Table",
    "ExtractionResult",
    "ExtractionFailure",
    "ProcessingResult",
    "ErrorPolicy",
    "FormatErrorPolicy",
    "PARENT_KEY",

    # Interfaces
    "NodeInterface",
    "ExtractorInterface",
    "TableWriterInterface",
    "ConfigurationManagerInterface",
    "PerformanceMonitorInterface",

    # Exceptions
    "DrugExtractionError",
    "XMLParsingError",
    "FormatError",
    "StructureError",
    "ConfigurationError",
    "ExtractionCancelledError",
    "DatabaseError",
    "DatabaseConnectionError",
    "TruncationWarning"
]

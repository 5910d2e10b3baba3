"""
Custom exceptions for the DrugBank table extraction system.

This module defines specific exception types for the error conditions that can
occur while projecting drug records into relational tables. A missing node path is
deliberately not represented here: absent structure resolves to zero rows inside
the extractors and is never surfaced.
"""


class DrugExtractionError(Exception):
    """Base exception for all drug extraction related errors."""

    def __init__(self, message: str, parent_key: str = None):
        """
        Initialize drug extraction error.

        Args:
            message: Error description
            parent_key: Optional DrugKey of the drug record that caused the error
        """
        super().__init__(message)
        self.message = message
        self.parent_key = parent_key
        self.parent_index = None

    def __str__(self) -> str:
        context = self._context_parts()
        if self.parent_key is not None:
            context.insert(0, f"parent_key={self.parent_key!r}")
        if self.parent_index is not None:
            context.insert(0, f"parent_index={self.parent_index}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"

    def _context_parts(self) -> list:
        return []


class XMLParsingError(DrugExtractionError):
    """Exception raised when the XML source cannot be read or parsed."""

    def __init__(self, message: str, xml_content: str = None, source: str = None):
        """
        Initialize XML parsing error.

        Args:
            message: Error description
            xml_content: Optional XML content that failed to parse (truncated for logging)
            source: Optional file path or label of the XML source
        """
        super().__init__(message)
        # Store truncated XML content for debugging (first 500 chars)
        self.xml_content = xml_content[:500] + "..." if xml_content and len(xml_content) > 500 else xml_content
        self.source = source

    def _context_parts(self) -> list:
        return [f"source={self.source}"] if self.source else []


class FormatError(DrugExtractionError):
    """Exception raised when a scalar field's raw text cannot be converted to its declared type."""

    def __init__(self, message: str, field_name: str = None, raw_value: str = None,
                 node_path: str = None, parent_key: str = None):
        """
        Initialize format error.

        Args:
            message: Error description
            field_name: Name of the output field that failed conversion
            raw_value: Original text that failed conversion
            node_path: Path of the node carrying the value (e.g. 'drug/@created')
            parent_key: Optional DrugKey of the drug record
        """
        super().__init__(message, parent_key)
        self.field_name = field_name
        self.raw_value = raw_value
        self.node_path = node_path

    def _context_parts(self) -> list:
        parts = []
        if self.field_name:
            parts.append(f"field={self.field_name}")
        if self.node_path:
            parts.append(f"path={self.node_path}")
        parts.append(f"raw_value={self.raw_value!r}")
        return parts


class StructureError(DrugExtractionError):
    """Exception raised when a resolved node does not have the shape an extractor expects."""

    def __init__(self, message: str, node_path: str = None, parent_key: str = None):
        """
        Initialize structure error.

        Args:
            message: Error description
            node_path: Path of the offending node (e.g. 'drug/general-references/articles')
            parent_key: Optional DrugKey of the drug record
        """
        super().__init__(message, parent_key)
        self.node_path = node_path

    def _context_parts(self) -> list:
        return [f"path={self.node_path}"] if self.node_path else []


class ConfigurationError(DrugExtractionError):
    """Exception raised when configuration or the extraction contract is invalid or missing."""
    pass


class ExtractionCancelledError(DrugExtractionError):
    """Exception raised when a run is cancelled between parent records."""

    def __init__(self, message: str, parents_completed: int = 0):
        super().__init__(message)
        self.parents_completed = parents_completed


class TruncationWarning(UserWarning):
    """Warning issued when a fixed-width positional extractor drops overflow positions."""
    pass


class DatabaseError(DrugExtractionError):
    """Exception raised when extracted tables cannot be written to the database."""

    def __init__(self, message: str, table_name: str = None):
        """
        Initialize database error.

        Args:
            message: Error description
            table_name: Optional name of the table being written
        """
        super().__init__(message)
        self.table_name = table_name

    def _context_parts(self) -> list:
        return [f"table={self.table_name}"] if self.table_name else []


class DatabaseConnectionError(DatabaseError):
    """Exception raised when a database connection cannot be established."""
    pass

"""
Abstract interfaces and base classes for the DrugBank table extraction system.

This module defines the contracts that all system components must implement
to ensure consistent behavior and enable dependency injection. The extraction
engine only ever touches parsed XML through NodeInterface, which isolates it from
the concrete parse-tree types of the XML library.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .models import ExtractionConfig, FlatRecord, ProcessingResult, Table


class NodeInterface(ABC):
    """Read-only navigation primitives over one node of a parsed XML tree."""

    @property
    @abstractmethod
    def tag(self) -> str:
        """Local (namespace-free) element name."""
        pass

    @abstractmethod
    def text(self) -> Optional[str]:
        """
        Text content of the node, including descendant text.

        Returns:
            Node text (trimmed or not per configuration), or None when the node
            carries no text at all
        """
        pass

    @abstractmethod
    def attribute(self, name: str) -> Optional[str]:
        """
        Look up an attribute value.

        Args:
            name: Attribute name

        Returns:
            Attribute value, or None when the attribute is absent
        """
        pass

    @abstractmethod
    def own_text(self) -> Optional[str]:
        """Text directly inside the node, excluding descendants; None when blank."""
        pass

    @abstractmethod
    def attributes(self) -> List[Tuple[str, str]]:
        """All attributes as (name, value) pairs in document order."""
        pass

    @abstractmethod
    def children(self) -> List['NodeInterface']:
        """Element children in document order."""
        pass

    @abstractmethod
    def child(self, tag: str) -> Optional['NodeInterface']:
        """
        First element child with the given tag.

        Args:
            tag: Local element name

        Returns:
            Matching child node, or None when absent
        """
        pass

    @abstractmethod
    def children_by_tag(self, tag: str) -> List['NodeInterface']:
        """All element children with the given tag, in document order."""
        pass

    @property
    @abstractmethod
    def path(self) -> str:
        """Slash-separated path of local names from the document root, used in error reports."""
        pass

    def has_children(self) -> bool:
        return bool(self.children())


class ExtractorInterface(ABC):
    """
    Abstract interface for extractors run by the table aggregator.

    An extractor is a pure function of (parent node, configuration) to records; it
    must not mutate shared state so parents can be processed in any order.
    """

    def __init__(self, config: ExtractionConfig):
        self.config = config

    @property
    @abstractmethod
    def table_names(self) -> Tuple[str, ...]:
        """Names of every table this extractor contributes rows to."""
        pass

    def declared_columns(self, table_name: str) -> Sequence[str]:
        """
        Columns a table always has regardless of input.

        Generic extractors derive columns from data and return an empty sequence.
        """
        return ()

    @abstractmethod
    def extract(self, parent: NodeInterface) -> Dict[str, List[FlatRecord]]:
        """
        Project one parent node into per-table record lists.

        Args:
            parent: Parent (drug) node

        Returns:
            Dictionary with table names as keys and records in source order as values;
            tables with no rows for this parent may be omitted

        Raises:
            FormatError: If a typed scalar value is malformed
            StructureError: If a resolved node has an unexpected shape
        """
        pass


class TableWriterInterface(ABC):
    """Abstract interface for persisting extracted tables."""

    @abstractmethod
    def write_table(self, table: Table) -> int:
        """
        Persist one table.

        Args:
            table: Table to write

        Returns:
            Number of rows written
        """
        pass

    def write_tables(self, tables: Mapping[str, Table]) -> Dict[str, int]:
        """Persist every table, returning rows written per table."""
        return {name: self.write_table(table) for name, table in tables.items()}


class ConfigurationManagerInterface(ABC):
    """Abstract interface for configuration management components."""

    @abstractmethod
    def load_extraction_contract(self, contract_path: Optional[str] = None) -> Any:
        """
        Load an extraction contract from file.

        Args:
            contract_path: Path to a JSON or YAML contract; None selects the default

        Returns:
            Loaded and validated extraction contract
        """
        pass

    @abstractmethod
    def validate_configuration(self) -> bool:
        """Validate settings, raising ConfigurationError when invalid."""
        pass


class PerformanceMonitorInterface(ABC):
    """Abstract interface for performance monitoring components."""

    @abstractmethod
    def start_monitoring(self) -> None:
        """Start performance monitoring."""
        pass

    @abstractmethod
    def stop_monitoring(self) -> ProcessingResult:
        """
        Stop monitoring and return results.

        Returns:
            Processing results with performance metrics
        """
        pass

    @abstractmethod
    def record_metric(self, metric_name: str, value: Any) -> None:
        """
        Record a performance metric.

        Args:
            metric_name: Name of the metric
            value: Metric value
        """
        pass

    @abstractmethod
    def get_current_metrics(self) -> Dict[str, Any]:
        """
        Get current performance metrics.

        Returns:
            Dictionary of current metric values
        """
        pass

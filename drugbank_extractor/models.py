"""
Core data models for the DrugBank table extraction system.

This module defines the primary data structures used throughout the system
for extraction configuration, sub-table definitions, tables and run results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple


PARENT_KEY = "parent_key"

FlatRecord = Dict[str, Optional[str]]

DEFAULT_SCALAR_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("name", "name"),
    ("description", "description"),
    ("cas_number", "cas-number"),
    ("unii", "unii"),
    ("average_mass", "average-mass"),
    ("monoisotopic_mass", "monoisotopic-mass"),
    ("state", "state"),
    ("synthesis_reference", "synthesis-reference"),
    ("indication", "indication"),
    ("pharmacodynamics", "pharmacodynamics"),
    ("mechanism_of_action", "mechanism-of-action"),
    ("toxicity", "toxicity"),
    ("metabolism", "metabolism"),
    ("absorption", "absorption"),
    ("half_life", "half-life"),
    ("protein_binding", "protein-binding"),
    ("route_of_elimination", "route-of-elimination"),
    ("volume_of_distribution", "volume-of-distribution"),
    ("clearance", "clearance"),
    ("fda_label", "fda-label"),
    ("msds", "msds"),
)


class FormatErrorPolicy(Enum):
    """What the scalar extractor does with a value it cannot convert."""
    RAISE = "raise"
    NULL = "null"


class ErrorPolicy(Enum):
    """What the table aggregator does when a parent's extraction fails."""
    ABORT = "abort"
    COLLECT = "collect"


@dataclass(frozen=True)
class ExtractionConfig:
    """
    Explicit configuration passed to every extractor invocation.

    Attributes:
        key_field: Child tag whose text is the DrugKey attached as parent_key
        identifier_tag: Repeated identifier child split into positional slots
        identifier_slots: Number of identifier slots in the drugs table
        identifier_fields: Output names of the identifier slots, in slot order
        drug_attributes: Attributes of <drug> copied into the drugs table
        date_attributes: Subset of drug_attributes that must parse with date_format
        date_format: strptime format of date attributes
        drug_types: Accepted values of the 'type' attribute
        scalar_fields: Ordered (output field, child tag) pairs for single-valued children
        strip_text: Whether node text is trimmed
        format_error_policy: Raise or null out on malformed scalar values
        atc_max_levels: Number of level/code column pairs in the ATC table
    """
    key_field: str = "drugbank-id"
    identifier_tag: str = "drugbank-id"
    identifier_slots: int = 3
    identifier_fields: Tuple[str, ...] = ("primary_key", "secondary_key", "third_key")
    drug_attributes: Tuple[str, ...] = ("type", "created", "updated")
    date_attributes: Tuple[str, ...] = ("created", "updated")
    date_format: str = "%Y-%m-%d"
    drug_types: Tuple[str, ...] = ("biotech", "small molecule", "small-molecule")
    scalar_fields: Tuple[Tuple[str, str], ...] = DEFAULT_SCALAR_FIELDS
    strip_text: bool = True
    format_error_policy: FormatErrorPolicy = FormatErrorPolicy.RAISE
    atc_max_levels: int = 4

    def __post_init__(self):
        """Validate extraction configuration."""
        if not self.key_field:
            raise ValueError("key_field cannot be empty")
        if self.identifier_slots <= 0:
            raise ValueError("identifier_slots must be positive")
        if len(self.identifier_fields) != self.identifier_slots:
            raise ValueError("identifier_fields must name exactly identifier_slots fields")
        if self.atc_max_levels <= 0:
            raise ValueError("atc_max_levels must be positive")
        if not set(self.date_attributes) <= set(self.drug_attributes):
            raise ValueError("date_attributes must be a subset of drug_attributes")


@dataclass(frozen=True)
class SubTableDefinition:
    """
    Defines one homogeneous sub-table extracted from a repeated child collection.

    Attributes:
        table_name: Name of the output table
        collection_tag: Tag of the collection node under the parent
        sub_collection_tag: Optional tag of a nested collection under collection_tag
        key_enabled: Whether rows carry a parent_key column
        key_tag: Optional override of the config key_field for this table
    """
    table_name: str
    collection_tag: str
    sub_collection_tag: Optional[str] = None
    key_enabled: bool = True
    key_tag: Optional[str] = None

    def __post_init__(self):
        if not self.table_name:
            raise ValueError("table_name cannot be empty")
        if not self.collection_tag:
            raise ValueError("collection_tag cannot be empty")
        if self.key_tag is not None and not self.key_enabled:
            raise ValueError(f"{self.table_name}: key_tag given but key_enabled is False")

    def resolve_key_tag(self, config: ExtractionConfig) -> Optional[str]:
        """Return the tag used for parent_key, or None when the key is disabled."""
        if not self.key_enabled:
            return None
        return self.key_tag or config.key_field

    @property
    def collection_path(self) -> str:
        if self.sub_collection_tag:
            return f"{self.collection_tag}/{self.sub_collection_tag}"
        return self.collection_tag


@dataclass(frozen=True)
class ExtractionContract:
    """
    Complete description of the tables extracted from a DrugBank document.

    Attributes:
        config: Extraction configuration shared by every extractor
        sub_tables: Homogeneous sub-tables, in output order
        drug_tag: Tag of the top-level record elements
        drugs_table: Name of the scalar (one row per drug) table
        atc_table: Name of the ATC code table, or None to skip it
        reactions_table: Name of the reactions table, or None to skip reactions
        enzymes_table: Name of the reaction enzyme pool table
    """
    config: ExtractionConfig = field(default_factory=ExtractionConfig)
    sub_tables: Tuple[SubTableDefinition, ...] = ()
    drug_tag: str = "drug"
    drugs_table: str = "drugs"
    atc_table: Optional[str] = "drug_atc_codes"
    reactions_table: Optional[str] = "drug_reactions"
    enzymes_table: str = "drug_reactions_enzymes"

    def __post_init__(self):
        """Validate that every output table name is unique."""
        if not self.drug_tag:
            raise ValueError("drug_tag cannot be empty")
        seen = set()
        for name in self.table_names:
            if name in seen:
                raise ValueError(f"Duplicate table name in contract: {name}")
            seen.add(name)

    @property
    def table_names(self) -> List[str]:
        names = [self.drugs_table]
        names.extend(definition.table_name for definition in self.sub_tables)
        if self.atc_table:
            names.append(self.atc_table)
        if self.reactions_table:
            names.extend((self.reactions_table, self.enzymes_table))
        return names


@dataclass(frozen=True)
class Table:
    """
    An ordered relation of rows sharing one column set.

    Rows are dicts keyed by exactly the table's columns, in column order; a field
    missing from a source record is None.
    """
    name: str
    columns: Tuple[str, ...]
    rows: Tuple[FlatRecord, ...] = ()

    @classmethod
    def from_records(cls, name: str, records: Sequence[Dict[str, Any]],
                     declared_columns: Sequence[str] = (),
                     trailing_columns: Sequence[str] = (PARENT_KEY,)) -> 'Table':
        """
        Build a table from records that may not share one field set.

        The first pass computes the union schema: declared columns first, then every
        other field in first-seen order, with trailing columns (parent_key) last. The
        second pass materializes every record against that schema.
        """
        seen = set(declared_columns)
        columns = [c for c in declared_columns if c not in trailing_columns]
        for record in records:
            for field_name in record:
                if field_name in seen:
                    continue
                seen.add(field_name)
                if field_name not in trailing_columns:
                    columns.append(field_name)
        columns.extend(c for c in trailing_columns if c in seen)

        rows = tuple({column: record.get(column) for column in columns} for record in records)
        return cls(name=name, columns=tuple(columns), rows=rows)

    @classmethod
    def empty(cls, name: str, declared_columns: Sequence[str] = ()) -> 'Table':
        return cls.from_records(name, [], declared_columns)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[FlatRecord]:
        return iter(self.rows)

    def column(self, column_name: str) -> List[Optional[str]]:
        """Return all values of one column in row order."""
        if column_name not in self.columns:
            raise KeyError(f"Table '{self.name}' has no column '{column_name}'")
        return [row[column_name] for row in self.rows]

    def to_tuples(self) -> List[Tuple[Optional[str], ...]]:
        return [tuple(row[c] for c in self.columns) for row in self.rows]


@dataclass
class ExtractionFailure:
    """A parent whose extraction failed under the COLLECT error policy."""
    parent_index: int
    parent_key: Optional[str]
    error: Exception

    def __str__(self) -> str:
        return f"parent #{self.parent_index} ({self.parent_key}): {self.error}"


@dataclass
class ExtractionResult:
    """
    Tables produced by one aggregation run.

    Attributes:
        tables: Output tables keyed by table name
        failures: Parents skipped under the COLLECT policy
        parents_processed: Number of parent nodes visited
    """
    tables: Dict[str, Table] = field(default_factory=dict)
    failures: List[ExtractionFailure] = field(default_factory=list)
    parents_processed: int = 0

    def table(self, name: str) -> Table:
        """Return the named table, or an empty table when nothing declared it."""
        table = self.tables.get(name)
        return table if table is not None else Table.empty(name)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def row_counts(self) -> Dict[str, int]:
        return {name: len(table) for name, table in self.tables.items()}


@dataclass
class ProcessingResult:
    """
    Results from a processing operation.

    Attributes:
        records_processed: Total number of parent records processed
        records_successful: Number of successfully processed parent records
        records_failed: Number of failed parent records
        processing_time_seconds: Total processing time
        rows_per_table: Number of output rows per table
        errors: List of error messages encountered
        performance_metrics: Dictionary of performance metrics
    """
    records_processed: int = 0
    records_successful: int = 0
    records_failed: int = 0
    processing_time_seconds: float = 0.0
    rows_per_table: Dict[str, int] = None
    errors: List[str] = None
    performance_metrics: Dict[str, Any] = None

    def __post_init__(self):
        """Initialize default values for mutable fields."""
        if self.rows_per_table is None:
            self.rows_per_table = {}
        if self.errors is None:
            self.errors = []
        if self.performance_metrics is None:
            self.performance_metrics = {}

    @property
    def success_rate(self) -> float:
        """Calculate the success rate as a percentage."""
        if self.records_processed == 0:
            return 0.0
        return (self.records_successful / self.records_processed) * 100.0

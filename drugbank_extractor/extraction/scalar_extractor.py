"""
Scalar record extraction: one flat row per drug record.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..exceptions import FormatError
from ..interfaces import ExtractorInterface, NodeInterface
from ..models import ExtractionConfig, FlatRecord, FormatErrorPolicy
from ..utils import NodeUtils, StringUtils, ValidationUtils, resolve_drug_key


class ScalarRecordExtractor(ExtractorInterface):
    """
    Projects a drug node's attributes, identifier slots and single-valued children
    into exactly one FlatRecord.

    Column order is fixed by configuration, never by input:
    identifier slots (primary_key, secondary_key, third_key), then the drug
    attributes (type, created, updated), then each configured scalar field.

    The identifier slots hold the drugbank-id children in document order, whichever
    of them carries primary="true". Missing children and attributes become None;
    only malformed values (bad dates, unknown drug type) are errors.
    """

    def __init__(self, config: ExtractionConfig, table_name: str = "drugs"):
        super().__init__(config)
        self.table_name = table_name
        self.logger = logging.getLogger(__name__)
        self._columns = (
            tuple(config.identifier_fields)
            + tuple(StringUtils.to_field_name(a) for a in config.drug_attributes)
            + tuple(field_name for field_name, _ in config.scalar_fields)
        )

    @property
    def table_names(self) -> Tuple[str, ...]:
        return (self.table_name,)

    def declared_columns(self, table_name: str) -> Sequence[str]:
        return self._columns

    def extract(self, parent: NodeInterface) -> Dict[str, List[FlatRecord]]:
        return {self.table_name: [self.extract_record(parent)]}

    def extract_record(self, drug: NodeInterface) -> FlatRecord:
        """
        Build the drug's FlatRecord.

        Args:
            drug: Drug node

        Returns:
            Record with every declared column present

        Raises:
            FormatError: If a date attribute or the type attribute is malformed and
                the format error policy is RAISE
        """
        record: FlatRecord = {}

        for field_name, value in zip(self.config.identifier_fields, self._identifier_slots(drug)):
            record[field_name] = value

        for attribute_name in self.config.drug_attributes:
            record[StringUtils.to_field_name(attribute_name)] = self._read_attribute(drug, attribute_name)

        for field_name, tag in self.config.scalar_fields:
            record[field_name] = NodeUtils.child_text(drug, tag)

        return record

    def _identifier_slots(self, drug: NodeInterface) -> List[Optional[str]]:
        slots: List[Optional[str]] = [None] * self.config.identifier_slots
        identifiers = drug.children_by_tag(self.config.identifier_tag)
        for position, identifier in enumerate(identifiers[:self.config.identifier_slots]):
            slots[position] = StringUtils.blank_to_none(identifier.text())
        if len(identifiers) > self.config.identifier_slots:
            self.logger.debug(f"{drug.path}: ignoring {len(identifiers) - self.config.identifier_slots} "
                              f"extra <{self.config.identifier_tag}> values")
        return slots

    def _read_attribute(self, drug: NodeInterface, attribute_name: str) -> Optional[str]:
        raw_value = drug.attribute(attribute_name)
        if raw_value is None:
            return None

        if attribute_name in self.config.date_attributes:
            try:
                return ValidationUtils.normalize_date(raw_value, self.config.date_format)
            except ValueError:
                return self._format_failure(
                    drug, attribute_name, raw_value,
                    f"Malformed date in attribute '{attribute_name}': expected format {self.config.date_format}")

        if attribute_name == "type" and self.config.drug_types and raw_value not in self.config.drug_types:
            return self._format_failure(
                drug, attribute_name, raw_value,
                f"Unknown drug type; expected one of {', '.join(self.config.drug_types)}")

        return raw_value

    def _format_failure(self, drug: NodeInterface, attribute_name: str, raw_value: str, message: str) -> None:
        error = FormatError(
            message,
            field_name=StringUtils.to_field_name(attribute_name),
            raw_value=raw_value,
            node_path=f"{drug.path}/@{attribute_name}",
            parent_key=resolve_drug_key(drug, self.config.key_field),
        )
        if self.config.format_error_policy is FormatErrorPolicy.RAISE:
            raise error
        self.logger.warning(f"Nulling field after format error: {error}")
        return None

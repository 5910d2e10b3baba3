"""
ATC classification code extraction with fixed-width positional levels.
"""

import logging
import warnings
from typing import Dict, List, Optional, Sequence, Tuple

from ..exceptions import TruncationWarning
from ..interfaces import ExtractorInterface, NodeInterface
from ..models import PARENT_KEY, ExtractionConfig, FlatRecord
from ..utils import StringUtils, resolve_drug_key


class AtcCodeExtractor(ExtractorInterface):
    """
    Extracts one row per <atc-code> with its hierarchy flattened into positional columns.

    Each <atc-code code="..."> holds ordered <level code="...">label</level> children,
    most specific first. Rows always have the same columns:
    atc_code, level_1, code_1, ..., level_N, code_N, parent_key
    where N is config.atc_max_levels. Short hierarchies leave trailing pairs None;
    longer ones are truncated with a TruncationWarning.
    """

    def __init__(self, config: ExtractionConfig, table_name: str = "drug_atc_codes",
                 collection_tag: str = "atc-codes", item_tag: str = "atc-code",
                 level_tag: str = "level", code_attribute: str = "code"):
        super().__init__(config)
        self.table_name = table_name
        self.collection_tag = collection_tag
        self.item_tag = item_tag
        self.level_tag = level_tag
        self.code_attribute = code_attribute
        self.max_levels = config.atc_max_levels
        self.logger = logging.getLogger(__name__)

        columns = ["atc_code"]
        for position in range(1, self.max_levels + 1):
            columns.extend((f"level_{position}", f"code_{position}"))
        columns.append(PARENT_KEY)
        self._columns = tuple(columns)

    @property
    def table_names(self) -> Tuple[str, ...]:
        return (self.table_name,)

    def declared_columns(self, table_name: str) -> Sequence[str]:
        return self._columns

    def extract(self, parent: NodeInterface) -> Dict[str, List[FlatRecord]]:
        collection = parent.child(self.collection_tag)
        if collection is None:
            return {self.table_name: []}

        parent_key = resolve_drug_key(parent, self.config.key_field)
        records = [self._extract_code(item, parent_key) for item in collection.children_by_tag(self.item_tag)]
        return {self.table_name: records}

    def _extract_code(self, item: NodeInterface, parent_key: Optional[str]) -> FlatRecord:
        levels: List[Optional[str]] = [None] * self.max_levels
        codes: List[Optional[str]] = [None] * self.max_levels

        level_nodes = item.children_by_tag(self.level_tag)
        for position, level in enumerate(level_nodes[:self.max_levels]):
            levels[position] = StringUtils.blank_to_none(level.text())
            codes[position] = StringUtils.blank_to_none(level.attribute(self.code_attribute))

        atc_code = StringUtils.blank_to_none(item.attribute(self.code_attribute))
        if len(level_nodes) > self.max_levels:
            message = (f"ATC code {atc_code} of {parent_key} has {len(level_nodes)} levels; "
                       f"keeping the first {self.max_levels} ({item.path})")
            self.logger.warning(message)
            warnings.warn(message, TruncationWarning, stacklevel=2)

        record: FlatRecord = {"atc_code": atc_code}
        for position in range(self.max_levels):
            record[f"level_{position + 1}"] = levels[position]
            record[f"code_{position + 1}"] = codes[position]
        record[PARENT_KEY] = parent_key
        return record

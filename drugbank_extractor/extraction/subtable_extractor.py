"""
Homogeneous sub-table extraction ("one for all").

Given a parent node and a path to a repeated child collection, emits one record
per item of the collection, each tagged with the parent's DrugKey. This single
engine produces every generic DrugBank sub-table (groups, synonyms, categories,
articles, products, ...); only the SubTableDefinition differs between them.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ..exceptions import StructureError
from ..interfaces import ExtractorInterface, NodeInterface
from ..models import PARENT_KEY, ExtractionConfig, FlatRecord, SubTableDefinition
from ..utils import StringUtils, resolve_drug_key


TEXT_FIELD = "text"


def flatten_item(item: NodeInterface) -> FlatRecord:
    """
    Flatten one repeated item into a record.

    Fields are the item's attributes followed by one field per element child
    (holding the child's full text). A pure-text leaf item instead gets a single
    'text' field. Blank values become None; repeated names get numeric suffixes.

    Examples:
        <group>approved</group>                  -> {'text': 'approved'}
        <article><pubmed-id>1</pubmed-id>...     -> {'pubmed_id': '1', ...}
        <sequence format="FASTA">MKT</sequence>  -> {'format': 'FASTA', 'text': 'MKT'}
    """
    record: FlatRecord = {}
    for name, value in item.attributes():
        field_name = StringUtils.unique_field_name(record, StringUtils.to_field_name(name))
        record[field_name] = StringUtils.blank_to_none(value)

    children = item.children()
    if not children:
        record[StringUtils.unique_field_name(record, TEXT_FIELD)] = StringUtils.blank_to_none(item.text())
        return record

    for child in children:
        field_name = StringUtils.unique_field_name(record, StringUtils.to_field_name(child.tag))
        record[field_name] = StringUtils.blank_to_none(child.text())
    return record


class SubTableExtractor(ExtractorInterface):
    """
    Extracts one homogeneous sub-table from each parent.

    Resolution is parent -> collection_tag [-> sub_collection_tag]; every element
    child of the resolved node is one item. A missing step means the parent simply
    lacks that structure and contributes zero rows.
    """

    def __init__(self, config: ExtractionConfig, definition: SubTableDefinition):
        super().__init__(config)
        self.definition = definition
        self.key_tag = definition.resolve_key_tag(config)
        self.logger = logging.getLogger(__name__)

    @property
    def table_names(self) -> Tuple[str, ...]:
        return (self.definition.table_name,)

    def extract(self, parent: NodeInterface) -> Dict[str, List[FlatRecord]]:
        return {self.definition.table_name: self.extract_records(parent)}

    def resolve_collection(self, parent: NodeInterface) -> Optional[NodeInterface]:
        """Return the collection node holding the items, or None when any step is absent."""
        collection = parent.child(self.definition.collection_tag)
        if collection is not None and self.definition.sub_collection_tag:
            collection = collection.child(self.definition.sub_collection_tag)
        return collection

    def extract_records(self, parent: NodeInterface) -> List[FlatRecord]:
        """
        Extract the sub-table rows of one parent.

        Args:
            parent: Parent node the collection path is resolved from

        Returns:
            One record per item in document order; empty when the collection is absent

        Raises:
            StructureError: If the collection node holds text instead of (or mixed with) items
        """
        collection = self.resolve_collection(parent)
        if collection is None:
            return []

        self._check_collection_shape(collection, parent)

        records = [flatten_item(item) for item in collection.children()]

        if self.key_tag is not None:
            parent_key = resolve_drug_key(parent, self.key_tag)
            for record in records:
                record[PARENT_KEY] = parent_key

        self.logger.debug(f"{self.definition.table_name}: {len(records)} rows from {collection.path}")
        return records

    def _check_collection_shape(self, collection: NodeInterface, parent: NodeInterface) -> None:
        stray_text = collection.own_text()
        if stray_text is None:
            return
        parent_key = resolve_drug_key(parent, self.key_tag or self.config.key_field)
        shape = "mixed text and element content" if collection.has_children() else "text instead of items"
        raise StructureError(
            f"Collection for table '{self.definition.table_name}' has {shape}: "
            f"{StringUtils.normalize_whitespace(stray_text)[:80]!r}",
            node_path=collection.path,
            parent_key=parent_key,
        )

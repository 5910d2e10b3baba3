"""
Reaction chain extraction.

A <reaction> is not a homogeneous item: it has fixed, positionally meaningful
children (sequence, left-element, right-element) plus a nested enzymes collection.
Reactions are therefore read through direct path navigation, while the enzymes of
each reaction reuse the generic sub-table engine with the parent key disabled.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from ..interfaces import ExtractorInterface, NodeInterface
from ..models import PARENT_KEY, ExtractionConfig, FlatRecord, SubTableDefinition
from ..utils import NodeUtils, resolve_drug_key
from .subtable_extractor import SubTableExtractor


# Output field -> child path under <reaction>
REACTION_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("sequence", "sequence"),
    ("left_drugbank_id", "left-element/drugbank-id"),
    ("left_drugbank_name", "left-element/name"),
    ("right_drugbank_id", "right-element/drugbank-id"),
    ("right_drugbank_name", "right-element/name"),
)


class ReactionExtractor(ExtractorInterface):
    """
    Extracts two tables from each parent's <reactions> collection.

    - reactions table: one row per reaction with the REACTION_FIELDS and parent_key
    - enzymes table: one row per enzyme referenced by any reaction, without a parent
      key; enzymes form a shared pool, not children of the drug
    """

    def __init__(self, config: ExtractionConfig,
                 reactions_table: str = "drug_reactions",
                 enzymes_table: str = "drug_reactions_enzymes",
                 collection_tag: str = "reactions",
                 item_tag: str = "reaction"):
        super().__init__(config)
        self.reactions_table = reactions_table
        self.enzymes_table = enzymes_table
        self.collection_tag = collection_tag
        self.item_tag = item_tag
        self.enzyme_extractor = SubTableExtractor(
            config, SubTableDefinition(table_name=enzymes_table, collection_tag="enzymes", key_enabled=False)
        )
        self.logger = logging.getLogger(__name__)

    @property
    def table_names(self) -> Tuple[str, ...]:
        return (self.reactions_table, self.enzymes_table)

    def declared_columns(self, table_name: str) -> Sequence[str]:
        if table_name == self.reactions_table:
            return tuple(field_name for field_name, _ in REACTION_FIELDS) + (PARENT_KEY,)
        return ()

    def extract(self, parent: NodeInterface) -> Dict[str, List[FlatRecord]]:
        reactions: List[FlatRecord] = []
        enzymes: List[FlatRecord] = []

        collection = parent.child(self.collection_tag)
        if collection is None:
            return {self.reactions_table: reactions, self.enzymes_table: enzymes}

        parent_key = resolve_drug_key(parent, self.config.key_field)
        for reaction in collection.children_by_tag(self.item_tag):
            record: FlatRecord = {
                field_name: NodeUtils.path_text(reaction, path) for field_name, path in REACTION_FIELDS
            }
            record[PARENT_KEY] = parent_key
            reactions.append(record)
            enzymes.extend(self.enzyme_extractor.extract_records(reaction))

        self.logger.debug(f"{parent_key}: {len(reactions)} reactions, {len(enzymes)} enzymes")
        return {self.reactions_table: reactions, self.enzymes_table: enzymes}

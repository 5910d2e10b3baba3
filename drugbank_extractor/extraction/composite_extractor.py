"""
Combines several extractors so one parent is projected into every table at once.
"""

from typing import Dict, List, Sequence, Tuple

from ..interfaces import ExtractorInterface, NodeInterface
from ..models import ExtractionConfig, FlatRecord


class CompositeExtractor(ExtractorInterface):
    """
    Runs a fixed list of extractors over the same parent.

    Because the aggregator treats one extract() call as one unit, a parent that fails
    in any member extractor contributes rows to none of the tables.
    """

    def __init__(self, config: ExtractionConfig, extractors: Sequence[ExtractorInterface]):
        super().__init__(config)
        self.extractors = list(extractors)
        self._owners: Dict[str, ExtractorInterface] = {}
        for extractor in self.extractors:
            for table_name in extractor.table_names:
                if table_name in self._owners:
                    raise ValueError(f"Table '{table_name}' is produced by more than one extractor")
                self._owners[table_name] = extractor

    @property
    def table_names(self) -> Tuple[str, ...]:
        return tuple(self._owners)

    def declared_columns(self, table_name: str) -> Sequence[str]:
        owner = self._owners.get(table_name)
        return owner.declared_columns(table_name) if owner else ()

    def extract(self, parent: NodeInterface) -> Dict[str, List[FlatRecord]]:
        fragments: Dict[str, List[FlatRecord]] = {}
        for extractor in self.extractors:
            fragments.update(extractor.extract(parent))
        return fragments

"""
Extraction Pipeline - builds every table an extraction contract names in one pass.

Wires the scalar, sub-table, ATC and reaction extractors into a CompositeExtractor
and runs it through a single TableAggregator, so each drug is visited once and a
drug that fails under the COLLECT policy is absent from every table (its parent_key
never dangles).
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..config.processing_defaults import ProcessingDefaults
from ..extraction import (AtcCodeExtractor, CompositeExtractor, ReactionExtractor,
                          ScalarRecordExtractor, SubTableExtractor)
from ..interfaces import ExtractorInterface, NodeInterface
from ..models import ErrorPolicy, ExtractionContract, ExtractionResult
from ..monitoring.performance_monitor import PerformanceMonitor
from ..parsing.xml_parser import DrugBankXMLParser
from .table_aggregator import TableAggregator


class ExtractionPipeline:
    """
    Runs a complete extraction contract over a DrugBank corpus.

    Usage:
        pipeline = ExtractionPipeline(contract, workers=4)
        result = pipeline.run_file("full_database.xml")
        result.table("drug_groups")
    """

    def __init__(self, contract: ExtractionContract,
                 error_policy: ErrorPolicy = ErrorPolicy.ABORT,
                 workers: int = ProcessingDefaults.WORKERS,
                 progress_interval: int = ProcessingDefaults.PROGRESS_INTERVAL,
                 monitor: Optional[PerformanceMonitor] = None):
        """
        Initialize the pipeline.

        Args:
            contract: Tables to build and the shared extraction configuration
            error_policy: Abort on the first failing drug or collect failures
            workers: Number of worker threads for the per-drug fold
            progress_interval: Log progress every N drugs
            monitor: Optional performance monitor for stage timings and counts
        """
        self.contract = contract
        self.monitor = monitor
        self.logger = logging.getLogger(__name__)
        self.extractor = CompositeExtractor(contract.config, self.build_extractors())
        self.aggregator = TableAggregator(
            contract.config,
            error_policy=error_policy,
            workers=workers,
            progress_interval=progress_interval,
            monitor=monitor,
        )
        self.logger.info(f"ExtractionPipeline initialized with {len(self.extractor.table_names)} tables")

    def build_extractors(self) -> List[ExtractorInterface]:
        """Create one extractor per table group named in the contract, in output order."""
        config = self.contract.config
        extractors: List[ExtractorInterface] = [ScalarRecordExtractor(config, self.contract.drugs_table)]
        extractors.extend(SubTableExtractor(config, definition) for definition in self.contract.sub_tables)
        if self.contract.atc_table:
            extractors.append(AtcCodeExtractor(config, self.contract.atc_table))
        if self.contract.reactions_table:
            extractors.append(ReactionExtractor(config, self.contract.reactions_table, self.contract.enzymes_table))
        return extractors

    def run(self, drugs: Iterable[NodeInterface]) -> ExtractionResult:
        """
        Extract every contract table from already-parsed drug nodes.

        Args:
            drugs: Top-level drug nodes in document order

        Returns:
            ExtractionResult holding every contract table
        """
        if self.monitor:
            self.monitor.start_stage('extraction')
        try:
            return self.aggregator.aggregate(drugs, self.extractor)
        finally:
            if self.monitor:
                self.monitor.end_stage('extraction')

    def run_file(self, xml_path: Union[str, Path], parser: Optional[DrugBankXMLParser] = None) -> ExtractionResult:
        """Parse a DrugBank XML file and extract every contract table from it."""
        parser = parser or DrugBankXMLParser(strip_text=self.contract.config.strip_text,
                                             drug_tag=self.contract.drug_tag)
        if self.monitor:
            self.monitor.start_stage('parsing')
        try:
            drugs = parser.load_drugs(xml_path)
        finally:
            if self.monitor:
                self.monitor.end_stage('parsing')
        return self.run(drugs)

    def cancel(self) -> None:
        """Cancel the running extraction before its next drug."""
        self.aggregator.cancel()

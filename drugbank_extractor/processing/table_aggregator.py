"""
Table Aggregator - folds per-parent extraction results into corpus-wide tables.

Applies one extractor to every parent node in document order and concatenates the
returned records per table, unioning field sets through Table.from_records. Parents
that lack the target structure simply contribute no rows.

Processing modes:
- Sequential (workers=1): synchronous loop in the calling thread
- Threaded (workers>1): per-parent extraction on a ThreadPoolExecutor; results are
  reassembled in document order before folding, so output is identical either way

Extractors are pure functions of (parent, config), so no locking is needed.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..config.processing_defaults import ProcessingDefaults
from ..exceptions import ExtractionCancelledError, FormatError, StructureError
from ..interfaces import ExtractorInterface, NodeInterface
from ..models import (ErrorPolicy, ExtractionConfig, ExtractionFailure, ExtractionResult,
                      FlatRecord, Table)
from ..monitoring.performance_monitor import PerformanceMonitor
from ..utils import resolve_drug_key


@dataclass
class ParentOutcome:
    """Result of extracting one parent."""
    index: int
    fragments: Optional[Dict[str, List[FlatRecord]]] = None
    failure: Optional[ExtractionFailure] = None


class TableAggregator:
    """
    Applies an extractor across a collection of parents and builds tables.

    Failure policy:
    - ErrorPolicy.ABORT: the first FormatError/StructureError is enriched with the
      parent's index and key, logged and re-raised; no partial tables are returned
    - ErrorPolicy.COLLECT: the failing parent contributes no rows to any table and an
      ExtractionFailure is recorded on the result

    Cancellation is checked between parents; once cancel() is called the aggregator
    raises ExtractionCancelledError until reset() is called.
    """

    def __init__(self, config: ExtractionConfig,
                 error_policy: ErrorPolicy = ErrorPolicy.ABORT,
                 workers: int = ProcessingDefaults.WORKERS,
                 progress_interval: int = ProcessingDefaults.PROGRESS_INTERVAL,
                 monitor: Optional[PerformanceMonitor] = None):
        """
        Initialize the table aggregator.

        Args:
            config: Extraction configuration; used to key parents in error reports
            error_policy: Abort on the first failing parent or collect failures
            workers: Number of worker threads (1 = sequential)
            progress_interval: Log progress every N parents
            monitor: Optional performance monitor receiving per-parent counts
        """
        if workers <= 0:
            raise ValueError("workers must be positive")
        self.config = config
        self.error_policy = error_policy
        self.workers = workers
        self.progress_interval = progress_interval
        self.monitor = monitor
        self.logger = logging.getLogger(__name__)
        self._cancel_event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation; takes effect before the next parent starts."""
        self.logger.warning("Cancellation requested")
        self._cancel_event.set()

    def reset(self) -> None:
        self._cancel_event.clear()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def aggregate(self, parents: Iterable[NodeInterface], extractor: ExtractorInterface) -> ExtractionResult:
        """
        Run an extractor over every parent and concatenate the results.

        Args:
            parents: Parent nodes in document order
            extractor: Extractor applied to each parent

        Returns:
            ExtractionResult with one table per extractor table name (possibly empty)

        Raises:
            FormatError, StructureError: Under ErrorPolicy.ABORT
            ExtractionCancelledError: If cancel() was called before the run finished
        """
        parents = list(parents)
        start_time = time.time()
        self.logger.info(f"Aggregating {', '.join(extractor.table_names)} over {len(parents)} parents "
                         f"(workers={self.workers}, error_policy={self.error_policy.value})")

        if self.workers > 1 and len(parents) > 1:
            outcomes = self._run_threaded(parents, extractor)
        else:
            outcomes = self._run_sequential(parents, extractor)

        result = self._fold(outcomes, extractor)
        result.parents_processed = len(parents)

        self.logger.info(
            f"Aggregation complete - parents: {len(parents)}, failed: {len(result.failures)}, "
            f"rows: {result.row_counts()}, time: {time.time() - start_time:.2f}s"
        )
        return result

    def build_table(self, parents: Iterable[NodeInterface], extractor: ExtractorInterface) -> Table:
        """Aggregate a single-table extractor and return its table."""
        if len(extractor.table_names) != 1:
            raise ValueError(f"build_table needs a single-table extractor, got {extractor.table_names}")
        return self.aggregate(parents, extractor).tables[extractor.table_names[0]]

    def _run_sequential(self, parents: List[NodeInterface], extractor: ExtractorInterface) -> List[ParentOutcome]:
        outcomes = []
        for index, parent in enumerate(parents):
            self._check_cancelled(index)
            outcomes.append(self._extract_parent(index, parent, extractor))
            if self.progress_interval and (index + 1) % self.progress_interval == 0:
                self.logger.info(f"Progress: {index + 1}/{len(parents)} parents")
        return outcomes

    def _run_threaded(self, parents: List[NodeInterface], extractor: ExtractorInterface) -> List[ParentOutcome]:
        def work(index: int, parent: NodeInterface) -> ParentOutcome:
            self._check_cancelled(index)
            return self._extract_parent(index, parent, extractor)

        outcomes = []
        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="extract") as executor:
            futures = [executor.submit(work, index, parent) for index, parent in enumerate(parents)]
            try:
                # Futures are consumed in submission order, which is document order
                for index, future in enumerate(futures):
                    outcomes.append(future.result())
                    if self.progress_interval and (index + 1) % self.progress_interval == 0:
                        self.logger.info(f"Progress: {index + 1}/{len(parents)} parents")
            except BaseException:
                for future in futures:
                    future.cancel()
                raise
        return outcomes

    def _check_cancelled(self, index: int) -> None:
        if self._cancel_event.is_set():
            raise ExtractionCancelledError(f"Extraction cancelled before parent #{index}", parents_completed=index)

    def _extract_parent(self, index: int, parent: NodeInterface, extractor: ExtractorInterface) -> ParentOutcome:
        try:
            fragments = extractor.extract(parent)
        except (FormatError, StructureError) as e:
            e.parent_index = index
            if e.parent_key is None:
                e.parent_key = resolve_drug_key(parent, self.config.key_field)
            if self.monitor:
                self.monitor.record_parent(success=False)

            if self.error_policy is ErrorPolicy.ABORT:
                self.logger.error(f"Aborting run: {e}")
                raise
            self.logger.warning(f"Skipping parent: {e}")
            return ParentOutcome(index, failure=ExtractionFailure(index, e.parent_key, e))

        if self.monitor:
            self.monitor.record_parent(success=True)
        return ParentOutcome(index, fragments=fragments)

    def _fold(self, outcomes: List[ParentOutcome], extractor: ExtractorInterface) -> ExtractionResult:
        result = ExtractionResult()
        records_by_table: Dict[str, List[FlatRecord]] = {name: [] for name in extractor.table_names}

        for outcome in sorted(outcomes, key=lambda o: o.index):
            if outcome.failure is not None:
                result.failures.append(outcome.failure)
                continue
            for table_name, records in outcome.fragments.items():
                records_by_table.setdefault(table_name, []).extend(records)

        for table_name, records in records_by_table.items():
            table = Table.from_records(table_name, records, extractor.declared_columns(table_name))
            result.tables[table_name] = table
            if self.monitor:
                self.monitor.record_rows(table_name, len(table))
        return result

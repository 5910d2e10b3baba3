"""
Performance monitoring implementation for drug table extraction.

This module provides run timing, per-table row counts and process resource
sampling (via psutil) for the parse / extract / export stages of a run.
"""

import time
import logging
import psutil
import threading
from typing import Dict, Any, Optional
from datetime import datetime
from dataclasses import dataclass, field

from ..interfaces import PerformanceMonitorInterface
from ..models import ProcessingResult


STAGES = ('parsing', 'extraction', 'export')


@dataclass
class PerformanceMetrics:
    """Container for performance metrics."""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    records_processed: int = 0
    records_successful: int = 0
    records_failed: int = 0

    # Processing stage timings, keyed by STAGES
    stage_times: Dict[str, float] = field(default_factory=lambda: {stage: 0.0 for stage in STAGES})

    # Output
    rows_per_table: Dict[str, int] = field(default_factory=dict)

    # System resource metrics
    peak_memory_mb: float = 0.0
    avg_cpu_percent: float = 0.0

    # Throughput metrics
    records_per_second: float = 0.0

    # Custom metrics
    custom_metrics: Dict[str, Any] = field(default_factory=dict)


class PerformanceMonitor(PerformanceMonitorInterface):
    """
    Performance monitor for extraction runs.

    Counters are updated from aggregator worker threads, so every mutation goes
    through one lock. Resource usage is sampled on a daemon thread.
    """

    def __init__(self, sample_interval_seconds: float = 0.5):
        """Initialize the performance monitor."""
        self.logger = logging.getLogger(__name__)
        self.sample_interval_seconds = sample_interval_seconds
        self._metrics = PerformanceMetrics()
        self._lock = threading.Lock()
        self._is_monitoring = False
        self._monitoring_thread = None
        self._stop_monitoring_flag = threading.Event()
        self._process = psutil.Process()

        # Resource monitoring
        self._memory_samples = []
        self._cpu_samples = []

        # Stage timing
        self._stage_start_times = {}

    @property
    def is_monitoring(self) -> bool:
        return self._is_monitoring

    def start_monitoring(self) -> None:
        """Start performance monitoring with resource tracking."""
        if self._is_monitoring:
            self.logger.warning("Performance monitoring already started")
            return

        self._metrics = PerformanceMetrics()
        self._metrics.start_time = datetime.now()
        self._memory_samples = []
        self._cpu_samples = []
        self._is_monitoring = True
        self._stop_monitoring_flag.clear()
        self._sample_resources()

        # Start resource monitoring thread
        self._monitoring_thread = threading.Thread(
            target=self._monitor_resources,
            name="resource-monitor",
            daemon=True
        )
        self._monitoring_thread.start()

        self.logger.info("Performance monitoring started")

    def stop_monitoring(self) -> ProcessingResult:
        """Stop monitoring and return comprehensive results."""
        if not self._is_monitoring:
            self.logger.warning("Performance monitoring not started")
            return ProcessingResult()

        self._stop_monitoring_flag.set()
        if self._monitoring_thread and self._monitoring_thread.is_alive():
            self._monitoring_thread.join(timeout=1.0)
        self._sample_resources()

        self._metrics.end_time = datetime.now()
        self._is_monitoring = False
        self._calculate_final_metrics()

        result = ProcessingResult(
            records_processed=self._metrics.records_processed,
            records_successful=self._metrics.records_successful,
            records_failed=self._metrics.records_failed,
            processing_time_seconds=self._get_total_processing_time(),
            rows_per_table=dict(self._metrics.rows_per_table),
            performance_metrics=self._get_performance_summary()
        )

        self.logger.info(f"Performance monitoring stopped. Processed {result.records_processed} records "
                         f"in {result.processing_time_seconds:.2f} seconds "
                         f"({self._metrics.records_per_second:.1f} records/s)")
        return result

    def record_metric(self, metric_name: str, value: Any) -> None:
        """Record a custom performance metric."""
        if not self._is_monitoring:
            return
        with self._lock:
            self._metrics.custom_metrics[metric_name] = value
        self.logger.debug(f"Recorded metric: {metric_name} = {value}")

    def record_parent(self, success: bool) -> None:
        """Record the outcome of extracting a single parent record."""
        with self._lock:
            self._metrics.records_processed += 1
            if success:
                self._metrics.records_successful += 1
            else:
                self._metrics.records_failed += 1

    def record_rows(self, table_name: str, row_count: int) -> None:
        """Add row_count to the running total of table_name."""
        with self._lock:
            self._metrics.rows_per_table[table_name] = self._metrics.rows_per_table.get(table_name, 0) + row_count

    def get_current_metrics(self) -> Dict[str, Any]:
        """Get current performance metrics snapshot."""
        if not self._is_monitoring:
            return {}

        elapsed_seconds = (datetime.now() - self._metrics.start_time).total_seconds()
        with self._lock:
            processed = self._metrics.records_processed
            return {
                'elapsed_time_seconds': elapsed_seconds,
                'records_processed': processed,
                'records_successful': self._metrics.records_successful,
                'records_failed': self._metrics.records_failed,
                'records_per_second': processed / elapsed_seconds if elapsed_seconds > 0 else 0.0,
                'rows_per_table': dict(self._metrics.rows_per_table),
                'current_memory_mb': self._get_current_memory_mb(),
                'peak_memory_mb': self._metrics.peak_memory_mb,
                'custom_metrics': self._metrics.custom_metrics.copy()
            }

    def start_stage(self, stage_name: str) -> None:
        """Start timing a processing stage."""
        if stage_name not in STAGES:
            raise ValueError(f"Unknown stage '{stage_name}'; expected one of {STAGES}")
        self._stage_start_times[stage_name] = time.time()

    def end_stage(self, stage_name: str) -> float:
        """End timing a processing stage and return duration."""
        if stage_name not in self._stage_start_times:
            return 0.0

        duration = time.time() - self._stage_start_times.pop(stage_name)
        self._metrics.stage_times[stage_name] += duration
        return duration

    def format_performance_report(self) -> str:
        """Render the final metrics as a multi-line report."""
        if not self._metrics.end_time:
            return "Performance monitoring not completed"

        total_time = self._get_total_processing_time()
        lines = [
            "=== Performance Report ===",
            f"Total Time: {total_time:.2f} seconds",
            f"Records Processed: {self._metrics.records_processed} "
            f"(failed: {self._metrics.records_failed})",
            f"Records/Second: {self._metrics.records_per_second:.2f}",
        ]
        for stage in STAGES:
            stage_time = self._metrics.stage_times[stage]
            percentage = (stage_time / total_time * 100) if total_time > 0 else 0
            lines.append(f"{stage.capitalize()}: {stage_time:.2f}s ({percentage:.1f}%)")
        lines.append(f"Peak Memory: {self._metrics.peak_memory_mb:.1f} MB")
        lines.append(f"Average CPU: {self._metrics.avg_cpu_percent:.1f}%")
        for table_name, count in sorted(self._metrics.rows_per_table.items()):
            lines.append(f"  {table_name}: {count} rows")
        return "\n".join(lines)

    def _monitor_resources(self) -> None:
        """Monitor system resources in background thread."""
        while not self._stop_monitoring_flag.wait(self.sample_interval_seconds):
            try:
                self._sample_resources()
            except psutil.Error as e:
                self.logger.warning(f"Error monitoring resources: {e}")
                break

    def _sample_resources(self) -> None:
        memory_mb = self._get_current_memory_mb()
        self._memory_samples.append(memory_mb)
        if memory_mb > self._metrics.peak_memory_mb:
            self._metrics.peak_memory_mb = memory_mb
        self._cpu_samples.append(self._process.cpu_percent(interval=None))

    def _get_current_memory_mb(self) -> float:
        """Get current memory usage in MB."""
        return self._process.memory_info().rss / 1024 / 1024

    def _calculate_final_metrics(self) -> None:
        """Calculate final performance metrics."""
        total_time = self._get_total_processing_time()
        if total_time > 0:
            self._metrics.records_per_second = self._metrics.records_processed / total_time
        if self._cpu_samples:
            self._metrics.avg_cpu_percent = sum(self._cpu_samples) / len(self._cpu_samples)

    def _get_total_processing_time(self) -> float:
        """Get total processing time in seconds."""
        if not self._metrics.start_time or not self._metrics.end_time:
            return 0.0
        return (self._metrics.end_time - self._metrics.start_time).total_seconds()

    def _get_performance_summary(self) -> Dict[str, Any]:
        """Get comprehensive performance summary."""
        processed = self._metrics.records_processed
        return {
            'total_processing_time_seconds': self._get_total_processing_time(),
            'records_per_second': self._metrics.records_per_second,
            'success_rate_percent': (self._metrics.records_successful / processed * 100) if processed else 0.0,
            'stage_timings': {f"{stage}_time_seconds": t for stage, t in self._metrics.stage_times.items()},
            'resource_usage': {
                'peak_memory_mb': self._metrics.peak_memory_mb,
                'avg_cpu_percent': self._metrics.avg_cpu_percent,
                'memory_samples_count': len(self._memory_samples),
                'cpu_samples_count': len(self._cpu_samples),
            },
            'custom_metrics': self._metrics.custom_metrics.copy()
        }

"""
Command-line interface for the DrugBank table extraction system.

This module provides the main entry point for extracting every table of an
extraction contract from a DrugBank XML file and writing the tables to CSV files
or to SQL Server.
"""

import sys
import logging
import argparse

from typing import Optional

from .config.config_manager import get_config_manager
from .config.processing_defaults import ProcessingDefaults
from .database.table_writer import SqlServerTableWriter
from .exceptions import DrugExtractionError
from .export.csv_writer import CsvTableWriter
from .interfaces import TableWriterInterface
from .models import ErrorPolicy
from .monitoring.performance_monitor import PerformanceMonitor
from .processing.extraction_pipeline import ExtractionPipeline


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser; unset options fall back to DRUGBANK_EXTRACTOR_* settings."""
    parser = argparse.ArgumentParser(
        prog="drugbank_extractor",
        description="Extract relational tables from a DrugBank XML file")

    parser.add_argument("xml_path", help="Path to the DrugBank XML file")
    parser.add_argument("--output-dir",
                        help=f"Directory for CSV output (default: {ProcessingDefaults.OUTPUT_DIR})")
    parser.add_argument("--contract", help="Extraction contract (JSON or YAML); defaults to the packaged contract")
    parser.add_argument("--workers", type=int,
                        help=f"Number of extraction threads (default: {ProcessingDefaults.WORKERS})")
    parser.add_argument("--error-policy", choices=[policy.value for policy in ErrorPolicy],
                        help=f"Abort on the first bad drug or collect failures and continue "
                             f"(default: {ProcessingDefaults.ERROR_POLICY})")
    parser.add_argument("--log-level", choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
                        help=f"Logging level (default: {ProcessingDefaults.LOG_LEVEL})")

    # SQL Server output
    parser.add_argument("--output", choices=["csv", "sqlserver"], default="csv",
                        help="Output target (default: csv)")
    parser.add_argument("--connection-string",
                        help="ODBC connection string for --output sqlserver; overrides the DB_* settings")
    parser.add_argument("--target-schema", help="Schema receiving the tables for --output sqlserver")
    parser.add_argument("--replace-existing", action="store_true",
                        help="Delete existing rows of each table before inserting (--output sqlserver)")
    parser.add_argument("--report", action="store_true", help="Print a performance report when done")
    return parser


def _configure_logging(level: str) -> None:
    # Set up logging without reconfiguring root if already configured
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))


def _build_writer(options: argparse.Namespace, config_manager) -> TableWriterInterface:
    if options.output == "sqlserver":
        database_config = config_manager.database_config
        if options.connection_string:
            database_config.connection_string = options.connection_string
        return SqlServerTableWriter(
            database_config.build_connection_string(),
            target_schema=options.target_schema or database_config.target_schema,
            replace_existing=options.replace_existing,
            connection_timeout=database_config.connection_timeout,
        )
    return CsvTableWriter(options.output_dir or config_manager.processing_params.output_dir)


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI application.

    Args:
        args: Optional command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args is None:
        args = sys.argv[1:]
    options = build_parser().parse_args(args)

    logger = logging.getLogger(__name__)
    try:
        config_manager = get_config_manager()
        params = config_manager.processing_params
        _configure_logging(options.log_level or params.log_level)

        if options.workers is not None:
            params.workers = options.workers
        if options.error_policy is not None:
            params.error_policy = options.error_policy
        config_manager.validate_configuration()

        contract = config_manager.load_extraction_contract(options.contract)
        writer = _build_writer(options, config_manager)

        monitor = PerformanceMonitor()
        pipeline = ExtractionPipeline(
            contract,
            error_policy=config_manager.get_error_policy(),
            workers=params.workers,
            progress_interval=params.progress_interval,
            monitor=monitor,
        )

        monitor.start_monitoring()
        try:
            result = pipeline.run_file(options.xml_path)
            monitor.start_stage('export')
            try:
                counts = writer.write_tables(result.tables)
            finally:
                monitor.end_stage('export')
        finally:
            processing_result = monitor.stop_monitoring()

        for failure in result.failures:
            logger.warning(f"Skipped {failure}")
        logger.info(f"Extracted {result.parents_processed} drugs into {len(counts)} tables "
                    f"({sum(counts.values())} rows) in {processing_result.processing_time_seconds:.2f}s")
        if options.report:
            print(monitor.format_performance_report())
        return 0

    except DrugExtractionError as e:
        logger.error(f"Extraction failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.error("Extraction interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
CSV Table Writer - persists extracted tables as one CSV file per table.

Each file is named after its table, starts with a header row in the table's
column order, and writes missing values (None) as empty cells.
"""

import csv
import logging
from pathlib import Path
from typing import Union

from ..interfaces import TableWriterInterface
from ..models import Table


class CsvTableWriter(TableWriterInterface):
    """
    Writes Table objects to <output_dir>/<table name>.csv.

    Usage:
        writer = CsvTableWriter("output")
        counts = writer.write_tables(result.tables)
    """

    def __init__(self, output_dir: Union[str, Path], encoding: str = "utf-8"):
        """
        Initialize the writer.

        Args:
            output_dir: Directory receiving the CSV files; created on first write
            encoding: File encoding of the CSV output
        """
        self.output_dir = Path(output_dir)
        self.encoding = encoding
        self.logger = logging.getLogger(__name__)

    def table_path(self, table_name: str) -> Path:
        return self.output_dir / f"{table_name}.csv"

    def write_table(self, table: Table) -> int:
        """
        Write one table, replacing any existing file of the same name.

        Args:
            table: Table to write

        Returns:
            Number of data rows written (the header is not counted)
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.table_path(table.name)

        with open(path, 'w', newline='', encoding=self.encoding) as handle:
            writer = csv.writer(handle)
            writer.writerow(table.columns)
            for values in table.to_tuples():
                writer.writerow(['' if value is None else value for value in values])

        self.logger.info(f"Wrote {len(table)} rows to {path}")
        return len(table)

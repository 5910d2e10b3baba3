"""
SQL Server Table Writer - bulk inserts extracted tables into a relational database.

Every table is created on demand as NVARCHAR(MAX) columns in the extracted column
order, then filled with fast_executemany in batches. write_tables() writes the whole
result on one connection inside one transaction, so a failed run leaves no partially
loaded tables behind.
"""

import logging
from contextlib import contextmanager
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import pyodbc

from ..config.processing_defaults import ProcessingDefaults
from ..exceptions import DatabaseConnectionError, DatabaseError
from ..interfaces import TableWriterInterface
from ..models import Table


def quote_identifier(name: str) -> str:
    """Bracket-quote a SQL Server identifier."""
    return f"[{name.replace(']', ']]')}]"


class SqlServerTableWriter(TableWriterInterface):
    """
    Writes Table objects to SQL Server through pyodbc.

    Usage:
        writer = SqlServerTableWriter(connection_string, target_schema="sandbox")
        counts = writer.write_tables(result.tables)
    """

    def __init__(self, connection_string: str,
                 target_schema: str = ProcessingDefaults.TARGET_SCHEMA,
                 batch_size: int = ProcessingDefaults.INSERT_BATCH_SIZE,
                 create_tables: bool = True,
                 replace_existing: bool = False,
                 connection_timeout: int = ProcessingDefaults.CONNECTION_TIMEOUT):
        """
        Initialize the writer.

        Args:
            connection_string: ODBC connection string of the target database
            target_schema: Schema that receives every table
            batch_size: Rows per executemany call
            create_tables: Create missing tables before inserting
            replace_existing: Delete existing rows of a table before inserting
            connection_timeout: Login timeout in seconds
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.connection_string = connection_string
        self.target_schema = target_schema
        self.batch_size = batch_size
        self.create_tables = create_tables
        self.replace_existing = replace_existing
        self.connection_timeout = connection_timeout
        self.logger = logging.getLogger(__name__)

        self.logger.info(f"SqlServerTableWriter initialized with target_schema={target_schema}, "
                         f"batch_size={batch_size}")

    def qualified_name(self, table_name: str) -> str:
        return f"{quote_identifier(self.target_schema)}.{quote_identifier(table_name)}"

    @contextmanager
    def get_connection(self):
        """
        Context manager for database connections with automatic cleanup.

        Yields:
            pyodbc.Connection: Active connection with autocommit disabled

        Raises:
            DatabaseConnectionError: If the connection cannot be established
        """
        try:
            connection = pyodbc.connect(self.connection_string, autocommit=False,
                                        timeout=self.connection_timeout)
        except pyodbc.Error as e:
            self.logger.error(f"Database connection failed: {e}")
            raise DatabaseConnectionError(f"Failed to connect to database: {e}")

        try:
            connection.setdecoding(pyodbc.SQL_CHAR, encoding='utf-8')
            connection.setdecoding(pyodbc.SQL_WCHAR, encoding='utf-8')
            connection.setencoding(encoding='utf-8')
            yield connection
        finally:
            connection.close()

    def write_table(self, table: Table) -> int:
        """
        Write one table in its own transaction.

        Args:
            table: Table to write

        Returns:
            Number of rows inserted

        Raises:
            DatabaseError: If any statement fails; the transaction is rolled back
        """
        return self.write_tables({table.name: table})[table.name]

    def write_tables(self, tables: Mapping[str, Table]) -> Dict[str, int]:
        """
        Write every table on one connection inside a single transaction.

        Args:
            tables: Tables keyed by name, written in mapping order

        Returns:
            Rows inserted per table

        Raises:
            DatabaseError: If any statement fails; nothing is committed
        """
        counts: Dict[str, int] = {}
        with self.get_connection() as connection:
            current_table: Optional[str] = None
            try:
                cursor = connection.cursor()
                for name, table in tables.items():
                    current_table = name
                    counts[name] = self._write_with_cursor(cursor, table)
                connection.commit()
            except pyodbc.Error as e:
                connection.rollback()
                self.logger.error(f"Transaction rolled back while writing {current_table}: {str(e)[:200]}")
                raise DatabaseError(f"Database error while writing table: {e}", table_name=current_table)

        self.logger.info(f"Committed {sum(counts.values())} rows across {len(counts)} tables")
        return counts

    def _write_with_cursor(self, cursor, table: Table) -> int:
        if not table.columns:
            self.logger.debug(f"Skipping {table.name}: no columns")
            return 0

        qualified_name = self.qualified_name(table.name)
        if self.create_tables:
            cursor.execute(self.create_table_sql(table))
        if self.replace_existing:
            cursor.execute(f"DELETE FROM {qualified_name}")

        if not len(table):
            return 0

        sql = self.insert_sql(table)
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"SQL: {sql}")

        cursor.fast_executemany = True
        rows = table.to_tuples()
        inserted = 0
        for batch in self._batches(rows):
            cursor.executemany(sql, batch)
            inserted += len(batch)

        self.logger.info(f"Inserted {inserted} records into {qualified_name}")
        return inserted

    def create_table_sql(self, table: Table) -> str:
        """Return an idempotent CREATE TABLE statement with one nullable text column per table column."""
        qualified_name = self.qualified_name(table.name)
        column_list = ", ".join(f"{quote_identifier(column)} NVARCHAR(MAX) NULL" for column in table.columns)
        object_name = qualified_name.replace("'", "''")
        return (f"IF OBJECT_ID(N'{object_name}', N'U') IS NULL "
                f"CREATE TABLE {qualified_name} ({column_list})")

    def insert_sql(self, table: Table) -> str:
        column_list = ", ".join(quote_identifier(column) for column in table.columns)
        placeholders = ", ".join("?" * len(table.columns))
        return f"INSERT INTO {self.qualified_name(table.name)} ({column_list}) VALUES ({placeholders})"

    def _batches(self, rows: Sequence[Tuple]) -> List[Sequence[Tuple]]:
        return [rows[start:start + self.batch_size] for start in range(0, len(rows), self.batch_size)]

"""
Batched INSERT execution against PostgreSQL.

Each chunk of ``batch_size`` records is one transaction whose INSERT
statements are sent through psycopg pipeline mode, so the per-statement
round trip does not dominate the timing. A failing chunk is rolled back
and aborts the whole call.
"""

import time
from typing import Iterator, Sequence, Tuple

import psycopg
import structlog
from psycopg import sql

from .config import Record
from .errors import TransactionError

logger = structlog.get_logger()


def iter_chunks(records: Sequence[Record], batch_size: int) -> Iterator[Tuple[int, Sequence[Record]]]:
    """
    Split records into contiguous chunks of at most ``batch_size``.

    Yields:
        (offset, chunk) pairs; the final chunk may be smaller

    Example:
        >>> [len(c) for _, c in iter_chunks(list(range(10)), 3)]
        [3, 3, 3, 1]
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    for offset in range(0, len(records), batch_size):
        yield offset, records[offset:offset + batch_size]


class BatchInsertExecutor:
    """
    Inserts records in fixed-size transactions through a connection pool.

    The pool is any object whose ``connection()`` returns a context manager
    yielding a psycopg connection (``psycopg_pool.ConnectionPool`` in
    production).
    """

    def __init__(self, pool, table_name: str = "test_data"):
        """
        Initialize executor.

        Args:
            pool: Connection pool shared with nothing else during a run
            table_name: Target table (created by the schema bootstrap)
        """
        self.pool = pool
        self.table_name = table_name
        self._insert_sql = sql.SQL(
            "INSERT INTO {} (payload, description, counter1, counter2) VALUES (%s, %s, %s, %s)"
        ).format(sql.Identifier(table_name))
        self._truncate_sql = sql.SQL("TRUNCATE {}").format(sql.Identifier(table_name))
        self._count_sql = sql.SQL("SELECT count(*) FROM {}").format(sql.Identifier(table_name))

    def clear_table(self):
        """Remove every row from the target table (no-op when already empty)."""
        try:
            with self.pool.connection() as conn:
                conn.execute(self._truncate_sql)
        except psycopg.Error as e:
            raise TransactionError(f"Failed to clear table {self.table_name}: {e}") from e

        logger.debug("Table cleared", table=self.table_name)

    def count_rows(self) -> int:
        """Return the current row count of the target table."""
        try:
            with self.pool.connection() as conn:
                row = conn.execute(self._count_sql).fetchone()
        except psycopg.Error as e:
            raise TransactionError(f"Failed to count rows in {self.table_name}: {e}") from e

        return int(row[0])

    def insert_transaction(self, records: Sequence[Record], offset: int = 0):
        """
        Insert records as a single pipelined transaction.

        Args:
            records: Rows for this transaction
            offset: Position of the first row in the caller's sequence
                (used for error reporting)

        Raises:
            TransactionError: If begin, any statement or commit fails; the
                transaction has been rolled back when this is raised
        """
        if not records:
            return

        params = [record.as_params() for record in records]

        try:
            with self.pool.connection() as conn:
                # Errors inside the pipeline roll back the enclosing transaction
                with conn.pipeline():
                    with conn.transaction():
                        with conn.cursor() as cur:
                            cur.executemany(self._insert_sql, params)
        except psycopg.Error as e:
            logger.error("Batch transaction failed",
                         table=self.table_name,
                         offset=offset,
                         rows=len(records),
                         error=str(e))
            raise TransactionError(
                f"Transaction of {len(records)} rows at offset {offset} failed: {e}",
                batch_size=len(records),
                offset=offset,
            ) from e

    def insert_batched(self, records: Sequence[Record], batch_size: int) -> float:
        """
        Insert all records in transactions of ``batch_size`` rows.

        Args:
            records: Rows to insert, in order
            batch_size: Maximum rows per transaction

        Returns:
            Elapsed wall-clock seconds for the whole sequence

        Raises:
            ValueError: If batch_size < 1
            TransactionError: On the first failing chunk; later chunks are
                not attempted
        """
        chunks = iter_chunks(records, batch_size)
        transactions = 0

        start = time.perf_counter()
        for offset, chunk in chunks:
            try:
                self.insert_transaction(chunk, offset=offset)
            except TransactionError as e:
                e.batch_size = batch_size
                raise
            transactions += 1
        elapsed = time.perf_counter() - start

        logger.debug("Batched insert complete",
                     table=self.table_name,
                     rows=len(records),
                     batch_size=batch_size,
                     transactions=transactions,
                     elapsed_s=round(elapsed, 6))

        return elapsed

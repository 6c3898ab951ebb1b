"""
Schema bootstrap for the benchmark table.

The statements below are ordered and idempotent: the table is created with
its original columns, later columns are added with ``IF NOT EXISTS``. They
run together in one transaction, so a failure leaves the schema as it was.
"""

from typing import List

import psycopg
import structlog
from psycopg import sql

from .errors import MigrationError

logger = structlog.get_logger()

DEFAULT_TABLE = "test_data"

SCHEMA_CHANGES = [
    sql.SQL("""
        CREATE TABLE IF NOT EXISTS {table} (
            id BIGSERIAL PRIMARY KEY,
            payload TEXT NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT NOW()
        )
    """),
    sql.SQL("ALTER TABLE {table} ADD COLUMN IF NOT EXISTS description TEXT NOT NULL DEFAULT ''"),
    sql.SQL("ALTER TABLE {table} ADD COLUMN IF NOT EXISTS counter1 INTEGER NOT NULL DEFAULT 0"),
    sql.SQL("ALTER TABLE {table} ADD COLUMN IF NOT EXISTS counter2 INTEGER NOT NULL DEFAULT 0"),
]


def schema_statements(table_name: str = DEFAULT_TABLE) -> List[sql.Composed]:
    """Return the bootstrap DDL bound to ``table_name``."""
    table = sql.Identifier(table_name)
    return [change.format(table=table) for change in SCHEMA_CHANGES]


def ensure_schema(pool, table_name: str = DEFAULT_TABLE):
    """
    Make sure the benchmark table exists with all its columns.

    Args:
        pool: Connection pool (``psycopg_pool.ConnectionPool``)
        table_name: Table to create or bring up to date

    Raises:
        MigrationError: If any statement fails; nothing is applied
    """
    statements = schema_statements(table_name)

    try:
        with pool.connection() as conn:
            with conn.transaction():
                for statement in statements:
                    conn.execute(statement)
    except psycopg.Error as e:
        raise MigrationError(f"Failed to bootstrap table {table_name}: {e}") from e

    logger.info("Schema ready", table=table_name, statements=len(statements))

"""
Contract Test: schema bootstrap

The bootstrap DDL runs in order inside one transaction, targets the
configured table, and driver errors surface as MigrationError.
"""

import psycopg
import pytest

from pgwrite_bench.errors import MigrationError
from pgwrite_bench.schema import SCHEMA_CHANGES, ensure_schema, schema_statements

pytestmark = pytest.mark.contract


class TestSchemaStatements:

    def test_create_comes_before_column_additions(self):
        statements = [repr(s) for s in schema_statements()]

        assert "CREATE TABLE IF NOT EXISTS" in statements[0]
        assert all("ADD COLUMN IF NOT EXISTS" in s for s in statements[1:])

    def test_every_benchmark_column_is_declared(self):
        ddl = "\n".join(repr(s) for s in schema_statements())

        for column in ("id", "payload", "description", "counter1", "counter2", "created_at"):
            assert column in ddl

    def test_statements_target_configured_table(self):
        statements = schema_statements("bench_rows")

        assert len(statements) == len(SCHEMA_CHANGES)
        assert all("bench_rows" in repr(s) for s in statements)
        assert not any("test_data" in repr(s) for s in statements)


class TestEnsureSchema:

    def test_runs_all_statements_in_one_transaction(self, fake_pool):
        ensure_schema(fake_pool)

        assert len(fake_pool.db.executed) == len(SCHEMA_CHANGES)
        assert fake_pool.db.transactions == [0]
        assert fake_pool.connections_handed_out == 1

    def test_uses_given_table_name(self, fake_pool):
        ensure_schema(fake_pool, table_name="bench_rows")

        assert all("bench_rows" in text for text in fake_pool.db.executed)

    def test_repeated_bootstrap_is_harmless(self, fake_pool):
        ensure_schema(fake_pool)
        ensure_schema(fake_pool)

        assert fake_pool.db.rollbacks == 0
        assert fake_pool.db.transactions == [0, 0]

    def test_driver_error_becomes_migration_error(self, fake_pool):
        """
        GIVEN a server rejecting one of the column additions
        WHEN the schema is bootstrapped
        THEN the transaction is rolled back and MigrationError names the phase
        """
        fake_pool.db.fail_on_statement = "counter2"

        with pytest.raises(MigrationError) as exc_info:
            ensure_schema(fake_pool)

        assert exc_info.value.phase == "migration"
        assert isinstance(exc_info.value.__cause__, psycopg.Error)
        assert fake_pool.db.rollbacks == 1
        assert fake_pool.db.transactions == []

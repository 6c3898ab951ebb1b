"""
Integration tests against a real PostgreSQL.

Requires DATABASE_URL pointing at a disposable database: the benchmark table
is truncated by these tests.
"""

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from pgwrite_bench.config import BenchmarkConfiguration, Record, SamplerState
from pgwrite_bench.data_generator import generate
from pgwrite_bench.errors import TransactionError
from pgwrite_bench.executor import BatchInsertExecutor
from pgwrite_bench.schema import ensure_schema
from pgwrite_bench.runner import BenchmarkRunner

pytestmark = [
    pytest.mark.integration,
    pytest.mark.requires_postgres,
]


@pytest.fixture(scope="module")
def pool(database_url):
    pool = ConnectionPool(database_url, min_size=1, max_size=2, open=False)
    pool.open(wait=True)
    ensure_schema(pool)
    yield pool
    pool.close()


@pytest.fixture
def executor(pool):
    executor = BatchInsertExecutor(pool)
    executor.clear_table()
    yield executor
    executor.clear_table()


def test_schema_bootstrap_is_idempotent(pool):
    ensure_schema(pool)

    with pool.connection() as conn:
        columns = {
            row[0]
            for row in conn.execute(
                "SELECT column_name FROM information_schema.columns WHERE table_name = 'test_data'"
            ).fetchall()
        }

    assert {"id", "payload", "description", "counter1", "counter2", "created_at"} <= columns


def test_bootstrap_creates_configured_table(pool):
    table = "pgwrite_bench_custom_rows"
    ensure_schema(pool, table_name=table)

    try:
        custom = BatchInsertExecutor(pool, table_name=table)
        custom.clear_table()
        custom.insert_batched(generate(7), batch_size=3)

        assert custom.count_rows() == 7
    finally:
        with pool.connection() as conn:
            conn.execute(f"DROP TABLE IF EXISTS {table}")


def test_clear_empty_table(executor):
    executor.clear_table()
    executor.clear_table()

    assert executor.count_rows() == 0


def test_five_rows_at_batch_two(executor):
    executor.insert_batched(generate(5), batch_size=2)

    assert executor.count_rows() == 5


@pytest.mark.parametrize("count, batch_size", [(10, 3), (9, 3), (10, 1), (10, 100)])
def test_inserts_exact_row_count(executor, count, batch_size):
    executor.insert_batched(generate(count), batch_size)

    assert executor.count_rows() == count


def test_constraint_violation_rolls_back_whole_transaction(executor):
    """
    GIVEN 4 committed rows
    WHEN a 10-row single transaction has a NOT NULL violation at row 5
    THEN no row of that transaction is visible afterwards
    """
    executor.insert_batched(generate(4), batch_size=4)
    records = generate(10)
    records[5] = Record(payload=None, description="bad", counter1=0, counter2=0)

    with pytest.raises(TransactionError) as exc_info:
        executor.insert_batched(records, batch_size=10)

    assert isinstance(exc_info.value.__cause__, psycopg.errors.NotNullViolation)
    assert executor.count_rows() == 4


def test_failed_chunk_stops_later_chunks(executor):
    records = generate(9)
    records[4] = Record(payload=None, description="bad", counter1=0, counter2=0)

    with pytest.raises(TransactionError):
        executor.insert_batched(records, batch_size=3)

    assert executor.count_rows() == 3


def test_small_benchmark_run(executor):
    config = BenchmarkConfiguration(
        batch_sizes=(10, 100),
        sample_size=500,
        min_samples=3,
        max_samples=5,
        target_cv=0.5,
        total_rows=500,
    )

    report = BenchmarkRunner(config, executor).run(generate(config.total_rows))

    assert [r.batch_size for r in report.results] == [10, 100]
    for result in report.results:
        assert 3 <= result.sample_count <= 5
        assert result.state in (SamplerState.CONVERGED, SamplerState.MAX_REACHED)
        assert result.mean_throughput > 0
    assert executor.count_rows() == 500

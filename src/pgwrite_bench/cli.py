#!/usr/bin/env python3
"""
PostgreSQL batched write throughput benchmark (CLI entry point).

Runs the full sequence: load settings, connect, bootstrap the schema,
generate rows, sweep batch sizes, render the histogram. Any unrecoverable
error aborts with a message naming the phase that failed.
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

import psycopg
import structlog
from psycopg_pool import ConnectionPool

from . import __version__
from .config import DEFAULT_BATCH_SIZES, BenchmarkConfiguration, ConnectionSettings, load_connection_settings
from .data_generator import generate
from .errors import BenchmarkError, ConnectivityError
from .executor import BatchInsertExecutor
from .output import export_json, render
from .runner import BenchmarkRunner
from .schema import ensure_schema

logger = structlog.get_logger()


def _stderr_logger(*args):
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(verbose: bool = False):
    """Route structlog output to stderr at INFO (or DEBUG when verbose)."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if verbose else logging.INFO),
        logger_factory=_stderr_logger,
    )


def _batch_sizes(value: str) -> List[int]:
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma-separated integers, got {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pgwrite-bench",
        description="PostgreSQL batched write throughput benchmark",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full sweep (reads DATABASE_URL from the environment or .env)
  pgwrite-bench

  # Quick run with small batches and a smaller dataset
  pgwrite-bench --batch-sizes 10,100,1000 --total-rows 50000 --sample-size 10000

  # Keep a JSON copy of the results
  pgwrite-bench --output-json results/json
        """
    )

    defaults = BenchmarkConfiguration()

    parser.add_argument(
        '--batch-sizes',
        type=_batch_sizes,
        default=list(DEFAULT_BATCH_SIZES),
        help='Comma-separated rows per transaction (default: %(default)s)'
    )
    parser.add_argument(
        '--total-rows',
        type=int,
        default=defaults.total_rows,
        help='Rows generated for the run (default: %(default)s)'
    )
    parser.add_argument(
        '--sample-size',
        type=int,
        default=defaults.sample_size,
        help='Rows inserted per sample (default: %(default)s)'
    )
    parser.add_argument(
        '--target-cv',
        type=float,
        default=defaults.target_cv,
        help='Coefficient of variation treated as steady state (default: %(default)s)'
    )
    parser.add_argument(
        '--min-samples',
        type=int,
        default=defaults.min_samples,
        help='Samples taken before checking convergence (default: %(default)s)'
    )
    parser.add_argument(
        '--max-samples',
        type=int,
        default=defaults.max_samples,
        help='Sample ceiling per batch size (default: %(default)s)'
    )
    parser.add_argument(
        '--warmup-cycles',
        type=int,
        default=defaults.warmup_cycles,
        help='Discarded warmup transactions per batch size (default: %(default)s)'
    )
    parser.add_argument(
        '--table-name',
        type=str,
        default=defaults.table_name,
        help='Table written by the benchmark, created if missing (default: %(default)s)'
    )
    parser.add_argument(
        '--env-file',
        type=str,
        default=None,
        help='dotenv file to load before reading DATABASE_URL (default: .env)'
    )
    parser.add_argument(
        '--output-json',
        type=str,
        default=None,
        help='Also write the report as JSON into this directory'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Debug logging'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser


def open_pool(settings: ConnectionSettings) -> ConnectionPool:
    """
    Open the connection pool and check the server answers.

    Raises:
        ConnectivityError: If the datastore cannot be reached
    """
    pool = ConnectionPool(
        settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=False,
    )

    try:
        pool.open(wait=True)
        with pool.connection() as conn:
            conn.execute("SELECT 1")
    except psycopg.Error as e:
        pool.close()
        raise ConnectivityError(f"Unable to connect to database: {e}") from e

    logger.info("Connected", pool_min_size=settings.pool_min_size, pool_max_size=settings.pool_max_size)
    return pool


def run(args: argparse.Namespace, config: BenchmarkConfiguration) -> int:
    settings = load_connection_settings(args.env_file)
    pool = open_pool(settings)

    try:
        ensure_schema(pool, config.table_name)

        print("Generating test data...")
        start = time.perf_counter()
        records = generate(config.total_rows)
        print(f"Generated {len(records)} rows in {time.perf_counter() - start:.2f}s\n")

        executor = BatchInsertExecutor(pool, table_name=config.table_name)
        report = BenchmarkRunner(config, executor).run(records)

        print(render(report.results))

        if args.output_json:
            path = export_json(report, args.output_json)
            print(f"\nJSON: {path}")
    finally:
        pool.close()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    config = BenchmarkConfiguration(
        batch_sizes=tuple(args.batch_sizes),
        sample_size=args.sample_size,
        target_cv=args.target_cv,
        min_samples=args.min_samples,
        max_samples=args.max_samples,
        warmup_cycles=args.warmup_cycles,
        total_rows=args.total_rows,
        table_name=args.table_name,
    )

    errors = config.validate()
    if errors:
        print("Invalid configuration:", file=sys.stderr)
        for error in errors:
            print(f"  {error}", file=sys.stderr)
        return 2

    try:
        return run(args, config)
    except BenchmarkError as e:
        print(f"\nBenchmark failed during {e.phase or 'run'}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

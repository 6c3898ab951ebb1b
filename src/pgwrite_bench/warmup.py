"""
Warmup cycles run before each batch-size trial.

Primes the connection pool, buffer cache and plan cache so the first
measured sample is not artificially slow. Timings are discarded.
"""

from typing import Sequence

import structlog

from .config import Record
from .executor import BatchInsertExecutor

logger = structlog.get_logger()

DEFAULT_WARMUP_CYCLES = 2


class WarmupController:
    """Runs discarded insert-and-clear cycles at the trial's batch size."""

    def __init__(self, executor: BatchInsertExecutor, cycles: int = DEFAULT_WARMUP_CYCLES):
        if cycles < 0:
            raise ValueError(f"cycles must be >= 0, got {cycles}")
        self.executor = executor
        self.cycles = cycles

    def run(self, records: Sequence[Record], batch_size: int):
        """
        Execute warmup cycles, leaving the table empty.

        Each cycle inserts the first ``batch_size`` records (or all of them
        if fewer) as one transaction. Failures propagate: a datastore that
        cannot warm up cannot be measured.

        Args:
            records: Generated rows
            batch_size: Trial batch size
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        warmup_rows = records[:batch_size]
        print(f"  Running {self.cycles} warmup transactions...")

        for cycle in range(self.cycles):
            self.executor.clear_table()
            self.executor.insert_transaction(warmup_rows)
            logger.debug("Warmup cycle complete",
                         cycle=cycle + 1,
                         rows=len(warmup_rows),
                         batch_size=batch_size)

        self.executor.clear_table()

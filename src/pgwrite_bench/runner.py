"""
Benchmark runner.

Drives every batch size strictly in order: warmup, then steady-state
sampling, collecting one Result per batch size into a BenchmarkReport.
"""

import uuid
from datetime import datetime
from typing import Optional, Sequence

import structlog

from .config import BenchmarkConfiguration, BenchmarkReport, Record
from .errors import BenchmarkError
from .executor import BatchInsertExecutor
from .sampler import SteadyStateSampler
from .warmup import WarmupController

logger = structlog.get_logger()


class BenchmarkRunner:
    """
    Main runner for the batch-size throughput sweep.

    There is no concurrency between trials and no partial-results mode: the
    first BenchmarkError aborts the run, tagged with the batch size that
    failed.
    """

    def __init__(
        self,
        config: BenchmarkConfiguration,
        executor: BatchInsertExecutor,
        warmup: Optional[WarmupController] = None,
        sampler: Optional[SteadyStateSampler] = None,
    ):
        """
        Initialize benchmark runner.

        Args:
            config: Benchmark configuration
            executor: Insert executor bound to the benchmark table
            warmup: Warmup controller (defaults to config.warmup_cycles)
            sampler: Steady-state sampler (defaults to one built from config)

        Raises:
            ValueError: If configuration validation fails
        """
        errors = config.validate()
        if errors:
            raise ValueError("Invalid configuration:\n" + "\n".join(errors))

        self.config = config
        self.executor = executor
        self.warmup = warmup or WarmupController(executor, cycles=config.warmup_cycles)
        self.sampler = sampler or SteadyStateSampler(executor, config)

    def run(self, records: Sequence[Record]) -> BenchmarkReport:
        """
        Run one trial per configured batch size.

        Args:
            records: Generated rows shared by every trial

        Returns:
            BenchmarkReport with results in batch-size order
        """
        report = BenchmarkReport(
            report_id=f"pgwrite_{uuid.uuid4().hex[:12]}",
            config=self.config,
            start_time=datetime.now(),
        )

        logger.info("Benchmark started",
                    report_id=report.report_id,
                    batch_sizes=list(self.config.batch_sizes),
                    rows=len(records))

        for batch_size in self.config.batch_sizes:
            print(f"Testing batch size: {batch_size}")
            phase = f"warmup for batch size {batch_size}"

            try:
                self.warmup.run(records, batch_size)
                phase = f"batch size {batch_size}"
                result = self.sampler.run_trial(records, batch_size)
            except BenchmarkError as e:
                logger.error("Trial failed", phase=phase, error=str(e))
                raise e.with_phase(phase)

            report.results.append(result)
            print(f"  Throughput: {result.mean_throughput:.0f} ± {result.std_dev:.0f} rows/sec "
                  f"({result.sample_count} samples)\n")

        report.end_time = datetime.now()
        logger.info("Benchmark complete",
                    report_id=report.report_id,
                    duration_s=round(report.total_duration_seconds, 3))
        return report

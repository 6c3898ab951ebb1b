"""
Steady-state throughput sampling.

A trial for one batch size repeatedly measures fixed-size samples until the
coefficient of variation over the whole series drops to the target, or the
sample ceiling is hit.

The stopping decision is the pure function ``evaluate``; ``SteadyStateSampler``
only performs the I/O of measuring samples and feeds the series to it.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import structlog

from .config import BenchmarkConfiguration, Record, Result, SamplerState
from .errors import StatisticalAnomalyError
from .executor import BatchInsertExecutor
from .metrics import summarize

logger = structlog.get_logger()


@dataclass(frozen=True)
class Decision:
    """Outcome of one transition: keep sampling, or a terminal Result"""
    state: SamplerState
    result: Optional[Result] = None
    mean: Optional[float] = None
    cv: Optional[float] = None


def evaluate(
    series: Sequence[float],
    batch_size: int,
    config: BenchmarkConfiguration,
    rows_per_sample: int = 0,
) -> Decision:
    """
    Decide whether a sample series has reached a terminal state.

    Args:
        series: Throughput samples collected so far (rows/sec)
        batch_size: Batch size under trial
        config: Sampling policy (min/max samples, target CV)
        rows_per_sample: Rows inserted per sample, carried into the Result

    Returns:
        Decision in SAMPLING (no result), CONVERGED or MAX_REACHED state.
        Terminal results summarize the entire series.

    Raises:
        ValueError: If the series is empty or longer than max_samples
        StatisticalAnomalyError: If the series mean is not positive
    """
    count = len(series)
    if count == 0:
        raise ValueError("cannot evaluate an empty sample series")
    if count > config.max_samples:
        raise ValueError(f"series has {count} samples, more than max_samples={config.max_samples}")

    if count < config.min_samples:
        return Decision(state=SamplerState.SAMPLING)

    summary = summarize(series)

    if summary.cv <= config.target_cv:
        state = SamplerState.CONVERGED
    elif count == config.max_samples:
        state = SamplerState.MAX_REACHED
    else:
        return Decision(state=SamplerState.SAMPLING, mean=summary.mean, cv=summary.cv)

    return Decision(
        state=state,
        mean=summary.mean,
        cv=summary.cv,
        result=Result(
            batch_size=batch_size,
            mean_throughput=summary.mean,
            std_dev=summary.std_dev,
            sample_count=summary.count,
            state=state,
            rows_per_sample=rows_per_sample,
        ),
    )


class SteadyStateSampler:
    """Measures one batch size until its throughput distribution settles."""

    def __init__(self, executor: BatchInsertExecutor, config: BenchmarkConfiguration):
        """
        Initialize sampler.

        Args:
            executor: Insert executor bound to the benchmark table
            config: Sampling policy and sample size
        """
        self.executor = executor
        self.config = config

    def measure_sample(self, records: Sequence[Record], batch_size: int) -> float:
        """
        Clear the table, insert one sample and return its throughput.

        Returns:
            Rows per second for this sample

        Raises:
            StatisticalAnomalyError: If the insert reports no elapsed time
        """
        rows = records[:self.config.sample_size]

        self.executor.clear_table()
        elapsed = self.executor.insert_batched(rows, batch_size)

        if elapsed <= 0:
            raise StatisticalAnomalyError(
                f"sample of {len(rows)} rows at batch size {batch_size} "
                f"reported non-positive elapsed time {elapsed!r}"
            )

        return len(rows) / elapsed

    def run_trial(self, records: Sequence[Record], batch_size: int) -> Result:
        """
        Sample until convergence or the sample ceiling.

        Args:
            records: Generated rows (each sample uses the first sample_size)
            batch_size: Batch size under trial

        Returns:
            Result over every sample taken in this trial
        """
        if not records:
            raise ValueError("cannot sample with an empty record set")

        rows_per_sample = min(self.config.sample_size, len(records))
        series: List[float] = []

        while True:
            throughput = self.measure_sample(records, batch_size)
            series.append(throughput)

            decision = evaluate(series, batch_size, self.config, rows_per_sample)
            self._report_sample(series, throughput, decision)

            if decision.state.is_terminal:
                logger.info("Trial finished",
                            batch_size=batch_size,
                            state=decision.state.value,
                            samples=len(series),
                            cv=decision.cv)
                return decision.result

    def _report_sample(self, series: Sequence[float], throughput: float, decision: Decision):
        if decision.cv is None:
            print(f"    Sample {len(series)}: {throughput:.0f} rows/sec")
            return

        print(f"    Sample {len(series)}: {throughput:.0f} rows/sec "
              f"(mean: {decision.mean:.0f}, CV: {decision.cv * 100:.2f}%)")

        if decision.state is SamplerState.CONVERGED:
            print(f"  Reached steady state after {len(series)} samples (CV: {decision.cv * 100:.2f}%)")
        elif decision.state is SamplerState.MAX_REACHED:
            print(f"  Reached max samples ({len(series)}) with CV: {decision.cv * 100:.2f}%")

"""
Configuration and data models for the write throughput benchmark.

Holds the run parameters (batch sizes, sampling policy, warmup), the
connection settings read from the environment, and the records and results
that flow between the executor, sampler and reporter.
"""

import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

import structlog
from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError, StatisticalAnomalyError
from .metrics import coefficient_of_variation

logger = structlog.get_logger()

DATABASE_URL_ENV = "DATABASE_URL"
POOL_MAX_SIZE_ENV = "PGWRITE_POOL_MAX_SIZE"

DEFAULT_BATCH_SIZES: Tuple[int, ...] = (100, 1000, 10_000, 100_000, 1_000_000, 10_000_000)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SamplerState(Enum):
    """States of one batch-size trial"""
    SAMPLING = "sampling"
    CONVERGED = "converged"
    MAX_REACHED = "max_reached"

    @property
    def is_terminal(self) -> bool:
        return self is not SamplerState.SAMPLING


@dataclass(frozen=True)
class Record:
    """Synthetic row inserted by the benchmark"""
    payload: str
    description: str
    counter1: int
    counter2: int

    def as_params(self) -> Tuple[str, str, int, int]:
        return (self.payload, self.description, self.counter1, self.counter2)


@dataclass
class ConnectionSettings:
    """Datastore connection parameters"""
    database_url: str
    pool_min_size: int = 1
    pool_max_size: int = 4

    def validate(self) -> List[str]:
        """
        Validate connection parameters.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.database_url:
            errors.append(f"{DATABASE_URL_ENV} environment variable is required")

        if self.pool_min_size < 1:
            errors.append(f"pool_min_size must be >= 1, got {self.pool_min_size}")

        if self.pool_max_size < self.pool_min_size:
            errors.append(
                f"pool_max_size must be >= pool_min_size ({self.pool_min_size}), "
                f"got {self.pool_max_size}"
            )

        return errors


@dataclass
class BenchmarkConfiguration:
    """Parameters for a benchmark run"""
    batch_sizes: Tuple[int, ...] = DEFAULT_BATCH_SIZES
    sample_size: int = 100_000
    target_cv: float = 0.05
    min_samples: int = 5
    max_samples: int = 20
    warmup_cycles: int = 2
    total_rows: int = 10_000_000
    table_name: str = "test_data"

    def validate(self) -> List[str]:
        """
        Validate the run parameters.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.batch_sizes:
            errors.append("batch_sizes cannot be empty")
        else:
            for size in self.batch_sizes:
                if not isinstance(size, int) or isinstance(size, bool) or size < 1:
                    errors.append(f"batch sizes must be positive integers, got {size!r}")
            if len(set(self.batch_sizes)) != len(self.batch_sizes):
                errors.append(f"batch_sizes must be unique, got {list(self.batch_sizes)}")

        if self.sample_size < 1:
            errors.append(f"sample_size must be > 0, got {self.sample_size}")

        if not (0.0 < self.target_cv < 1.0):
            errors.append(f"target_cv must be in (0, 1), got {self.target_cv}")

        if self.min_samples < 1:
            errors.append(f"min_samples must be > 0, got {self.min_samples}")

        if self.max_samples < self.min_samples:
            errors.append(
                f"max_samples must be >= min_samples ({self.min_samples}), got {self.max_samples}"
            )

        if self.warmup_cycles < 0:
            errors.append(f"warmup_cycles must be >= 0, got {self.warmup_cycles}")

        if self.total_rows < 1:
            errors.append(f"total_rows must be > 0, got {self.total_rows}")

        if not _IDENTIFIER.match(self.table_name or ""):
            errors.append(f"table_name must be a plain SQL identifier, got {self.table_name!r}")

        return errors

    def to_json(self) -> Dict:
        return {
            "batch_sizes": list(self.batch_sizes),
            "sample_size": self.sample_size,
            "target_cv": self.target_cv,
            "min_samples": self.min_samples,
            "max_samples": self.max_samples,
            "warmup_cycles": self.warmup_cycles,
            "total_rows": self.total_rows,
        }


@dataclass(frozen=True)
class Result:
    """Aggregated throughput for one batch size"""
    batch_size: int
    mean_throughput: float
    std_dev: float
    sample_count: int
    state: SamplerState = SamplerState.CONVERGED
    rows_per_sample: int = 0

    @property
    def cv(self) -> float:
        return coefficient_of_variation(self.std_dev, self.mean_throughput)

    @property
    def converged(self) -> bool:
        return self.state is SamplerState.CONVERGED

    @property
    def estimated_duration_seconds(self) -> float:
        """Time the whole trial's inserts would take at the mean throughput."""
        if self.mean_throughput <= 0:
            raise StatisticalAnomalyError(f"no duration estimate for mean throughput {self.mean_throughput!r}")
        return (self.rows_per_sample * self.sample_count) / self.mean_throughput

    def to_json(self) -> Dict:
        return {
            "batch_size": self.batch_size,
            "mean_rows_per_sec": self.mean_throughput,
            "std_dev_rows_per_sec": self.std_dev,
            "cv": self.cv,
            "samples": self.sample_count,
            "state": self.state.value,
            "rows_per_sample": self.rows_per_sample,
            "estimated_duration_seconds": self.estimated_duration_seconds,
        }


@dataclass
class BenchmarkReport:
    """Complete benchmark results"""
    report_id: str
    config: BenchmarkConfiguration
    start_time: datetime
    end_time: Optional[datetime] = None
    results: List[Result] = field(default_factory=list)

    @property
    def total_duration_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def to_json(self) -> Dict:
        """
        Export report as a JSON-serializable dict.

        Returns:
            Dict suitable for json.dumps()
        """
        return {
            "report_id": self.report_id,
            "timestamp": self.start_time.isoformat(),
            "config": self.config.to_json(),
            "duration_seconds": self.total_duration_seconds,
            "results": [result.to_json() for result in self.results],
        }


def load_connection_settings(env_file: Optional[str] = None) -> ConnectionSettings:
    """
    Read connection settings from the environment.

    A dotenv file is loaded first when present; variables already set in the
    environment take precedence over it.

    Args:
        env_file: Path to a dotenv file (defaults to ``.env`` lookup);
            a missing default ``.env`` is ignored

    Returns:
        Validated ConnectionSettings

    Raises:
        ConfigurationError: If the connection string is missing, a pool
            setting is invalid or an explicit env_file does not exist
    """
    if env_file and not os.path.isfile(env_file):
        raise ConfigurationError(f"env file not found: {env_file}")

    loaded = load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True), override=False)
    logger.debug("dotenv processed", env_file=env_file or ".env", loaded=loaded)

    settings = ConnectionSettings(database_url=os.environ.get(DATABASE_URL_ENV, "").strip())

    pool_max = os.environ.get(POOL_MAX_SIZE_ENV)
    if pool_max:
        try:
            settings.pool_max_size = int(pool_max)
        except ValueError:
            raise ConfigurationError(f"{POOL_MAX_SIZE_ENV} must be an integer, got {pool_max!r}") from None

    errors = settings.validate()
    if errors:
        raise ConfigurationError("; ".join(errors))

    return settings

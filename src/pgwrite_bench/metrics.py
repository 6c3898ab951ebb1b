"""
Statistics over throughput sample series.

Calculates the figures the sampler stops on:
- Mean throughput
- Population standard deviation (divide by n, the series is the whole
  population of observations made)
- Coefficient of variation (std dev / mean)
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .errors import StatisticalAnomalyError


@dataclass(frozen=True)
class SeriesSummary:
    """Statistics for one sample series"""
    mean: float
    std_dev: float
    cv: float
    count: int


def _as_array(values: Sequence[float]) -> np.ndarray:
    if len(values) == 0:
        raise ValueError("statistics require at least one sample")
    return np.asarray(values, dtype=np.float64)


def mean(values: Sequence[float]) -> float:
    """
    Arithmetic mean of a non-empty series.

    Example:
        >>> mean([10.0, 12.0, 14.0])
        12.0
    """
    return float(np.mean(_as_array(values)))


def std_dev(values: Sequence[float], mean_value: float) -> float:
    """
    Population standard deviation of a non-empty series around ``mean_value``.

    Args:
        values: Throughput samples
        mean_value: Mean of ``values``

    Returns:
        sqrt(sum((x - mean)^2) / n), 0.0 for a single sample

    Example:
        >>> std_dev([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0], 5.0)
        2.0
    """
    samples = _as_array(values)

    # Constant series are exactly zero regardless of float rounding in the mean
    if np.all(samples == samples[0]):
        return 0.0

    variance = np.sum((samples - mean_value) ** 2) / len(samples)
    return float(np.sqrt(variance))


def coefficient_of_variation(std_dev_value: float, mean_value: float) -> float:
    """
    Relative spread of a series.

    Raises:
        StatisticalAnomalyError: If the mean is not positive (throughput of
            successful inserts is always positive)
    """
    if not mean_value > 0:
        raise StatisticalAnomalyError(
            f"coefficient of variation undefined for mean throughput {mean_value!r}"
        )
    return std_dev_value / mean_value


def summarize(values: Sequence[float]) -> SeriesSummary:
    """
    Calculate mean, std dev and CV for a series in one pass.

    Example:
        >>> summarize([100.0] * 5)
        SeriesSummary(mean=100.0, std_dev=0.0, cv=0.0, count=5)
    """
    mean_value = mean(values)
    deviation = std_dev(values, mean_value)
    return SeriesSummary(
        mean=mean_value,
        std_dev=deviation,
        cv=coefficient_of_variation(deviation, mean_value),
        count=len(values),
    )

"""
Synthetic row generator.

Produces the same rows on every run so each batch size inserts identical
data.
"""

from typing import List

from .config import Record


def generate(count: int) -> List[Record]:
    """
    Generate ``count`` deterministic records.

    Args:
        count: Number of records to generate

    Returns:
        List of Record, row ``i`` carrying counters ``2*i`` and ``3*i``

    Example:
        >>> generate(1)[0].payload
        'test data row 0'
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    return [
        Record(
            payload=f"test data row {i}",
            description=f"description for row {i} with some additional text to make it more realistic",
            counter1=i * 2,
            counter2=i * 3,
        )
        for i in range(count)
    ]

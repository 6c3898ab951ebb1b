"""
Console histogram of throughput per batch size.

Bars are scaled to the highest mean throughput across all results; each row
also carries mean ± std dev, CV and sample count.
"""

from typing import Sequence

from tabulate import tabulate

from ..config import Result

BAR_WIDTH = 50
BAR_CHAR = "█"

HEADERS = ["Batch size", "Throughput", "Rows/sec", "CV", "n"]


def bar(value: float, maximum: float, width: int = BAR_WIDTH) -> str:
    """
    Build a bar proportional to ``value / maximum``.

    Example:
        >>> bar(50.0, 100.0, width=10)
        '█████'
    """
    if maximum <= 0 or value <= 0:
        return ""
    return BAR_CHAR * int((value / maximum) * width)


def render(results: Sequence[Result], bar_width: int = BAR_WIDTH) -> str:
    """
    Render results as a scaled bar chart.

    Args:
        results: One Result per batch size, in display order
        bar_width: Characters used by the longest bar

    Returns:
        Multi-line string ready to print
    """
    output = ["=== Throughput Results ===", ""]

    if not results:
        output.append("No results.")
        return "\n".join(output)

    max_throughput = max(r.mean_throughput for r in results)

    rows = [
        [
            r.batch_size,
            bar(r.mean_throughput, max_throughput, bar_width).ljust(bar_width),
            f"{r.mean_throughput:.0f} ± {r.std_dev:.0f}",
            f"{r.cv * 100:.1f}%",
            r.sample_count if r.converged else f"{r.sample_count}*",
        ]
        for r in results
    ]

    output.append(tabulate(rows, headers=HEADERS, tablefmt="simple", disable_numparse=True))

    if any(not r.converged for r in results):
        output.append("")
        output.append("* stopped at the sample ceiling before reaching the target CV")

    return "\n".join(output)

"""
Machine-readable dump of a benchmark report.
"""

import json
from pathlib import Path

import structlog

from ..config import BenchmarkReport

logger = structlog.get_logger()


def report_filename(report: BenchmarkReport) -> str:
    """``<report_id>_<start time>.json``, unique per run and sortable by start."""
    return f"{report.report_id}_{report.start_time:%Y%m%d_%H%M%S}.json"


def export_json(report: BenchmarkReport, output_dir: str = "results/json") -> str:
    """
    Write ``report`` into ``output_dir`` (created if missing).

    The file is written under a temporary name and renamed into place, so a
    reader never sees a half-written report.

    Returns:
        Path of the written file
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    target = directory / report_filename(report)
    partial = target.with_suffix(".json.tmp")
    partial.write_text(json.dumps(report.to_json(), indent=2) + "\n")
    partial.replace(target)

    logger.info("Report exported", path=str(target), results=len(report.results))
    return str(target)

"""
PostgreSQL Batched Write Throughput Benchmark

Measures sustained INSERT throughput for a range of transaction batch sizes,
sampling each batch size until the throughput distribution settles.
"""

__version__ = "0.1.0"
__author__ = "pgwrite-bench Team"

# Keep this module import-light: psycopg and numpy are pulled in by the
# submodules that need them.

__all__ = ["__version__", "__author__"]

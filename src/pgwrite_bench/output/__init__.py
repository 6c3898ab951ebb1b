"""
Result rendering: console histogram and JSON export.
"""

from .histogram import render
from .json_exporter import export_json

__all__ = ["render", "export_json"]

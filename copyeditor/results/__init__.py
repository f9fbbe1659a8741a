"""Formatting and export of copyediting suggestions."""

from .export import default_output_path, export_results
from .formatter import (
    OUTPUT_COLUMNS,
    estimate_cost,
    filter_results,
    format_results,
    summarise_results,
)

__all__ = [
    "OUTPUT_COLUMNS",
    "default_output_path",
    "estimate_cost",
    "export_results",
    "filter_results",
    "format_results",
    "summarise_results",
]

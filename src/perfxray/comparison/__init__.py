"""Snapshot comparison for perfxray regression reports."""

from perfxray.comparison.handler_comparison import (
    SupportsAverageDuration,
    classify_change,
    compare_method_aggregates,
    compare_snapshots,
    validate_threshold,
)

__all__ = [
    "SupportsAverageDuration",
    "classify_change",
    "compare_method_aggregates",
    "compare_snapshots",
    "validate_threshold",
]

# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Pure snapshot comparison logic.

This module classifies every method key of two aggregate maps as improved,
regressed, new, removed or unchanged using a flat percentage threshold.
No I/O operations, no global state mutations.

Classification Rules:
    - Key in both maps: percent_change = (cur - base) / base * 100.
      |percent_change| < threshold → UNCHANGED; positive → REGRESSED
      (slower is worse); otherwise IMPROVED.
    - Zero baseline average: percent_change is undefined (None) and the sign
      of the absolute change decides (0 → UNCHANGED).
    - Key only in the baseline: REMOVED.
    - Key only in the current map: NEW.
"""

from __future__ import annotations

import logging
import math
import time
from collections import Counter
from collections.abc import Mapping
from typing import Protocol

from perfxray.constants import (
    DEFAULT_REGRESSION_THRESHOLD_PERCENT,
    PERCENTAGE_MULTIPLIER,
)
from perfxray.enums import EnumDiffClassification
from perfxray.exceptions import InvalidArgumentError
from perfxray.models import (
    ModelComparisonEntry,
    ModelComparisonResult,
    ModelComparisonSummary,
    ModelSnapshot,
    ModelSnapshotRef,
)

logger = logging.getLogger(__name__)


class SupportsAverageDuration(Protocol):
    """Anything exposing an average duration, e.g. ModelMethodAggregate."""

    average_duration_ms: float


def compare_method_aggregates(
    baseline: Mapping[str, SupportsAverageDuration],
    current: Mapping[str, SupportsAverageDuration],
    threshold_percent: float = DEFAULT_REGRESSION_THRESHOLD_PERCENT,
    *,
    correlation_id: str | None = None,
) -> ModelComparisonResult:
    """Compare two per-method aggregate maps.

    Args:
        baseline: Aggregates of the earlier capture, keyed by method key.
        current: Aggregates of the later capture, keyed by method key.
        threshold_percent: Minimum |percent change| to leave UNCHANGED.
        correlation_id: Correlation ID for tracing.

    Returns:
        ModelComparisonResult with one entry per key of the union, ordered
        by absolute change (largest first, then by method key).

    Raises:
        InvalidArgumentError: If threshold_percent is not a finite number > 0,
            or a map holds None for a method key.
    """
    return _compare(
        baseline,
        current,
        validate_threshold(threshold_percent),
        baseline_ref=None,
        current_ref=None,
        correlation_id=correlation_id,
    )


def compare_snapshots(
    baseline: ModelSnapshot,
    current: ModelSnapshot,
    threshold_percent: float = DEFAULT_REGRESSION_THRESHOLD_PERCENT,
    *,
    correlation_id: str | None = None,
) -> ModelComparisonResult:
    """Compare the method aggregates of two snapshots.

    Same semantics as ``compare_method_aggregates``; the result also carries
    the identity (id, name, VCS info) of both snapshots.
    """
    return _compare(
        baseline.methods,
        current.methods,
        validate_threshold(threshold_percent),
        baseline_ref=ModelSnapshotRef.from_snapshot(baseline),
        current_ref=ModelSnapshotRef.from_snapshot(current),
        correlation_id=correlation_id,
    )


def validate_threshold(threshold_percent: float) -> float:
    """Return the threshold as a float, or raise InvalidArgumentError."""
    if isinstance(threshold_percent, bool) or not isinstance(
        threshold_percent, int | float
    ):
        raise InvalidArgumentError(
            f"threshold_percent must be a number, got {threshold_percent!r}"
        )
    if not math.isfinite(threshold_percent) or threshold_percent <= 0:
        raise InvalidArgumentError(
            f"threshold_percent must be > 0, got {threshold_percent}"
        )
    return float(threshold_percent)


def classify_change(
    percent_change: float | None,
    absolute_change_ms: float,
    threshold_percent: float,
) -> EnumDiffClassification:
    """Classify a method present in both snapshots."""
    if percent_change is None:
        if absolute_change_ms > 0:
            return EnumDiffClassification.REGRESSED
        if absolute_change_ms < 0:
            return EnumDiffClassification.IMPROVED
        return EnumDiffClassification.UNCHANGED

    if abs(percent_change) < threshold_percent:
        return EnumDiffClassification.UNCHANGED
    if percent_change > 0:
        return EnumDiffClassification.REGRESSED
    return EnumDiffClassification.IMPROVED


def _compare(
    baseline: Mapping[str, SupportsAverageDuration],
    current: Mapping[str, SupportsAverageDuration],
    threshold_percent: float,
    *,
    baseline_ref: ModelSnapshotRef | None,
    current_ref: ModelSnapshotRef | None,
    correlation_id: str | None,
) -> ModelComparisonResult:
    start_time = time.perf_counter()

    entries = [
        _compare_key(key, baseline.get(key), current.get(key), threshold_percent)
        for key in baseline.keys() | current.keys()
    ]
    entries.sort(key=lambda e: (-abs(e.absolute_change_ms or 0.0), e.method_key))

    counts = Counter(entry.classification for entry in entries)
    summary = ModelComparisonSummary(
        total_compared=len(entries),
        improved=counts[EnumDiffClassification.IMPROVED],
        regressed=counts[EnumDiffClassification.REGRESSED],
        new=counts[EnumDiffClassification.NEW],
        removed=counts[EnumDiffClassification.REMOVED],
        unchanged=counts[EnumDiffClassification.UNCHANGED],
    )

    logger.debug(
        "Compared aggregates: keys=%d, regressed=%d, improved=%d, "
        "threshold=%.2f%%, time_ms=%.2f",
        summary.total_compared,
        summary.regressed,
        summary.improved,
        threshold_percent,
        (time.perf_counter() - start_time) * 1000,
        extra={"correlation_id": correlation_id},
    )

    return ModelComparisonResult(
        entries=entries,
        summary=summary,
        threshold_percent=threshold_percent,
        baseline=baseline_ref,
        current=current_ref,
    )


def _compare_key(
    key: str,
    base: SupportsAverageDuration | None,
    cur: SupportsAverageDuration | None,
    threshold_percent: float,
) -> ModelComparisonEntry:
    if cur is None:
        if base is None:
            raise InvalidArgumentError(f"No aggregate for method key {key!r}")
        return ModelComparisonEntry(
            method_key=key,
            baseline_avg=base.average_duration_ms,
            classification=EnumDiffClassification.REMOVED,
        )

    if base is None:
        return ModelComparisonEntry(
            method_key=key,
            current_avg=cur.average_duration_ms,
            classification=EnumDiffClassification.NEW,
        )

    base_avg = base.average_duration_ms
    cur_avg = cur.average_duration_ms
    absolute_change = cur_avg - base_avg
    percent_change = (
        absolute_change / base_avg * PERCENTAGE_MULTIPLIER
        if base_avg != 0
        else None
    )
    return ModelComparisonEntry(
        method_key=key,
        baseline_avg=base_avg,
        current_avg=cur_avg,
        percent_change=percent_change,
        absolute_change_ms=absolute_change,
        classification=classify_change(
            percent_change, absolute_change, threshold_percent
        ),
    )


__all__ = [
    "SupportsAverageDuration",
    "classify_change",
    "compare_method_aggregates",
    "compare_snapshots",
    "validate_threshold",
]

# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Shared Constants for perfxray.

This module defines the defaults used across the event store, the comparator
and the snapshot storage so that limits are declared in one place.

Usage:
    from perfxray.constants import DEFAULT_EVENT_CAPACITY

    store = CallEventStore(capacity=DEFAULT_EVENT_CAPACITY)
"""

# =============================================================================
# Percentage Calculations
# =============================================================================

PERCENTAGE_MULTIPLIER: float = 100.0
"""
Multiplier for converting ratios (0.0-1.0) to percentages (0-100).

Used by the flame-graph projector (share of root) and the comparator
(relative change of the average duration).
"""

# =============================================================================
# Event Store Limits
# =============================================================================

DEFAULT_EVENT_CAPACITY: int = 10_000
"""
Maximum number of live call events held by a CallEventStore.

When an insert of a new call_id would exceed this bound, a cleanup pass
runs before the insert.
"""

DEFAULT_EVENT_RETENTION_MS: float = 300_000.0
"""
Retention window (5 minutes) applied by the cleanup pass.

Events whose started_at_ms is older than now minus this window are evicted
first; the oldest remaining events are evicted only if the store is still full.
"""

# =============================================================================
# Comparison
# =============================================================================

DEFAULT_REGRESSION_THRESHOLD_PERCENT: float = 5.0
"""
Minimum absolute percent change for a method to count as improved or regressed.
"""

# =============================================================================
# Snapshot Storage
# =============================================================================

DEFAULT_MAX_SNAPSHOTS: int = 50
"""Maximum number of snapshot files kept on disk."""

DEFAULT_MAX_SNAPSHOT_AGE_DAYS: int = 30
"""Snapshots older than this many days are removed on open and after save."""

DEFAULT_COMPRESSION_LEVEL: int = 9
"""gzip compression level used by the snapshot codec (1 = fastest, 9 = best)."""

MS_PER_DAY: int = 24 * 60 * 60 * 1000

SNAPSHOT_FORMAT: str = "perfxray.snapshot"
SNAPSHOT_FORMAT_VERSION: int = 1

SNAPSHOT_FILE_PREFIX: str = "snapshot_"
SNAPSHOT_FILE_SUFFIX: str = ".json.gz"

__all__ = [
    "DEFAULT_COMPRESSION_LEVEL",
    "DEFAULT_EVENT_CAPACITY",
    "DEFAULT_EVENT_RETENTION_MS",
    "DEFAULT_MAX_SNAPSHOTS",
    "DEFAULT_MAX_SNAPSHOT_AGE_DAYS",
    "DEFAULT_REGRESSION_THRESHOLD_PERCENT",
    "MS_PER_DAY",
    "PERCENTAGE_MULTIPLIER",
    "SNAPSHOT_FILE_PREFIX",
    "SNAPSHOT_FILE_SUFFIX",
    "SNAPSHOT_FORMAT",
    "SNAPSHOT_FORMAT_VERSION",
]

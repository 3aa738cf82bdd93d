# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""perfxray - call-stack timing analysis.

This package reconstructs call trees from flat timing events, projects them
into flame graphs, freezes captures into snapshots, and compares snapshots
to flag per-method regressions.

Quick Start:
    >>> from perfxray import CallEventStore, project_flame_graph
    >>> store = CallEventStore()
    >>> store.add_events([
    ...     {"callId": "a", "class": "Svc", "method": "run",
    ...      "duration": 100.0, "timestamp": 0.0},
    ... ])
    1
    >>> project_flame_graph(store.build_tree()).nodes[0].percentage_of_root
    100.0
"""

from perfxray.comparison import compare_method_aggregates, compare_snapshots
from perfxray.event_store import CallEventStore, build_call_forest
from perfxray.exceptions import (
    CallEventValidationError,
    CaptureStateError,
    InvalidArgumentError,
    PerfXrayError,
    SnapshotDecodeError,
    SnapshotNotFoundError,
)
from perfxray.flame_graph import project_flame_graph
from perfxray.runtime import ModelPerfXrayConfig, PerfXrayEngine
from perfxray.snapshot import (
    CaptureSession,
    SnapshotStorage,
    decode_snapshot,
    encode_snapshot,
)

__version__ = "0.1.0"

__all__ = [
    "CallEventStore",
    "CallEventValidationError",
    "CaptureSession",
    "CaptureStateError",
    "InvalidArgumentError",
    "ModelPerfXrayConfig",
    "PerfXrayEngine",
    "PerfXrayError",
    "SnapshotDecodeError",
    "SnapshotNotFoundError",
    "SnapshotStorage",
    "__version__",
    "build_call_forest",
    "compare_method_aggregates",
    "compare_snapshots",
    "decode_snapshot",
    "encode_snapshot",
    "project_flame_graph",
]

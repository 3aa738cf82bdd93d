# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Snapshot capture, encoding and storage.

Provides capture sessions that aggregate per-method timings, the lossless
snapshot codec, and file storage with count and age eviction.
"""

from perfxray.snapshot.aggregation import MethodAggregateTable
from perfxray.snapshot.capture import CaptureSession
from perfxray.snapshot.codec import (
    ModelEncodedCallNode,
    ModelSnapshotEnvelope,
    compression_ratio,
    decode_snapshot,
    encode_snapshot,
    flatten_call_trees,
    rebuild_call_trees,
)
from perfxray.snapshot.storage import (
    SnapshotStorage,
    parse_snapshot_file_name,
    sanitize_snapshot_name,
    snapshot_file_name,
)

__all__ = [
    "CaptureSession",
    "MethodAggregateTable",
    "ModelEncodedCallNode",
    "ModelSnapshotEnvelope",
    "SnapshotStorage",
    "compression_ratio",
    "decode_snapshot",
    "encode_snapshot",
    "flatten_call_trees",
    "parse_snapshot_file_name",
    "rebuild_call_trees",
    "sanitize_snapshot_name",
    "snapshot_file_name",
]

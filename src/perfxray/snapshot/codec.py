# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Snapshot codec: compact, lossless byte form of a ModelSnapshot.

Encoding:
    1. Flatten the call trees into one pre-order node list, each node
       carrying its child count, so the JSON depth does not grow with the
       call depth.
    2. Wrap the snapshot (without its trees) and the node list in a
       versioned envelope.
    3. Serialize to JSON with Pydantic (floats use the shortest repr that
       round-trips exactly).
    4. Compress with gzip; the header timestamp is zeroed so equal
       snapshots encode to equal bytes.

Decoding is the exact inverse; the trees are rebuilt with an explicit
stack. Corrupt or truncated input raises SnapshotDecodeError; a partial
snapshot is never returned.
"""

from __future__ import annotations

import gzip
import logging
import zlib
from collections.abc import Sequence
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from perfxray.constants import (
    DEFAULT_COMPRESSION_LEVEL,
    PERCENTAGE_MULTIPLIER,
    SNAPSHOT_FORMAT,
    SNAPSHOT_FORMAT_VERSION,
)
from perfxray.exceptions import InvalidArgumentError, SnapshotDecodeError
from perfxray.models import ModelCallTreeNode, ModelSnapshot

logger = logging.getLogger(__name__)


class ModelEncodedCallNode(BaseModel):
    """One call tree node in the flat pre-order encoding.

    The node's children are the next ``child_count`` subtrees of the list.
    """

    call_id: str = Field(..., min_length=1)
    parent_call_id: str | None = Field(default=None)
    owner: str
    operation: str
    duration_ms: float = Field(..., ge=0)
    started_at_ms: float
    ended_at_ms: float
    stack_depth: int = Field(default=0, ge=0)
    source_file: str | None = Field(default=None)
    source_line: int | None = Field(default=None)
    self_time_ms: float = Field(..., ge=0)
    child_count: int = Field(default=0, ge=0, description="Direct children")

    model_config = ConfigDict(frozen=True, extra="forbid")


class ModelSnapshotEnvelope(BaseModel):
    """Versioned wrapper written around every encoded snapshot.

    ``snapshot`` is stored without call trees; they travel flat in
    ``call_tree_nodes``.
    """

    format: Literal["perfxray.snapshot"] = Field(default=SNAPSHOT_FORMAT)
    version: Literal[1] = Field(default=SNAPSHOT_FORMAT_VERSION)
    snapshot: ModelSnapshot
    call_tree_nodes: list[ModelEncodedCallNode] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def validate_trees_are_flat(self) -> Self:
        """Validate that no nested call tree is embedded in the snapshot."""
        if self.snapshot.call_trees:
            raise ValueError("snapshot.call_trees must be empty; use call_tree_nodes")
        return self


def encode_snapshot(
    snapshot: ModelSnapshot,
    *,
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> bytes:
    """Serialize and compress a snapshot.

    Args:
        snapshot: The snapshot to encode.
        compression_level: gzip level, 1 (fastest) to 9 (smallest).

    Returns:
        gzip-compressed JSON bytes.

    Raises:
        InvalidArgumentError: If compression_level is outside 1..9.
    """
    if not 1 <= compression_level <= 9:
        raise InvalidArgumentError(
            f"compression_level must be in 1..9, got {compression_level}"
        )

    envelope = ModelSnapshotEnvelope(
        snapshot=snapshot.model_copy(update={"call_trees": []}),
        call_tree_nodes=flatten_call_trees(snapshot.call_trees),
    )
    raw = envelope.model_dump_json().encode("utf-8")
    encoded = gzip.compress(raw, compresslevel=compression_level, mtime=0)

    logger.debug(
        "Encoded snapshot id=%s: tree_nodes=%d, raw_bytes=%d, encoded_bytes=%d, "
        "reduction=%.1f%%",
        snapshot.id,
        len(envelope.call_tree_nodes),
        len(raw),
        len(encoded),
        compression_ratio(len(raw), len(encoded)),
    )
    return encoded


def decode_snapshot(data: bytes) -> ModelSnapshot:
    """Decompress and deserialize snapshot bytes.

    Args:
        data: Bytes produced by ``encode_snapshot``.

    Returns:
        The snapshot, field-for-field equal to the encoded one.

    Raises:
        SnapshotDecodeError: If the bytes are not a complete gzip stream, do
            not hold a snapshot envelope, the snapshot fails validation, or
            the node list does not describe whole trees.
    """
    if not data:
        raise SnapshotDecodeError("Snapshot data is empty")

    try:
        raw = gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise SnapshotDecodeError(f"Snapshot decompression failed: {e}") from e

    try:
        envelope = ModelSnapshotEnvelope.model_validate_json(raw)
    except ValidationError as e:
        raise SnapshotDecodeError(
            f"Snapshot payload is invalid: {e.error_count()} error(s), "
            f"first: {e.errors()[0].get('msg', 'invalid')}"
        ) from e

    call_trees = rebuild_call_trees(envelope.call_tree_nodes)
    return envelope.snapshot.model_copy(update={"call_trees": call_trees})


def flatten_call_trees(
    call_trees: Sequence[ModelCallTreeNode],
) -> list[ModelEncodedCallNode]:
    """Return the nodes of every tree in pre-order with their child counts."""
    return [
        ModelEncodedCallNode(
            **node.model_dump(exclude={"children"}),
            child_count=len(node.children),
        )
        for root in call_trees
        for node in root.iter_nodes()
    ]


def rebuild_call_trees(
    nodes: Sequence[ModelEncodedCallNode],
) -> list[ModelCallTreeNode]:
    """Rebuild call trees from a pre-order node list.

    Walking the list backwards, every subtree is complete by the time its
    root is reached, so a node takes its children off the top of the stack.

    Raises:
        SnapshotDecodeError: If a child count exceeds the subtrees that
            follow the node.
    """
    stack: list[ModelCallTreeNode] = []
    for position in range(len(nodes) - 1, -1, -1):
        encoded = nodes[position]
        if encoded.child_count > len(stack):
            raise SnapshotDecodeError(
                f"Call tree node #{position} ({encoded.call_id}) claims "
                f"{encoded.child_count} children, {len(stack)} available"
            )
        children = [stack.pop() for _ in range(encoded.child_count)]
        stack.append(
            ModelCallTreeNode(
                **encoded.model_dump(exclude={"child_count"}),
                children=children,
            )
        )
    stack.reverse()
    return stack


def compression_ratio(original_size: int, compressed_size: int) -> float:
    """Return the size reduction in percent (0 when original_size is 0)."""
    if original_size <= 0:
        return 0.0
    return (1 - compressed_size / original_size) * PERCENTAGE_MULTIPLIER


__all__ = [
    "ModelEncodedCallNode",
    "ModelSnapshotEnvelope",
    "compression_ratio",
    "decode_snapshot",
    "encode_snapshot",
    "flatten_call_trees",
    "rebuild_call_trees",
]

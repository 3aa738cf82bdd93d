# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Pure call-tree reconstruction for the perfxray event store.

This module turns a flat collection of call events into a forest of
ModelCallTreeNode. No I/O operations, no global state mutations.

Topology anomalies are normalized, never raised:
    - A parent id that does not resolve makes the node a root.
    - Duplicate call ids keep the last event seen.
    - Parent-pointer cycles are broken by promoting the earliest-started
      member of each cycle to a root.
    - Self time is clamped at zero when children overlap.

All passes are iterative so deep call chains cannot hit the recursion limit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from perfxray.models import ModelCallEvent, ModelCallTreeNode

logger = logging.getLogger(__name__)


def build_call_forest(
    events: Iterable[ModelCallEvent],
    *,
    correlation_id: str | None = None,
) -> list[ModelCallTreeNode]:
    """Build a forest of call trees from call events.

    Args:
        events: Validated call events, in any order.
        correlation_id: Correlation ID for tracing.

    Returns:
        Root nodes ordered by start time. Every distinct call id appears
        exactly once across the forest.
    """
    by_id: dict[str, ModelCallEvent] = {}
    for event in events:
        by_id[event.call_id] = event

    if not by_id:
        return []

    parent_of: dict[str, str | None] = {}
    unresolved = 0
    for call_id, event in by_id.items():
        parent_id = event.parent_call_id
        if parent_id is not None and parent_id not in by_id:
            unresolved += 1
            parent_id = None
        parent_of[call_id] = parent_id

    cycles_broken = _break_cycles(parent_of, by_id)

    roots: list[str] = []
    children_of: dict[str, list[str]] = {}
    for call_id, parent_id in parent_of.items():
        if parent_id is None:
            roots.append(call_id)
        else:
            children_of.setdefault(parent_id, []).append(call_id)

    def start_order(call_id: str) -> tuple[float, str]:
        return (by_id[call_id].started_at_ms, call_id)

    roots.sort(key=start_order)
    for child_ids in children_of.values():
        child_ids.sort(key=start_order)

    built: dict[str, ModelCallTreeNode] = {}
    for root_id in roots:
        # Post-order: a node is assembled after all of its children.
        stack: list[tuple[str, bool]] = [(root_id, False)]
        while stack:
            call_id, expanded = stack.pop()
            child_ids = children_of.get(call_id, [])
            if not expanded:
                stack.append((call_id, True))
                stack.extend((child_id, False) for child_id in child_ids)
                continue
            children = [built.pop(child_id) for child_id in child_ids]
            built[call_id] = _make_node(by_id[call_id], children)

    forest = [built.pop(root_id) for root_id in roots]

    logger.debug(
        "Built call forest: events=%d, roots=%d, unresolved_parents=%d, "
        "cycles_broken=%d",
        len(by_id),
        len(forest),
        unresolved,
        cycles_broken,
        extra={"correlation_id": correlation_id},
    )

    return forest


def compute_self_time(duration_ms: float, child_durations: Iterable[float]) -> float:
    """Return ``max(0, duration - sum(child durations))``."""
    return max(0.0, duration_ms - sum(child_durations))


def compute_forest_depth(forest: Sequence[ModelCallTreeNode]) -> int:
    """Return the number of levels in the deepest tree (a lone root is 1)."""
    max_depth = 0
    stack: list[tuple[ModelCallTreeNode, int]] = [(root, 1) for root in forest]
    while stack:
        node, depth = stack.pop()
        if depth > max_depth:
            max_depth = depth
        stack.extend((child, depth + 1) for child in node.children)
    return max_depth


def count_forest_nodes(forest: Sequence[ModelCallTreeNode]) -> int:
    """Return the number of nodes across all trees of a forest."""
    return sum(root.node_count() for root in forest)


def _make_node(
    event: ModelCallEvent, children: list[ModelCallTreeNode]
) -> ModelCallTreeNode:
    return ModelCallTreeNode(
        call_id=event.call_id,
        parent_call_id=event.parent_call_id,
        owner=event.owner,
        operation=event.operation,
        duration_ms=event.duration_ms,
        started_at_ms=event.started_at_ms,
        ended_at_ms=event.ended_at_ms,
        stack_depth=event.stack_depth,
        source_file=event.source_file,
        source_line=event.source_line,
        self_time_ms=compute_self_time(
            event.duration_ms, (child.duration_ms for child in children)
        ),
        children=children,
    )


def _break_cycles(
    parent_of: dict[str, str | None],
    by_id: dict[str, ModelCallEvent],
) -> int:
    """Detect parent-pointer cycles and cut each one, in place.

    Every node has at most one parent, so each walk up the parent chain
    either reaches a root, reaches a node already proven acyclic, or closes
    a loop on the current path. Each node is walked at most once.

    Returns:
        Number of cycles broken.
    """
    done: set[str] = set()
    cycles = 0

    for start in parent_of:
        if start in done:
            continue

        path: list[str] = []
        on_path: dict[str, int] = {}
        current: str | None = start
        while current is not None and current not in done:
            if current in on_path:
                cycle = path[on_path[current] :]
                new_root = min(
                    cycle, key=lambda cid: (by_id[cid].started_at_ms, cid)
                )
                parent_of[new_root] = None
                cycles += 1
                logger.debug(
                    "Broke call cycle of length %d at call_id=%s",
                    len(cycle),
                    new_root,
                )
                break
            on_path[current] = len(path)
            path.append(current)
            current = parent_of[current]

        done.update(path)

    return cycles


__all__ = [
    "build_call_forest",
    "compute_forest_depth",
    "compute_self_time",
    "count_forest_nodes",
]

# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Pure flame-graph projection of call forests.

This module converts a call forest into render-ready flame nodes carrying
total value, isolated self value, depth, and percentage of their own root.
No I/O operations, no global state mutations.

The projection is a single post-order pass per root (O(n) over the total
node count) driven by an explicit stack, so deep chains are safe.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from perfxray.constants import PERCENTAGE_MULTIPLIER
from perfxray.models import ModelCallTreeNode, ModelFlameGraph, ModelFlameNode

logger = logging.getLogger(__name__)


def project_flame_graph(
    forest: Sequence[ModelCallTreeNode],
    *,
    correlation_id: str | None = None,
) -> ModelFlameGraph:
    """Project a call forest into a flame graph.

    Args:
        forest: Call tree roots, as returned by ``build_call_forest``.
        correlation_id: Correlation ID for tracing.

    Returns:
        ModelFlameGraph whose ``total_duration_ms`` is the sum of the root
        durations. An empty forest yields an empty graph.
    """
    if not forest:
        return ModelFlameGraph()

    start_time = time.perf_counter()
    flame_roots: list[ModelFlameNode] = []
    node_count = 0

    for root in forest:
        root_total = root.duration_ms
        # Finished subtrees; a node's children are the last len(children) items.
        finished: list[ModelFlameNode] = []
        stack: list[tuple[ModelCallTreeNode, int, bool]] = [(root, 0, False)]

        while stack:
            node, depth, expanded = stack.pop()
            if not expanded:
                stack.append((node, depth, True))
                stack.extend(
                    (child, depth + 1, False) for child in reversed(node.children)
                )
                continue

            child_count = len(node.children)
            if child_count:
                children = finished[-child_count:]
                del finished[-child_count:]
            else:
                children = []

            finished.append(
                _make_flame_node(node, depth, root_total, children)
            )
            node_count += 1

        flame_roots.extend(finished)

    total_duration = sum(root.duration_ms for root in forest)

    logger.debug(
        "Projected flame graph: roots=%d, nodes=%d, time_ms=%.2f",
        len(flame_roots),
        node_count,
        (time.perf_counter() - start_time) * 1000,
        extra={"correlation_id": correlation_id},
    )

    return ModelFlameGraph(
        nodes=flame_roots,
        total_duration_ms=total_duration,
        node_count=node_count,
        root_call_id=forest[0].call_id if len(forest) == 1 else None,
    )


def percentage_of_root(value: float, root_value: float) -> float:
    """Return ``value`` as a percentage of ``root_value``, clamped to [0, 100].

    A root with zero duration yields 0 for every node in its tree.
    """
    if root_value <= 0:
        return 0.0
    percentage = value / root_value * PERCENTAGE_MULTIPLIER
    return min(PERCENTAGE_MULTIPLIER, max(0.0, percentage))


def _make_flame_node(
    node: ModelCallTreeNode,
    depth: int,
    root_total: float,
    children: list[ModelFlameNode],
) -> ModelFlameNode:
    children_total = sum(child.total_value for child in children)
    return ModelFlameNode(
        id=node.call_id,
        label=f"{node.owner}.{node.operation}",
        total_value=node.duration_ms,
        self_value=max(0.0, node.duration_ms - children_total),
        percentage_of_root=percentage_of_root(node.duration_ms, root_total),
        depth=depth,
        source_file=node.source_file,
        source_line=node.source_line,
        children=children,
    )


__all__ = ["percentage_of_root", "project_flame_graph"]

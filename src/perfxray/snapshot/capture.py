# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Capture sessions that freeze aggregated timings into snapshots.

A session is started, fed call events and call trees while active, and
stopped with a name to produce an immutable ModelSnapshot. Recording while
no session is active is a no-op, so producers can feed the session
unconditionally.

Snapshot ids are the capture-end time in epoch milliseconds as a decimal
string, forced strictly increasing within a process so that two snapshots
never share an id.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable

from perfxray.exceptions import CaptureStateError
from perfxray.models import (
    ModelCallEvent,
    ModelCallTreeNode,
    ModelCaptureStats,
    ModelSnapshot,
    ModelSnapshotSummary,
)
from perfxray.snapshot.aggregation import MethodAggregateTable

logger = logging.getLogger(__name__)

_id_lock = threading.Lock()
_last_snapshot_ms = 0


def _now_ms() -> float:
    return time.time() * 1000.0


def _next_snapshot_ms(now_ms: float) -> int:
    """Return a creation timestamp strictly greater than any issued before."""
    global _last_snapshot_ms
    with _id_lock:
        candidate = max(int(now_ms), _last_snapshot_ms + 1)
        _last_snapshot_ms = candidate
        return candidate


class CaptureSession:
    """One capture session at a time, reusable after stop or cancel."""

    def __init__(self, *, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or _now_ms
        self._lock = threading.Lock()
        self._active = False
        self._started_at_ms = 0.0
        self._aggregates = MethodAggregateTable()
        self._call_trees: list[ModelCallTreeNode] = []

    @property
    def is_active(self) -> bool:
        return self._active

    def start(self) -> None:
        """Start a new capture, discarding anything recorded before."""
        with self._lock:
            self._active = True
            self._started_at_ms = self._clock()
            self._aggregates.clear()
            self._call_trees = []
        logger.info("Capture started")

    def record_event(self, event: ModelCallEvent) -> None:
        """Fold a call event into the session's aggregates, if active."""
        with self._lock:
            if self._active:
                self._aggregates.record(event)

    def record_events(self, events: Iterable[ModelCallEvent]) -> None:
        with self._lock:
            if self._active:
                for event in events:
                    self._aggregates.record(event)

    def record_call_tree(self, node: ModelCallTreeNode) -> None:
        """Keep a call tree root for the snapshot, if active."""
        with self._lock:
            if self._active:
                self._call_trees.append(node)

    def stats(self) -> ModelCaptureStats:
        with self._lock:
            return ModelCaptureStats(
                is_active=self._active,
                method_count=len(self._aggregates),
                call_tree_count=len(self._call_trees),
                duration_ms=(
                    max(0.0, self._clock() - self._started_at_ms)
                    if self._active
                    else 0.0
                ),
            )

    def stop(
        self,
        name: str,
        *,
        vcs_branch: str | None = None,
        vcs_revision: str | None = None,
    ) -> ModelSnapshot:
        """End the capture and freeze it into a snapshot.

        Args:
            name: User-supplied snapshot name.
            vcs_branch: Branch checked out during the capture, if known.
            vcs_revision: Revision checked out during the capture, if known.

        Returns:
            The immutable snapshot. Persisting it is the caller's concern.

        Raises:
            CaptureStateError: If no capture is active.
        """
        with self._lock:
            if not self._active:
                raise CaptureStateError("No active capture session")

            self._active = False
            end_ms = self._clock()
            created_at_ms = _next_snapshot_ms(end_ms)
            methods = self._aggregates.freeze()
            snapshot = ModelSnapshot(
                id=str(created_at_ms),
                name=name,
                created_at_ms=created_at_ms,
                vcs_branch=vcs_branch,
                vcs_revision=vcs_revision,
                methods=methods,
                call_trees=list(self._call_trees),
                summary=ModelSnapshotSummary(
                    method_count=len(methods),
                    total_call_count=self._aggregates.total_call_count(),
                    capture_start_ms=self._started_at_ms,
                    capture_end_ms=end_ms,
                ),
            )
            self._aggregates.clear()
            self._call_trees = []

        logger.info(
            "Capture stopped: snapshot_id=%s, methods=%d, calls=%d",
            snapshot.id,
            snapshot.summary.method_count,
            snapshot.summary.total_call_count,
        )
        return snapshot

    def cancel(self) -> None:
        """Drop the current capture without producing a snapshot."""
        with self._lock:
            if not self._active:
                return
            self._active = False
            self._aggregates.clear()
            self._call_trees = []
        logger.info("Capture cancelled")


__all__ = ["CaptureSession"]

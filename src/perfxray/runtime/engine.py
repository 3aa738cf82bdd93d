# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""perfxray engine wiring.

PerfXrayEngine composes the event store, the capture session, the flame
graph projector, the comparator and (optionally) snapshot storage from one
ModelPerfXrayConfig. It is the single object a host process holds: the
transport feeds ``ingest`` with wire batches, and readers call ``project``
or ``compare``.

Wiring:
    - ingest → CallEventStore.add_events, then CaptureSession.record_events
    - project → CallEventStore.build_tree → project_flame_graph
    - stop_capture → CaptureSession.stop → SnapshotStorage.save_in_background
    - compare → SnapshotStorage.load (x2) → compare_snapshots
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import Future
from pathlib import Path
from types import TracebackType
from typing import Any

from perfxray.comparison import compare_snapshots
from perfxray.event_store import (
    CallEventStore,
    ProtocolCallEventStore,
    validate_call_events,
)
from perfxray.exceptions import InvalidArgumentError
from perfxray.flame_graph import project_flame_graph
from perfxray.models import (
    ModelCallEvent,
    ModelCallTreeNode,
    ModelComparisonResult,
    ModelFlameGraph,
    ModelSnapshot,
)
from perfxray.runtime.model_runtime_config import ModelPerfXrayConfig
from perfxray.snapshot import CaptureSession, SnapshotStorage

logger = logging.getLogger(__name__)


class PerfXrayEngine:
    """Facade over the perfxray components for one host process."""

    def __init__(
        self,
        config: ModelPerfXrayConfig | None = None,
        *,
        event_store: ProtocolCallEventStore | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Build the components described by ``config``.

        Args:
            config: Engine configuration; defaults when None.
            event_store: Store to use instead of a new CallEventStore.
            clock: Epoch-millisecond clock shared by all components.
        """
        self._config = config or ModelPerfXrayConfig()
        if event_store is None:
            event_store = CallEventStore(
                capacity=self._config.event_capacity,
                retention_ms=self._config.event_retention_ms,
                clock=clock,
            )
        self._event_store: ProtocolCallEventStore = event_store
        self._capture = CaptureSession(clock=clock)
        self._storage: SnapshotStorage | None = None
        self._pending_saves: list[Future[Path]] = []

        if self._config.snapshot_dir is not None:
            self._storage = SnapshotStorage(
                self._config.snapshot_dir,
                max_snapshots=self._config.max_snapshots,
                max_age_days=self._config.max_snapshot_age_days,
                compression_level=self._config.compression_level,
                clock=clock,
            )
            self._storage.open()

    @property
    def config(self) -> ModelPerfXrayConfig:
        return self._config

    @property
    def event_store(self) -> ProtocolCallEventStore:
        return self._event_store

    @property
    def capture(self) -> CaptureSession:
        return self._capture

    @property
    def storage(self) -> SnapshotStorage | None:
        return self._storage

    # ------------------------------------------------------------------
    # Ingestion and flame graphs
    # ------------------------------------------------------------------

    def ingest(
        self,
        batch: Iterable[ModelCallEvent | Mapping[str, Any]],
        *,
        correlation_id: str | None = None,
    ) -> int:
        """Validate and store a batch of call events.

        The batch is validated as a whole before anything is stored; an
        active capture session also aggregates the events.

        Raises:
            CallEventValidationError: If any record is malformed.
        """
        events = validate_call_events(batch)
        inserted = self._event_store.add_events(
            events, correlation_id=correlation_id
        )
        self._capture.record_events(events)
        return inserted

    def build_tree(
        self, *, correlation_id: str | None = None
    ) -> list[ModelCallTreeNode]:
        return self._event_store.build_tree(correlation_id=correlation_id)

    def project(self, *, correlation_id: str | None = None) -> ModelFlameGraph:
        """Build the current call forest and project it to a flame graph."""
        return project_flame_graph(
            self.build_tree(correlation_id=correlation_id),
            correlation_id=correlation_id,
        )

    # ------------------------------------------------------------------
    # Capture and comparison
    # ------------------------------------------------------------------

    def start_capture(self) -> None:
        self._capture.start()

    def stop_capture(
        self,
        name: str,
        *,
        vcs_branch: str | None = None,
        vcs_revision: str | None = None,
    ) -> ModelSnapshot:
        """Stop the capture, attach the current call forest, and persist.

        The snapshot is written in the background when storage is
        configured; ``flush`` waits for pending writes.

        Raises:
            CaptureStateError: If no capture is active.
        """
        if self._capture.is_active:
            for root in self.build_tree():
                self._capture.record_call_tree(root)

        snapshot = self._capture.stop(
            name, vcs_branch=vcs_branch, vcs_revision=vcs_revision
        )
        if self._storage is not None:
            self._pending_saves.append(self._storage.save_in_background(snapshot))
        return snapshot

    def compare(
        self,
        baseline_id: str,
        current_id: str,
        threshold_percent: float | None = None,
    ) -> ModelComparisonResult:
        """Load two stored snapshots and compare them.

        Raises:
            InvalidArgumentError: If storage is not configured, an id is
                malformed, or the threshold is not > 0.
            SnapshotNotFoundError: If a snapshot id is unknown.
            SnapshotDecodeError: If a stored snapshot is corrupt.
        """
        storage = self._require_storage()
        self.flush()
        return compare_snapshots(
            storage.load(baseline_id),
            storage.load(current_id),
            (
                self._config.regression_threshold_percent
                if threshold_percent is None
                else threshold_percent
            ),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def flush(self) -> list[Path]:
        """Wait for pending background saves and return the written paths.

        Raises:
            OSError: If a background write failed.
        """
        pending, self._pending_saves = self._pending_saves, []
        return [future.result() for future in pending]

    def close(self) -> None:
        """Flush pending saves and stop the storage worker."""
        try:
            self.flush()
        finally:
            if self._storage is not None:
                self._storage.close()

    def __enter__(self) -> PerfXrayEngine:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _require_storage(self) -> SnapshotStorage:
        if self._storage is None:
            raise InvalidArgumentError(
                "Snapshot storage is not configured (snapshot_dir is unset)"
            )
        return self._storage

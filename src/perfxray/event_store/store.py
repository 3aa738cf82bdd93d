# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Live, bounded storage of call events.

Provides CallEventStore: the long-lived, shared store that a producer fills
with call events as network batches arrive and that readers turn into call
trees on demand.

Capacity:
    When inserting a new call id into a full store, a cleanup pass runs
    first. It evicts events older than the retention window and, if the
    store is still full, the oldest remaining events by start time. No error
    is raised on capacity pressure.

Thread Safety:
    Every mutation and the read clone happen under one lock. Readers hold
    the lock only while copying; tree building runs outside it, so producers
    never wait on tree construction.
"""

from __future__ import annotations

import heapq
import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from perfxray.constants import DEFAULT_EVENT_CAPACITY, DEFAULT_EVENT_RETENTION_MS
from perfxray.event_store.tree_builder import build_call_forest, compute_forest_depth
from perfxray.event_store.validation import validate_call_event, validate_call_events
from perfxray.exceptions import InvalidArgumentError
from perfxray.models import ModelCallEvent, ModelCallStoreStatistics, ModelCallTreeNode

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.time() * 1000.0


class CallEventStore:
    """Bounded, time-windowed store of call events keyed by call id.

    Lifecycle: create, ``add_event``/``add_events``, ``build_tree``,
    ``clear``. Pass the instance to whichever component needs it.

    Idempotency:
        Inserting an event whose ``call_id`` is already stored replaces the
        stored event (last write wins).
    """

    def __init__(
        self,
        *,
        capacity: int = DEFAULT_EVENT_CAPACITY,
        retention_ms: float = DEFAULT_EVENT_RETENTION_MS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize an empty store.

        Args:
            capacity: Maximum number of live events.
            retention_ms: Age beyond which events are evicted by cleanup.
            clock: Returns the current time in epoch milliseconds.

        Raises:
            InvalidArgumentError: If capacity < 1 or retention_ms < 0.
        """
        if capacity < 1:
            raise InvalidArgumentError(f"capacity must be >= 1, got {capacity}")
        if retention_ms < 0:
            raise InvalidArgumentError(
                f"retention_ms must be >= 0, got {retention_ms}"
            )

        self._capacity = capacity
        self._retention_ms = retention_ms
        self._clock = clock or _now_ms
        # call_id → ModelCallEvent
        self._events: dict[str, ModelCallEvent] = {}
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def retention_ms(self) -> float:
        return self._retention_ms

    # ------------------------------------------------------------------
    # Write Operations
    # ------------------------------------------------------------------

    def add_event(
        self,
        event: ModelCallEvent | Mapping[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> ModelCallEvent:
        """Validate and insert one event, overwriting by call id.

        Args:
            event: A ModelCallEvent or a raw wire record.
            correlation_id: Correlation ID for tracing.

        Returns:
            The stored event.

        Raises:
            CallEventValidationError: If the record is malformed. The store
                is left unchanged.
        """
        validated = validate_call_event(event)
        with self._lock:
            self._insert_locked(validated, correlation_id)
        return validated

    def add_events(
        self,
        batch: Iterable[ModelCallEvent | Mapping[str, Any]],
        *,
        correlation_id: str | None = None,
    ) -> int:
        """Validate a whole batch, then insert every event.

        The batch is all or nothing: if any record is malformed, nothing is
        inserted.

        Returns:
            Number of events inserted.

        Raises:
            CallEventValidationError: For the first malformed record.
        """
        validated = validate_call_events(batch)
        with self._lock:
            for event in validated:
                self._insert_locked(event, correlation_id)

        logger.debug(
            "Inserted call event batch: size=%d",
            len(validated),
            extra={"correlation_id": correlation_id},
        )
        return len(validated)

    def clear(self) -> None:
        """Remove all events."""
        with self._lock:
            self._events.clear()

    # ------------------------------------------------------------------
    # Read Operations
    # ------------------------------------------------------------------

    def snapshot_events(self) -> list[ModelCallEvent]:
        """Return a point-in-time copy of the stored events.

        Events are immutable, so a shallow copy taken under the lock is a
        consistent snapshot.
        """
        with self._lock:
            return list(self._events.values())

    def build_tree(
        self, *, correlation_id: str | None = None
    ) -> list[ModelCallTreeNode]:
        """Reconstruct the call forest from the current contents.

        The lock is held only for the copy; the forest is independent of
        any later mutation of the store.
        """
        return build_call_forest(
            self.snapshot_events(), correlation_id=correlation_id
        )

    def get_root_events(self) -> list[ModelCallEvent]:
        """Return stored events without a parent id, oldest first."""
        roots = [e for e in self.snapshot_events() if e.parent_call_id is None]
        roots.sort(key=lambda e: (e.started_at_ms, e.call_id))
        return roots

    def get(self, call_id: str) -> ModelCallEvent | None:
        """Return the stored event for a call id, or None."""
        with self._lock:
            return self._events.get(call_id)

    def count(self) -> int:
        """Return the number of stored events."""
        with self._lock:
            return len(self._events)

    def __len__(self) -> int:
        return self.count()

    def get_statistics(self) -> ModelCallStoreStatistics:
        """Return counts, depth and age of the current contents."""
        events = self.snapshot_events()
        if not events:
            return ModelCallStoreStatistics()

        oldest = min(e.started_at_ms for e in events)
        return ModelCallStoreStatistics(
            total_calls=len(events),
            root_calls=sum(1 for e in events if e.parent_call_id is None),
            max_depth=compute_forest_depth(build_call_forest(events)),
            oldest_call_age_ms=self._clock() - oldest,
        )

    # ------------------------------------------------------------------
    # Internal helpers (caller holds the lock)
    # ------------------------------------------------------------------

    def _insert_locked(
        self, event: ModelCallEvent, correlation_id: str | None
    ) -> None:
        if (
            event.call_id not in self._events
            and len(self._events) >= self._capacity
        ):
            self._cleanup_locked(correlation_id)
        self._events[event.call_id] = event

    def _cleanup_locked(self, correlation_id: str | None) -> None:
        cutoff = self._clock() - self._retention_ms
        expired = [
            call_id
            for call_id, event in self._events.items()
            if event.started_at_ms < cutoff
        ]
        for call_id in expired:
            del self._events[call_id]

        # Free exactly one slot if the retention sweep was not enough.
        overflow = len(self._events) - self._capacity + 1
        oldest: list[str] = []
        if overflow > 0:
            oldest = [
                event.call_id
                for event in heapq.nsmallest(
                    overflow,
                    self._events.values(),
                    key=lambda e: (e.started_at_ms, e.call_id),
                )
            ]
            for call_id in oldest:
                del self._events[call_id]

        logger.info(
            "Cleaned up call events: expired=%d, oldest_evicted=%d, remaining=%d",
            len(expired),
            len(oldest),
            len(self._events),
            extra={"correlation_id": correlation_id},
        )


__all__ = ["CallEventStore"]

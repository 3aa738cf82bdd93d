# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Unit tests for CallEventStore.

Tests cover:
- Insertion, overwrite by call id and clearing
- Capacity bound with retention sweep and oldest-first eviction
- All-or-nothing batch insertion
- Statistics and protocol conformance
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import pytest

from perfxray.event_store import CallEventStore, ProtocolCallEventStore
from perfxray.exceptions import CallEventValidationError, InvalidArgumentError
from perfxray.models import ModelCallEvent

MakeEvent = Callable[..., ModelCallEvent]


@pytest.mark.unit
class TestCallEventStoreConstruction:
    """Tests for constructor validation."""

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity: int) -> None:
        with pytest.raises(InvalidArgumentError):
            CallEventStore(capacity=capacity)

    def test_rejects_negative_retention(self) -> None:
        with pytest.raises(InvalidArgumentError):
            CallEventStore(retention_ms=-1)

    def test_conforms_to_protocol(self) -> None:
        """Should satisfy the runtime-checkable store protocol."""
        assert isinstance(CallEventStore(), ProtocolCallEventStore)


@pytest.mark.unit
class TestCallEventStoreWrites:
    """Tests for add_event, add_events and clear."""

    def test_add_raw_record(self, wire_record: dict[str, Any]) -> None:
        """Should validate and store a wire record."""
        store = CallEventStore()
        stored = store.add_event(wire_record)

        assert stored.call_id == "call-1"
        assert store.get("call-1") == stored
        assert len(store) == 1

    def test_overwrite_by_call_id(self, make_event: MakeEvent) -> None:
        """Should replace an event with the same call id."""
        store = CallEventStore()
        store.add_event(make_event("a", duration=10))
        store.add_event(make_event("a", duration=20))

        assert store.count() == 1
        assert store.get("a").duration_ms == 20  # type: ignore[union-attr]

    def test_invalid_record_leaves_store_unchanged(
        self, make_event: MakeEvent, wire_record: dict[str, Any]
    ) -> None:
        """Should reject a bad record without touching stored events."""
        store = CallEventStore()
        store.add_event(make_event("a"))
        wire_record["duration"] = -1

        with pytest.raises(CallEventValidationError):
            store.add_event(wire_record)
        assert store.count() == 1

    def test_batch_is_all_or_nothing(
        self, make_event: MakeEvent, wire_record: dict[str, Any]
    ) -> None:
        """Should insert nothing when any record of a batch is malformed."""
        store = CallEventStore()
        bad = {**wire_record, "method": ""}

        with pytest.raises(CallEventValidationError) as exc_info:
            store.add_events([make_event("a"), make_event("b"), bad])

        assert exc_info.value.index == 2
        assert store.count() == 0

    def test_batch_returns_inserted_count(
        self, make_event: MakeEvent, correlation_id: str
    ) -> None:
        store = CallEventStore()
        inserted = store.add_events(
            [make_event("a"), make_event("b", parent="a")],
            correlation_id=correlation_id,
        )
        assert inserted == 2
        assert store.count() == 2

    def test_clear(self, make_event: MakeEvent) -> None:
        store = CallEventStore()
        store.add_events([make_event("a"), make_event("b")])
        store.clear()
        assert store.count() == 0
        assert store.build_tree() == []


@pytest.mark.unit
class TestCallEventStoreEviction:
    """Tests for the capacity bound."""

    def test_capacity_evicts_oldest(self, make_event: MakeEvent, clock) -> None:
        """Should evict the oldest event so the tree keeps exactly capacity nodes."""
        store = CallEventStore(capacity=2, clock=clock)
        store.add_event(make_event("e1", start=0))
        store.add_event(make_event("e2", start=1))
        store.add_event(make_event("e3", start=2))

        assert store.count() == 2
        assert store.get("e1") is None
        forest = store.build_tree()
        assert sorted(n.call_id for r in forest for n in r.iter_nodes()) == [
            "e2",
            "e3",
        ]

    def test_overwrite_at_capacity_does_not_evict(
        self, make_event: MakeEvent, clock
    ) -> None:
        """Should not evict when the inserted id is already stored."""
        store = CallEventStore(capacity=2, clock=clock)
        store.add_events([make_event("e1", start=0), make_event("e2", start=1)])
        store.add_event(make_event("e1", start=0, duration=99))

        assert store.count() == 2
        assert store.get("e1").duration_ms == 99  # type: ignore[union-attr]

    def test_retention_sweep_removes_all_expired(
        self, make_event: MakeEvent, clock
    ) -> None:
        """Should drop every event older than the retention window on cleanup."""
        store = CallEventStore(capacity=3, retention_ms=1_000, clock=clock)
        store.add_events(
            [
                make_event("old1", start=0),
                make_event("old2", start=1),
                make_event("fresh", start=5_000),
            ]
        )
        clock.advance(5_500)

        store.add_event(make_event("new", start=5_400))

        assert sorted(e.call_id for e in store.snapshot_events()) == ["fresh", "new"]

    def test_bound_holds_under_large_batch(self, make_event: MakeEvent, clock) -> None:
        """Should never exceed capacity, even within one batch."""
        store = CallEventStore(capacity=10, clock=clock)
        store.add_events([make_event(f"e{i:03d}", start=i) for i in range(100)])

        assert store.count() == 10
        assert sorted(e.call_id for e in store.snapshot_events()) == [
            f"e{i:03d}" for i in range(90, 100)
        ]

    def test_concurrent_inserts_respect_capacity(
        self, make_event: MakeEvent, clock
    ) -> None:
        """Should keep the bound with writers on several threads."""
        store = CallEventStore(capacity=50, clock=clock)

        def writer(prefix: str) -> None:
            for i in range(200):
                store.add_event(make_event(f"{prefix}-{i}", start=i))

        threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.count() == 50


@pytest.mark.unit
class TestCallEventStoreReads:
    """Tests for tree building, roots and statistics."""

    def test_build_tree_is_independent_of_later_writes(
        self, make_event: MakeEvent
    ) -> None:
        store = CallEventStore()
        store.add_events([make_event("a"), make_event("b", parent="a", start=1)])
        forest = store.build_tree()

        store.clear()

        assert forest[0].node_count() == 2

    def test_get_root_events_ordered_by_start(self, make_event: MakeEvent) -> None:
        store = CallEventStore()
        store.add_events(
            [
                make_event("late", start=20),
                make_event("child", parent="late", start=21),
                make_event("early", start=5),
            ]
        )
        assert [e.call_id for e in store.get_root_events()] == ["early", "late"]

    def test_statistics_of_empty_store(self) -> None:
        stats = CallEventStore().get_statistics()
        assert stats.total_calls == 0
        assert stats.max_depth == 0

    def test_statistics(self, make_event: MakeEvent, clock) -> None:
        """Should report counts, depth and the age of the oldest event."""
        store = CallEventStore(clock=clock)
        store.add_events(
            [
                make_event("a", start=0),
                make_event("b", parent="a", start=1),
                make_event("c", parent="b", start=2),
                make_event("d", start=10),
            ]
        )
        clock.advance(250)

        stats = store.get_statistics()

        assert stats.total_calls == 4
        assert stats.root_calls == 2
        assert stats.max_depth == 3
        assert stats.oldest_call_age_ms == 250

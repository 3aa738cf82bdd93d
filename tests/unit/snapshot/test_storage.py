# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Unit tests for SnapshotStorage.

Tests cover:
- File naming and name sanitization
- Save, load, list and delete
- Age and count eviction
- Background and async saves
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from perfxray.constants import MS_PER_DAY
from perfxray.exceptions import (
    InvalidArgumentError,
    SnapshotDecodeError,
    SnapshotNotFoundError,
)
from perfxray.event_store import build_call_forest
from perfxray.models import (
    ModelCallEvent,
    ModelCallTreeNode,
    ModelMethodAggregate,
    ModelSnapshot,
    ModelSnapshotSummary,
)
from perfxray.snapshot import (
    SnapshotStorage,
    parse_snapshot_file_name,
    sanitize_snapshot_name,
    snapshot_file_name,
)

NOW_MS = 1_700_000_000_000
CHAIN_DEPTH = 5000

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_snapshot(created_at_ms: int, name: str = "run") -> ModelSnapshot:
    aggregate = ModelMethodAggregate(owner="Svc", operation="work")
    aggregate.observe(12.5)
    return ModelSnapshot(
        id=str(created_at_ms),
        name=name,
        created_at_ms=created_at_ms,
        methods={aggregate.method_key: aggregate.freeze()},
        summary=ModelSnapshotSummary(
            method_count=1,
            total_call_count=1,
            capture_start_ms=created_at_ms - 1_000.0,
            capture_end_ms=float(created_at_ms),
        ),
    )


def _chain_snapshot(
    make_event: Callable[..., ModelCallEvent], depth: int
) -> ModelSnapshot:
    events = [make_event("n0", duration=depth)]
    events += [
        make_event(f"n{i}", parent=f"n{i - 1}", start=i, duration=depth - i)
        for i in range(1, depth)
    ]
    snapshot = _make_snapshot(NOW_MS, "deep chain")
    return snapshot.model_copy(update={"call_trees": build_call_forest(events)})


def _preorder(forest: list[ModelCallTreeNode]) -> list[tuple[dict, int]]:
    return [
        (node.model_dump(exclude={"children"}), len(node.children))
        for root in forest
        for node in root.iter_nodes()
    ]


def _make_storage(directory: Path, clock, **kwargs) -> SnapshotStorage:
    storage = SnapshotStorage(directory, clock=clock, **kwargs)
    storage.open()
    return storage


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestSnapshotNaming:
    """Tests for file name helpers."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Before Refactor #2", "before_refactor__2"),
            ("baseline", "baseline"),
            ("../../etc/passwd", "______etc_passwd"),
            ("", "unnamed"),
        ],
    )
    def test_sanitize(self, name: str, expected: str) -> None:
        assert sanitize_snapshot_name(name) == expected

    def test_file_name_round_trip(self) -> None:
        file_name = snapshot_file_name(123, "My Run")
        assert file_name == "snapshot_123_my_run.json.gz"
        assert parse_snapshot_file_name(file_name) == (123, "my_run")

    @pytest.mark.parametrize(
        "file_name", ["notes.txt", "snapshot_abc_x.json.gz", "snapshot_1_x.json"]
    )
    def test_foreign_files_are_not_parsed(self, file_name: str) -> None:
        assert parse_snapshot_file_name(file_name) is None


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestSnapshotStorageConstruction:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_snapshots": 0},
            {"max_age_days": 0},
            {"compression_level": 10},
        ],
    )
    def test_rejects_invalid_limits(self, tmp_path: Path, kwargs: dict) -> None:
        with pytest.raises(InvalidArgumentError):
            SnapshotStorage(tmp_path, **kwargs)

    def test_open_creates_directory(self, tmp_path: Path) -> None:
        directory = tmp_path / "nested" / "snapshots"
        with SnapshotStorage(directory) as storage:
            assert storage.directory.is_dir()


# ---------------------------------------------------------------------------
# Save / load / list / delete
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestSnapshotStorageOperations:
    """Tests for the storage read and write operations."""

    def test_save_and_load(self, tmp_path: Path, clock) -> None:
        storage = _make_storage(tmp_path, clock)
        snapshot = _make_snapshot(NOW_MS, "Before Refactor")

        path = storage.save(snapshot)

        assert path.name == f"snapshot_{NOW_MS}_before_refactor.json.gz"
        assert not list(tmp_path.glob("*.tmp"))
        assert storage.load(snapshot.id) == snapshot

    def test_save_and_load_deep_call_chain(
        self, tmp_path: Path, clock, make_event
    ) -> None:
        """Should persist a call chain far deeper than JSON nesting allows."""
        storage = _make_storage(tmp_path, clock)
        snapshot = _chain_snapshot(make_event, CHAIN_DEPTH)

        storage.save(snapshot)
        loaded = storage.load(snapshot.id)

        assert loaded.call_trees[0].node_count() == CHAIN_DEPTH
        assert _preorder(loaded.call_trees) == _preorder(snapshot.call_trees)
        assert loaded.model_copy(update={"call_trees": []}) == snapshot.model_copy(
            update={"call_trees": []}
        )

    def test_list_newest_first(self, tmp_path: Path, clock) -> None:
        storage = _make_storage(tmp_path, clock)
        for offset, name in [(0, "first run"), (2_000, "third"), (1_000, "second")]:
            storage.save(_make_snapshot(NOW_MS - 10_000 + offset, name))
        (tmp_path / "README.txt").write_text("not a snapshot")

        listing = storage.list_snapshots()

        assert [m.name for m in listing] == ["third", "second", "first run"]
        assert listing[0].id == str(NOW_MS - 8_000)
        assert all(m.size_bytes > 0 for m in listing)

    def test_load_unknown_id(self, tmp_path: Path, clock) -> None:
        storage = _make_storage(tmp_path, clock)
        with pytest.raises(SnapshotNotFoundError) as exc_info:
            storage.load("42")
        assert exc_info.value.code == "XRAY_004"
        assert str(exc_info.value) == "Snapshot 42 not found"

    @pytest.mark.parametrize("snapshot_id", ["", "abc", "-1", "12\n", "../1"])
    def test_malformed_id(self, tmp_path: Path, clock, snapshot_id: str) -> None:
        storage = _make_storage(tmp_path, clock)
        with pytest.raises(InvalidArgumentError):
            storage.load(snapshot_id)

    def test_load_corrupt_file(self, tmp_path: Path, clock) -> None:
        storage = _make_storage(tmp_path, clock)
        path = storage.save(_make_snapshot(NOW_MS))
        path.write_bytes(path.read_bytes()[:20])

        with pytest.raises(SnapshotDecodeError):
            storage.load(str(NOW_MS))

    def test_delete(self, tmp_path: Path, clock) -> None:
        storage = _make_storage(tmp_path, clock)
        storage.save(_make_snapshot(NOW_MS))

        storage.delete(str(NOW_MS))

        assert storage.list_snapshots() == []
        with pytest.raises(SnapshotNotFoundError):
            storage.delete(str(NOW_MS))

    def test_storage_stats(self, tmp_path: Path, clock) -> None:
        storage = _make_storage(tmp_path, clock)
        assert storage.get_storage_stats().total_snapshots == 0

        storage.save(_make_snapshot(NOW_MS - 5_000))
        storage.save(_make_snapshot(NOW_MS))

        stats = storage.get_storage_stats()
        assert stats.total_snapshots == 2
        assert stats.oldest_snapshot_ms == NOW_MS - 5_000
        assert stats.newest_snapshot_ms == NOW_MS
        assert stats.total_size_bytes == sum(
            p.stat().st_size for p in tmp_path.glob("snapshot_*.json.gz")
        )


# ---------------------------------------------------------------------------
# Eviction
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestSnapshotStorageEviction:
    """Tests for the age and count rules."""

    def test_count_limit_keeps_newest(self, tmp_path: Path, clock) -> None:
        storage = _make_storage(tmp_path, clock, max_snapshots=3)
        for i in range(5):
            storage.save(_make_snapshot(NOW_MS - 5_000 + i * 1_000))

        ids = [m.id for m in storage.list_snapshots()]
        assert ids == [str(NOW_MS - 5_000 + i * 1_000) for i in (4, 3, 2)]

    def test_age_limit_on_open(self, tmp_path: Path, clock) -> None:
        """Should remove snapshots older than the age limit when opened."""
        writer = _make_storage(tmp_path, clock, max_age_days=365)
        old = NOW_MS - int(40 * MS_PER_DAY)
        writer.save(_make_snapshot(old, "old"))
        writer.save(_make_snapshot(NOW_MS - 1_000, "recent"))

        storage = SnapshotStorage(tmp_path, clock=clock, max_age_days=30)
        removed = storage.open()

        assert removed == 1
        assert [m.name for m in storage.list_snapshots()] == ["recent"]

    def test_age_limit_after_save(self, tmp_path: Path, clock) -> None:
        storage = _make_storage(tmp_path, clock, max_age_days=1)
        storage.save(_make_snapshot(NOW_MS - int(2 * MS_PER_DAY), "stale"))
        assert storage.list_snapshots() == []


# ---------------------------------------------------------------------------
# Background writes
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestSnapshotStorageBackground:
    """Tests for save_in_background and asave."""

    def test_save_in_background(self, tmp_path: Path, clock) -> None:
        storage = _make_storage(tmp_path, clock)
        try:
            future = storage.save_in_background(_make_snapshot(NOW_MS))
            path = future.result(timeout=10)
        finally:
            storage.close()

        assert path.exists()
        assert storage.load(str(NOW_MS)).id == str(NOW_MS)

    def test_close_waits_for_pending_saves(self, tmp_path: Path, clock) -> None:
        storage = _make_storage(tmp_path, clock)
        for i in range(3):
            storage.save_in_background(_make_snapshot(NOW_MS - i))
        storage.close()

        assert len(storage.list_snapshots()) == 3

    @pytest.mark.asyncio
    async def test_asave(self, tmp_path: Path, clock) -> None:
        storage = _make_storage(tmp_path, clock)
        try:
            path = await storage.asave(_make_snapshot(NOW_MS, "async run"))
        finally:
            storage.close()

        assert path.name == f"snapshot_{NOW_MS}_async_run.json.gz"

# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""File-backed snapshot storage with count and age eviction.

Provides SnapshotStorage: encoded snapshots are written to one directory,
one gzip file per snapshot, named deterministically from the creation time
and the sanitized snapshot name::

    snapshot_<created_at_ms>_<sanitized_name>.json.gz

Eviction Policy:
    Runs on ``open`` and after every ``save``:
    - snapshots older than ``max_age_days`` are removed;
    - if more than ``max_snapshots`` remain, the oldest excess is removed.
    Removal failures are logged and skipped, never raised.

Background Writes:
    ``save_in_background`` and ``asave`` run the encode-and-write on a
    dedicated single-worker executor so event ingestion never waits on disk.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from types import TracebackType

from perfxray.constants import (
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_MAX_SNAPSHOT_AGE_DAYS,
    DEFAULT_MAX_SNAPSHOTS,
    MS_PER_DAY,
    SNAPSHOT_FILE_PREFIX,
    SNAPSHOT_FILE_SUFFIX,
)
from perfxray.exceptions import (
    InvalidArgumentError,
    SnapshotDecodeError,
    SnapshotNotFoundError,
)
from perfxray.models import (
    ModelSnapshot,
    ModelSnapshotMetadata,
    ModelSnapshotStorageStats,
)
from perfxray.snapshot.codec import decode_snapshot, encode_snapshot

logger = logging.getLogger(__name__)

_FILE_NAME_PATTERN = re.compile(
    rf"^{re.escape(SNAPSHOT_FILE_PREFIX)}(\d+)_(.+){re.escape(SNAPSHOT_FILE_SUFFIX)}$"
)
_SNAPSHOT_ID_PATTERN = re.compile(r"\d+")
_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


def sanitize_snapshot_name(name: str) -> str:
    """Replace every non-alphanumeric character with ``_`` and lowercase.

    Example:
        >>> sanitize_snapshot_name("Before Refactor #2")
        'before_refactor__2'
    """
    return _UNSAFE_NAME_CHARS.sub("_", name).lower() or "unnamed"


def snapshot_file_name(created_at_ms: int, name: str) -> str:
    """Return the storage file name for a snapshot."""
    return (
        f"{SNAPSHOT_FILE_PREFIX}{created_at_ms}_"
        f"{sanitize_snapshot_name(name)}{SNAPSHOT_FILE_SUFFIX}"
    )


def parse_snapshot_file_name(file_name: str) -> tuple[int, str] | None:
    """Return ``(created_at_ms, sanitized_name)`` or None for foreign files."""
    match = _FILE_NAME_PATTERN.match(file_name)
    if match is None:
        return None
    return int(match.group(1)), match.group(2)


def _now_ms() -> float:
    return time.time() * 1000.0


class SnapshotStorage:
    """Directory of encoded snapshots.

    Thread Safety:
        File mutations (save, delete, eviction) are serialized by an
        internal lock, so background saves and foreground calls can overlap.
    """

    def __init__(
        self,
        directory: str | Path,
        *,
        max_snapshots: int = DEFAULT_MAX_SNAPSHOTS,
        max_age_days: float = DEFAULT_MAX_SNAPSHOT_AGE_DAYS,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Configure the storage; nothing touches disk until ``open``.

        Raises:
            InvalidArgumentError: If a limit is not positive or the
                compression level is outside 1..9.
        """
        if max_snapshots < 1:
            raise InvalidArgumentError(
                f"max_snapshots must be >= 1, got {max_snapshots}"
            )
        if max_age_days <= 0:
            raise InvalidArgumentError(
                f"max_age_days must be > 0, got {max_age_days}"
            )
        if not 1 <= compression_level <= 9:
            raise InvalidArgumentError(
                f"compression_level must be in 1..9, got {compression_level}"
            )

        self._directory = Path(directory)
        self._max_snapshots = max_snapshots
        self._max_age_days = max_age_days
        self._compression_level = compression_level
        self._clock = clock or _now_ms
        self._io_lock = threading.RLock()
        self._executor: ThreadPoolExecutor | None = None

    @property
    def directory(self) -> Path:
        return self._directory

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> int:
        """Create the directory if needed and apply the eviction rules.

        Returns:
            Number of snapshot files removed by eviction.
        """
        self._directory.mkdir(parents=True, exist_ok=True)
        return self.enforce_retention()

    def close(self) -> None:
        """Wait for pending background saves and stop the worker."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> SnapshotStorage:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Write Operations
    # ------------------------------------------------------------------

    def save(self, snapshot: ModelSnapshot) -> Path:
        """Encode and write a snapshot, then apply the eviction rules.

        The file is written to a temporary name and renamed into place, so
        readers never see a partially written snapshot.

        Returns:
            Path of the written file.
        """
        data = encode_snapshot(snapshot, compression_level=self._compression_level)
        path = self._directory / snapshot_file_name(
            snapshot.created_at_ms, snapshot.name
        )
        tmp_path = path.with_name(path.name + ".tmp")

        with self._io_lock:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.replace(tmp_path, path)

        logger.info(
            "Saved snapshot id=%s to %s (%d bytes)",
            snapshot.id,
            path.name,
            len(data),
        )

        self.enforce_retention()
        return path

    def save_in_background(self, snapshot: ModelSnapshot) -> Future[Path]:
        """Schedule ``save`` on the storage worker thread."""
        return self._get_executor().submit(self.save, snapshot)

    async def asave(self, snapshot: ModelSnapshot) -> Path:
        """Await ``save`` running on the storage worker thread."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._get_executor(), self.save, snapshot)

    def delete(self, snapshot_id: str) -> None:
        """Remove a stored snapshot.

        Raises:
            InvalidArgumentError: If the id is malformed.
            SnapshotNotFoundError: If no snapshot has this id.
        """
        entry = self._find(snapshot_id)
        with self._io_lock:
            try:
                (self._directory / entry.file_name).unlink()
            except FileNotFoundError as e:
                raise SnapshotNotFoundError(snapshot_id) from e
        logger.info("Deleted snapshot id=%s", snapshot_id)

    def enforce_retention(self) -> int:
        """Apply the age rule, then the count rule.

        Returns:
            Number of files removed.
        """
        with self._io_lock:
            entries = self.list_snapshots()
            cutoff_ms = self._clock() - self._max_age_days * MS_PER_DAY

            expired = [e for e in entries if e.created_at_ms < cutoff_ms]
            kept = [e for e in entries if e.created_at_ms >= cutoff_ms]
            # entries are newest first, so the excess is the oldest tail
            excess = kept[self._max_snapshots :]

            removed = 0
            for entry in [*expired, *excess]:
                try:
                    (self._directory / entry.file_name).unlink()
                    removed += 1
                except OSError as e:
                    logger.warning(
                        "Failed to remove snapshot file %s: %s", entry.file_name, e
                    )

        if removed:
            logger.info(
                "Snapshot eviction removed %d file(s): expired=%d, over_limit=%d",
                removed,
                len(expired),
                len(excess),
            )
        return removed

    # ------------------------------------------------------------------
    # Read Operations
    # ------------------------------------------------------------------

    def load(self, snapshot_id: str) -> ModelSnapshot:
        """Read and decode a stored snapshot.

        Raises:
            InvalidArgumentError: If the id is malformed.
            SnapshotNotFoundError: If no snapshot has this id.
            SnapshotDecodeError: If the stored bytes are corrupt.
        """
        entry = self._find(snapshot_id)
        try:
            data = (self._directory / entry.file_name).read_bytes()
        except FileNotFoundError as e:
            raise SnapshotNotFoundError(snapshot_id) from e

        try:
            return decode_snapshot(data)
        except SnapshotDecodeError:
            logger.warning(
                "Stored snapshot id=%s is unreadable: %s", snapshot_id, entry.file_name
            )
            raise

    def list_snapshots(self) -> list[ModelSnapshotMetadata]:
        """Return metadata of stored snapshots, most recent first."""
        if not self._directory.is_dir():
            return []

        entries: list[ModelSnapshotMetadata] = []
        for path in self._directory.iterdir():
            parsed = parse_snapshot_file_name(path.name)
            if parsed is None:
                continue
            try:
                size = path.stat().st_size
            except FileNotFoundError:
                continue
            created_at_ms, sanitized = parsed
            entries.append(
                ModelSnapshotMetadata(
                    id=str(created_at_ms),
                    name=sanitized.replace("_", " "),
                    created_at_ms=created_at_ms,
                    file_name=path.name,
                    size_bytes=size,
                )
            )

        entries.sort(key=lambda e: (-e.created_at_ms, e.file_name))
        return entries

    def get_storage_stats(self) -> ModelSnapshotStorageStats:
        """Return count, total size and age range of stored snapshots."""
        entries = self.list_snapshots()
        if not entries:
            return ModelSnapshotStorageStats()
        return ModelSnapshotStorageStats(
            total_snapshots=len(entries),
            total_size_bytes=sum(e.size_bytes for e in entries),
            oldest_snapshot_ms=entries[-1].created_at_ms,
            newest_snapshot_ms=entries[0].created_at_ms,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _find(self, snapshot_id: str) -> ModelSnapshotMetadata:
        if not isinstance(snapshot_id, str) or not _SNAPSHOT_ID_PATTERN.fullmatch(
            snapshot_id
        ):
            raise InvalidArgumentError(f"Malformed snapshot id: {snapshot_id!r}")

        created_at_ms = int(snapshot_id)
        for entry in self.list_snapshots():
            if entry.created_at_ms == created_at_ms:
                return entry
        raise SnapshotNotFoundError(snapshot_id)

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="snapshot_io_"
            )
        return self._executor


__all__ = [
    "SnapshotStorage",
    "parse_snapshot_file_name",
    "sanitize_snapshot_name",
    "snapshot_file_name",
]

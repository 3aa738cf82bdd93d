# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Exceptions for the perfxray engine.

All exceptions carry an error code for structured error handling and logging.
Topology problems in call data (unresolved parents, duplicate ids, overlapping
children) are never raised; they are normalized by the tree builder.

Error Codes:
    - XRAY_001: Call event validation failed (non-recoverable)
    - XRAY_002: Invalid argument (non-recoverable)
    - XRAY_003: Snapshot bytes could not be decoded (non-recoverable)
    - XRAY_004: Snapshot not found (non-recoverable)
    - XRAY_005: Capture session in the wrong state (non-recoverable)
"""

from __future__ import annotations


class PerfXrayError(Exception):
    """Base exception for perfxray errors.

    Attributes:
        message: Human-readable error description.
        code: Error code (e.g., XRAY_001).

    Example:
        >>> try:
        ...     raise PerfXrayError("Something failed", code="XRAY_999")
        ... except PerfXrayError as e:
        ...     print(f"Error {e.code}: {e.message}")
        Error XRAY_999: Something failed
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class CallEventValidationError(PerfXrayError, ValueError):
    """Raised when a call event record does not conform to the expected shape.

    Raised at the ingestion boundary, before the record reaches storage, so
    existing store contents are never affected.

    Attributes:
        message: Human-readable error description.
        code: Always "XRAY_001".
        index: Position of the offending record inside a batch, if any.
    """

    def __init__(self, message: str, index: int | None = None) -> None:
        super().__init__(message, code="XRAY_001")
        self.index = index


class InvalidArgumentError(PerfXrayError, ValueError):
    """Raised for caller-supplied arguments that can never succeed.

    Examples:
        - Non-positive regression threshold
        - Malformed snapshot id
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, code="XRAY_002")


class SnapshotDecodeError(PerfXrayError):
    """Raised when persisted snapshot bytes are corrupt or truncated."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="XRAY_003")


class SnapshotNotFoundError(PerfXrayError, LookupError):
    """Raised when a snapshot id does not resolve to a stored snapshot."""

    def __init__(self, snapshot_id: str) -> None:
        super().__init__(f"Snapshot {snapshot_id} not found", code="XRAY_004")
        self.snapshot_id = snapshot_id


class CaptureStateError(PerfXrayError):
    """Raised when a capture session operation needs a different state."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="XRAY_005")


__all__ = [
    "CallEventValidationError",
    "CaptureStateError",
    "InvalidArgumentError",
    "PerfXrayError",
    "SnapshotDecodeError",
    "SnapshotNotFoundError",
]

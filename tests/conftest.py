# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Pytest configuration and fixtures for perfxray tests.

Shared test fixtures for the event store, flame graph, comparison and
snapshot tests.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from perfxray.models import ModelCallEvent

BASE_TIME_MS = 1_700_000_000_000.0

# =========================================================================
# Basic Sample Data Fixtures
# =========================================================================


@pytest.fixture
def correlation_id() -> str:
    """Provide a valid UUID test correlation ID for distributed tracing."""
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def base_time_ms() -> float:
    """Epoch milliseconds used as the origin of sample events."""
    return BASE_TIME_MS


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now_ms: float = BASE_TIME_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, delta_ms: float) -> None:
        self.now_ms += delta_ms


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock positioned at the sample event origin."""
    return FakeClock()


@pytest.fixture
def make_event() -> Callable[..., ModelCallEvent]:
    """Factory for call events offset from the sample origin.

    ``start`` and ``duration`` are milliseconds; ``start`` is relative to
    the origin so tests read as timelines.
    """

    def _make(
        call_id: str,
        *,
        parent: str | None = None,
        owner: str = "Service",
        operation: str | None = None,
        start: float = 0.0,
        duration: float = 10.0,
        **extra: Any,
    ) -> ModelCallEvent:
        return ModelCallEvent(
            call_id=call_id,
            parent_call_id=parent,
            owner=owner,
            operation=operation or f"op_{call_id}",
            duration_ms=duration,
            started_at_ms=BASE_TIME_MS + start,
            **extra,
        )

    return _make


@pytest.fixture
def wire_record() -> dict[str, Any]:
    """A call event record in the tracer's camelCase wire shape."""
    return {
        "callId": "call-1",
        "parentCallId": None,
        "class": "UserService",
        "method": "loadUsers",
        "duration": 42.5,
        "timestamp": BASE_TIME_MS,
        "stackDepth": 0,
        "file": "src/app/user.service.ts",
        "line": 17,
        "changeDetectionCount": 3,
    }

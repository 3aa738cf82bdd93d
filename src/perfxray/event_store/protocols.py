# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Protocol definitions for event store dependency injection.

Consumers such as the engine depend on ProtocolCallEventStore rather than the
concrete CallEventStore.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from perfxray.models import ModelCallEvent, ModelCallTreeNode


@runtime_checkable
class ProtocolCallEventStore(Protocol):
    """Protocol for live call event storage.

    Implementations must provide:
    - ``add_event``: Validated insert, last write wins by call id.
    - ``add_events``: All-or-nothing batch insert.
    - ``build_tree``: Point-in-time call forest.
    - ``count``: Number of stored events.
    - ``clear``: Remove everything.
    """

    def add_event(
        self,
        event: ModelCallEvent | Mapping[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> ModelCallEvent:
        """Insert one event."""
        ...

    def add_events(
        self,
        batch: Iterable[ModelCallEvent | Mapping[str, Any]],
        *,
        correlation_id: str | None = None,
    ) -> int:
        """Insert a batch of events; returns the number inserted."""
        ...

    def build_tree(
        self, *, correlation_id: str | None = None
    ) -> list[ModelCallTreeNode]:
        """Return the call forest of the current contents."""
        ...

    def count(self) -> int:
        """Return the number of stored events."""
        ...

    def clear(self) -> None:
        """Remove all events."""
        ...


__all__ = ["ProtocolCallEventStore"]

# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Per-method aggregation of call events."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from perfxray.models import ModelCallEvent, ModelMethodAggregate, ModelMethodTiming

logger = logging.getLogger(__name__)


class MethodAggregateTable:
    """Method aggregates keyed by ``owner.operation``.

    Not thread-safe; CaptureSession guards access.
    """

    def __init__(self) -> None:
        # method_key → ModelMethodAggregate
        self._aggregates: dict[str, ModelMethodAggregate] = {}

    def record(self, event: ModelCallEvent) -> ModelMethodAggregate:
        """Fold one call event into its method's aggregate.

        The aggregate is created on first observation. A known source
        location is kept when later events arrive without one.
        """
        aggregate = self._aggregates.get(event.method_key)
        if aggregate is None:
            aggregate = ModelMethodAggregate(
                owner=event.owner, operation=event.operation
            )
            self._aggregates[event.method_key] = aggregate
            logger.debug("New method aggregate: %s", event.method_key)

        aggregate.observe(event.duration_ms)
        aggregate.update_location(event.source_file, event.source_line)
        if event.change_detection_count is not None:
            aggregate.change_detection_count = event.change_detection_count
        return aggregate

    def get(self, method_key: str) -> ModelMethodAggregate | None:
        return self._aggregates.get(method_key)

    def total_call_count(self) -> int:
        """Return the number of observations across all methods."""
        return sum(a.call_count for a in self._aggregates.values())

    def freeze(self) -> dict[str, ModelMethodTiming]:
        """Return immutable copies that later observations cannot change."""
        return {key: aggregate.freeze() for key, aggregate in self._aggregates.items()}

    def clear(self) -> None:
        self._aggregates.clear()

    def __len__(self) -> int:
        return len(self._aggregates)

    def __contains__(self, method_key: object) -> bool:
        return method_key in self._aggregates

    def __iter__(self) -> Iterator[str]:
        return iter(self._aggregates)


__all__ = ["MethodAggregateTable"]

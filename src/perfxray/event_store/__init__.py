# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Call event storage and call-stack building.

Provides bounded, thread-safe storage of call events and the pure
reconstruction of call trees from them.
"""

from perfxray.event_store.protocols import ProtocolCallEventStore
from perfxray.event_store.store import CallEventStore
from perfxray.event_store.tree_builder import (
    build_call_forest,
    compute_forest_depth,
    compute_self_time,
    count_forest_nodes,
)
from perfxray.event_store.validation import validate_call_event, validate_call_events

__all__ = [
    "CallEventStore",
    "ProtocolCallEventStore",
    "build_call_forest",
    "compute_forest_depth",
    "compute_self_time",
    "count_forest_nodes",
    "validate_call_event",
    "validate_call_events",
]

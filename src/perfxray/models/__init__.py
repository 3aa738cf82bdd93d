"""Models for the perfxray engine.

All models use strong typing with Pydantic BaseModel for type safety.
"""

from perfxray.models.model_call_event import ModelCallEvent
from perfxray.models.model_call_tree_node import ModelCallTreeNode
from perfxray.models.model_comparison import (
    ModelComparisonEntry,
    ModelComparisonResult,
    ModelComparisonSummary,
)
from perfxray.models.model_flame_graph import ModelFlameGraph, ModelFlameNode
from perfxray.models.model_method_aggregate import (
    ModelMethodAggregate,
    ModelMethodTiming,
)
from perfxray.models.model_snapshot import (
    ModelSnapshot,
    ModelSnapshotMetadata,
    ModelSnapshotRef,
    ModelSnapshotStorageStats,
    ModelSnapshotSummary,
)
from perfxray.models.model_statistics import (
    ModelCallStoreStatistics,
    ModelCaptureStats,
)

__all__ = [
    "ModelCallEvent",
    "ModelCallStoreStatistics",
    "ModelCallTreeNode",
    "ModelCaptureStats",
    "ModelComparisonEntry",
    "ModelComparisonResult",
    "ModelComparisonSummary",
    "ModelFlameGraph",
    "ModelFlameNode",
    "ModelMethodAggregate",
    "ModelMethodTiming",
    "ModelSnapshot",
    "ModelSnapshotMetadata",
    "ModelSnapshotRef",
    "ModelSnapshotStorageStats",
    "ModelSnapshotSummary",
]

"""Snapshot models for captured performance sessions."""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from perfxray.models.model_call_tree_node import ModelCallTreeNode
from perfxray.models.model_method_aggregate import ModelMethodTiming


class ModelSnapshotSummary(BaseModel):
    """Totals describing one capture session."""

    method_count: int = Field(..., ge=0, description="Distinct method keys")
    total_call_count: int = Field(..., ge=0, description="Observed executions")
    capture_start_ms: float = Field(..., description="Capture start, epoch ms")
    capture_end_ms: float = Field(..., description="Capture end, epoch ms")

    model_config = ConfigDict(frozen=True, extra="forbid")


class ModelSnapshot(BaseModel):
    """Named, immutable capture of per-method aggregates and call trees."""

    id: str = Field(..., min_length=1, description="Opaque, monotonic snapshot id")
    name: str = Field(..., description="User-supplied snapshot name")
    created_at_ms: int = Field(..., ge=0, description="Creation time, epoch ms")
    vcs_branch: str | None = Field(default=None, description="VCS branch")
    vcs_revision: str | None = Field(default=None, description="VCS revision")
    methods: dict[str, ModelMethodTiming] = Field(
        default_factory=dict, description="Aggregates keyed by owner.operation"
    )
    call_trees: list[ModelCallTreeNode] = Field(
        default_factory=list, description="Call tree roots captured in the session"
    )
    summary: ModelSnapshotSummary = Field(..., description="Session totals")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def validate_method_keys_and_summary(self) -> Self:
        """Validate that method keys and the summary agree with the aggregates.

        Raises:
            ValueError: If a key differs from its aggregate's method_key or
                the summary method_count differs from len(methods).
        """
        error_parts = []

        for key, aggregate in self.methods.items():
            if key != aggregate.method_key:
                error_parts.append(
                    f"method key {key!r} != aggregate key {aggregate.method_key!r}"
                )

        if self.summary.method_count != len(self.methods):
            error_parts.append(
                f"summary.method_count ({self.summary.method_count}) "
                f"!= len(methods) ({len(self.methods)})"
            )

        if error_parts:
            raise ValueError(f"Inconsistent snapshot: {'; '.join(error_parts)}")

        return self


class ModelSnapshotRef(BaseModel):
    """Identity of a snapshot, attached to comparison results."""

    id: str = Field(..., description="Snapshot id")
    name: str = Field(..., description="Snapshot name")
    vcs_branch: str | None = Field(default=None, description="VCS branch")
    vcs_revision: str | None = Field(default=None, description="VCS revision")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def from_snapshot(cls, snapshot: ModelSnapshot) -> ModelSnapshotRef:
        """Build a reference from a full snapshot."""
        return cls(
            id=snapshot.id,
            name=snapshot.name,
            vcs_branch=snapshot.vcs_branch,
            vcs_revision=snapshot.vcs_revision,
        )


class ModelSnapshotMetadata(BaseModel):
    """Listing entry for a stored snapshot, derived from its file name."""

    id: str = Field(..., description="Snapshot id (decimal created_at_ms)")
    name: str = Field(..., description="Sanitized name with underscores as spaces")
    created_at_ms: int = Field(..., ge=0, description="Creation time, epoch ms")
    file_name: str = Field(..., description="File name inside the storage directory")
    size_bytes: int = Field(..., ge=0, description="Encoded size on disk")

    model_config = ConfigDict(frozen=True, extra="forbid")


class ModelSnapshotStorageStats(BaseModel):
    """Aggregate statistics of a snapshot storage directory."""

    total_snapshots: int = Field(default=0, ge=0)
    total_size_bytes: int = Field(default=0, ge=0)
    oldest_snapshot_ms: int | None = Field(default=None)
    newest_snapshot_ms: int | None = Field(default=None)

    model_config = ConfigDict(frozen=True, extra="forbid")


__all__ = [
    "ModelSnapshot",
    "ModelSnapshotMetadata",
    "ModelSnapshotRef",
    "ModelSnapshotStorageStats",
    "ModelSnapshotSummary",
]

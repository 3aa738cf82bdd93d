"""Flame graph models produced by the flame-graph projector."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelFlameNode(BaseModel):
    """Render-ready flame graph node.

    ``percentage_of_root`` is relative to the duration of this node's own
    root, so nodes of different roots are scaled independently.
    """

    id: str = Field(..., description="Call id of the source node")
    label: str = Field(..., description="owner.operation")
    total_value: float = Field(..., ge=0, description="Node duration in ms")
    self_value: float = Field(..., ge=0, description="Duration excluding children")
    percentage_of_root: float = Field(
        ..., ge=0, le=100, description="Share of the root's duration (0-100)"
    )
    depth: int = Field(..., ge=0, description="Distance from the root")
    source_file: str | None = Field(default=None, description="Source file")
    source_line: int | None = Field(default=None, description="Source line")
    children: list[ModelFlameNode] = Field(
        default_factory=list, description="Children in chronological order"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


class ModelFlameGraph(BaseModel):
    """Flame graph projection of a call forest."""

    nodes: list[ModelFlameNode] = Field(
        default_factory=list, description="One flame tree per call tree root"
    )
    total_duration_ms: float = Field(
        default=0.0, ge=0, description="Sum of the root durations"
    )
    node_count: int = Field(default=0, ge=0, description="Nodes across all roots")
    root_call_id: str | None = Field(
        default=None, description="Root call id when the forest has a single root"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


__all__ = ["ModelFlameGraph", "ModelFlameNode"]

"""Call tree node model produced by the call-stack builder."""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field


class ModelCallTreeNode(BaseModel):
    """Typed model for one node of a reconstructed call tree.

    Carries the fields of the originating call event plus its ordered
    children and the computed self time. Trees are value snapshots: they are
    built once by ``build_call_forest`` and never mutated afterwards.
    """

    call_id: str = Field(..., min_length=1, description="Call id")
    parent_call_id: str | None = Field(default=None, description="Caller's call id")
    owner: str = Field(..., description="Class or component name")
    operation: str = Field(..., description="Method name")
    duration_ms: float = Field(..., ge=0, description="Total duration in ms")
    started_at_ms: float = Field(..., description="Start time in epoch ms")
    ended_at_ms: float = Field(..., description="End time in epoch ms")
    stack_depth: int = Field(default=0, ge=0, description="Reported stack depth")
    source_file: str | None = Field(default=None, description="Source file")
    source_line: int | None = Field(default=None, description="Source line")
    self_time_ms: float = Field(
        ..., ge=0, description="Duration minus the children's durations, clamped at 0"
    )
    children: list[ModelCallTreeNode] = Field(
        default_factory=list, description="Children ordered by start time"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def method_key(self) -> str:
        """Aggregation key: ``owner.operation``."""
        return f"{self.owner}.{self.operation}"

    def iter_nodes(self) -> Iterator[ModelCallTreeNode]:
        """Yield this node and all descendants in pre-order."""
        stack: list[ModelCallTreeNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def node_count(self) -> int:
        """Return the number of nodes in this subtree, including itself."""
        return sum(1 for _ in self.iter_nodes())


__all__ = ["ModelCallTreeNode"]

"""Call event model for the perfxray event store.

A call event is one completed method execution reported by the instrumented
client. Records arrive from the wire in the tracer's camelCase shape; the model
accepts both that shape and the snake_case field names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ModelCallEvent(BaseModel):
    """Typed model for one completed method execution.

    Immutable once received. ``call_id`` is unique within a store; inserting a
    second event with the same id replaces the first.
    """

    call_id: str = Field(
        ..., min_length=1, alias="callId", description="Process-unique call id"
    )
    parent_call_id: str | None = Field(
        default=None, alias="parentCallId", description="Caller's call id"
    )
    owner: str = Field(
        ..., min_length=1, alias="class", description="Class or component name"
    )
    operation: str = Field(
        ..., min_length=1, alias="method", description="Method name"
    )
    duration_ms: float = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        alias="duration",
        description="Execution time in milliseconds",
    )
    started_at_ms: float = Field(
        ...,
        allow_inf_nan=False,
        alias="timestamp",
        description="Wall-clock start time in epoch milliseconds",
    )
    stack_depth: int = Field(
        default=0,
        ge=0,
        alias="stackDepth",
        description="Stack depth as reported by the caller",
    )
    source_file: str | None = Field(
        default=None, alias="file", description="Source file of the method"
    )
    source_line: int | None = Field(
        default=None, ge=1, alias="line", description="Source line of the method"
    )
    change_detection_count: int | None = Field(
        default=None,
        ge=0,
        alias="changeDetectionCount",
        description="Framework change-detection counter forwarded by the tracer",
    )

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @field_validator("parent_call_id", "source_file", mode="before")
    @classmethod
    def empty_string_is_absent(cls, v: object) -> object:
        """Treat empty strings from the wire as missing values."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def method_key(self) -> str:
        """Aggregation key: ``owner.operation``."""
        return f"{self.owner}.{self.operation}"

    @property
    def ended_at_ms(self) -> float:
        """End time derived from start time and duration."""
        return self.started_at_ms + self.duration_ms


__all__ = ["ModelCallEvent"]

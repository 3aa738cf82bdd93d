"""Per-method timing aggregate model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelMethodAggregate(BaseModel):
    """Observed durations of one method during a capture session.

    The aggregate is mutable while its session is live (``observe`` appends
    a duration and updates the running mean) and is frozen into a
    ModelMethodTiming when the session ends.
    """

    owner: str = Field(..., min_length=1, description="Class or component name")
    operation: str = Field(..., min_length=1, description="Method name")
    durations: list[float] = Field(
        default_factory=list, description="Observed durations in arrival order"
    )
    last_duration_ms: float = Field(default=0.0, ge=0, description="Latest duration")
    average_duration_ms: float = Field(
        default=0.0, ge=0, description="Arithmetic mean of durations"
    )
    source_file: str | None = Field(default=None, description="Source file")
    source_line: int | None = Field(default=None, description="Source line")
    change_detection_count: int | None = Field(
        default=None, description="Latest framework change-detection counter"
    )

    model_config = ConfigDict(extra="forbid")

    @property
    def method_key(self) -> str:
        """Aggregation key: ``owner.operation``."""
        return f"{self.owner}.{self.operation}"

    @property
    def call_count(self) -> int:
        """Number of observed executions."""
        return len(self.durations)

    def observe(self, duration_ms: float) -> None:
        """Append one duration and update the running mean incrementally."""
        self.durations.append(duration_ms)
        self.last_duration_ms = duration_ms
        self.average_duration_ms += (
            duration_ms - self.average_duration_ms
        ) / len(self.durations)

    def update_location(
        self, source_file: str | None, source_line: int | None
    ) -> None:
        """Record a source location; an absent value never replaces a known one."""
        if source_file is not None:
            self.source_file = source_file
        if source_line is not None:
            self.source_line = source_line

    def freeze(self) -> ModelMethodTiming:
        """Return an immutable copy for a snapshot."""
        return ModelMethodTiming(
            owner=self.owner,
            operation=self.operation,
            durations=tuple(self.durations),
            last_duration_ms=self.last_duration_ms,
            average_duration_ms=self.average_duration_ms,
            source_file=self.source_file,
            source_line=self.source_line,
            change_detection_count=self.change_detection_count,
        )


class ModelMethodTiming(BaseModel):
    """Frozen per-method timings as stored in a snapshot."""

    owner: str = Field(..., min_length=1, description="Class or component name")
    operation: str = Field(..., min_length=1, description="Method name")
    durations: tuple[float, ...] = Field(
        default=(), description="Observed durations in arrival order"
    )
    last_duration_ms: float = Field(default=0.0, ge=0, description="Latest duration")
    average_duration_ms: float = Field(
        default=0.0, ge=0, description="Arithmetic mean of durations"
    )
    source_file: str | None = Field(default=None, description="Source file")
    source_line: int | None = Field(default=None, description="Source line")
    change_detection_count: int | None = Field(
        default=None, description="Latest framework change-detection counter"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def method_key(self) -> str:
        """Aggregation key: ``owner.operation``."""
        return f"{self.owner}.{self.operation}"

    @property
    def call_count(self) -> int:
        return len(self.durations)


__all__ = ["ModelMethodAggregate", "ModelMethodTiming"]

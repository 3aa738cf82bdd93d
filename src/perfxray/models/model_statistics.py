"""Statistics models for the event store and capture sessions."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelCallStoreStatistics(BaseModel):
    """Point-in-time statistics of a CallEventStore."""

    total_calls: int = Field(default=0, ge=0, description="Stored events")
    root_calls: int = Field(default=0, ge=0, description="Events without a parent id")
    max_depth: int = Field(
        default=0, ge=0, description="Levels in the deepest built tree"
    )
    oldest_call_age_ms: float = Field(
        default=0.0, description="Age of the oldest stored event in ms"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


class ModelCaptureStats(BaseModel):
    """Progress of a capture session."""

    is_active: bool = Field(..., description="Whether a capture is running")
    method_count: int = Field(default=0, ge=0, description="Distinct methods seen")
    call_tree_count: int = Field(default=0, ge=0, description="Recorded call trees")
    duration_ms: float = Field(
        default=0.0, ge=0, description="Elapsed capture time, 0 when inactive"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


__all__ = ["ModelCallStoreStatistics", "ModelCaptureStats"]

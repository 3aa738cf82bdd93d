"""Comparison models for snapshot regression reports."""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from perfxray.enums import EnumDiffClassification
from perfxray.models.model_snapshot import ModelSnapshotRef


class ModelComparisonEntry(BaseModel):
    """Comparison outcome for a single method key."""

    method_key: str = Field(..., description="owner.operation")
    baseline_avg: float | None = Field(
        default=None, description="Baseline average in ms, None if absent"
    )
    current_avg: float | None = Field(
        default=None, description="Current average in ms, None if absent"
    )
    percent_change: float | None = Field(
        default=None,
        description="Relative change in percent, None if undefined",
    )
    absolute_change_ms: float | None = Field(
        default=None, description="current_avg - baseline_avg"
    )
    classification: EnumDiffClassification = Field(
        ..., description="Diff classification"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


class ModelComparisonSummary(BaseModel):
    """Tally of comparison entries per classification."""

    total_compared: int = Field(default=0, ge=0)
    improved: int = Field(default=0, ge=0)
    regressed: int = Field(default=0, ge=0)
    new: int = Field(default=0, ge=0)
    removed: int = Field(default=0, ge=0)
    unchanged: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def validate_counts_sum_to_total(self) -> Self:
        """Validate that the per-classification counts add up to the total."""
        counted = (
            self.improved + self.regressed + self.new + self.removed + self.unchanged
        )
        if counted != self.total_compared:
            raise ValueError(
                f"Classification counts ({counted}) != total_compared "
                f"({self.total_compared})"
            )
        return self

    def count_for(self, classification: EnumDiffClassification) -> int:
        """Return the tally for one classification."""
        return int(getattr(self, classification.value))


class ModelComparisonResult(BaseModel):
    """Regression report comparing a baseline and a current set of aggregates."""

    entries: list[ModelComparisonEntry] = Field(
        default_factory=list,
        description="Entries ordered by absolute change, largest first",
    )
    summary: ModelComparisonSummary = Field(
        default_factory=ModelComparisonSummary, description="Tallies"
    )
    threshold_percent: float = Field(..., gt=0, description="Regression threshold")
    baseline: ModelSnapshotRef | None = Field(
        default=None, description="Baseline snapshot identity, when known"
    )
    current: ModelSnapshotRef | None = Field(
        default=None, description="Current snapshot identity, when known"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def validate_summary_matches_entries(self) -> Self:
        """Validate that the summary total matches the number of entries."""
        if self.summary.total_compared != len(self.entries):
            raise ValueError(
                f"summary.total_compared ({self.summary.total_compared}) "
                f"!= len(entries) ({len(self.entries)})"
            )
        return self

    def filter(
        self, classification: EnumDiffClassification | str
    ) -> list[ModelComparisonEntry]:
        """Return the entries with the given classification, in report order."""
        wanted = EnumDiffClassification(classification)
        return [e for e in self.entries if e.classification == wanted]

    def get(self, method_key: str) -> ModelComparisonEntry | None:
        """Return the entry for a method key, or None."""
        for entry in self.entries:
            if entry.method_key == method_key:
                return entry
        return None


__all__ = [
    "ModelComparisonEntry",
    "ModelComparisonResult",
    "ModelComparisonSummary",
]

# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Unit tests for call event boundary validation.

Tests cover:
- Wire (camelCase) and snake_case record shapes
- Rejection of malformed records with XRAY_001
- Batch validation reporting the offending index
"""

from __future__ import annotations

from typing import Any

import pytest

from perfxray.event_store import validate_call_event, validate_call_events
from perfxray.exceptions import CallEventValidationError
from perfxray.models import ModelCallEvent


@pytest.mark.unit
class TestValidateCallEvent:
    """Tests for validate_call_event."""

    def test_accepts_wire_shape(self, wire_record: dict[str, Any]) -> None:
        """Should map camelCase wire keys onto model fields."""
        event = validate_call_event(wire_record)

        assert event.call_id == "call-1"
        assert event.parent_call_id is None
        assert event.owner == "UserService"
        assert event.operation == "loadUsers"
        assert event.duration_ms == 42.5
        assert event.source_file == "src/app/user.service.ts"
        assert event.source_line == 17
        assert event.change_detection_count == 3
        assert event.method_key == "UserService.loadUsers"
        assert event.ended_at_ms == event.started_at_ms + 42.5

    def test_accepts_snake_case_shape(self) -> None:
        """Should accept the model's own field names."""
        event = validate_call_event(
            {
                "call_id": "x",
                "owner": "A",
                "operation": "b",
                "duration_ms": 1.0,
                "started_at_ms": 0.0,
            }
        )
        assert event.method_key == "A.b"
        assert event.stack_depth == 0

    def test_passes_through_model_instances(self) -> None:
        """Should return an existing ModelCallEvent unchanged."""
        event = ModelCallEvent(
            call_id="x", owner="A", operation="b", duration_ms=1.0, started_at_ms=0.0
        )
        assert validate_call_event(event) is event

    def test_empty_parent_is_absent(self, wire_record: dict[str, Any]) -> None:
        """Should treat an empty parent id or file as missing."""
        wire_record["parentCallId"] = ""
        wire_record["file"] = "  "
        event = validate_call_event(wire_record)
        assert event.parent_call_id is None
        assert event.source_file is None

    def test_ignores_unknown_keys(self, wire_record: dict[str, Any]) -> None:
        """Should ignore extra keys sent by newer tracers."""
        wire_record["zone"] = "angular"
        assert validate_call_event(wire_record).call_id == "call-1"

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("duration", -1.0),
            ("duration", float("nan")),
            ("duration", "slow"),
            ("timestamp", float("inf")),
            ("callId", ""),
            ("class", ""),
            ("line", 0),
        ],
    )
    def test_rejects_invalid_values(
        self, wire_record: dict[str, Any], key: str, value: Any
    ) -> None:
        """Should reject out-of-range or mistyped values."""
        wire_record[key] = value
        with pytest.raises(CallEventValidationError) as exc_info:
            validate_call_event(wire_record)
        assert exc_info.value.code == "XRAY_001"

    @pytest.mark.parametrize("missing", ["callId", "class", "method", "duration"])
    def test_rejects_missing_required_fields(
        self, wire_record: dict[str, Any], missing: str
    ) -> None:
        """Should reject records without a required field."""
        del wire_record[missing]
        with pytest.raises(CallEventValidationError):
            validate_call_event(wire_record)

    def test_rejects_non_mapping(self) -> None:
        """Should reject records that are not mappings."""
        with pytest.raises(CallEventValidationError):
            validate_call_event(["not", "a", "record"])  # type: ignore[arg-type]

    def test_error_is_value_error(self, wire_record: dict[str, Any]) -> None:
        """Should be catchable as ValueError."""
        wire_record["duration"] = -5
        with pytest.raises(ValueError):
            validate_call_event(wire_record)


@pytest.mark.unit
class TestValidateCallEvents:
    """Tests for batch validation."""

    def test_validates_every_record(self, wire_record: dict[str, Any]) -> None:
        """Should return one event per record, in order."""
        second = {**wire_record, "callId": "call-2", "parentCallId": "call-1"}
        events = validate_call_events([wire_record, second])
        assert [e.call_id for e in events] == ["call-1", "call-2"]

    def test_reports_offending_index(self, wire_record: dict[str, Any]) -> None:
        """Should set index to the position of the first bad record."""
        bad = {**wire_record, "callId": "call-2", "duration": -1}
        with pytest.raises(CallEventValidationError) as exc_info:
            validate_call_events([wire_record, bad])
        assert exc_info.value.index == 1
        assert "#1" in str(exc_info.value)

    def test_empty_batch(self) -> None:
        """Should accept an empty batch."""
        assert validate_call_events([]) == []

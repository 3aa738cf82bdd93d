# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Boundary validation for call event records.

Records from the wire are validated exactly once, here, before they reach the
store. Anything that does not conform is rejected with
CallEventValidationError; the tree builder only ever sees ModelCallEvent.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from perfxray.exceptions import CallEventValidationError
from perfxray.models import ModelCallEvent


def validate_call_event(
    record: ModelCallEvent | Mapping[str, Any],
    *,
    index: int | None = None,
) -> ModelCallEvent:
    """Validate one record and return it as a ModelCallEvent.

    Args:
        record: A ModelCallEvent (returned unchanged) or a mapping in the
            tracer's wire shape or in snake_case.
        index: Position in the enclosing batch, reported on failure.

    Returns:
        The validated event.

    Raises:
        CallEventValidationError: If the record is not a mapping or misses or
            mistypes a required field.
    """
    if isinstance(record, ModelCallEvent):
        return record

    if not isinstance(record, Mapping):
        raise CallEventValidationError(
            f"Call event must be a mapping, got {type(record).__name__}",
            index=index,
        )

    try:
        return ModelCallEvent.model_validate(record)
    except ValidationError as e:
        raise CallEventValidationError(
            _describe_validation_error(e, index), index=index
        ) from e


def validate_call_events(
    batch: Iterable[ModelCallEvent | Mapping[str, Any]],
) -> list[ModelCallEvent]:
    """Validate a whole batch; the first invalid record fails the batch.

    Raises:
        CallEventValidationError: With ``index`` set to the offending position.
    """
    return [
        validate_call_event(record, index=position)
        for position, record in enumerate(batch)
    ]


def _describe_validation_error(error: ValidationError, index: int | None) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(p) for p in detail.get("loc", ())) or "<record>"
        parts.append(f"{location}: {detail.get('msg', 'invalid')}")

    prefix = "Invalid call event" if index is None else f"Invalid call event #{index}"
    return f"{prefix}: {'; '.join(parts)}"


__all__ = ["validate_call_event", "validate_call_events"]

"""Structural validation of raw trace payloads.

`validate_high_level_trace` and `validate_low_level_trace` take whatever was
loaded from disk (usually a ``dict``, but anything is accepted) and report every
violation at once instead of stopping at the first one. They never raise.

Each error is rendered as ``"<field path>: <message>"`` where the path uses the
JSON spelling, e.g. ``"files.0.exports.1.type: Input should be 'function', ..."``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from .base import TraceModel
from .high_level import HighLevelTrace
from .low_level import LowLevelTrace


class ValidationReport(BaseModel):
    """Outcome of a structural check."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


def _format_errors(exc: ValidationError) -> list[str]:
    out: list[str] = []
    for item in exc.errors():
        path = ".".join(str(part) for part in item["loc"]) or "<root>"
        out.append(f"{path}: {item['msg']}")
    return out


def _validate(model: type[TraceModel], data: Any) -> ValidationReport:
    try:
        model.model_validate(data)
    except ValidationError as exc:
        return ValidationReport(valid=False, errors=_format_errors(exc))
    return ValidationReport(valid=True)


def validate_high_level_trace(data: Any) -> ValidationReport:
    """Check ``data`` against the :class:`HighLevelTrace` contract."""
    return _validate(HighLevelTrace, data)


def validate_low_level_trace(data: Any) -> ValidationReport:
    """Check ``data`` against the :class:`LowLevelTrace` contract."""
    return _validate(LowLevelTrace, data)


__all__ = ["ValidationReport", "validate_high_level_trace", "validate_low_level_trace"]

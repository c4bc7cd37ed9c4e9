"""Base model shared by every persisted trace contract.

Conventions
-----------
- Python attributes are ``snake_case``; JSON on disk is ``camelCase``
  (``fileGlobs``, ``lastGenerated``). Both spellings are accepted on input.
- Validation is *strict*: ``"3"`` is not an int and ``{}`` is not a list. Trace
  files are machine-written, so a type mismatch means corruption or a bad hand
  edit and must be reported, not coerced.
- Timestamps are kept as ISO-8601 strings (see :mod:`archtrace.core.clock`) so
  the JSON payload mirrors the model exactly.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from archtrace.core.clock import parse_timestamp


class TraceModel(BaseModel):
    """Strict, camelCase-serialized base for trace contracts."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Return the JSON-ready payload with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


def check_timestamp(value: str) -> str:
    """Field-validator helper: reject timestamps that do not parse."""
    if parse_timestamp(value) is None:
        raise ValueError(f"timestamp does not parse as ISO-8601: {value!r}")
    return value


__all__ = ["TraceModel", "check_timestamp"]

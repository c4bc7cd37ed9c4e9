"""Tests for structural validation of raw trace payloads."""

from __future__ import annotations

from typing import Any

from archtrace.core.contracts.validation import (
    validate_high_level_trace,
    validate_low_level_trace,
)


def _low_level() -> dict[str, Any]:
    return {
        "moduleId": "app-core",
        "version": 3,
        "lastGenerated": "2026-03-01T10:00:00.000Z",
        "generatedBy": "archtrace",
        "files": [
            {
                "filePath": "src/core/service.ts",
                "exports": [{"symbol": "startService", "type": "function"}],
                "imports": [{"source": "./polyfills", "symbols": []}],
                "calls": [],
                "events": [],
            }
        ],
    }


def _high_level() -> dict[str, Any]:
    return {
        "version": 1,
        "lastGenerated": "2026-03-01T10:00:00.000Z",
        "generatedBy": "archtrace",
        "projectRoot": ".",
        "modules": [
            {
                "id": "app-core",
                "name": "Core",
                "description": "",
                "fileGlobs": ["src/core/**"],
                "dependencies": [],
                "dependents": [{"targetId": "app-ui", "relationshipType": "imports"}],
            }
        ],
    }


def test_valid_payloads() -> None:
    assert validate_low_level_trace(_low_level()).valid
    report = validate_high_level_trace(_high_level())
    assert report.valid and report.errors == []


def test_every_violation_is_reported_with_its_path() -> None:
    data = _low_level()
    data["version"] = "3"
    data["files"][0]["exports"][0]["type"] = "widget"
    data["lastGenerated"] = "last tuesday"

    report = validate_low_level_trace(data)

    assert not report.valid
    paths = [e.split(":")[0] for e in report.errors]
    assert "version" in paths
    assert "lastGenerated" in paths
    assert "files.0.exports.0.type" in paths


def test_high_level_edge_kind_is_checked() -> None:
    data = _high_level()
    data["modules"][0]["dependents"][0]["relationshipType"] = "owns"
    report = validate_high_level_trace(data)
    assert not report.valid
    assert report.errors[0].startswith("modules.0.dependents.0.relationshipType")


def test_non_object_input_never_raises() -> None:
    for junk in (None, [], "trace", 42):
        assert not validate_low_level_trace(junk).valid
        assert not validate_high_level_trace(junk).valid

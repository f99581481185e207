"""Run summary validation for deterministic artifact contracts."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema

SUMMARY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["schema_version", "seed", "config_hash", "config", "thresholds"],
    "properties": {
        "schema_version": {"type": "string"},
        "seed": {"type": "integer", "minimum": 0},
        "config_hash": {"type": "string", "minLength": 16, "maxLength": 16},
        "config": {"type": "object"},
        "thresholds": {
            "type": "object",
            "required": [
                "core_threshold",
                "rare_threshold",
                "n_genomes",
                "n_samples",
                "error_bound",
                "separated",
            ],
            "properties": {
                "core_threshold": {"type": "integer", "minimum": 0},
                "rare_threshold": {"type": "integer", "minimum": 0},
                "core_percent": {"type": "number", "minimum": 0, "maximum": 100},
                "rare_percent": {"type": "number", "minimum": 0, "maximum": 100},
                "n_genomes": {"type": "integer", "minimum": 1},
                "n_samples": {"type": "integer", "minimum": 1},
                "error_bound": {"type": "number", "minimum": 0, "maximum": 1},
                "separated": {"type": "boolean"},
                "clamped": {"type": "array", "items": {"enum": ["core", "rare"]}},
            },
        },
        "labels": {
            "type": "object",
            "additionalProperties": {"type": "integer", "minimum": 0},
        },
        "environment": {"type": "object"},
        "inputs": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": ["path", "sha256"],
                "properties": {
                    "path": {"type": "string"},
                    "sha256": {"type": "string", "pattern": "^[0-9a-f]{64}$"},
                },
            },
        },
    },
}


def validate_summary(payload: Dict[str, Any]) -> None:
    """Validate a run summary, including thresholds staying within [0, N]."""
    jsonschema.validate(payload, SUMMARY_SCHEMA)

    thresholds = payload["thresholds"]
    n_genomes = thresholds["n_genomes"]
    for key in ("core_threshold", "rare_threshold"):
        if thresholds[key] > n_genomes:
            raise jsonschema.ValidationError(f"{key}={thresholds[key]} exceeds n_genomes={n_genomes}")


def validate_summary_file(path: Path) -> Dict[str, Any]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    validate_summary(payload)
    return payload

"""
Engine Configuration Schema - File-Based EngineConfig Loading

Loads an EngineConfig from a JSON or YAML file and validates it against a
JSON Schema (Draft 2020-12) before any computation runs.

A config file names an optional base variant and overrides individual flags:

    {"variant": "BATCHED", "force_even_band": true, "zero_policy": "exact"}

Consumed by:
- proof.py (CLI --config)

Design Principles:
- Self-validating: Can't create invalid config
- Self-healing (non-strict): unknown fields dropped with warnings
- Immutable: returns a frozen EngineConfig
"""

from __future__ import annotations

import json
import warnings
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Dict, List

import yaml
from jsonschema import Draft202012Validator

from occupancy.constants import ZERO_POLICIES
from occupancy.engine import resolve_variant
from occupancy.types_config import EngineConfig, VARIANTS, VARIANT_DEFAULT
from occupancy.validation import ConfigError, validate_config


__all__ = [
    'JSON_SCHEMA',
    'load',
    'from_dict',
    'to_dict',
    'validate_data',
]


# =============================================================================
# JSON Schema Definition (Draft 2020-12)
# =============================================================================

JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "EngineConfig",
    "description": "Occupancy distribution engine configuration",
    "type": "object",
    "properties": {
        "variant": {
            "type": "string",
            "description": "Base preset the other fields override",
            "enum": sorted(VARIANTS) + sorted(v.lower() for v in VARIANTS)
        },
        "split_loop": {
            "type": "boolean",
            "description": "Branch-free band pass followed by a zero-checked frontier"
        },
        "batch_rescale": {
            "type": "boolean",
            "description": "Rescale by scale**8 every 8th layer"
        },
        "force_even_band": {
            "type": "boolean",
            "description": "Widen band edges to even bounds"
        },
        "zero_policy": {
            "type": "string",
            "enum": ZERO_POLICIES
        },
        "progress_interval": {
            "type": "integer",
            "minimum": 1
        },
        "tolerance": {
            "type": "number",
            "exclusiveMinimum": 0.0,
            "exclusiveMaximum": 1.0
        },
        "record_band": {
            "type": "boolean"
        },
        "variant_name": {
            "type": "string",
            "minLength": 1
        }
    },
    "additionalProperties": False
}

_VALIDATOR = Draft202012Validator(JSON_SCHEMA)
_KNOWN_FIELDS = set(JSON_SCHEMA["properties"])


# =============================================================================
# Validation
# =============================================================================

def validate_data(data: Any) -> List[str]:
    """
    Validate raw config data against JSON_SCHEMA.

    Returns:
        List of error messages, empty if valid
    """
    return [
        f"{'/'.join(str(p) for p in error.path) or '<root>'}: {error.message}"
        for error in sorted(_VALIDATOR.iter_errors(data), key=lambda e: list(e.path))
    ]


def _self_heal(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unknown fields, warning once per field."""
    healed = dict(data)
    for field in sorted(set(healed) - _KNOWN_FIELDS):
        del healed[field]
        warnings.warn(f"EngineConfig: Ignoring unknown field: {field}", UserWarning, stacklevel=3)
    return healed


# =============================================================================
# Conversion
# =============================================================================

def from_dict(data: Dict[str, Any], strict: bool = True) -> EngineConfig:
    """
    Build an EngineConfig from parsed config data.

    Args:
        data: Mapping of config fields, optionally with a base "variant"
        strict: If True, unknown fields are errors; if False, they are dropped

    Returns:
        Validated, frozen EngineConfig

    Raises:
        ConfigError: Data does not match the schema
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping, got {type(data).__name__}")
    if not strict:
        data = _self_heal(data)

    errors = validate_data(data)
    if errors:
        raise ConfigError("Config validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    overrides = dict(data)
    base_name = overrides.pop("variant", None)
    base = resolve_variant(base_name) if base_name else VARIANT_DEFAULT
    if base_name and "variant_name" not in overrides and overrides:
        overrides["variant_name"] = f"{base.variant_name}+CUSTOM"
    elif not base_name and overrides and "variant_name" not in overrides:
        overrides["variant_name"] = "CUSTOM"
    return validate_config(replace(base, **overrides))


def to_dict(config: EngineConfig) -> Dict[str, Any]:
    """EngineConfig as a plain dict, loadable again by from_dict."""
    return asdict(config)


def load(path: str, strict: bool = True) -> EngineConfig:
    """
    Load config from JSON/YAML file.

    Auto-validates on load (not separate step).

    Args:
        path: Path to config file
        strict: If True, raise on unknown fields; if False, drop them with warnings

    Returns:
        Validated, frozen EngineConfig

    Raises:
        FileNotFoundError: If path doesn't exist
        ConfigError: If the content fails validation
    """
    path_obj = Path(path)

    if not path_obj.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    content = path_obj.read_text()

    try:
        if path_obj.suffix in ('.yaml', '.yml'):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot parse config file {path}: {e}") from e

    return from_dict(data if data is not None else {}, strict=strict)

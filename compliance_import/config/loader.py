from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import ApiConfig, EntityImportConfig, ImportConfig
from ..models.schema import ExpectedColumn, FieldValidator
from ..services.transforms import ROW_TRANSFORMS
from ..services.validators import ValidatorSpecError, build_validator

"""Config loader.

Responsibilities:
- Load YAML config (default: config/import.yml)
- Validate against the packaged JSON schema (config_schema.json)
- Apply defaults (preview_sample_size=10, extra_fields=drop)
- Build ExpectedColumn tuples and validator tables per entity
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")
DEFAULT_SAMPLE_SIZE = 10


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: if the schema file is missing or invalid, or the config
            data violates it (missing required keys, wrong types, unknown keys)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path)
        suffix = f" (at {location})" if location else ""
        raise ConfigError(f"config validation failed: {e.message}{suffix}") from e


def _build_columns(key: str, raw_columns: list[dict[str, Any]]) -> tuple[ExpectedColumn, ...]:
    columns: list[ExpectedColumn] = []
    seen: set[str] = set()
    for raw in raw_columns:
        field_key = raw["field"]
        if field_key in seen:
            raise ConfigError(f"entity '{key}': duplicate field '{field_key}'")
        seen.add(field_key)
        columns.append(
            ExpectedColumn(
                canonical_name=raw["name"],
                field_key=field_key,
                required=bool(raw.get("required", False)),
                aliases=tuple(raw.get("aliases") or ()),
            )
        )
    return tuple(columns)


def _build_validators(
    key: str, columns: tuple[ExpectedColumn, ...], raw_validators: dict[str, Any]
) -> dict[str, FieldValidator]:
    labels = {c.field_key: c.canonical_name for c in columns}
    validators: dict[str, FieldValidator] = {}
    for field_key, spec in raw_validators.items():
        if field_key not in labels:
            raise ConfigError(f"entity '{key}': validator for unknown field '{field_key}'")
        try:
            validators[field_key] = build_validator(spec, labels[field_key])
        except ValidatorSpecError as e:
            raise ConfigError(f"entity '{key}': {e}") from e
    return validators


def _build_entity(key: str, raw: dict[str, Any]) -> EntityImportConfig:
    columns = _build_columns(key, raw["columns"])
    transform = raw.get("row_transform")
    if transform is not None and transform not in ROW_TRANSFORMS:
        raise ConfigError(f"entity '{key}': unknown row_transform '{transform}'")
    return EntityImportConfig(
        key=key,
        label=raw["label"],
        endpoint=raw["endpoint"],
        columns=columns,
        validators=_build_validators(key, columns, raw.get("validators") or {}),
        description=raw.get("description"),
        max_rows=raw.get("max_rows"),
        extra_fields=raw.get("extra_fields", "drop"),
        required_context=tuple(raw.get("required_context") or ()),
        row_transform=transform,
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    api_raw = data.get("api") or {}
    api = ApiConfig(
        base_url=api_raw.get("base_url"),
        timeout_seconds=api_raw.get("timeout_seconds"),
    )
    entities = {key: _build_entity(key, raw) for key, raw in data["entities"].items()}
    return ImportConfig(
        api=api,
        entities=entities,
        preview_sample_size=data.get("preview_sample_size", DEFAULT_SAMPLE_SIZE),
        raw=data,
    )

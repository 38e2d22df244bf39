from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .schema import ExpectedColumn, FieldValidator

"""Config dataclasses for the bulk CSV importer.

Domain view of config/import.yml after loading and validation. The loader in
compliance_import/config/loader.py builds these; nothing else parses YAML.
"""


@dataclass(frozen=True)
class ApiConfig:
    """Commit endpoint connection settings.

    Environment variables (IMPORT_API_URL / IMPORT_API_TIMEOUT) take precedence
    over these values. The bearer token only comes from IMPORT_API_TOKEN.
    """
    base_url: str | None
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class EntityImportConfig:
    """Import configuration for a single entity type.

    Defines the expected columns, the per-field validators and the commit
    endpoint for one kind of record (systems, risks, POA&Ms, ...).
    """
    key: str  # Entity key (key in entities dict)
    label: str  # Human-readable name
    endpoint: str  # Commit endpoint path, appended to ApiConfig.base_url
    columns: tuple[ExpectedColumn, ...]
    validators: dict[str, FieldValidator] = field(default_factory=dict)
    description: str | None = None
    max_rows: int | None = None  # 1 リクエストあたりの最大行数 (None = 無制限)
    extra_fields: str = "drop"  # drop / reject
    required_context: tuple[str, ...] = ()  # 例: system_id, framework_id
    row_transform: str | None = None  # services.transforms の登録名

    @property
    def schema(self) -> tuple[ExpectedColumn, ...]:
        return self.columns

    @property
    def needs_context(self) -> bool:
        return bool(self.required_context)

    def canonical_name_for(self, field_key: str) -> str | None:
        for col in self.columns:
            if col.field_key == field_key:
                return col.canonical_name
        return None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for the importer."""
    api: ApiConfig
    entities: dict[str, EntityImportConfig]
    preview_sample_size: int = 10
    raw: dict[str, Any] | None = None  # Loaded YAML (debug only)

    def entity(self, key: str) -> EntityImportConfig:
        return self.entities[key]

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

"""Column schema models for the bulk CSV importer.

ExpectedColumn is caller-supplied configuration (one schema per entity type).
ColumnMapping is the reconciliation result between a parsed CSV header and
such a schema.
"""

__all__ = [
    "ExpectedColumn",
    "MatchedColumn",
    "ColumnMapping",
    "FieldValidator",
    "ValidatorTable",
]

# raw value -> error message (None = valid)
FieldValidator = Callable[[str], str | None]
ValidatorTable = Mapping[str, FieldValidator]


@dataclass(frozen=True)
class ExpectedColumn:
    """One column the importer expects to find in an uploaded CSV.

    Matching against CSV headers is case-insensitive and whitespace-trimmed,
    against either ``canonical_name`` or any entry of ``aliases``.
    """
    canonical_name: str  # Name shown in templates and messages
    field_key: str  # Key used in the committed row payload
    required: bool = False
    aliases: tuple[str, ...] = ()

    def names(self) -> tuple[str, ...]:
        """Canonical name followed by aliases, in declaration order."""
        return (self.canonical_name, *self.aliases)


@dataclass(frozen=True)
class MatchedColumn:
    """A CSV header bound to a schema field."""
    csv_header: str  # Header text as it appears in the file
    header_index: int  # 0-based header position (first occurrence for duplicates)
    field_key: str
    canonical_name: str
    required: bool


@dataclass(frozen=True)
class ColumnMapping:
    """Result of reconciling a CSV header against an expected schema.

    - matched: bindings in schema declaration order
    - unmatched: CSV headers nothing in the schema claimed (informational)
    - missing: canonical names of required columns with no header (blocking)
    - duplicates: header names appearing more than once (informational)
    """
    matched: list[MatchedColumn] = field(default_factory=list)
    unmatched: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing

    def field_keys(self) -> list[str]:
        return [m.field_key for m in self.matched]

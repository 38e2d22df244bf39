from __future__ import annotations

import logging
from collections.abc import Sequence

from ..models.schema import ColumnMapping, ExpectedColumn, MatchedColumn

"""Column reconciliation: match a parsed CSV header against an expected schema.

Schema entries are processed in declaration order. Each one binds the first
still-unused header (in header order) whose trimmed, case-folded text equals
its canonical name or one of its aliases. Earlier schema entries therefore
win when a header could satisfy more than one field.
"""

__all__ = [
    "StructuralError",
    "reconcile",
    "require_columns",
]

logger = logging.getLogger(__name__)


class StructuralError(Exception):
    """Raised when required schema columns are absent from the file header.

    Raised once, before any row is validated; blocks the whole import.
    """

    def __init__(self, missing: Sequence[str], unmatched: Sequence[str] = ()) -> None:
        self.missing = list(missing)
        self.unmatched = list(unmatched)
        super().__init__(f"missing required columns: {', '.join(self.missing)}")


def _normalize(name: str) -> str:
    return name.strip().casefold()


def reconcile(header: Sequence[str], schema: Sequence[ExpectedColumn]) -> ColumnMapping:
    """Reconcile CSV header names against the expected schema.

    Pure and deterministic; the schema is not modified.
    """
    normalized = [_normalize(h) for h in header]
    used: set[int] = set()
    matched: list[MatchedColumn] = []
    missing: list[str] = []

    seen: set[str] = set()
    duplicates: list[str] = []
    for idx, key in enumerate(normalized):
        if not key:
            continue
        if key in seen:
            if header[idx] not in duplicates:
                duplicates.append(header[idx])
            # 2 番目以降の重複ヘッダはマッチ対象外
            used.add(idx)
        else:
            seen.add(key)

    for column in schema:
        candidates = {_normalize(n) for n in column.names()}
        hit: int | None = None
        for idx, key in enumerate(normalized):
            if idx in used:
                continue
            if key in candidates:
                hit = idx
                break
        if hit is None:
            if column.required:
                missing.append(column.canonical_name)
            continue
        used.add(hit)
        matched.append(
            MatchedColumn(
                csv_header=header[hit],
                header_index=hit,
                field_key=column.field_key,
                canonical_name=column.canonical_name,
                required=column.required,
            )
        )

    bound = {m.header_index for m in matched}
    unmatched = [header[idx] for idx in range(len(header)) if idx not in bound]

    if duplicates:
        logger.warning("duplicate CSV headers (first occurrence used): %s", duplicates)
    return ColumnMapping(matched=matched, unmatched=unmatched, missing=missing, duplicates=duplicates)


def require_columns(mapping: ColumnMapping) -> ColumnMapping:
    """Return the mapping unchanged, or raise StructuralError if columns are missing."""
    if mapping.missing:
        raise StructuralError(mapping.missing, mapping.unmatched)
    return mapping

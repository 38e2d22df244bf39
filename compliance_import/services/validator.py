from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from ..models.record import Record
from ..models.row_outcome import RowError, ValidatedRow
from ..models.schema import ColumnMapping, ValidatorTable

"""Row validation.

Applies the per-field validator table to each record through the reconciled
column mapping. A row is either fully valid (ValidatedRow) or rejected with
every message collected (RowError); partially validated rows are never
produced. Validation problems are data, never exceptions.
"""

__all__ = [
    "ExtraFieldPolicy",
    "validate_row",
    "validate_records",
]


class ExtraFieldPolicy(Enum):
    """What to do with values beyond the header width.

    - DROP: ignore them (default)
    - REJECT: reject the row
    """
    DROP = "drop"
    REJECT = "reject"


def validate_row(
    record: Record,
    mapping: ColumnMapping,
    validators: ValidatorTable,
    *,
    extra_fields: ExtraFieldPolicy = ExtraFieldPolicy.DROP,
) -> ValidatedRow | RowError:
    """Validate and transform one record.

    For each matched column, in mapping order:
    1. a registered validator runs first; its message is authoritative and
       the required check is skipped for that field
    2. otherwise a blank required value yields "<canonical name> is required"
    3. otherwise the trimmed value is stored under the field key

    Pure: identical inputs always give an identical result.
    """
    data: dict[str, str] = {}
    messages: list[str] = []

    for col in mapping.matched:
        raw = record.value_at(col.header_index)
        validator = validators.get(col.field_key)
        if validator is not None:
            error = validator(raw)
            if error:
                messages.append(f"{col.csv_header}: {error}")
                continue
        if col.required and not raw.strip():
            messages.append(f"{col.canonical_name} is required")
            continue
        data[col.field_key] = raw.strip()

    if extra_fields is ExtraFieldPolicy.REJECT and any(record.extra_values):
        width = len(record.fields)
        messages.append(
            f"row has {width + len(record.extra_values)} values but the header has {width} columns"
        )

    if messages:
        return RowError(row_index=record.row_index, messages=messages)
    return ValidatedRow(row_index=record.row_index, data=data)


def validate_records(
    records: Iterable[Record],
    mapping: ColumnMapping,
    validators: ValidatorTable,
    *,
    extra_fields: ExtraFieldPolicy = ExtraFieldPolicy.DROP,
) -> tuple[list[ValidatedRow], list[RowError]]:
    """Partition records into valid rows and row errors, preserving order."""
    valid: list[ValidatedRow] = []
    errors: list[RowError] = []
    for record in records:
        result = validate_row(record, mapping, validators, extra_fields=extra_fields)
        if isinstance(result, RowError):
            errors.append(result)
        else:
            valid.append(result)
    return valid, errors

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from ..models.schema import FieldValidator

"""Validator factories for entity catalogs.

Each factory returns a FieldValidator: ``(raw: str) -> str | None`` where
None means the value is valid. enum/range validators accept blank values;
pair them with ``required: true`` on the column when a value is mandatory.
"""

__all__ = [
    "ValidatorSpecError",
    "required_validator",
    "enum_validator",
    "range_validator",
    "build_validator",
]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class ValidatorSpecError(ValueError):
    """Raised when a validator declaration cannot be turned into a validator."""


def required_validator(label: str) -> FieldValidator:
    def validate(value: str) -> str | None:
        if not value.strip():
            return f"{label} is required"
        return None

    return validate


def enum_validator(allowed: Iterable[str], label: str) -> FieldValidator:
    choices = [str(a).lower() for a in allowed]

    def validate(value: str) -> str | None:
        if not value:
            return None
        if value.lower() not in choices:
            return f'Invalid {label}: "{value}". Allowed: {", ".join(choices)}'
        return None

    return validate


def range_validator(minimum: int, maximum: int, label: str) -> FieldValidator:
    def validate(value: str) -> str | None:
        if not value:
            return None
        # 先頭の整数部のみ評価 ("3.5" -> 3)
        m = _LEADING_INT.match(value)
        if m is None:
            return f"{label} must be {minimum}-{maximum}"
        n = int(m.group(1))
        if n < minimum or n > maximum:
            return f"{label} must be {minimum}-{maximum}"
        return None

    return validate


def build_validator(spec: Mapping[str, Any], label: str) -> FieldValidator:
    """Build a validator from a catalog declaration.

    Supported forms::

        {type: required}
        {type: enum, allowed: [low, moderate, high]}
        {type: range, min: 1, max: 5}

    An explicit ``label`` key in the declaration overrides the given label.
    """
    kind = spec.get("type")
    label = spec.get("label") or label
    if kind == "required":
        return required_validator(label)
    if kind == "enum":
        allowed = spec.get("allowed")
        if not allowed:
            raise ValidatorSpecError(f"enum validator for {label} needs a non-empty 'allowed' list")
        return enum_validator(allowed, label)
    if kind == "range":
        if "min" not in spec or "max" not in spec:
            raise ValidatorSpecError(f"range validator for {label} needs 'min' and 'max'")
        return range_validator(int(spec["min"]), int(spec["max"]), label)
    raise ValidatorSpecError(f"unknown validator type for {label}: {kind!r}")

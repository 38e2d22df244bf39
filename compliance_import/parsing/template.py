from __future__ import annotations

import re
from collections.abc import Iterable

from ..models.schema import ExpectedColumn
from .tokenizer import BOM

"""Starter CSV template generation (no I/O)."""

__all__ = [
    "template_csv",
    "template_filename",
]

_NEEDS_QUOTING = re.compile(r'[",\r\n]')
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


def _quote(name: str) -> str:
    if _NEEDS_QUOTING.search(name):
        return '"' + name.replace('"', '""') + '"'
    return name


def template_csv(schema: Iterable[ExpectedColumn], *, include_bom: bool = True) -> str:
    """Return a CSV holding only the canonical header row.

    The row ends with CRLF. A BOM is prepended by default so spreadsheet
    tools open the file as UTF-8; the tokenizer strips it again.
    """
    header = ",".join(_quote(col.canonical_name) for col in schema)
    prefix = BOM if include_bom else ""
    return f"{prefix}{header}\r\n"


def template_filename(label: str) -> str:
    """Download filename for an entity template, e.g. ``POA_Ms_Import_Template.csv``."""
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', label)}_Import_Template.csv"

"""Bulk CSV import pipeline for the compliance console.

tokenize -> reconcile -> validate -> commit, with every data row ending in
exactly one of: committed, validation-rejected, server-rejected.
"""

from .models import (
    ColumnMapping,
    CommitPolicy,
    ExpectedColumn,
    ImportResult,
    PreviewResult,
    RowError,
    RowFate,
    ValidatedRow,
)
from .parsing import template_csv, tokenize
from .services import (
    ExtraFieldPolicy,
    StructuralError,
    commit,
    reconcile,
    run_import,
    validate_row,
)

__version__ = "0.1.0"

__all__ = [
    "ColumnMapping",
    "CommitPolicy",
    "ExpectedColumn",
    "ExtraFieldPolicy",
    "ImportResult",
    "PreviewResult",
    "RowError",
    "RowFate",
    "StructuralError",
    "ValidatedRow",
    "commit",
    "reconcile",
    "run_import",
    "template_csv",
    "tokenize",
    "validate_row",
]

"""Domain models for the bulk CSV importer.

This package contains the domain model classes used throughout the pipeline:
schema and mapping, tokenized records, per-row outcomes and import results.
"""

from .config_models import ApiConfig, EntityImportConfig, ImportConfig
from .import_result import CommitPolicy, ImportResult, PreviewResult, RowFailure
from .record import Record, TokenizedFile
from .row_outcome import (
    Committed,
    RowError,
    RowFate,
    RowOutcome,
    ServerRejected,
    ValidatedRow,
    ValidationRejected,
)
from .schema import ColumnMapping, ExpectedColumn, FieldValidator, MatchedColumn, ValidatorTable

__all__ = [
    # Configuration models
    "ApiConfig",
    "EntityImportConfig",
    "ImportConfig",
    # Schema models
    "ExpectedColumn",
    "MatchedColumn",
    "ColumnMapping",
    "FieldValidator",
    "ValidatorTable",
    # Processing models
    "Record",
    "TokenizedFile",
    "ValidatedRow",
    "RowError",
    "RowFate",
    "Committed",
    "ValidationRejected",
    "ServerRejected",
    "RowOutcome",
    # Results
    "CommitPolicy",
    "PreviewResult",
    "RowFailure",
    "ImportResult",
]

"""Import pipeline services: reconciliation, validation, orchestration."""

from .orchestrator import (
    BatchLimitError,
    CommitNotConfirmedError,
    ContextError,
    ImportFileError,
    ImportPipelineError,
    commit,
    commit_entity,
    import_file,
    merge_outcomes,
    preview_entity,
    run_import,
)
from .reconciler import StructuralError, reconcile, require_columns
from .validator import ExtraFieldPolicy, validate_records, validate_row

__all__ = [
    "BatchLimitError",
    "CommitNotConfirmedError",
    "ContextError",
    "ImportFileError",
    "ImportPipelineError",
    "StructuralError",
    "ExtraFieldPolicy",
    "commit",
    "commit_entity",
    "import_file",
    "merge_outcomes",
    "preview_entity",
    "reconcile",
    "require_columns",
    "run_import",
    "validate_records",
    "validate_row",
]

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..commit.client import BatchCommitter, CommitResponse
from ..models.config_models import EntityImportConfig
from ..models.import_result import CommitPolicy, ImportResult, PreviewResult, RowFailure
from ..models.row_outcome import (
    Committed,
    RowError,
    RowOutcome,
    ServerRejected,
    ValidationRejected,
)
from ..models.schema import ExpectedColumn, ValidatorTable
from ..parsing.tokenizer import tokenize
from .progress import RowProgressTracker
from .reconciler import StructuralError, reconcile
from .transforms import RowTransform, get_row_transform
from .validator import ExtraFieldPolicy, validate_row

logger = logging.getLogger(__name__)

"""Import orchestration.

Two phases per import attempt:

1. run_import(): tokenize -> reconcile -> validate every row. Pure in-memory,
   no network I/O. A missing required column raises StructuralError before
   any row is touched. Returns a PreviewResult (counts + capped sample).
2. commit(): submit the valid rows as one batch through a BatchCommitter and
   merge the server's per-row rejections with the client-side ones.

Every data row ends in exactly one state: committed, validation-rejected or
server-rejected. Nothing is retried automatically.
"""

__all__ = [
    "DEFAULT_SAMPLE_SIZE",
    "ImportPipelineError",
    "CommitNotConfirmedError",
    "BatchLimitError",
    "ContextError",
    "ImportFileError",
    "StructuralError",
    "run_import",
    "commit",
    "merge_outcomes",
    "preview_entity",
    "commit_entity",
    "read_import_file",
    "import_file",
]

DEFAULT_SAMPLE_SIZE = 10


class ImportPipelineError(Exception):
    """Base exception for caller-side import preconditions."""
    pass


class CommitNotConfirmedError(ImportPipelineError):
    """Raised when a REVIEW_INVALID preview with row errors is committed unconfirmed."""

    def __init__(self, error_count: int) -> None:
        self.error_count = error_count
        super().__init__(f"{error_count} rows failed validation; commit requires confirmation")


class BatchLimitError(ImportPipelineError):
    """Raised before any network call when a batch exceeds the endpoint row limit."""

    def __init__(self, row_count: int, max_rows: int) -> None:
        self.row_count = row_count
        self.max_rows = max_rows
        super().__init__(f"batch of {row_count} rows exceeds the limit of {max_rows} rows per import")


class ContextError(ImportPipelineError):
    """Raised when required context parameters (e.g. system_id) are absent."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"missing context parameters: {', '.join(self.missing)}")


class ImportFileError(ImportPipelineError):
    """Raised when an upload cannot be read as UTF-8 text."""
    pass


def run_import(
    raw_text: str | None,
    schema: Sequence[ExpectedColumn],
    validators: ValidatorTable,
    context_params: Mapping[str, Any] | None = None,
    policy: CommitPolicy = CommitPolicy.SKIP_INVALID,
    *,
    extra_fields: ExtraFieldPolicy = ExtraFieldPolicy.DROP,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    show_progress: bool = False,
    keep_records: bool = False,
) -> PreviewResult:
    """Tokenize, reconcile and validate a whole file.

    Args:
        raw_text: Uploaded file content (optional leading BOM)
        schema: Expected columns for the entity type
        validators: field_key -> validator
        context_params: Extra parameters forwarded with the commit
        policy: Commit policy recorded on the preview
        extra_fields: Handling of values beyond the header width
        sample_size: Maximum number of valid rows in the preview sample
        show_progress: Show a tqdm bar while validating (TTY only)
        keep_records: Keep tokenized records on the preview (inspection)

    Returns:
        PreviewResult with valid rows and row errors

    Raises:
        StructuralError: a required column is missing from the header
    """
    tokenized = tokenize(raw_text)
    mapping = reconcile(tokenized.header, schema)
    if mapping.missing:
        logger.error("required columns missing: %s", ", ".join(mapping.missing))
        raise StructuralError(mapping.missing, mapping.unmatched)
    if mapping.unmatched:
        logger.info("ignoring unmatched columns: %s", ", ".join(mapping.unmatched))

    valid_rows = []
    row_errors: list[RowError] = []
    with RowProgressTracker(len(tokenized.records), enabled=show_progress) as progress:
        for record in tokenized.records:
            result = validate_row(record, mapping, validators, extra_fields=extra_fields)
            if isinstance(result, RowError):
                row_errors.append(result)
                progress.advance(valid=False)
            else:
                valid_rows.append(result)
                progress.advance(valid=True)

    logger.info(
        "validated rows=%d valid=%d invalid=%d",
        len(tokenized.records),
        len(valid_rows),
        len(row_errors),
    )
    return PreviewResult(
        header=tokenized.header,
        mapping=mapping,
        total_rows=len(tokenized.records),
        valid_rows=valid_rows,
        row_errors=row_errors,
        sample=valid_rows[: max(sample_size, 0)],
        policy=policy,
        context_params=dict(context_params) if context_params else None,
        records=tokenized.records if keep_records else None,
    )


def merge_outcomes(preview: PreviewResult, server_failures: Mapping[int, str]) -> list[RowOutcome]:
    """Build exactly one outcome per data row, ordered by row index.

    Args:
        preview: Validation result of the file
        server_failures: file row index -> server rejection reason
            (only indices of rows that were submitted)

    Raises:
        ImportPipelineError: if the partition is not total and non-overlapping
    """
    outcomes: dict[int, RowOutcome] = {}
    for err in preview.row_errors:
        outcomes[err.row_index] = ValidationRejected(row_index=err.row_index, messages=tuple(err.messages))
    for row in preview.valid_rows:
        if row.row_index in outcomes:
            raise ImportPipelineError(f"row {row.row_index} is both valid and invalid")
        reason = server_failures.get(row.row_index)
        if reason is None:
            outcomes[row.row_index] = Committed(row_index=row.row_index)
        else:
            outcomes[row.row_index] = ServerRejected(row_index=row.row_index, reason=reason)

    if len(outcomes) != preview.total_rows:
        raise ImportPipelineError(
            f"row accounting mismatch: {len(outcomes)} outcomes for {preview.total_rows} rows"
        )
    return [outcomes[idx] for idx in sorted(outcomes)]


def _place_server_errors(
    preview: PreviewResult, response: CommitResponse
) -> tuple[dict[int, str], list[str]]:
    """Map batch positions (1-based) in the server response back to file row indices."""
    submitted = preview.valid_rows
    failures: dict[int, str] = {}
    unplaced: list[str] = []
    for err in response.errors:
        if 1 <= err.row <= len(submitted):
            row_index = submitted[err.row - 1].row_index
            if row_index in failures:
                logger.warning("duplicate server error for row=%d ignored: %s", row_index, err.error)
                continue
            failures[row_index] = err.error
        else:
            logger.warning("server error for unknown batch row=%d: %s", err.row, err.error)
            unplaced.append(f"batch row {err.row}: {err.error}")
    return failures, unplaced


def commit(
    preview: PreviewResult,
    committer: BatchCommitter,
    context_params: Mapping[str, Any] | None = None,
    *,
    confirmed: bool = False,
    row_transform: RowTransform | None = None,
    max_rows: int | None = None,
    required_context: Sequence[str] = (),
) -> ImportResult:
    """Submit the valid rows of a preview as one batch and merge the outcomes.

    Only valid rows are submitted. With zero valid rows no call is made.

    Raises:
        ContextError: required context parameters are absent
        CommitNotConfirmedError: REVIEW_INVALID preview with errors, not confirmed
        BatchLimitError: more valid rows than max_rows
        CommitError: transport/backend failure (from the committer, unchanged)
    """
    started_at = datetime.now(UTC)
    params = dict(context_params) if context_params is not None else (preview.context_params or {})

    missing_context = [key for key in required_context if not params.get(key)]
    if missing_context:
        raise ContextError(missing_context)
    if preview.needs_confirmation and not confirmed:
        raise CommitNotConfirmedError(preview.error_count)

    rows = preview.valid_rows
    if max_rows is not None and len(rows) > max_rows:
        raise BatchLimitError(len(rows), max_rows)

    server_failures: dict[int, str] = {}
    unplaced: list[str] = []
    response: CommitResponse | None = None
    if rows:
        payload = [row_transform(dict(r.data)) if row_transform else dict(r.data) for r in rows]
        logger.info("committing rows=%d", len(payload))
        response = committer.commit_batch(payload, params or None)
        server_failures, unplaced = _place_server_errors(preview, response)
    else:
        logger.info("no valid rows to commit")

    outcomes = merge_outcomes(preview, server_failures)
    success_count = sum(1 for o in outcomes if isinstance(o, Committed))
    failed_count = len(outcomes) - success_count

    if response is not None:
        derived_success = len(rows) - len(server_failures)
        if response.success != derived_success or response.failed != len(server_failures) + len(unplaced):
            # 件数はサーバ申告ではなく行単位のエラーから算出する
            logger.warning(
                "server counters disagree with per-row errors: server success=%d failed=%d, derived success=%d failed=%d",
                response.success,
                response.failed,
                derived_success,
                len(server_failures),
            )

    per_row_errors = [
        RowFailure(row=o.row_index, error=o.reason, fate=o.fate)
        for o in outcomes
        if not isinstance(o, Committed)
    ]
    finished_at = datetime.now(UTC)
    return ImportResult(
        success_count=success_count,
        failed_count=failed_count,
        per_row_errors=per_row_errors,
        outcomes=outcomes,
        started_at=started_at,
        finished_at=finished_at,
        elapsed_seconds=(finished_at - started_at).total_seconds(),
        unplaced_errors=unplaced,
    )


def preview_entity(
    raw_text: str | None,
    entity: EntityImportConfig,
    context_params: Mapping[str, Any] | None = None,
    policy: CommitPolicy = CommitPolicy.SKIP_INVALID,
    *,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    show_progress: bool = False,
    keep_records: bool = False,
) -> PreviewResult:
    """run_import() using an entity catalog entry."""
    return run_import(
        raw_text,
        entity.schema,
        entity.validators,
        context_params,
        policy,
        extra_fields=ExtraFieldPolicy(entity.extra_fields),
        sample_size=sample_size,
        show_progress=show_progress,
        keep_records=keep_records,
    )


def commit_entity(
    preview: PreviewResult,
    entity: EntityImportConfig,
    committer: BatchCommitter,
    context_params: Mapping[str, Any] | None = None,
    *,
    confirmed: bool = False,
) -> ImportResult:
    """commit() using an entity catalog entry (row transform, row limit, context)."""
    return commit(
        preview,
        committer,
        context_params,
        confirmed=confirmed,
        row_transform=get_row_transform(entity.row_transform),
        max_rows=entity.max_rows,
        required_context=entity.required_context,
    )


def read_import_file(path: Path) -> str:
    """Read an upload as UTF-8 text.

    Raises:
        ImportFileError: if the file is missing, unreadable or not UTF-8
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ImportFileError(f"file not found: {path}") from e
    except UnicodeDecodeError as e:
        raise ImportFileError(f"file is not valid UTF-8: {path}") from e
    except OSError as e:
        raise ImportFileError(f"error reading {path}: {e}") from e


def import_file(
    path: Path,
    entity: EntityImportConfig,
    committer: BatchCommitter,
    context_params: Mapping[str, Any] | None = None,
    policy: CommitPolicy = CommitPolicy.SKIP_INVALID,
    *,
    confirmed: bool = False,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> tuple[PreviewResult, ImportResult]:
    """Preview and commit one CSV file for a configured entity."""
    raw_text = read_import_file(path)
    preview = preview_entity(raw_text, entity, context_params, policy, sample_size=sample_size)
    result = commit_entity(preview, entity, committer, context_params, confirmed=confirmed)
    return preview, result

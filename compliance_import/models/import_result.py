from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .record import Record
from .row_outcome import RowError, RowFate, RowOutcome, ValidatedRow
from .schema import ColumnMapping

"""Preview and result models for the bulk CSV importer.

PreviewResult is produced before any network interaction (counts + sample).
ImportResult merges client-side and server-side rejections into one shape.
"""

__all__ = [
    "CommitPolicy",
    "PreviewResult",
    "RowFailure",
    "ImportResult",
]


class CommitPolicy(Enum):
    """How invalid rows affect a commit.

    - SKIP_INVALID: commit the valid rows, report the rest
    - REVIEW_INVALID: the caller must confirm the commit when any row is invalid
    """
    SKIP_INVALID = "skip_invalid"
    REVIEW_INVALID = "review_invalid"


@dataclass(frozen=True)
class PreviewResult:
    """Validation outcome of a whole file, before commit."""
    header: list[str]
    mapping: ColumnMapping
    total_rows: int  # データ行数 (空行除外)
    valid_rows: list[ValidatedRow]
    row_errors: list[RowError]
    sample: list[ValidatedRow]  # 先頭 N 件の有効行
    policy: CommitPolicy = CommitPolicy.SKIP_INVALID
    context_params: dict[str, Any] | None = None
    records: list[Record] | None = None  # Kept for inspection only

    @property
    def valid_count(self) -> int:
        return len(self.valid_rows)

    @property
    def error_count(self) -> int:
        return len(self.row_errors)

    @property
    def needs_confirmation(self) -> bool:
        return self.policy is CommitPolicy.REVIEW_INVALID and bool(self.row_errors)


@dataclass(frozen=True)
class RowFailure:
    """One entry of the unified per-row error report."""
    row: int  # 1-based data row number
    error: str
    fate: RowFate


@dataclass(frozen=True)
class ImportResult:
    """Aggregated result of one import attempt.

    success_count + failed_count always equals the number of data rows and
    outcomes holds exactly one entry per data row, ordered by row index.
    """
    success_count: int
    failed_count: int
    per_row_errors: list[RowFailure]
    outcomes: list[RowOutcome] = field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    elapsed_seconds: float = 0.0
    # Server errors pointing outside the submitted batch (not attributable to a row)
    unplaced_errors: list[str] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return self.success_count + self.failed_count

    def count(self, fate: RowFate) -> int:
        return sum(1 for o in self.outcomes if o.fate is fate)

    def fate_of(self, row_index: int) -> RowFate | None:
        for o in self.outcomes:
            if o.row_index == row_index:
                return o.fate
        return None

    def errors_as_dicts(self) -> list[dict[str, Any]]:
        """Per-row errors in the ``{row, error}`` shape used by the commit endpoint."""
        return [{"row": e.row, "error": e.error} for e in self.per_row_errors]

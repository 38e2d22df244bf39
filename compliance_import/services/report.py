from __future__ import annotations

from pathlib import Path

import pandas as pd

from ..models.import_result import ImportResult, PreviewResult

"""Tabular reports built with pandas.

- outcomes_frame / write_outcome_report: one line per data row with its fate
  (downloadable error report)
- preview_frame: preview sample for CLI inspection
"""

__all__ = [
    "OUTCOME_COLUMNS",
    "outcomes_frame",
    "write_outcome_report",
    "preview_frame",
    "row_errors_frame",
]

OUTCOME_COLUMNS = ["row", "fate", "error"]


def outcomes_frame(result: ImportResult, *, failures_only: bool = False) -> pd.DataFrame:
    """One line per data row: row number, fate value, reason (empty when committed)."""
    records = [
        {"row": o.row_index, "fate": o.fate.value, "error": o.reason or ""}
        for o in result.outcomes
    ]
    df = pd.DataFrame.from_records(records, columns=OUTCOME_COLUMNS)
    if failures_only:
        df = df[df["fate"] != "committed"].reset_index(drop=True)
    return df


def write_outcome_report(result: ImportResult, path: Path, *, failures_only: bool = False) -> Path:
    """Write the outcome table as UTF-8 CSV (BOM-prefixed for spreadsheet tools)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    outcomes_frame(result, failures_only=failures_only).to_csv(path, index=False, encoding="utf-8-sig")
    return path


def preview_frame(preview: PreviewResult) -> pd.DataFrame:
    """Preview sample as a DataFrame (row number first, columns in mapping order)."""
    columns = ["row", *preview.mapping.field_keys()]
    records = [{"row": r.row_index, **r.data} for r in preview.sample]
    return pd.DataFrame.from_records(records, columns=columns)


def row_errors_frame(preview: PreviewResult) -> pd.DataFrame:
    records = [{"row": e.row_index, "error": e.error} for e in preview.row_errors]
    return pd.DataFrame.from_records(records, columns=["row", "error"])

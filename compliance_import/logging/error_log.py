from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import UNKNOWN_ROW, ErrorRecord
from ..models.import_result import ImportResult
from ..models.row_outcome import RowFate

"""Error log generation & buffering.

- JSON Lines, fixed schema (no extra keys)
- one `logs/errors-YYYYMMDD-HHMMSS.log` (UTC) per run, created on first flush
- records are buffered and written in one go by flush()

Only the CLI writes error logs; the import pipeline itself performs no I/O.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "record_import_errors",
    "ERROR_TYPE_BY_FATE",
    "record_file_error",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"

ERROR_TYPE_BY_FATE = {
    RowFate.VALIDATION_REJECTED: "VALIDATION_ERROR",
    RowFate.SERVER_REJECTED: "SERVER_REJECTED",
}


class ErrorLogBuffer:
    """In-memory buffer for error records. flush() appends JSON Lines.

    Not thread-safe (imports run serially).
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir or LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the log path, or None if nothing was written."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp


def record_import_errors(buffer: ErrorLogBuffer, file: str, entity: str, result: ImportResult) -> int:
    """Append one ErrorRecord per rejected row of an import. Returns the count added."""
    added = 0
    for failure in result.per_row_errors:
        buffer.append(
            ErrorRecord.create(
                file=file,
                entity=entity,
                row=failure.row,
                error_type=ERROR_TYPE_BY_FATE.get(failure.fate, "IMPORT_ERROR"),
                message=failure.error,
            )
        )
        added += 1
    for message in result.unplaced_errors:
        record_file_error(buffer, file, entity, "SERVER_UNKNOWN_ROW", message)
        added += 1
    return added


def record_file_error(buffer: ErrorLogBuffer, file: str, entity: str, error_type: str, message: str) -> None:
    """Append a file-level entry (row = -1)."""
    buffer.append(ErrorRecord.create(file=file, entity=entity, row=UNKNOWN_ROW, error_type=error_type, message=message))

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for error logging.

Structured error record for the JSON Lines error log written by the CLI.
row=-1 is a sentinel for file-level errors (structural problems, transport
failures, server errors referencing a row outside the submitted batch).
"""

__all__ = [
    "ErrorRecord",
    "UNKNOWN_ROW",
]

UNKNOWN_ROW = -1


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: CSV filename being imported
        entity: Entity type key (e.g. "systems")
        row: 1-based data row number, -1 when the row is unknown
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Validation message, server reason or transport error
    """
    timestamp: str  # ISO8601 UTC
    file: str
    entity: str
    row: int  # 行番号。不明な場合 -1 許容
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, entity: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            entity=entity,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON Lines entry (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)

    @property
    def is_file_level(self) -> bool:
        return self.row == UNKNOWN_ROW

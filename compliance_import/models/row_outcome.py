from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Row-level validation and outcome models.

ValidatedRow / RowError are the two mutually exclusive validator results.
Committed / ValidationRejected / ServerRejected form the final per-row outcome:
every data row of an import ends in exactly one of them.

State transitions: tokenized → (validated | validation_rejected)
                   validated → (committed | server_rejected)
"""

__all__ = [
    "ValidatedRow",
    "RowError",
    "RowFate",
    "Committed",
    "ValidationRejected",
    "ServerRejected",
    "RowOutcome",
]


@dataclass(frozen=True)
class ValidatedRow:
    """A record that passed every field check."""
    row_index: int
    data: dict[str, Any]  # field_key -> value


@dataclass(frozen=True)
class RowError:
    """A record that failed one or more field checks. Never raised."""
    row_index: int
    messages: list[str] = field(default_factory=list)

    @property
    def error(self) -> str:
        return "; ".join(self.messages)


class RowFate(Enum):
    """Final fate of a data row after an import attempt."""
    COMMITTED = "committed"
    VALIDATION_REJECTED = "validation_rejected"
    SERVER_REJECTED = "server_rejected"


@dataclass(frozen=True)
class Committed:
    row_index: int

    @property
    def fate(self) -> RowFate:
        return RowFate.COMMITTED

    @property
    def reason(self) -> str | None:
        return None


@dataclass(frozen=True)
class ValidationRejected:
    row_index: int
    messages: tuple[str, ...]

    @property
    def fate(self) -> RowFate:
        return RowFate.VALIDATION_REJECTED

    @property
    def reason(self) -> str:
        return "; ".join(self.messages)


@dataclass(frozen=True)
class ServerRejected:
    row_index: int
    reason: str

    @property
    def fate(self) -> RowFate:
        return RowFate.SERVER_REJECTED


RowOutcome = Committed | ValidationRejected | ServerRejected

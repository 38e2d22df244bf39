from __future__ import annotations

from dataclasses import dataclass, field

"""Record model for the bulk CSV importer.

A Record is one tokenized data row. Its row_index is the 1-based position
among data rows (header = row 0, blank lines not counted) and stays stable
through reconciliation, validation and commit so diagnostics point at the
line a user sees in a spreadsheet editor.
"""

__all__ = [
    "Record",
    "TokenizedFile",
]


@dataclass(frozen=True)
class Record:
    """Logical representation of a single CSV data row after tokenization."""
    row_index: int  # 1-based data row number
    values: dict[str, str]  # Header name -> trimmed value (first duplicate header wins)
    fields: tuple[str, ...] = ()  # Trimmed values aligned to header positions
    extra_values: tuple[str, ...] = ()  # Values beyond the header width

    def value_at(self, header_index: int) -> str:
        """Trimmed value at a header position, empty string if absent."""
        if 0 <= header_index < len(self.fields):
            return self.fields[header_index]
        return ""

    @property
    def has_extra_values(self) -> bool:
        return bool(self.extra_values)


@dataclass(frozen=True)
class TokenizedFile:
    """Tokenizer output: header plus records in file order."""
    header: list[str] = field(default_factory=list)
    records: list[Record] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

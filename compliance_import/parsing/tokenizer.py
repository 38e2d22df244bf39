from __future__ import annotations

import logging

from ..models.record import Record, TokenizedFile

"""CSV tokenizer.

Turns raw uploaded text into a header row and ordered Records.

- Leading BOM is stripped before scanning.
- Single pass, two states (normal / in-quotes). Inside quotes, commas and
  newlines are literal and "" is an escaped quote.
- Outside quotes, ',' ends a field and '\\n', '\\r\\n' or a bare '\\r' ends a
  logical line.
- Logical lines that are empty after trimming are skipped and are not
  counted as data rows.
- The first non-blank logical line is the header; later lines are zipped
  against it positionally (missing trailing fields -> "").
- An unterminated quote swallows the rest of the input as quoted content;
  the scan still terminates.
"""

__all__ = [
    "BOM",
    "tokenize",
    "split_logical_lines",
]

BOM = "\ufeff"

logger = logging.getLogger(__name__)


def split_logical_lines(text: str) -> list[list[str]]:
    """Split CSV text into logical lines of untrimmed field values.

    Blank logical lines are dropped. Runs in O(len(text)) without backtracking.
    """
    lines: list[list[str]] = []
    fields: list[str] = []
    buf: list[str] = []
    in_quotes = False
    line_start = 0
    n = len(text)
    i = 0

    while i < n:
        ch = text[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < n and text[i + 1] == '"':
                    buf.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                buf.append(ch)
            i += 1
            continue

        if ch == '"':
            in_quotes = True
        elif ch == ",":
            fields.append("".join(buf))
            buf = []
        elif ch == "\n" or ch == "\r":
            fields.append("".join(buf))
            buf = []
            if text[line_start:i].strip():
                lines.append(fields)
            fields = []
            if ch == "\r" and i + 1 < n and text[i + 1] == "\n":
                i += 1
            line_start = i + 1
        else:
            buf.append(ch)
        i += 1

    # 最終行 (改行なし / 閉じていない引用符を含む)
    if line_start < n:
        fields.append("".join(buf))
        if text[line_start:].strip():
            lines.append(fields)
    if in_quotes:
        logger.warning("unterminated quoted field; remainder of input treated as quoted text")
    return lines


def _build_record(row_index: int, header: list[str], raw_fields: list[str]) -> Record:
    width = len(header)
    trimmed = [v.strip() for v in raw_fields]
    fields = tuple(trimmed[j] if j < len(trimmed) else "" for j in range(width))
    values: dict[str, str] = {}
    for name, value in zip(header, fields):
        # 重複ヘッダは先勝ち
        values.setdefault(name, value)
    return Record(
        row_index=row_index,
        values=values,
        fields=fields,
        extra_values=tuple(trimmed[width:]),
    )


def tokenize(raw_text: str | None) -> TokenizedFile:
    """Tokenize raw CSV text into a header and 1-based indexed records.

    Empty input (or input holding only a BOM / blank lines) yields an empty
    header and no records; it is not an error.
    """
    if not raw_text:
        return TokenizedFile()
    text = raw_text[1:] if raw_text.startswith(BOM) else raw_text

    lines = split_logical_lines(text)
    if not lines:
        return TokenizedFile()

    header = [h.strip() for h in lines[0]]
    records = [
        _build_record(row_index, header, raw_fields)
        for row_index, raw_fields in enumerate(lines[1:], start=1)
    ]
    logger.debug("tokenized columns=%d records=%d", len(header), len(records))
    return TokenizedFile(header=header, records=records)

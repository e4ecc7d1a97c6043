"""Decoder for the sign-up sheet's published CSV export.

CSV header (exact, case-sensitive keys recognized):
``name, item, qty, note, createdAt``

Unrecognized columns are ignored and missing ones read as empty strings. The
line splitter is deliberately lenient (RFC 4180-lite): quotes toggle quoting
wherever they appear, ``""`` inside quotes is a literal quote, and quoted
fields never span lines.

Output order is the reverse of the sheet's row order so the most recently
appended row comes first.
"""

from __future__ import annotations

import re

from ..logging_setup import get_logger
from ..models import RECORD_FIELDS, SignupRecord

_LINE_SPLIT_RE = re.compile(r"\r?\n")

_logger = get_logger("potluck.ingest.csv_decoder")


def split_csv_line(line: str) -> list[str]:
    """Split one CSV line into raw (untrimmed) field values.

    >>> split_csv_line('Alex,"Chips, salted",2,')
    ['Alex', 'Chips, salted', '2', '']
    """

    out: list[str] = []
    cur: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        c = line[i]
        if c == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                cur.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif c == "," and not in_quotes:
            out.append("".join(cur))
            cur = []
        else:
            cur.append(c)
        i += 1
    out.append("".join(cur))
    return out


def _trim(s: str) -> str:
    # Spreadsheet exports may open with a byte-order mark.
    return s.strip().strip("\ufeff").strip()


def _row_mapping(headers: list[str], values: list[str]) -> dict[str, str]:
    row: dict[str, str] = {}
    for i, h in enumerate(headers):
        if h not in RECORD_FIELDS:
            continue
        row[h] = _trim(values[i]) if i < len(values) else ""
    return row


def decode(text: str) -> list[SignupRecord]:
    """Decode CSV text into records, most recently appended row first.

    Rows where both ``name`` and ``item`` are blank are dropped. Text with
    fewer than two lines (no data rows) yields an empty list.
    """

    lines = _LINE_SPLIT_RE.split(_trim(text))
    if len(lines) < 2:
        return []

    headers = [_trim(h) for h in split_csv_line(lines[0])]
    records: list[SignupRecord] = []
    for line in lines[1:]:
        rec = SignupRecord.from_mapping(_row_mapping(headers, split_csv_line(line)))
        if rec.is_present():
            records.append(rec)

    _logger.debug("decoded %d of %d CSV rows", len(records), len(lines) - 1)
    records.reverse()
    return records


__all__ = ["decode", "split_csv_line"]

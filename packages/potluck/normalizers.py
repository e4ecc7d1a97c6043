"""Record normalization: dedup fingerprints, timestamps and display strings.

The fingerprint deliberately ignores ``createdAt``: the spreadsheet rewrites
timestamps on its own schedule, so two rows that differ only by timestamp,
letter case or surrounding whitespace are the same contribution.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from .models import Contributor, SignupRecord

FINGERPRINT_SEPARATOR = "|"

# Placeholder shown for a contributor who left the name blank.
ANONYMOUS_NAME = "Anonyme"

# Formats the spreadsheet falls back to when it reformats an ISO timestamp.
_SHEET_DATETIME_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
)


def _norm(value: Any) -> str:
    return ("" if value is None else str(value)).strip().lower()


def fingerprint(record: SignupRecord | Mapping[str, Any]) -> str:
    """Return the dedup key for a record.

    Lower-cased, trimmed ``name``, ``item``, ``qty`` and ``note`` joined with
    ``|``. Accepts a :class:`SignupRecord` or any mapping with those keys.
    """

    if isinstance(record, SignupRecord):
        parts = (record.name, record.item, record.qty, record.note)
    else:
        parts = tuple(record.get(k) for k in ("name", "item", "qty", "note"))
    return FINGERPRINT_SEPARATOR.join(_norm(p) for p in parts)


def parse_created_at(value: str | None) -> float:
    """Return epoch seconds for a ``createdAt`` value, or ``0.0``.

    Accepts ISO-8601 (a trailing ``Z`` included; naive values read as UTC)
    and the sheet's ``M/D/YYYY[ H:MM[:SS]]`` reformatting. Anything else is
    not an error: it sorts as the epoch, i.e. oldest.
    """

    if value is None:
        return 0.0
    s = value.strip()
    if not s:
        return 0.0

    dt: datetime | None = None
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        for fmt in _SHEET_DATETIME_FORMATS:
            try:
                dt = datetime.strptime(s, fmt)
                break
            except ValueError:
                continue
    if dt is None:
        return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    try:
        return dt.timestamp()
    except (OverflowError, OSError, ValueError):
        return 0.0


def utc_now_iso() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""

    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def display_name(name: str) -> str:
    return name.strip() or ANONYMOUS_NAME


def describe_contributor(contributor: Contributor) -> str:
    """Render ``name[, qty][ . note]``; empty decorations are omitted."""

    text = display_name(contributor.name)
    if contributor.qty:
        text += f", {contributor.qty}"
    if contributor.note:
        text += f" . {contributor.note}"
    return text


__all__ = [
    "ANONYMOUS_NAME",
    "FINGERPRINT_SEPARATOR",
    "fingerprint",
    "parse_created_at",
    "utc_now_iso",
    "display_name",
    "describe_contributor",
]

"""Merge a freshly fetched snapshot into the in-memory list.

Incoming (authoritative) rows win on fingerprint collisions. Previous rows
whose fingerprint the snapshot does not contain yet are kept; these are the
optimistic local submissions the sheet has not published. The result is
sorted newest first with a stable sort, so equal timestamps keep insertion
order (incoming before retained local rows).
"""

from __future__ import annotations

from .logging_setup import get_logger
from .models import Records, SignupRecord
from .normalizers import fingerprint, parse_created_at

_logger = get_logger("potluck.reconcile")


def sort_newest_first(records: Records) -> list[SignupRecord]:
    return sorted(records, key=lambda r: parse_created_at(r.created_at), reverse=True)


def reconcile(previous: Records, incoming: Records) -> tuple[SignupRecord, ...]:
    """Return the merged list, unique by fingerprint, newest first."""

    by_key: dict[str, SignupRecord] = {}
    for rec in incoming:
        # Later incoming duplicates replace the value but keep the first slot.
        by_key[fingerprint(rec)] = rec
    n_incoming = len(by_key)

    for rec in previous:
        by_key.setdefault(fingerprint(rec), rec)

    kept_local = len(by_key) - n_incoming
    if kept_local:
        _logger.debug("kept %d local record(s) not yet in the snapshot", kept_local)

    # ``sorted(..., reverse=True)`` is stable for equal keys.
    return tuple(sort_newest_first(by_key.values()))


__all__ = ["reconcile", "sort_newest_first"]

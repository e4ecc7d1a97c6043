"""Group the reconciled list by item for display.

The projection is pure: it never mutates the records it reads and is
recomputed from scratch whenever the list changes. Items are keyed
case-insensitively; the display text comes from the first (most recent)
record for each key. Groups are ordered with a French collation so accented
items sit next to their unaccented counterparts (``Câpres`` between ``Café``
and ``Chips``) instead of after ``z`` as plain code-point order would put them.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field

from .models import Contributor, ItemGroup, Records

# Ligatures that French collation expands before comparing base letters.
_EXPANSIONS = str.maketrans({"œ": "oe", "Œ": "OE", "æ": "ae", "Æ": "AE"})

# Punctuation and symbols in collation order; all sort before digits and letters.
_PUNCTUATION_ORDER = "_-‐–—,;:!¡?¿.…'‘’\"“”«»()[]{}§¶@*/\\&#%`´^¨+±<=>|~¤$€£¥"

# Accent weights, lowest first: an unaccented letter sorts before any of these.
_MARK_WEIGHTS: dict[str, int] = {
    "\u0301": 1,  # acute
    "\u0300": 2,  # grave
    "\u0306": 3,  # breve
    "\u0302": 4,  # circumflex
    "\u030c": 5,  # caron
    "\u030a": 6,  # ring above
    "\u0308": 7,  # diaeresis
    "\u030b": 8,  # double acute
    "\u0303": 9,  # tilde
    "\u0307": 10,  # dot above
    "\u0327": 11,  # cedilla
    "\u0328": 12,  # ogonek
    "\u0304": 13,  # macron
}


def _strip_marks(s: str) -> str:
    decomposed = unicodedata.normalize("NFD", s)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _primary_weight(ch: str) -> tuple[int, int]:
    if ch.isspace():
        return 0, 0
    rank = _PUNCTUATION_ORDER.find(ch)
    if rank >= 0:
        return 0, 1 + rank
    category = unicodedata.category(ch)[0]
    if category in "PSZC":
        return 0, len(_PUNCTUATION_ORDER) + ord(ch)
    if category == "N":
        return 1, ord(ch)
    return 2, ord(ch)


def _accent_weights(s: str) -> tuple[tuple[int, ...], ...]:
    # One tuple of mark weights per base character.
    out: list[list[int]] = []
    for ch in unicodedata.normalize("NFD", s):
        if unicodedata.combining(ch) and out:
            out[-1].append(_MARK_WEIGHTS.get(ch, 100 + ord(ch)))
        else:
            out.append([])
    return tuple(tuple(marks) for marks in out)


def french_collation_key(
    text: str,
) -> tuple[tuple[tuple[int, int], ...], tuple[tuple[int, ...], ...], tuple[bool, ...], str]:
    """Sort key approximating French collation.

    Levels, compared in order:
    1. base characters, ignoring accents and case; whitespace and
       punctuation before digits, digits before letters;
    2. accents, position by position (e < é < è < ê < ë);
    3. case (lowercase before uppercase);
    4. the raw text, so the order is total.
    """

    s = unicodedata.normalize("NFC", text.translate(_EXPANSIONS))
    base = _strip_marks(s)
    primary = tuple(_primary_weight(ch) for ch in base.casefold())
    tertiary = tuple(ch.isupper() for ch in base)
    return primary, _accent_weights(s), tertiary, text


@dataclass(slots=True)
class _GroupBuilder:
    item: str
    qty: str = ""
    contributors: list[Contributor] = field(default_factory=list)

    def freeze(self) -> ItemGroup:
        return ItemGroup(item=self.item, qty=self.qty, contributors=tuple(self.contributors))


def project(records: Records) -> tuple[ItemGroup, ...]:
    """Return item groups for display, sorted by French collation.

    Records whose item is blank are skipped. Each group keeps the first
    non-empty quantity it sees as its representative ``qty``.
    """

    by_key: dict[str, _GroupBuilder] = {}
    for rec in records:
        key = rec.item.strip().lower()
        if not key:
            continue
        group = by_key.get(key)
        if group is None:
            group = by_key[key] = _GroupBuilder(item=rec.item)
        if not group.qty and rec.qty:
            group.qty = rec.qty
        group.contributors.append(Contributor(name=rec.name, qty=rec.qty, note=rec.note))

    ordered = sorted(by_key.values(), key=lambda g: french_collation_key(g.item))
    return tuple(g.freeze() for g in ordered)


__all__ = ["french_collation_key", "project"]

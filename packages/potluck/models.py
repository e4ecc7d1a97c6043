"""Record, projection and form models for ``potluck``.

``SignupRecord`` is the single flat record shape shared by the CSV decoder,
the reconciliation engine and the optimistic insert path. Every field is a
string so rows stay CSV-friendly; the timestamp is kept verbatim because the
spreadsheet may reformat it (see :func:`potluck.normalizers.parse_created_at`).

Field order (exact):
    - name
    - item
    - qty
    - note
    - created_at (serialized as ``createdAt``)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, field_validator

# Column names of the published sheet, in CSV header order.
RECORD_FIELDS: tuple[str, ...] = ("name", "item", "qty", "note", "createdAt")

# Fields sent to the write endpoint and shown in the form.
FORM_FIELDS: tuple[str, ...] = ("name", "item", "qty", "note")


@dataclass(frozen=True, slots=True)
class SignupRecord:
    """One contribution: who brings what, how much, and when it was added."""

    name: str = ""
    item: str = ""
    qty: str = ""
    note: str = ""
    created_at: str = ""

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> SignupRecord:
        """Build a record from a row keyed by sheet column names.

        Missing or ``None`` values become empty strings and every value is
        trimmed.
        """

        def _get(key: str) -> str:
            v = row.get(key)
            return "" if v is None else str(v).strip()

        return cls(
            name=_get("name"),
            item=_get("item"),
            qty=_get("qty"),
            note=_get("note"),
            created_at=_get("createdAt"),
        )

    def is_present(self) -> bool:
        """Return ``True`` when the row names a person or an item."""

        return bool(self.name.strip() or self.item.strip())

    def as_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "item": self.item,
            "qty": self.qty,
            "note": self.note,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class Contributor:
    """A person listed under an item group."""

    name: str
    qty: str
    note: str


@dataclass(frozen=True, slots=True)
class ItemGroup:
    """An item with everyone bringing it.

    Attributes
    ----------
    item:
        Display text, taken from the most recent record for this item.
    qty:
        First non-empty quantity among the group's records; display only.
    contributors:
        Contributors in list order (most recent first).
    """

    item: str
    qty: str
    contributors: tuple[Contributor, ...]


class SignupForm(BaseModel):
    """Values typed by the user before submission.

    Values are kept as typed; trimming happens when the optimistic record is
    built so the write endpoint receives exactly what the user entered.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    item: str = ""
    qty: str = ""
    note: str = ""

    @field_validator("name", "item", "qty", "note", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def missing_required(self) -> list[str]:
        """Return the names of required fields that are blank."""

        return [f for f in ("name", "item") if not getattr(self, f).strip()]

    def as_payload(self) -> dict[str, str]:
        return {f: getattr(self, f) for f in FORM_FIELDS}

    def to_record(self, created_at: str) -> SignupRecord:
        return SignupRecord(
            name=self.name.strip(),
            item=self.item.strip(),
            qty=self.qty.strip(),
            note=self.note.strip(),
            created_at=created_at,
        )

    def cleared(self) -> SignupForm:
        """Return a blank form that keeps the contributor's name."""

        return self.model_copy(update={"item": "", "qty": "", "note": ""})


# Generic collections
Records: TypeAlias = Iterable[SignupRecord]
"""Any iterable of records; reconciliation and projection accept this."""


__all__ = [
    "RECORD_FIELDS",
    "FORM_FIELDS",
    "SignupRecord",
    "Contributor",
    "ItemGroup",
    "SignupForm",
    "Records",
]

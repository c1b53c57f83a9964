from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


def _clean(value: str | None) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass(frozen=True)
class TransactionFilter:
    """Optional criteria shared by the list, stats and export queries.

    ``date_from`` and ``date_to`` are inclusive and compared as strings,
    which matches date order for ``YYYY-MM-DD`` values. ``q`` is a
    case-insensitive substring match against description, tags or account.
    """

    date_from: str | None = None
    date_to: str | None = None
    category: str | None = None
    q: str | None = None

    def __post_init__(self) -> None:
        for name in ("date_from", "date_to", "category", "q"):
            object.__setattr__(self, name, _clean(getattr(self, name)))

    @classmethod
    def from_params(cls, params: Mapping[str, str | None]) -> "TransactionFilter":
        return cls(
            date_from=params.get("from"),
            date_to=params.get("to"),
            category=params.get("category"),
            q=params.get("q"),
        )

    def where(self) -> tuple[str, list[str]]:
        conditions: list[str] = []
        params: list[str] = []
        if self.date_from:
            conditions.append("date >= ?")
            params.append(self.date_from)
        if self.date_to:
            conditions.append("date <= ?")
            params.append(self.date_to)
        if self.category:
            conditions.append("category = ?")
            params.append(self.category)
        if self.q:
            conditions.append(
                "(description LIKE ? ESCAPE '\\' OR tags LIKE ? ESCAPE '\\'"
                " OR account LIKE ? ESCAPE '\\')"
            )
            like = _like_pattern(self.q)
            params.extend([like, like, like])
        where = " WHERE " + " AND ".join(conditions) if conditions else ""
        return where, params

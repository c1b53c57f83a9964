# finance_tracker/core/models.py
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Mapping, Optional

WRITABLE_FIELDS = ("date", "description", "category", "account", "amount", "tags")
REQUIRED_FIELDS = ("date", "description", "category", "account", "amount")


class _Missing:
    """Marker for a field the caller did not supply."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass
class Transaction:
    date: str
    description: str
    category: str
    account: str
    amount: float
    tags: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Transaction":
        return cls(
            id=row["id"],
            date=row["date"],
            description=row["description"],
            category=row["category"],
            account=row["account"],
            amount=float(row["amount"]),
            tags=row["tags"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {"id": data.pop("id"), **data}


@dataclass
class TransactionFields:
    """Writable transaction fields, each either present or ``MISSING``.

    Used for both create (all required fields must be present) and partial
    update (only present fields are written). ``tags`` may be present with a
    value of ``None`` to clear it.
    """

    date: Any = MISSING
    description: Any = MISSING
    category: Any = MISSING
    account: Any = MISSING
    amount: Any = MISSING
    tags: Any = MISSING

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TransactionFields":
        return cls(**{k: payload[k] for k in WRITABLE_FIELDS if k in payload})

    def present(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not MISSING
        }

    def missing(self, names=REQUIRED_FIELDS) -> List[str]:
        return [name for name in names if getattr(self, name) is MISSING]

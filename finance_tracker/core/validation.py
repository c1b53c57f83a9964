# finance_tracker/core/validation.py
import math
import re
from typing import Any, Dict

from finance_tracker.core.models import MISSING, TransactionFields

_DATE_RX = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_NUMERIC_RX = re.compile(r"\s*[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?\s*")

DATE_MESSAGE = "Use YYYY-MM-DD"
EMPTY_MESSAGE = "Cannot be empty"
AMOUNT_MESSAGE = "Must be numeric (positive=income, negative=expense)"


def is_valid_date(value: Any) -> bool:
    return isinstance(value, str) and _DATE_RX.fullmatch(value) is not None


def is_numeric(value: Any) -> bool:
    """Return True for finite numbers and numeric strings such as ``"-12.5"``."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        try:
            return math.isfinite(float(value))
        except OverflowError:
            return False
    if isinstance(value, str) and _NUMERIC_RX.fullmatch(value):
        return math.isfinite(float(value))
    return False


def is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def validate_fields(data: TransactionFields, partial: bool = False) -> Dict[str, str]:
    """Collect per-field error messages for *data*.

    Every violated field is reported; an empty dict means the fields are
    valid. When *partial* is false each required field must be present.
    """
    errors: Dict[str, str] = {}
    if not partial:
        for name in data.missing():
            errors[name] = "Required"

    if data.date is not MISSING and not is_valid_date(data.date):
        errors["date"] = DATE_MESSAGE
    for name in ("description", "category", "account"):
        value = getattr(data, name)
        if value is not MISSING and is_blank(value):
            errors[name] = EMPTY_MESSAGE
    if data.amount is not MISSING and not is_numeric(data.amount):
        errors["amount"] = AMOUNT_MESSAGE
    return errors

import pytest

from finance_tracker.core.models import MISSING, TransactionFields
from finance_tracker.core.validation import is_numeric, is_valid_date, validate_fields


@pytest.mark.parametrize("value", [5000, -120, 0, -4.5, "12", " -12.50 ", "+3", ".5", "1e3", "2E-2"])
def test_numeric_values(value):
    assert is_numeric(value)


@pytest.mark.parametrize(
    "value",
    [None, True, "", "ten", "12,50", "1_000", "nan", "inf", float("nan"), float("inf"), 10**400, "0x1A", [1]],
)
def test_non_numeric_values(value):
    assert not is_numeric(value)


@pytest.mark.parametrize("value", ["2024-03-01", "1999-12-31"])
def test_valid_dates(value):
    assert is_valid_date(value)


@pytest.mark.parametrize("value", ["2024-3-01", "03/01/2024", "2024-03-01 ", "2024-03-01\n", "20240301", None, 20240301])
def test_invalid_dates(value):
    assert not is_valid_date(value)


def test_fields_from_payload_keeps_known_keys():
    fields = TransactionFields.from_payload({"tags": None, "amount": 3, "id": 7, "extra": "x"})
    assert fields.present() == {"amount": 3, "tags": None}
    assert fields.date is MISSING
    assert fields.missing() == ["date", "description", "category", "account"]


def test_partial_validation_ignores_missing_fields():
    assert validate_fields(TransactionFields(tags="x"), partial=True) == {}
    assert validate_fields(TransactionFields(category=None), partial=True) == {"category": "Cannot be empty"}


def test_full_validation_passes_for_complete_record():
    fields = TransactionFields(
        date="2024-03-01", description="Salary", category="Income", account="Checking", amount=5000
    )
    assert validate_fields(fields) == {}

import sqlite3

import pytest

from finance_tracker.core.errors import NothingToUpdate, NotFound, ValidationError
from finance_tracker.core.models import TransactionFields
from finance_tracker.database import (
    connect,
    create_transaction,
    delete_transaction,
    get_transaction,
    query_transactions,
    update_transaction,
)
from finance_tracker.filters import TransactionFilter

SAMPLE = [
    dict(date="2024-03-01", description="Salary", category="Income", account="Checking", amount=5000, tags=None),
    dict(date="2024-03-05", description="Groceries at Fresh Market", category="Groceries", account="Visa", amount=-120, tags="food,weekly"),
    dict(date="2024-03-05", description="Coffee", category="Restaurants", account="Cash", amount=-4.5, tags=None),
    dict(date="2024-04-01", description="Bus pass", category="Transport", account="Checking", amount=-30, tags="commute"),
    dict(date="2024-04-15", description="Refund", category="Groceries", account="Visa", amount=20, tags="food"),
]


def _seed_transactions(conn):
    return [create_transaction(conn, TransactionFields(**row)) for row in SAMPLE]


def _ids(txs):
    return [tx.id for tx in txs]


def test_create_assigns_server_fields(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        tx = create_transaction(conn, TransactionFields(**SAMPLE[0]))

    assert tx.id == 1
    assert tx.date == "2024-03-01"
    assert tx.amount == 5000.0
    assert tx.tags is None
    assert tx.created_at
    assert tx.updated_at is None


def test_create_coerces_numeric_string_amount(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        tx = create_transaction(conn, TransactionFields(**{**SAMPLE[1], "amount": " -12.50"}))
    assert tx.amount == -12.5


def test_create_tags_are_optional(tmp_path):
    row = {k: v for k, v in SAMPLE[0].items() if k != "tags"}
    with connect(str(tmp_path / "txs.db")) as conn:
        tx = create_transaction(conn, TransactionFields(**row))
    assert tx.tags is None


def test_create_reports_every_invalid_field(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        with pytest.raises(ValidationError) as excinfo:
            create_transaction(
                conn,
                TransactionFields(date="03/01/2024", description="  ", category="Misc", account="Cash", amount="ten"),
            )
        assert query_transactions(conn) == []

    assert excinfo.value.errors == {
        "date": "Use YYYY-MM-DD",
        "description": "Cannot be empty",
        "amount": "Must be numeric (positive=income, negative=expense)",
    }


def test_create_requires_fields(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        with pytest.raises(ValidationError) as excinfo:
            create_transaction(conn, TransactionFields(date="2024-01-01"))

    assert excinfo.value.errors == {
        "description": "Required",
        "category": "Required",
        "account": "Required",
        "amount": "Required",
    }


def test_ids_keep_increasing_after_delete(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        created = _seed_transactions(conn)
        delete_transaction(conn, created[-1].id)
        tx = create_transaction(conn, TransactionFields(**SAMPLE[0]))
    assert tx.id == len(SAMPLE) + 1


def test_query_transactions_orders_newest_first(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        _seed_transactions(conn)
        assert _ids(query_transactions(conn)) == [5, 4, 3, 2, 1]


def test_query_transactions_filters(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        _seed_transactions(conn)

        march = query_transactions(conn, TransactionFilter(date_from="2024-03-01", date_to="2024-03-31"))
        assert _ids(march) == [3, 2, 1]

        groceries = query_transactions(conn, TransactionFilter(category="Groceries"))
        assert _ids(groceries) == [5, 2]

        by_description = query_transactions(conn, TransactionFilter(q="fresh"))
        assert _ids(by_description) == [2]

        by_tags = query_transactions(conn, TransactionFilter(q="FOOD"))
        assert _ids(by_tags) == [5, 2]

        by_account = query_transactions(conn, TransactionFilter(q="checking"))
        assert _ids(by_account) == [4, 1]

        combined = query_transactions(
            conn, TransactionFilter(date_from="2024-04-01", category="Groceries", q="food")
        )
        assert _ids(combined) == [5]


def test_query_transactions_search_is_literal(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        _seed_transactions(conn)
        assert query_transactions(conn, TransactionFilter(q="%")) == []
        assert query_transactions(conn, TransactionFilter(q="_")) == []


def test_empty_strings_do_not_filter(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        _seed_transactions(conn)
        rows = query_transactions(conn, TransactionFilter(date_from="", date_to="", category="", q=""))
    assert len(rows) == len(SAMPLE)


def test_get_transaction_missing_raises(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        _seed_transactions(conn)
        assert get_transaction(conn, 2).description == "Groceries at Fresh Market"
        with pytest.raises(NotFound):
            get_transaction(conn, 99)


def test_update_only_touches_supplied_fields(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        _seed_transactions(conn)
        before = get_transaction(conn, 2)
        after = update_transaction(conn, 2, TransactionFields.from_payload({"tags": "x"}))

    assert after.tags == "x"
    assert after.updated_at is not None
    for name in ("id", "date", "description", "category", "account", "amount", "created_at"):
        assert getattr(after, name) == getattr(before, name)


def test_update_can_clear_tags(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        _seed_transactions(conn)
        after = update_transaction(conn, 2, TransactionFields(tags=None, amount="-99"))
    assert after.tags is None
    assert after.amount == -99.0


def test_update_rejects_invalid_fields(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        _seed_transactions(conn)
        before = get_transaction(conn, 1)
        with pytest.raises(ValidationError) as excinfo:
            update_transaction(conn, 1, TransactionFields(date="2024-3-1", account=""))
        assert get_transaction(conn, 1) == before

    assert excinfo.value.errors == {"date": "Use YYYY-MM-DD", "account": "Cannot be empty"}


def test_update_without_known_fields(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        _seed_transactions(conn)
        with pytest.raises(NothingToUpdate):
            update_transaction(conn, 1, TransactionFields.from_payload({"colour": "red"}))


def test_update_missing_id_is_silent(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        _seed_transactions(conn)
        assert update_transaction(conn, 42, TransactionFields(tags="x")) is None
        assert len(query_transactions(conn)) == len(SAMPLE)


def test_delete_transaction(tmp_path):
    with connect(str(tmp_path / "txs.db")) as conn:
        _seed_transactions(conn)
        assert delete_transaction(conn, 3) == 3
        assert delete_transaction(conn, 3) == 3
        assert _ids(query_transactions(conn)) == [5, 4, 2, 1]


def test_schema_has_indices(tmp_path):
    db_path = tmp_path / "nested" / "txs.db"
    with connect(str(db_path)):
        pass

    conn = sqlite3.connect(db_path)
    names = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type = 'index'")}
    conn.close()
    assert {"idx_transactions_date", "idx_transactions_category", "idx_transactions_amount"} <= names

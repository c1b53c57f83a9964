import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from finance_tracker.core.errors import NothingToUpdate, NotFound, ValidationError
from finance_tracker.core.models import Transaction, TransactionFields
from finance_tracker.core.validation import validate_fields
from finance_tracker.filters import TransactionFilter

logger = logging.getLogger(__name__)

_COLUMNS = "id, date, description, category, account, amount, tags, created_at, updated_at"


def init_db(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA journal_mode = WAL")
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            date TEXT NOT NULL,
            description TEXT NOT NULL,
            category TEXT NOT NULL,
            account TEXT NOT NULL,
            amount REAL NOT NULL,
            tags TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT
        );
        CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date);
        CREATE INDEX IF NOT EXISTS idx_transactions_category ON transactions(category);
        CREATE INDEX IF NOT EXISTS idx_transactions_amount ON transactions(amount);
        """
    )


def open_connection(db_path: str) -> sqlite3.Connection:
    """Open *db_path*, creating its directory and schema when needed."""
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    init_db(conn)
    return conn


@contextmanager
def connect(db_path: str) -> Iterator[sqlite3.Connection]:
    conn = open_connection(db_path)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def _snapshot(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run several reads inside one transaction so they see the same data."""
    if conn.in_transaction:
        yield conn
        return
    conn.execute("BEGIN")
    try:
        yield conn
    finally:
        conn.rollback()


def query_transactions(
    conn: sqlite3.Connection,
    filters: Optional[TransactionFilter] = None,
) -> List[Transaction]:
    """Return matching transactions, newest first (``date`` then ``id`` descending)."""
    where, params = (filters or TransactionFilter()).where()
    rows = conn.execute(
        f"SELECT {_COLUMNS} FROM transactions{where} ORDER BY date DESC, id DESC",
        params,
    ).fetchall()
    return [Transaction.from_row(r) for r in rows]


def export_transactions(
    conn: sqlite3.Connection,
    filters: Optional[TransactionFilter] = None,
) -> List[Transaction]:
    """Return matching transactions oldest first, the order used for CSV export."""
    where, params = (filters or TransactionFilter()).where()
    rows = conn.execute(
        f"SELECT {_COLUMNS} FROM transactions{where} ORDER BY date ASC, id ASC",
        params,
    ).fetchall()
    return [Transaction.from_row(r) for r in rows]


def _fetch_one(conn: sqlite3.Connection, tx_id: int) -> Optional[Transaction]:
    row = conn.execute(
        f"SELECT {_COLUMNS} FROM transactions WHERE id = ?", (tx_id,)
    ).fetchone()
    return Transaction.from_row(row) if row else None


def get_transaction(conn: sqlite3.Connection, tx_id: int) -> Transaction:
    tx = _fetch_one(conn, tx_id)
    if tx is None:
        raise NotFound()
    return tx


def _column_value(name: str, value):
    if name == "amount":
        return float(value)
    if name == "tags":
        return None if value is None else str(value)
    return str(value)


def create_transaction(conn: sqlite3.Connection, data: TransactionFields) -> Transaction:
    """Validate and insert a full transaction, returning the stored row."""
    errors = validate_fields(data)
    if errors:
        raise ValidationError(errors)

    values = {k: _column_value(k, v) for k, v in data.present().items()}
    with conn:
        cur = conn.execute(
            """
            INSERT INTO transactions (date, description, category, account, amount, tags)
            VALUES (:date, :description, :category, :account, :amount, :tags)
            """,
            {"tags": None, **values},
        )
    return get_transaction(conn, cur.lastrowid)


def update_transaction(
    conn: sqlite3.Connection,
    tx_id: int,
    data: TransactionFields,
) -> Optional[Transaction]:
    """Apply a partial update and return the refreshed row.

    Only fields present in *data* are written and ``updated_at`` is
    refreshed. An unknown *tx_id* affects no rows and returns ``None``
    rather than raising.
    """
    errors = validate_fields(data, partial=True)
    if errors:
        raise ValidationError(errors)

    values = {k: _column_value(k, v) for k, v in data.present().items()}
    if not values:
        raise NothingToUpdate()

    assignments = ", ".join(f"{name} = :{name}" for name in values)
    with conn:
        cur = conn.execute(
            f"UPDATE transactions SET {assignments}, updated_at = datetime('now') "
            "WHERE id = :id",
            {**values, "id": tx_id},
        )
    if cur.rowcount == 0:
        logger.debug("Update of transaction %s matched no rows", tx_id)
    return _fetch_one(conn, tx_id)


def delete_transaction(conn: sqlite3.Connection, tx_id: int) -> int:
    """Hard-delete *tx_id*. Succeeds even when the row does not exist."""
    with conn:
        conn.execute("DELETE FROM transactions WHERE id = ?", (tx_id,))
    return tx_id


def import_transactions(conn: sqlite3.Connection, transactions: Iterable[Transaction]) -> int:
    """Insert *transactions* as one batch and return how many were stored.

    The whole batch is committed together; any exception raised while
    iterating (for example a rejected CSV header) rolls everything back.
    """
    count = 0
    with conn:
        for tx in transactions:
            conn.execute(
                """
                INSERT INTO transactions (date, description, category, account, amount, tags)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (tx.date, tx.description, tx.category, tx.account, float(tx.amount), tx.tags),
            )
            count += 1
    logger.info("Imported %d transaction(s)", count)
    return count


@dataclass
class TransactionStats:
    income: float = 0.0
    expense: float = 0.0
    series: List[Dict[str, object]] = field(default_factory=list)
    by_category: List[Dict[str, object]] = field(default_factory=list)

    @property
    def balance(self) -> float:
        return self.income + self.expense

    def to_dict(self) -> Dict[str, object]:
        return {
            "income": self.income,
            "expense": self.expense,
            "balance": self.balance,
            "series": self.series,
            "byCategory": self.by_category,
        }


def transaction_stats(
    conn: sqlite3.Connection,
    filters: Optional[TransactionFilter] = None,
) -> TransactionStats:
    """Aggregate income/expense totals, a monthly series and category totals.

    Amounts ``>= 0`` count as income and negative amounts as expense. The
    monthly series groups by the ``YYYY-MM`` prefix of ``date`` and only
    contains months that have transactions. Categories are ordered by total,
    most negative first.
    """
    where, params = (filters or TransactionFilter()).where()
    with _snapshot(conn):
        totals = conn.execute(
            f"""
            SELECT COALESCE(SUM(CASE WHEN amount >= 0 THEN amount ELSE 0 END), 0.0) AS income,
                   COALESCE(SUM(CASE WHEN amount < 0 THEN amount ELSE 0 END), 0.0) AS expense
            FROM transactions
            {where}
            """,
            params,
        ).fetchone()

        month_rows = conn.execute(
            f"""
            SELECT substr(date, 1, 7) AS ym,
                   SUM(amount) AS total
            FROM transactions
            {where}
            GROUP BY ym
            ORDER BY ym ASC
            """,
            params,
        ).fetchall()

        category_rows = conn.execute(
            f"""
            SELECT category,
                   SUM(amount) AS total
            FROM transactions
            {where}
            GROUP BY category
            ORDER BY total ASC, category ASC
            """,
            params,
        ).fetchall()

    return TransactionStats(
        income=float(totals["income"] or 0.0),
        expense=float(totals["expense"] or 0.0),
        series=[{"ym": r["ym"], "total": float(r["total"] or 0.0)} for r in month_rows],
        by_category=[
            {"category": r["category"], "total": float(r["total"] or 0.0)}
            for r in category_rows
        ],
    )

# finance_tracker/outputs/csv_output.py

import csv
import io
from typing import IO, Iterable

from finance_tracker.core.errors import EXPECTED_HEADER
from finance_tracker.core.models import Transaction
from finance_tracker.outputs.base import BaseOutput


def format_amount(amount: float) -> str:
    """Plain decimal text: ``5000`` for integral values, ``-120.5`` otherwise."""
    value = float(amount)
    if value.is_integer():
        return str(int(value))
    return repr(value)


class CSVOutput(BaseOutput):
    """
    Writes transactions as CSV with the fixed header
    ``date,description,category,account,amount,tags``, in the order given.
    """

    def write(self, transactions: Iterable[Transaction], stream: IO[str]) -> int:
        writer = csv.writer(stream, lineterminator="\n")
        writer.writerow(EXPECTED_HEADER)
        count = 0
        for tx in transactions:
            writer.writerow([
                tx.date,
                tx.description,
                tx.category,
                tx.account,
                format_amount(tx.amount),
                tx.tags if tx.tags is not None else "",
            ])
            count += 1
        return count

    def render(self, transactions: Iterable[Transaction]) -> bytes:
        buffer = io.StringIO()
        self.write(transactions, buffer)
        return buffer.getvalue().encode("utf-8")

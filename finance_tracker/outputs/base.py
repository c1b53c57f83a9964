# finance_tracker/outputs/base.py
from abc import ABC, abstractmethod
from typing import IO, Iterable

from finance_tracker.core.models import Transaction


class BaseOutput(ABC):
    @abstractmethod
    def write(self, transactions: Iterable[Transaction], stream: IO[str]) -> int:
        """Write transactions to the stream and return the row count."""

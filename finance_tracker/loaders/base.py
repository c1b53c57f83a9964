# finance_tracker/loaders/base.py
from abc import ABC, abstractmethod
from typing import IO, Iterator

from finance_tracker.core.models import Transaction


class BaseLoader(ABC):
    @abstractmethod
    def load(self, stream: IO[bytes]) -> Iterator[Transaction]:
        """
        Yield unsaved Transaction instances read from a binary stream.
        Rows that cannot become a valid transaction are skipped.
        """

# finance_tracker/loaders/csv_loader.py
import csv
import io
import logging
from typing import IO, Iterator, List

from finance_tracker.core.errors import EXPECTED_HEADER, HeaderMismatchError, UploadError
from finance_tracker.core.models import Transaction
from finance_tracker.core.validation import is_blank, is_numeric, is_valid_date
from finance_tracker.loaders.base import BaseLoader

logger = logging.getLogger(__name__)


def _normalize_header(row: List[str]) -> List[str]:
    return [cell.strip().lower() for cell in row]


class CSVLoader(BaseLoader):
    """
    Reads transactions from a CSV file with the header
    ``date,description,category,account,amount,tags``.

    The header must match exactly (ignoring case and surrounding spaces) or
    HeaderMismatchError is raised before any row is yielded. Rows with a bad
    date or a non-numeric amount are skipped. Rows with an empty description,
    category or account are skipped as well, so imported rows hold the same
    non-empty invariant as rows created through validate_fields.

    Undecodable bytes or a malformed CSV stream (for example a cell over the
    csv field size limit) raise UploadError; no partial batch is kept.
    """

    encoding = "utf-8-sig"

    def load(self, stream: IO[bytes]) -> Iterator[Transaction]:
        text = io.TextIOWrapper(stream, encoding=self.encoding, newline="")
        try:
            yield from self._parse(csv.reader(text))
        except UnicodeDecodeError as exc:
            raise UploadError(f"File is not valid UTF-8: {exc.reason}") from exc
        except csv.Error as exc:
            raise UploadError(f"Malformed CSV file: {exc}") from exc
        finally:
            # leave the caller's stream open
            text.detach()

    def _parse(self, reader) -> Iterator[Transaction]:
        header = next(reader, None)
        if header is None or _normalize_header(header) != EXPECTED_HEADER:
            raise HeaderMismatchError()

        for line_no, row in enumerate(reader, start=2):
            if not any(cell.strip() for cell in row):
                continue
            date, desc, cat, acc, amount, tags = (row + [""] * 6)[:6]
            if not is_valid_date(date):
                logger.debug("Skipping line %d: invalid date %r", line_no, date)
                continue
            if not is_numeric(amount):
                logger.debug("Skipping line %d: invalid amount %r", line_no, amount)
                continue
            if is_blank(desc) or is_blank(cat) or is_blank(acc):
                logger.debug("Skipping line %d: empty description/category/account", line_no)
                continue
            yield Transaction(
                date=date,
                description=desc,
                category=cat,
                account=acc,
                amount=float(amount),
                tags=tags or None,
            )

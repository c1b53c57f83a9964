# finance_tracker/core/errors.py
from typing import Dict

EXPECTED_HEADER = ["date", "description", "category", "account", "amount", "tags"]


class TrackerError(Exception):
    """Base class for expected, recoverable failures reported to the caller."""

    status_code = 400
    message = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message

    def payload(self) -> Dict[str, object]:
        return {"error": self.message}


class ValidationError(TrackerError):
    status_code = 422
    message = "Validation failed"

    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__()
        self.errors = dict(errors)

    def __str__(self) -> str:
        return ", ".join(f"{field}: {msg}" for field, msg in self.errors.items())

    def payload(self) -> Dict[str, object]:
        return {"errors": self.errors}


class NotFound(TrackerError):
    status_code = 404
    message = "Not found"


class NothingToUpdate(TrackerError):
    status_code = 400
    message = "Nothing to update"


class HeaderMismatchError(TrackerError):
    status_code = 422
    message = "CSV header must be: " + ",".join(EXPECTED_HEADER)


class UploadError(TrackerError):
    status_code = 400
    message = "File upload failed"


class CsrfError(TrackerError):
    status_code = 403
    message = "Invalid CSRF token"

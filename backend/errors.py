"""
Competitor Intel - Error Taxonomy

Domain errors raised by the storage helpers, catalog services and the CSV
importer. main.py maps each class to an HTTP status via a single exception
handler, so routers never build error responses by hand.
"""

from typing import List, Optional


class IntelError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = list(details) if details else []

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(IntelError):
    """Malformed or out-of-enum input. Nothing was persisted."""

    status_code = 400


class NotFoundError(IntelError):
    """A referenced competitor, source or claim does not exist."""

    status_code = 404


class ConflictError(IntelError):
    """Unique-constraint violation (e.g. duplicate competitor name)."""

    status_code = 409


class BaselineProtectedError(IntelError):
    """The baseline competitor cannot be modified or deleted."""

    status_code = 403


class StorageError(IntelError):
    """The persistence layer failed."""

    status_code = 500

"""Error taxonomy for the query layer.

Each error carries the HTTP status it maps to at the API boundary and an
optional ``details`` string that is safe to return to a client (a driver
message, never a traceback or a connection string).
"""

from __future__ import annotations

from typing import Optional


class DataViewError(Exception):
    status_code: int = 500

    def __init__(self, message: str, *, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(DataViewError):
    """Malformed identifier or query parameter."""

    status_code = 400


class NotFoundError(DataViewError):
    """Well-formed identifier that the catalog does not know."""

    status_code = 404


class ExecutionError(DataViewError):
    """A statement failed in the database (connectivity, syntax, constraint)."""

    status_code = 500


class QueryTimeoutError(ExecutionError):
    status_code = 504

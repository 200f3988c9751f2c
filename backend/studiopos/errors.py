# Overview: Error taxonomy shared by services and routes.

from __future__ import annotations


class PosError(Exception):
    """Base class for business errors that carry an HTTP status."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(PosError, ValueError):
    """400-level input problem."""
    status_code = 400


class NotFoundError(PosError, LookupError):
    """Referenced product/order/shift/expense does not exist."""
    status_code = 404


class PreconditionError(PosError):
    """Operation not allowed in the current state (e.g. no open shift)."""
    status_code = 409


class ConflictError(PreconditionError):
    """409-level business rule conflict (duplicate SKU, shift already open)."""


class AuthorizationError(PosError):
    """Caller's role is insufficient for the action."""
    status_code = 403


class PersistenceError(PosError):
    """Datastore call failed; never classified further."""
    status_code = 500

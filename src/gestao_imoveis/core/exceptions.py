"""Domain exceptions raised by the billing services.

Each exception carries the HTTP status it maps to, so the API layer can
translate it without knowing which service raised it.
"""

from typing import Any, Optional


class BillingError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code: int = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(BillingError):
    """Missing or malformed required field."""

    status_code = 400


class NotFoundError(BillingError):
    """Referenced contract, installment, unit or tenant does not exist."""

    status_code = 404


class ConflictError(BillingError):
    """Renewal overlap or duplicate unique key."""

    status_code = 409


class StateError(BillingError):
    """Operation not allowed in the entity's current state (e.g. closed contract)."""

    status_code = 400

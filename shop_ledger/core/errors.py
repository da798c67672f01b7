"""Errors raised by the ledger services.

Routes translate these into HTTP responses (see ``shop_ledger.main``).
Store and network failures are not wrapped; they propagate unchanged.
"""


class LedgerError(Exception):
    """Base class for domain errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Bad input. Raised before anything is written."""
    status_code = 400


class NotFound(LedgerError):
    """An edit referenced a record that does not exist."""
    status_code = 404


class InvalidOperation(LedgerError):
    """The operation is not allowed on this record. Nothing was mutated."""
    status_code = 409


class AuthenticationError(LedgerError):
    status_code = 401


class ApprovalPending(LedgerError):
    status_code = 403

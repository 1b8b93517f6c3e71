"""
Typed failures raised by the stock ledger.

Every error carries a stable ``code`` and the HTTP ``status_code`` the API
layer answers with, so one exception handler can render all of them. Catch
``LedgerError`` to handle any ledger failure.
"""


class LedgerError(Exception):
    """Base class for all stock ledger failures."""

    code: str = "ledger_error"
    status_code: int = 400

    def __init__(self, message: str | None = None) -> None:
        if message is None:
            message = "Stock ledger operation failed"
        self.message = message
        super().__init__(message)


class NotFound(LedgerError):
    """Unknown product or movement id."""

    code = "not_found"
    status_code = 404


class InvalidArgument(LedgerError):
    """Unknown movement type, non-positive quantity, or a missing actor or grant."""

    code = "invalid_argument"
    status_code = 400


class InsufficientStock(LedgerError):
    """The movement would take the balance below zero."""

    code = "insufficient_stock"
    status_code = 409


class UnsupportedOperation(LedgerError):
    """
    The ledger refuses the operation by policy.

    Adjustment movements cannot be reversed automatically: the balance they
    overwrote is not part of the log, so callers must post a new movement.
    """

    code = "unsupported_operation"
    status_code = 422


class StoreFailure(LedgerError):
    """
    The backing store failed mid-transaction.

    The transaction has already been rolled back when this is raised. The
    ledger never retries, since replaying a stock mutation can double-apply it.
    """

    code = "store_failure"
    status_code = 503

"""Error kinds raised by the ledger and compensation services.

Every error carries a stable ``code`` and the HTTP ``status_code`` the API
layer renders it with. Validation, not-found and business-rule errors are
raised before any mutation is flushed.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID


class WageLedgerError(Exception):
    """Base class for all domain errors."""

    code = "ERROR"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(WageLedgerError):
    """Missing or non-positive amount, malformed period, bad status."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(WageLedgerError):
    """Unknown worker, record or history entry."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: UUID | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InsufficientBalanceError(WageLedgerError):
    """Raised when a debit exceeds the worker's current advance balance."""

    code = "INSUFFICIENT_BALANCE"
    status_code = 422

    def __init__(self, worker_id: UUID, requested: Decimal, available: Decimal):
        self.worker_id = worker_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Debit of {requested} exceeds advance balance {available} "
            f"for worker {worker_id}"
        )


class ExceedsEntitlementError(WageLedgerError):
    """Raised when an employee deposit exceeds the computed gross bonus."""

    code = "EXCEEDS_ENTITLEMENT"
    status_code = 422

    def __init__(self, requested: Decimal, entitlement: Decimal):
        self.requested = requested
        self.entitlement = entitlement
        super().__init__(
            f"Deposit amount ({requested}) cannot exceed gross bonus ({entitlement})"
        )


class ConflictError(WageLedgerError):
    """Uniqueness violation or a lost concurrent write."""

    code = "CONFLICT"
    status_code = 409


class ImmutableRecordError(ConflictError):
    """Raised on an attempt to edit or delete an append-only record."""

    code = "IMMUTABLE_RECORD"

    def __init__(self, table: str, operation: str):
        self.table = table
        self.operation = operation
        super().__init__(f"{table} rows are immutable; {operation} is not allowed")


class InternalError(WageLedgerError):
    """Unexpected storage failure."""

    code = "INTERNAL_ERROR"
    status_code = 500


class SettlementBatchError(WageLedgerError):
    """Raised when a worker in a settlement batch fails.

    The whole batch has been rolled back when this is raised; ``cause`` is
    the error the failing worker hit.
    """

    def __init__(self, worker_id: UUID, cause: WageLedgerError):
        self.worker_id = worker_id
        self.cause = cause
        self.code = cause.code
        self.status_code = cause.status_code
        super().__init__(f"Settlement failed for worker {worker_id}: {cause.message}")

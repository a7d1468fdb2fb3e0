"""Advance Ledger Service - append-only per-worker ledger.

Provides transactional posting of advance ledger entries with:
- Per-worker atomicity (worker row lock around read-decide-write)
- Running balance cached on the worker, chained through ``balance_after``
- No updates or deletes (ORM events enforce)
- Reconciliation that reports drift without repairing it
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wage_ledger.calculators.types import ZERO, money, to_decimal
from wage_ledger.errors import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from wage_ledger.models import LedgerEntryKind, LedgerTransaction, Worker

logger = logging.getLogger(__name__)


def positive_amount(amount: Decimal | int | str | None) -> Decimal:
    """Coerce to a cent-rounded Decimal, rejecting missing or non-positive values."""
    value = money(to_decimal(amount))
    if value <= 0:
        raise ValidationError("Amount must be positive")
    return value


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of folding a worker's full ledger history."""

    worker_id: UUID
    cached_balance: Decimal
    folded_balance: Decimal
    last_balance_after: Decimal
    transaction_count: int
    # sequence numbers whose balance_after does not follow from the prior row
    chain_breaks: list[int] = field(default_factory=list)

    @property
    def drift(self) -> Decimal:
        return self.cached_balance - self.folded_balance

    @property
    def is_consistent(self) -> bool:
        return (
            self.cached_balance == self.folded_balance
            and self.last_balance_after == self.folded_balance
            and not self.chain_breaks
        )


@dataclass(frozen=True)
class WorkerLedgerSummary:
    """Advance position of one worker."""

    worker_id: UUID
    worker_code: str
    name: str
    advance_balance: Decimal
    total_advance_taken: Decimal
    total_advance_repaid: Decimal


class LedgerService:
    """Append-only advance ledger.

    Notes:
    - ledger_transaction is append-only (ORM events enforce).
    - (worker_id, sequence_no) is unique; a lost race surfaces as ConflictError.
    - The service flushes but never commits; the caller owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Posting
    # ------------------------------------------------------------------

    def append_transaction(
        self,
        *,
        worker_id: UUID,
        kind: LedgerEntryKind | str,
        amount: Decimal | int | str,
        entry_date: date | None = None,
        notes: str | None = None,
        source_type: str = "manual",
        source_id: UUID | None = None,
    ) -> LedgerTransaction:
        """Post one transaction and update the worker's cached balance.

        Args:
            worker_id: Worker whose balance moves
            kind: advance (credit) or repayment/deposit (debit)
            amount: Positive amount
            entry_date: Business date, defaults to today
            notes: Free-text note
            source_type: What posted it (manual, settlement)
            source_id: ID of the posting document, if any

        Returns:
            The persisted LedgerTransaction

        Raises:
            ValidationError: amount missing/non-positive or unknown kind
            NotFoundError: unknown worker
            InsufficientBalanceError: debit larger than the current balance
            ConflictError: concurrent posting for the same worker
        """
        try:
            entry_kind = LedgerEntryKind(kind)
        except ValueError as e:
            raise ValidationError(f"Invalid ledger kind: {kind!r}") from e
        value = positive_amount(amount)

        worker = self._lock_worker(worker_id)
        current = Decimal(worker.advance_balance)

        if entry_kind.is_debit and value > current:
            raise InsufficientBalanceError(worker_id, value, current)

        new_balance = money(current + entry_kind.signed(value))
        transaction = LedgerTransaction(
            worker_id=worker_id,
            sequence_no=self._next_sequence(worker_id),
            kind=entry_kind.value,
            amount=value,
            entry_date=entry_date or date.today(),
            balance_after=new_balance,
            notes=notes,
            source_type=source_type,
            source_id=source_id,
        )

        try:
            with self.db.begin_nested():
                self.db.add(transaction)
                worker.advance_balance = new_balance
                if entry_kind.is_debit:
                    worker.total_advance_repaid = money(worker.total_advance_repaid + value)
                else:
                    worker.total_advance_taken = money(worker.total_advance_taken + value)
                self.db.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"Concurrent ledger posting for worker {worker_id}; retry the request"
            ) from e

        logger.info(
            "Ledger %s of %s for worker %s (balance %s -> %s)",
            entry_kind.value,
            value,
            worker_id,
            current,
            new_balance,
        )
        return transaction

    def give_advance(
        self,
        worker_id: UUID,
        amount: Decimal | int | str,
        notes: str | None = None,
        entry_date: date | None = None,
    ) -> LedgerTransaction:
        return self.append_transaction(
            worker_id=worker_id,
            kind=LedgerEntryKind.ADVANCE,
            amount=amount,
            entry_date=entry_date,
            notes=notes,
        )

    def record_repayment(
        self,
        worker_id: UUID,
        amount: Decimal | int | str,
        notes: str | None = None,
        entry_date: date | None = None,
    ) -> LedgerTransaction:
        return self.append_transaction(
            worker_id=worker_id,
            kind=LedgerEntryKind.REPAYMENT,
            amount=amount,
            entry_date=entry_date,
            notes=notes,
        )

    def record_deposit(
        self,
        worker_id: UUID,
        amount: Decimal | int | str,
        notes: str | None = None,
        entry_date: date | None = None,
    ) -> LedgerTransaction:
        return self.append_transaction(
            worker_id=worker_id,
            kind=LedgerEntryKind.DEPOSIT,
            amount=amount,
            entry_date=entry_date,
            notes=notes or "Deposit",
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_history(self, worker_id: UUID) -> list[LedgerTransaction]:
        """All transactions for a worker in posting order."""
        self._get_worker(worker_id)
        result = self.db.execute(
            select(LedgerTransaction)
            .where(LedgerTransaction.worker_id == worker_id)
            .order_by(LedgerTransaction.sequence_no)
        )
        return list(result.scalars().all())

    def get_balance(self, worker_id: UUID) -> Decimal:
        """Cached advance balance."""
        return Decimal(self._get_worker(worker_id).advance_balance)

    def list_transactions(
        self,
        *,
        worker_id: UUID | None = None,
        kind: LedgerEntryKind | str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[LedgerTransaction]:
        """Filtered listing, newest first."""
        query = select(LedgerTransaction)
        if worker_id is not None:
            query = query.where(LedgerTransaction.worker_id == worker_id)
        if kind is not None:
            try:
                query = query.where(LedgerTransaction.kind == LedgerEntryKind(kind).value)
            except ValueError as e:
                raise ValidationError(f"Invalid ledger kind: {kind!r}") from e
        if start is not None:
            query = query.where(LedgerTransaction.entry_date >= start)
        if end is not None:
            query = query.where(LedgerTransaction.entry_date <= end)
        query = query.order_by(
            LedgerTransaction.entry_date.desc(),
            LedgerTransaction.created_at.desc(),
            LedgerTransaction.sequence_no.desc(),
        )
        return list(self.db.execute(query).scalars().all())

    def summary(self) -> list[WorkerLedgerSummary]:
        """Advance position for every active worker."""
        workers = self.db.execute(
            select(Worker).where(Worker.is_active.is_(True)).order_by(Worker.name)
        ).scalars()
        return [
            WorkerLedgerSummary(
                worker_id=w.worker_id,
                worker_code=w.worker_code,
                name=w.name,
                advance_balance=Decimal(w.advance_balance),
                total_advance_taken=Decimal(w.total_advance_taken),
                total_advance_repaid=Decimal(w.total_advance_repaid),
            )
            for w in workers
        ]

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def reconcile(self, worker_id: UUID) -> ReconciliationResult:
        """Fold the full history and compare it with the cached balance.

        Drift is logged and reported, never repaired.
        """
        worker = self._get_worker(worker_id)
        history = self.get_history(worker_id)

        folded = ZERO
        chain_breaks: list[int] = []
        for tx in history:
            folded = money(folded + tx.signed_amount)
            if Decimal(tx.balance_after) != folded:
                chain_breaks.append(tx.sequence_no)

        result = ReconciliationResult(
            worker_id=worker_id,
            cached_balance=Decimal(worker.advance_balance),
            folded_balance=folded,
            last_balance_after=Decimal(history[-1].balance_after) if history else ZERO,
            transaction_count=len(history),
            chain_breaks=chain_breaks,
        )
        if not result.is_consistent:
            logger.warning(
                "Ledger drift for worker %s: cached=%s folded=%s last=%s breaks=%s",
                worker_id,
                result.cached_balance,
                result.folded_balance,
                result.last_balance_after,
                chain_breaks,
            )
        return result

    def reconcile_all(self) -> list[ReconciliationResult]:
        worker_ids = self.db.execute(
            select(Worker.worker_id).order_by(Worker.worker_code)
        ).scalars()
        return [self.reconcile(worker_id) for worker_id in worker_ids]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_worker(self, worker_id: UUID) -> Worker:
        worker = self.db.get(Worker, worker_id)
        if worker is None:
            raise NotFoundError("Worker", worker_id)
        return worker

    def _lock_worker(self, worker_id: UUID) -> Worker:
        """Load the worker with a row lock held until the transaction ends."""
        worker = self.db.execute(
            select(Worker)
            .where(Worker.worker_id == worker_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if worker is None:
            raise NotFoundError("Worker", worker_id)
        return worker

    def _next_sequence(self, worker_id: UUID) -> int:
        current = self.db.execute(
            select(func.max(LedgerTransaction.sequence_no)).where(
                LedgerTransaction.worker_id == worker_id
            )
        ).scalar()
        return (current or 0) + 1

"""Append-only advance ledger model."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wage_ledger.errors import ImmutableRecordError
from wage_ledger.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from wage_ledger.models.worker import Worker


class LedgerEntryKind(str, Enum):
    """Ledger transaction kinds.

    An advance credits the worker's balance (money owed to the organization
    goes up); repayments and deposits debit it.
    """

    ADVANCE = "advance"
    REPAYMENT = "repayment"
    DEPOSIT = "deposit"

    @property
    def is_debit(self) -> bool:
        return self is not LedgerEntryKind.ADVANCE

    def signed(self, amount: Decimal) -> Decimal:
        """Return the amount with the sign this kind applies to the balance."""
        return -amount if self.is_debit else amount


class LedgerTransaction(Base, TimestampMixin):
    """One immutable movement against a worker's advance balance."""

    __tablename__ = "ledger_transaction"

    transaction_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    worker_id: Mapped[UUID] = mapped_column(
        ForeignKey("worker.worker_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    sequence_no: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Traceability
    source_type: Mapped[str] = mapped_column(String(32), nullable=False, default="manual")
    source_id: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("worker_id", "sequence_no", name="ledger_worker_sequence_unique"),
        CheckConstraint("amount > 0", name="ledger_amount_positive"),
        CheckConstraint("balance_after >= 0", name="ledger_balance_non_negative"),
        CheckConstraint(
            "kind IN ('advance', 'repayment', 'deposit')",
            name="ledger_kind_check",
        ),
    )

    # Relationships
    worker: Mapped[Worker] = relationship(back_populates="ledger_transactions")

    @property
    def entry_kind(self) -> LedgerEntryKind:
        return LedgerEntryKind(self.kind)

    @property
    def signed_amount(self) -> Decimal:
        return self.entry_kind.signed(self.amount)


@event.listens_for(LedgerTransaction, "before_update")
def _reject_ledger_update(mapper, connection, target) -> None:
    raise ImmutableRecordError(LedgerTransaction.__tablename__, "update")


@event.listens_for(LedgerTransaction, "before_delete")
def _reject_ledger_delete(mapper, connection, target) -> None:
    raise ImmutableRecordError(LedgerTransaction.__tablename__, "delete")

"""Bonus drafts and settlement history models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wage_ledger.errors import ImmutableRecordError
from wage_ledger.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from wage_ledger.models.worker import Worker

# Bumped whenever the persisted bonus record shape changes
BONUS_RECORD_SCHEMA_VERSION = 2


class SettlementKind(str, Enum):
    """Kinds of settlement that can be finalized into history."""

    BONUS = "bonus"
    SALARY = "salary"


# ===== Bonus drafts =====


class BonusRecord(Base, TimestampMixin):
    """Persisted bonus draft for one worker and period.

    ``gross_amount`` is the entitlement before the employee deposit and
    ``net_amount`` is what is handed to the worker. Manual adjustments
    (``extra_bonus``, ``employee_deposit``) survive recalculation.
    """

    __tablename__ = "bonus_record"

    bonus_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    worker_id: Mapped[UUID] = mapped_column(
        ForeignKey("worker.worker_id", ondelete="CASCADE"),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    schema_version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=BONUS_RECORD_SCHEMA_VERSION
    )

    # Computed fields
    hourly_rate: Mapped[Decimal] = mapped_column(nullable=False)
    base_amount: Mapped[Decimal] = mapped_column(nullable=False)
    days_worked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    days_absent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    chargeable_absences: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deduction_per_absent_day: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0")
    )
    penalty: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Manual adjustments (carried forward on recompute)
    extra_bonus: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    employee_deposit: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Derived
    gross_amount: Mapped[Decimal] = mapped_column(nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(nullable=False)
    advance_balance_snapshot: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0")
    )

    # Payment
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    amount_paid: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    is_finalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "worker_id",
            "period_start",
            "period_end",
            name="bonus_record_worker_period_unique",
        ),
        CheckConstraint("period_end >= period_start", name="bonus_record_dates_check"),
        CheckConstraint("extra_bonus >= 0", name="bonus_record_extra_check"),
        CheckConstraint("employee_deposit >= 0", name="bonus_record_deposit_check"),
        CheckConstraint("gross_amount >= 0", name="bonus_record_gross_check"),
        CheckConstraint("net_amount >= 0", name="bonus_record_net_check"),
    )

    # Relationships
    worker: Mapped[Worker] = relationship()

    def append_note(self, note: str) -> None:
        """Append a line to the audit trail."""
        self.notes = f"{self.notes}\n{note}" if self.notes else note


# ===== Settlement history =====


class SettlementHistory(Base):
    """Immutable snapshot created once per finalize action."""

    __tablename__ = "settlement_history"

    history_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    saved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    # Summary totals
    total_base_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_penalty: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_extra_bonus: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_hours: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    total_pay: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_deposit: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_new_advance: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_gross: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_net: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_advance_due: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("kind IN ('bonus', 'salary')", name="settlement_kind_check"),
        CheckConstraint("period_end >= period_start", name="settlement_dates_check"),
    )

    # Relationships
    lines: Mapped[list[SettlementSnapshotLine]] = relationship(
        back_populates="history",
        cascade="all, delete-orphan",
        order_by="SettlementSnapshotLine.position",
    )


class SettlementSnapshotLine(Base):
    """Per-worker snapshot inside a settlement history record."""

    __tablename__ = "settlement_snapshot_line"

    line_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    history_id: Mapped[UUID] = mapped_column(
        ForeignKey("settlement_history.history_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    # Worker identity at save time (no FK: snapshots outlive worker edits)
    worker_id: Mapped[UUID] = mapped_column(nullable=False)
    worker_code: Mapped[str] = mapped_column(String(64), nullable=False)
    worker_name: Mapped[str] = mapped_column(String, nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(nullable=False)

    days_worked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    days_absent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hours_worked: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    total_pay: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    base_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    penalty: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    extra_bonus: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    deposit: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    new_advance: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    gross_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    net_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    advance_balance_at_save: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0")
    )

    # Relationships
    history: Mapped[SettlementHistory] = relationship(back_populates="lines")


@event.listens_for(SettlementHistory, "before_update")
def _reject_history_update(mapper, connection, target) -> None:
    raise ImmutableRecordError(SettlementHistory.__tablename__, "update")


@event.listens_for(SettlementSnapshotLine, "before_update")
def _reject_snapshot_update(mapper, connection, target) -> None:
    raise ImmutableRecordError(SettlementSnapshotLine.__tablename__, "update")

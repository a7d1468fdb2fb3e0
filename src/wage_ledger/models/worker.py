"""Worker directory and holiday calendar models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, Date, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wage_ledger.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from wage_ledger.models.attendance import AttendanceEntry
    from wage_ledger.models.ledger import LedgerTransaction


class Worker(Base, TimestampMixin):
    """Worker with pay profile and cached advance balance.

    ``advance_balance`` is owned by the ledger service and must equal the
    ``balance_after`` of the worker's latest ledger transaction.
    """

    __tablename__ = "worker"

    worker_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    worker_code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(nullable=False)
    daily_working_hours: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("8")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Advance tracking
    advance_balance: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_advance_taken: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0")
    )
    total_advance_repaid: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0")
    )

    __table_args__ = (
        CheckConstraint("hourly_rate >= 0", name="worker_hourly_rate_check"),
        CheckConstraint("daily_working_hours > 0", name="worker_daily_hours_check"),
        CheckConstraint("advance_balance >= 0", name="worker_advance_balance_check"),
    )

    # Relationships
    ledger_transactions: Mapped[list[LedgerTransaction]] = relationship(
        back_populates="worker",
        order_by="LedgerTransaction.sequence_no",
    )
    attendance_entries: Mapped[list[AttendanceEntry]] = relationship(
        back_populates="worker"
    )


class Holiday(Base, TimestampMixin):
    """Calendar holiday, one per day."""

    __tablename__ = "holiday"

    holiday_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    holiday_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

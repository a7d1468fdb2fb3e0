"""Daily attendance model."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wage_ledger.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from wage_ledger.models.worker import Worker


class AttendanceStatus(str, Enum):
    """Work status for one worker on one day."""

    PRESENT = "present"
    ABSENT = "absent"
    HOLIDAY = "holiday"
    HALF_DAY = "half-day"


class AttendanceEntry(Base, TimestampMixin):
    """One attendance row per (worker, day)."""

    __tablename__ = "attendance_entry"

    entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    worker_id: Mapped[UUID] = mapped_column(
        ForeignKey("worker.worker_id", ondelete="CASCADE"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=AttendanceStatus.PRESENT.value
    )
    hours_worked: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0")
    )
    total_pay: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("worker_id", "work_date", name="attendance_worker_date_unique"),
        CheckConstraint("hours_worked >= 0", name="attendance_hours_check"),
        CheckConstraint(
            "status IN ('present', 'absent', 'holiday', 'half-day')",
            name="attendance_status_check",
        ),
    )

    # Relationships
    worker: Mapped[Worker] = relationship(back_populates="attendance_entries")

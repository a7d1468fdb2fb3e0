"""Type definitions for the compensation pipeline."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from uuid import UUID

from wage_ledger.errors import ValidationError

ZERO = Decimal("0")
CENT = Decimal("0.01")


def money(value: Decimal | int | str) -> Decimal:
    """Round to cents, half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Decimal | int | str | None, field: str = "amount") -> Decimal:
    """Parse caller input as a finite Decimal.

    Raises:
        ValidationError: missing, malformed, NaN or infinite input
    """
    if value is None:
        raise ValidationError(f"{field} is required")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid {field}: {value!r}") from e
    if not result.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}")
    return result


@dataclass(frozen=True)
class Period:
    """Inclusive day range ``[start, end]``."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start is None or self.end is None:
            raise ValidationError("Period requires both start and end dates")
        if self.start > self.end:
            raise ValidationError(
                f"Period start {self.start} must be on or before end {self.end}"
            )

    @classmethod
    def from_months(
        cls, start_year: int, start_month: int, end_year: int, end_month: int
    ) -> Period:
        """Build a period from the first day of one month to the last of another."""
        for month in (start_month, end_month):
            if month < 1 or month > 12:
                raise ValidationError("start_month and end_month must be between 1 and 12")
        last_day = calendar.monthrange(end_year, end_month)[1]
        return cls(date(start_year, start_month, 1), date(end_year, end_month, last_day))


@dataclass
class AttendanceTotals:
    """Per-worker attendance totals over a period."""

    worker_id: UUID
    total_hours: Decimal = ZERO
    total_pay: Decimal = ZERO
    days_present: int = 0  # present + holiday
    days_absent: int = 0
    days_half: int = 0
    entry_count: int = 0


@dataclass(frozen=True)
class WorkerProfile:
    """The slice of the worker directory the calculators need."""

    worker_id: UUID
    worker_code: str
    name: str
    hourly_rate: Decimal
    daily_working_hours: Decimal
    is_active: bool = True
    advance_balance: Decimal = ZERO


@dataclass
class BonusDraft:
    """Computed bonus for one worker and period (not persisted)."""

    worker_id: UUID
    period: Period
    hourly_rate: Decimal
    base_amount: Decimal
    days_worked: int
    days_absent: int
    chargeable_absences: int
    deduction_per_absent_day: Decimal
    penalty: Decimal
    extra_bonus: Decimal = ZERO
    employee_deposit: Decimal = ZERO
    gross_amount: Decimal = ZERO
    net_amount: Decimal = ZERO
    advance_balance: Decimal = ZERO
    record_id: UUID | None = None
    is_finalized: bool = False


@dataclass(frozen=True)
class SalaryAdjustment:
    """Operator-entered salary adjustments for one worker."""

    deposit: Decimal = ZERO
    new_advance: Decimal = ZERO


@dataclass
class SalaryDraftLine:
    """Computed salary for one worker and period (not persisted)."""

    worker_id: UUID
    period: Period
    hourly_rate: Decimal
    total_hours: Decimal
    total_pay: Decimal
    days_present: int
    days_absent: int
    deposit: Decimal = ZERO
    new_advance: Decimal = ZERO
    final_amount: Decimal = ZERO
    advance_balance: Decimal = ZERO


@dataclass
class SettlementLine:
    """One worker's figures handed to the settlement history store.

    Only ``deposit`` and ``new_advance`` drive ledger postings; the rest is
    snapshot data.
    """

    worker_id: UUID
    deposit: Decimal = ZERO
    new_advance: Decimal = ZERO
    days_worked: int = 0
    days_absent: int = 0
    hours_worked: Decimal = ZERO
    total_pay: Decimal = ZERO
    base_amount: Decimal = ZERO
    penalty: Decimal = ZERO
    extra_bonus: Decimal = ZERO
    gross_amount: Decimal = ZERO
    net_amount: Decimal = ZERO

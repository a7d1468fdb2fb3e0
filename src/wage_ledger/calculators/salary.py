"""Salary calculation over period attendance totals."""

from __future__ import annotations

from decimal import Decimal

from wage_ledger.calculators.types import (
    ZERO,
    AttendanceTotals,
    Period,
    SalaryAdjustment,
    SalaryDraftLine,
    WorkerProfile,
    money,
)
from wage_ledger.errors import ValidationError


def validate_adjustment(adjustment: SalaryAdjustment) -> None:
    for value in (adjustment.deposit, adjustment.new_advance):
        if not Decimal(value).is_finite():
            raise ValidationError(f"Invalid salary adjustment amount: {value!r}")
    if adjustment.deposit < 0 or adjustment.new_advance < 0:
        raise ValidationError("Salary deposit and new advance must not be negative")


def compute_salary_line(
    period: Period,
    worker: WorkerProfile,
    totals: AttendanceTotals,
    adjustment: SalaryAdjustment | None = None,
) -> SalaryDraftLine:
    """Compute one worker's salary line.

    The deposit reduces what is handed over; a new advance is posted to the
    ledger at finalize time and is not subtracted here.
    """
    adjustment = adjustment or SalaryAdjustment()
    validate_adjustment(adjustment)

    deposit = money(adjustment.deposit)
    total_pay = money(totals.total_pay)
    return SalaryDraftLine(
        worker_id=worker.worker_id,
        period=period,
        hourly_rate=worker.hourly_rate,
        total_hours=totals.total_hours,
        total_pay=total_pay,
        days_present=totals.days_present,
        days_absent=totals.days_absent,
        deposit=deposit,
        new_advance=money(adjustment.new_advance),
        final_amount=max(ZERO, money(total_pay - deposit)),
        advance_balance=worker.advance_balance,
    )

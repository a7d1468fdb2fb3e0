"""Compensation calculators."""

from wage_ledger.calculators.bonus import BonusAdjustments, BonusCalculator
from wage_ledger.calculators.salary import compute_salary_line
from wage_ledger.calculators.types import (
    AttendanceTotals,
    BonusDraft,
    Period,
    SalaryAdjustment,
    SalaryDraftLine,
    SettlementLine,
    WorkerProfile,
)

__all__ = [
    "AttendanceTotals",
    "BonusAdjustments",
    "BonusCalculator",
    "BonusDraft",
    "Period",
    "SalaryAdjustment",
    "SalaryDraftLine",
    "SettlementLine",
    "WorkerProfile",
    "compute_salary_line",
]

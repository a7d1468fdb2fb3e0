"""Domain services."""

from wage_ledger.services.attendance_service import AttendanceService, HolidayCalendar
from wage_ledger.services.bonus_service import BonusService, BonusSummary
from wage_ledger.services.ledger_service import (
    LedgerService,
    ReconciliationResult,
    WorkerLedgerSummary,
)
from wage_ledger.services.salary_service import SalaryService
from wage_ledger.services.settlement_service import SettlementService
from wage_ledger.services.worker_service import WorkerService

__all__ = [
    "AttendanceService",
    "BonusService",
    "BonusSummary",
    "HolidayCalendar",
    "LedgerService",
    "ReconciliationResult",
    "SalaryService",
    "SettlementService",
    "WorkerLedgerSummary",
    "WorkerService",
]

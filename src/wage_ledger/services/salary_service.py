"""Salary drafts computed from period attendance."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from wage_ledger.calculators.salary import compute_salary_line
from wage_ledger.calculators.types import (
    AttendanceTotals,
    Period,
    SalaryAdjustment,
    SalaryDraftLine,
    SettlementLine,
)
from wage_ledger.errors import ValidationError
from wage_ledger.models import SettlementHistory, SettlementKind, Worker
from wage_ledger.services.attendance_service import AttendanceService
from wage_ledger.services.settlement_service import SettlementService
from wage_ledger.services.worker_service import worker_profile

logger = logging.getLogger(__name__)


class SalaryService:
    """Salary engine.

    Drafts are never persisted; the operator enters deposit/new advance per
    worker and finalize recomputes the figures before settling them.
    """

    def __init__(
        self,
        db: Session,
        attendance: AttendanceService | None = None,
        settlements: SettlementService | None = None,
    ):
        self.db = db
        self.attendance = attendance or AttendanceService(db)
        self.settlements = settlements or SettlementService(db)

    def compute_drafts(
        self,
        period: Period,
        adjustments: Mapping[UUID, SalaryAdjustment] | None = None,
    ) -> list[SalaryDraftLine]:
        """One line per active worker, plus inactive workers with attendance in the period."""
        adjustments = adjustments or {}
        totals = self.attendance.aggregate(period)

        query = select(Worker).order_by(Worker.worker_code)
        if totals:
            query = query.where(
                or_(Worker.is_active.is_(True), Worker.worker_id.in_(list(totals)))
            )
        else:
            query = query.where(Worker.is_active.is_(True))
        workers = self.db.execute(query).scalars().all()

        unknown = set(adjustments) - {w.worker_id for w in workers}
        if unknown:
            raise ValidationError(
                f"Adjustments given for workers outside the period: "
                f"{', '.join(sorted(str(w) for w in unknown))}"
            )

        drafts = [
            compute_salary_line(
                period,
                worker_profile(worker),
                totals.get(worker.worker_id) or AttendanceTotals(worker.worker_id),
                adjustments.get(worker.worker_id),
            )
            for worker in workers
        ]
        logger.debug(
            "Computed %d salary drafts for %s..%s", len(drafts), period.start, period.end
        )
        return drafts

    def finalize(
        self,
        period: Period,
        adjustments: Mapping[UUID, SalaryAdjustment] | None = None,
        notes: str | None = None,
    ) -> SettlementHistory:
        """Settle the period's salary: post deposits/new advances and snapshot."""
        drafts = self.compute_drafts(period, adjustments)
        if not drafts:
            raise ValidationError(f"No workers to settle for {period.start}..{period.end}")

        lines = [
            SettlementLine(
                worker_id=d.worker_id,
                deposit=d.deposit,
                new_advance=d.new_advance,
                days_worked=d.days_present,
                days_absent=d.days_absent,
                hours_worked=d.total_hours,
                total_pay=d.total_pay,
                gross_amount=d.total_pay,
                net_amount=d.final_amount,
            )
            for d in drafts
        ]
        return self.settlements.finalize(
            kind=SettlementKind.SALARY, period=period, lines=lines, notes=notes
        )

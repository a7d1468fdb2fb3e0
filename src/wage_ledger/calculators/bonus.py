"""Bonus calculation - pure computation over attendance totals.

Pipeline (stable order per worker):
1) min_absent across the active cohort
2) chargeable absences (relative to min_absent, or absolute)
3) penalty = chargeable * deduction_per_absent_day
4) base = 30 days x 8 hours x hourly_rate
5) carry forward extra_bonus / employee_deposit from the prior draft
6) gross = max(0, base - penalty + extra_bonus)
7) net = max(0, gross - employee_deposit)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from wage_ledger.calculators.types import (
    ZERO,
    AttendanceTotals,
    BonusDraft,
    Period,
    WorkerProfile,
    money,
)
from wage_ledger.errors import ValidationError

STANDARD_BONUS_DAYS = 30
STANDARD_BONUS_HOURS = 8


@dataclass(frozen=True)
class BonusAdjustments:
    """Manual adjustments carried forward from an existing draft."""

    extra_bonus: Decimal = ZERO
    employee_deposit: Decimal = ZERO
    record_id: UUID | None = None
    is_finalized: bool = False


def minimum_absences(days_absent: Iterable[int]) -> int:
    """Fewest absences in the cohort, 0 for an empty cohort."""
    return min(days_absent, default=0)


def chargeable_absences(days_absent: int, min_absent: int, threshold_relative: bool) -> int:
    if threshold_relative:
        return max(0, days_absent - min_absent)
    return days_absent


def base_bonus(hourly_rate: Decimal) -> Decimal:
    return money(STANDARD_BONUS_DAYS * STANDARD_BONUS_HOURS * hourly_rate)


def gross_bonus(base: Decimal, penalty: Decimal, extra_bonus: Decimal) -> Decimal:
    return max(ZERO, money(base - penalty + extra_bonus))


def net_bonus(gross: Decimal, employee_deposit: Decimal) -> Decimal:
    return max(ZERO, money(gross - employee_deposit))


class BonusCalculator:
    """Computes bonus drafts for a cohort of workers.

    The calculator holds no state between calls, so identical inputs always
    produce identical drafts.
    """

    def __init__(self, deduction_per_absent_day: Decimal, threshold_relative: bool = True):
        deduction = Decimal(deduction_per_absent_day or 0)
        if deduction < 0:
            raise ValidationError("deduction_per_absent_day must not be negative")
        self.deduction_per_absent_day = money(deduction)
        self.threshold_relative = threshold_relative

    def calculate(
        self,
        period: Period,
        workers: list[WorkerProfile],
        totals: Mapping[UUID, AttendanceTotals],
        prior: Mapping[UUID, BonusAdjustments] | None = None,
    ) -> list[BonusDraft]:
        """Calculate drafts for every worker, ordered by worker code."""
        prior = prior or {}
        cohort = sorted(workers, key=lambda w: (w.worker_code, str(w.worker_id)))

        absences = {
            w.worker_id: totals[w.worker_id].days_absent if w.worker_id in totals else 0
            for w in cohort
        }
        min_absent = minimum_absences(
            absences[w.worker_id] for w in cohort if w.is_active
        )

        drafts: list[BonusDraft] = []
        for worker in cohort:
            worker_totals = totals.get(worker.worker_id) or AttendanceTotals(worker.worker_id)
            drafts.append(
                self.calculate_worker(
                    period,
                    worker,
                    worker_totals,
                    min_absent,
                    prior.get(worker.worker_id, BonusAdjustments()),
                )
            )
        return drafts

    def calculate_worker(
        self,
        period: Period,
        worker: WorkerProfile,
        totals: AttendanceTotals,
        min_absent: int,
        adjustments: BonusAdjustments,
    ) -> BonusDraft:
        chargeable = chargeable_absences(
            totals.days_absent, min_absent, self.threshold_relative
        )
        penalty = money(chargeable * self.deduction_per_absent_day)
        base = base_bonus(worker.hourly_rate)
        gross = gross_bonus(base, penalty, adjustments.extra_bonus)

        return BonusDraft(
            worker_id=worker.worker_id,
            period=period,
            hourly_rate=worker.hourly_rate,
            base_amount=base,
            days_worked=totals.days_present,
            days_absent=totals.days_absent,
            chargeable_absences=chargeable,
            deduction_per_absent_day=self.deduction_per_absent_day,
            penalty=penalty,
            extra_bonus=adjustments.extra_bonus,
            employee_deposit=adjustments.employee_deposit,
            gross_amount=gross,
            net_amount=net_bonus(gross, adjustments.employee_deposit),
            advance_balance=worker.advance_balance,
            record_id=adjustments.record_id,
            is_finalized=adjustments.is_finalized,
        )

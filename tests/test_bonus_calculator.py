"""Tests for the pure bonus calculator."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from wage_ledger.calculators.bonus import (
    BonusAdjustments,
    BonusCalculator,
    base_bonus,
    chargeable_absences,
    gross_bonus,
    minimum_absences,
    net_bonus,
)
from wage_ledger.calculators.types import AttendanceTotals, Period, WorkerProfile
from wage_ledger.errors import ValidationError

PERIOD = Period(date(2024, 3, 1), date(2024, 3, 30))


def profile(code: str, rate: str = "100", active: bool = True) -> WorkerProfile:
    return WorkerProfile(
        worker_id=uuid4(),
        worker_code=code,
        name=code,
        hourly_rate=Decimal(rate),
        daily_working_hours=Decimal("8"),
        is_active=active,
    )


def totals(worker: WorkerProfile, absent: int, present: int = 0) -> AttendanceTotals:
    return AttendanceTotals(worker.worker_id, days_absent=absent, days_present=present)


class TestBonusFormula:
    """Step functions of the bonus pipeline."""

    def test_minimum_absences_empty_cohort(self):
        assert minimum_absences([]) == 0

    def test_chargeable_relative_and_absolute(self):
        assert chargeable_absences(5, 2, threshold_relative=True) == 3
        assert chargeable_absences(1, 2, threshold_relative=True) == 0
        assert chargeable_absences(5, 2, threshold_relative=False) == 5

    def test_base_is_thirty_standard_days(self):
        assert base_bonus(Decimal("100")) == Decimal("24000.00")

    def test_gross_and_net_never_negative(self):
        assert gross_bonus(Decimal("100"), Decimal("500"), Decimal("0")) == 0
        assert net_bonus(Decimal("100"), Decimal("150")) == 0


class TestBonusCalculator:
    """Cohort-level calculation."""

    def test_penalty_relative_to_best_attendance(self):
        """Rate 100, 2 absences vs a cohort minimum of 0, 50 per day: net 23900."""
        x = profile("X")
        y = profile("Y")
        drafts = BonusCalculator(Decimal("50")).calculate(
            PERIOD, [x, y], {x.worker_id: totals(x, 2), y.worker_id: totals(y, 0)}
        )

        draft = next(d for d in drafts if d.worker_id == x.worker_id)
        assert draft.base_amount == Decimal("24000.00")
        assert draft.chargeable_absences == 2
        assert draft.penalty == Decimal("100.00")
        assert draft.gross_amount == Decimal("23900.00")
        assert draft.net_amount == Decimal("23900.00")

    def test_everyone_absent_equally_pays_no_penalty(self):
        a = profile("A")
        b = profile("B")
        drafts = BonusCalculator(Decimal("50")).calculate(
            PERIOD, [a, b], {a.worker_id: totals(a, 3), b.worker_id: totals(b, 3)}
        )
        assert all(d.penalty == 0 for d in drafts)

    def test_absolute_mode_charges_every_absence(self):
        a = profile("A")
        drafts = BonusCalculator(Decimal("50"), threshold_relative=False).calculate(
            PERIOD, [a], {a.worker_id: totals(a, 3)}
        )
        assert drafts[0].penalty == Decimal("150.00")

    def test_inactive_workers_do_not_set_minimum(self):
        active = profile("A")
        inactive = profile("B", active=False)
        drafts = BonusCalculator(Decimal("10")).calculate(
            PERIOD,
            [active, inactive],
            {active.worker_id: totals(active, 4), inactive.worker_id: totals(inactive, 0)},
        )
        draft = next(d for d in drafts if d.worker_id == active.worker_id)
        assert draft.chargeable_absences == 0

    def test_adjustments_carried_forward(self):
        x = profile("X")
        record_id = uuid4()
        drafts = BonusCalculator(Decimal("0")).calculate(
            PERIOD,
            [x],
            {},
            {x.worker_id: BonusAdjustments(Decimal("500"), Decimal("1000"), record_id)},
        )
        draft = drafts[0]
        assert draft.extra_bonus == Decimal("500")
        assert draft.gross_amount == Decimal("24500.00")
        assert draft.net_amount == Decimal("23500.00")
        assert draft.record_id == record_id

    def test_ordered_by_worker_code(self):
        workers = [profile("W003"), profile("W001"), profile("W002")]
        drafts = BonusCalculator(Decimal("0")).calculate(PERIOD, workers, {})
        by_id = {w.worker_id: w.worker_code for w in workers}
        assert [by_id[d.worker_id] for d in drafts] == ["W001", "W002", "W003"]

    def test_identical_inputs_identical_drafts(self):
        x = profile("X")
        inputs = (PERIOD, [x], {x.worker_id: totals(x, 1)})
        calculator = BonusCalculator(Decimal("25"))
        assert calculator.calculate(*inputs) == calculator.calculate(*inputs)

    def test_negative_deduction_rejected(self):
        with pytest.raises(ValidationError):
            BonusCalculator(Decimal("-1"))


class TestPeriod:
    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError):
            Period(date(2024, 3, 2), date(2024, 3, 1))

    def test_from_months(self):
        period = Period.from_months(2024, 1, 2024, 2)
        assert period == Period(date(2024, 1, 1), date(2024, 2, 29))

    def test_from_months_bad_month(self):
        with pytest.raises(ValidationError):
            Period.from_months(2024, 0, 2024, 2)

"""Tests for WorkerService - registration, edits and soft delete."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from wage_ledger.calculators.types import Period
from wage_ledger.errors import ConflictError, NotFoundError, ValidationError
from wage_ledger.services.bonus_service import BonusService
from wage_ledger.services.ledger_service import LedgerService
from wage_ledger.services.worker_service import WorkerService

PERIOD = Period(date(2024, 3, 1), date(2024, 3, 30))


class TestCreateWorker:
    def test_create_rounds_rate_and_starts_at_zero(self, db):
        worker = WorkerService(db).create_worker(
            worker_code=" W001 ", name="Asha", hourly_rate="99.995"
        )
        assert worker.worker_code == "W001"
        assert worker.hourly_rate == Decimal("100.00")
        assert worker.advance_balance == 0

    @pytest.mark.parametrize(
        "field, value",
        [
            ("hourly_rate", "NaN"),
            ("hourly_rate", "-1"),
            ("hourly_rate", "a lot"),
            ("daily_working_hours", "0"),
            ("daily_working_hours", "Infinity"),
        ],
    )
    def test_invalid_numbers(self, db, field, value):
        kwargs = {"worker_code": "W001", "name": "Asha", "hourly_rate": "100", field: value}
        with pytest.raises(ValidationError):
            WorkerService(db).create_worker(**kwargs)

    def test_duplicate_code(self, db, make_worker):
        make_worker(worker_code="W001")
        with pytest.raises(ConflictError):
            WorkerService(db).create_worker(worker_code="W001", name="Other", hourly_rate="90")


class TestUpdateWorker:
    def test_partial_update(self, db, make_worker):
        worker = make_worker(name="Asha", hourly_rate="100")

        updated = WorkerService(db).update_worker(
            worker.worker_id, name="Asha K", hourly_rate=Decimal("120")
        )

        assert updated.name == "Asha K"
        assert updated.hourly_rate == Decimal("120.00")
        assert updated.worker_code == worker.worker_code
        assert updated.daily_working_hours == Decimal("8")

    def test_balance_untouched(self, db, make_worker):
        worker = make_worker()
        LedgerService(db).give_advance(worker.worker_id, Decimal("300"))

        WorkerService(db).update_worker(worker.worker_id, hourly_rate=Decimal("150"))

        assert LedgerService(db).reconcile(worker.worker_id).is_consistent
        assert worker.advance_balance == Decimal("300.00")

    def test_code_taken_by_other_worker(self, db, make_worker):
        make_worker(worker_code="W001")
        other = make_worker(worker_code="W002")
        with pytest.raises(ConflictError):
            WorkerService(db).update_worker(other.worker_id, worker_code="W001")

    def test_same_code_is_not_a_conflict(self, db, make_worker):
        worker = make_worker(worker_code="W001")
        assert WorkerService(db).update_worker(worker.worker_id, worker_code="W001").worker_code == "W001"

    @pytest.mark.parametrize(
        "changes",
        [{"name": "  "}, {"worker_code": ""}, {"hourly_rate": "NaN"}, {"daily_working_hours": "-8"}],
    )
    def test_invalid_changes(self, db, make_worker, changes):
        worker = make_worker()
        with pytest.raises(ValidationError):
            WorkerService(db).update_worker(worker.worker_id, **changes)

    def test_unknown_worker(self, db):
        with pytest.raises(NotFoundError):
            WorkerService(db).update_worker(uuid4(), name="Nobody")


class TestSetActive:
    def test_deactivated_worker_leaves_bonus_cohort(self, db, make_worker, record_days):
        stays = make_worker()
        leaves = make_worker()
        record_days(stays, PERIOD.start, present=30)
        record_days(leaves, PERIOD.start, present=30)

        WorkerService(db).set_active(leaves.worker_id, False)

        drafts = BonusService(db).compute_drafts(PERIOD)
        assert [d.worker_id for d in drafts] == [stays.worker_id]
        assert [w.worker_id for w in WorkerService(db).list_workers(active_only=True)] == [
            stays.worker_id
        ]

    def test_reactivate(self, db, make_worker):
        worker = make_worker(is_active=False)
        assert WorkerService(db).set_active(worker.worker_id, True).is_active is True

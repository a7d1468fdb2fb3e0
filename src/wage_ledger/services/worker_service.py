"""Worker directory - the minimal CRUD the ledger and engines consume."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wage_ledger.calculators.types import WorkerProfile, money, to_decimal
from wage_ledger.errors import ConflictError, NotFoundError, ValidationError
from wage_ledger.models import Worker

logger = logging.getLogger(__name__)


def worker_profile(worker: Worker) -> WorkerProfile:
    """Project a worker row onto the calculator's view of it."""
    return WorkerProfile(
        worker_id=worker.worker_id,
        worker_code=worker.worker_code,
        name=worker.name,
        hourly_rate=Decimal(worker.hourly_rate),
        daily_working_hours=Decimal(worker.daily_working_hours),
        is_active=worker.is_active,
        advance_balance=Decimal(worker.advance_balance),
    )


class WorkerService:
    """Register and look up workers."""

    def __init__(self, db: Session):
        self.db = db

    def create_worker(
        self,
        *,
        worker_code: str,
        name: str,
        hourly_rate: Decimal,
        daily_working_hours: Decimal = Decimal("8"),
        is_active: bool = True,
    ) -> Worker:
        """Create a worker.

        Raises:
            ValidationError: blank code/name, negative rate, non-positive hours
            ConflictError: worker_code already in use
        """
        worker_code = (worker_code or "").strip()
        name = (name or "").strip()
        if not worker_code or not name:
            raise ValidationError("worker_code and name are required")
        hourly_rate = self._hourly_rate(hourly_rate)
        daily_working_hours = self._daily_hours(daily_working_hours)
        self._ensure_code_free(worker_code)

        worker = Worker(
            worker_code=worker_code,
            name=name,
            hourly_rate=hourly_rate,
            daily_working_hours=daily_working_hours,
            is_active=is_active,
            advance_balance=Decimal("0"),
            total_advance_taken=Decimal("0"),
            total_advance_repaid=Decimal("0"),
        )
        try:
            with self.db.begin_nested():
                self.db.add(worker)
                self.db.flush()
        except IntegrityError as e:
            raise ConflictError(f"Worker code {worker_code!r} already exists") from e

        logger.info("Created worker %s (%s)", worker.worker_id, worker_code)
        return worker

    def update_worker(
        self,
        worker_id: UUID,
        *,
        worker_code: str | None = None,
        name: str | None = None,
        hourly_rate: Decimal | None = None,
        daily_working_hours: Decimal | None = None,
        is_active: bool | None = None,
    ) -> Worker:
        """Change the given fields; ``None`` leaves a field as is.

        The ledger balance and running totals are never edited here.
        Existing attendance keeps the pay computed at the old rate.
        """
        worker = self.get_worker(worker_id)

        if worker_code is not None:
            worker_code = worker_code.strip()
            if not worker_code:
                raise ValidationError("worker_code must not be blank")
            if worker_code != worker.worker_code:
                self._ensure_code_free(worker_code)
                worker.worker_code = worker_code
        if name is not None:
            if not name.strip():
                raise ValidationError("name must not be blank")
            worker.name = name.strip()
        if hourly_rate is not None:
            worker.hourly_rate = self._hourly_rate(hourly_rate)
        if daily_working_hours is not None:
            worker.daily_working_hours = self._daily_hours(daily_working_hours)
        if is_active is not None:
            worker.is_active = is_active

        try:
            with self.db.begin_nested():
                self.db.flush()
        except IntegrityError as e:
            raise ConflictError(f"Worker code {worker_code!r} already exists") from e

        logger.info("Updated worker %s", worker_id)
        return worker

    def get_worker(self, worker_id: UUID) -> Worker:
        worker = self.db.get(Worker, worker_id)
        if worker is None:
            raise NotFoundError("Worker", worker_id)
        return worker

    def list_workers(self, active_only: bool = False) -> list[Worker]:
        query = select(Worker).order_by(Worker.name, Worker.worker_code)
        if active_only:
            query = query.where(Worker.is_active.is_(True))
        return list(self.db.execute(query).scalars().all())

    def set_active(self, worker_id: UUID, is_active: bool) -> Worker:
        """Soft delete or reactivate. Ledger history is kept either way."""
        worker = self.get_worker(worker_id)
        worker.is_active = is_active
        self.db.flush()
        logger.info("Worker %s %s", worker_id, "activated" if is_active else "deactivated")
        return worker

    def _ensure_code_free(self, worker_code: str) -> None:
        existing = self.db.execute(
            select(Worker.worker_id).where(Worker.worker_code == worker_code)
        ).first()
        if existing:
            raise ConflictError(f"Worker code {worker_code!r} already exists")

    @staticmethod
    def _hourly_rate(value: Decimal | int | str) -> Decimal:
        rate = to_decimal(value, "hourly_rate")
        if rate < 0:
            raise ValidationError("hourly_rate must not be negative")
        return money(rate)

    @staticmethod
    def _daily_hours(value: Decimal | int | str) -> Decimal:
        hours = to_decimal(value, "daily_working_hours")
        if hours <= 0:
            raise ValidationError("daily_working_hours must be positive")
        return hours

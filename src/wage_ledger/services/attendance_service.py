"""Attendance capture and period aggregation."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import extract, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wage_ledger.calculators.types import ZERO, AttendanceTotals, Period, money, to_decimal
from wage_ledger.errors import ConflictError, NotFoundError, ValidationError
from wage_ledger.models import AttendanceEntry, AttendanceStatus, Holiday, Worker

logger = logging.getLogger(__name__)

HALF_DAY_FACTOR = Decimal("0.5")


def compute_entry_pay(
    status: AttendanceStatus,
    hours_worked: Decimal,
    hourly_rate: Decimal,
    daily_working_hours: Decimal,
) -> tuple[Decimal, Decimal]:
    """Return (stored hours, total pay) for one day.

    - present/holiday: hours x rate
    - half-day: half a standard day, whatever hours were supplied
    - absent: nothing
    """
    if status is AttendanceStatus.ABSENT:
        return ZERO, ZERO
    if status is AttendanceStatus.HALF_DAY:
        hours = HALF_DAY_FACTOR * daily_working_hours
        return hours, money(hours * hourly_rate)
    return hours_worked, money(hours_worked * hourly_rate)


class HolidayCalendar:
    """Day -> holiday lookup, used to pick a default attendance status."""

    def __init__(self, db: Session):
        self.db = db

    def is_holiday(self, day: date) -> bool:
        return (
            self.db.execute(
                select(Holiday.holiday_id).where(Holiday.holiday_date == day)
            ).first()
            is not None
        )

    def add(self, day: date, name: str, description: str | None = None) -> Holiday:
        """Create or rename the holiday on ``day``."""
        if not name or not name.strip():
            raise ValidationError("Holiday name is required")
        holiday = self.db.execute(
            select(Holiday).where(Holiday.holiday_date == day)
        ).scalar_one_or_none()
        if holiday is None:
            holiday = Holiday(holiday_date=day, name=name.strip(), description=description)
            self.db.add(holiday)
        else:
            holiday.name = name.strip()
            holiday.description = description
        self.db.flush()
        return holiday

    def remove(self, holiday_id: UUID) -> None:
        holiday = self.db.get(Holiday, holiday_id)
        if holiday is None:
            raise NotFoundError("Holiday", holiday_id)
        self.db.delete(holiday)
        self.db.flush()
        logger.info("Removed holiday %s on %s", holiday.name, holiday.holiday_date)

    def list(self, year: int | None = None) -> list[Holiday]:
        query = select(Holiday).order_by(Holiday.holiday_date)
        if year is not None:
            query = query.where(extract("year", Holiday.holiday_date) == year)
        return list(self.db.execute(query).scalars().all())


class AttendanceService:
    """Per-(worker, day) attendance with period aggregation.

    The (worker_id, work_date) unique constraint is the only duplicate guard;
    upserts update the existing row in place.
    """

    def __init__(self, db: Session, calendar: HolidayCalendar | None = None):
        self.db = db
        self.calendar = calendar or HolidayCalendar(db)

    def upsert(
        self,
        *,
        worker_id: UUID,
        work_date: date,
        status: AttendanceStatus | str | None = None,
        hours_worked: Decimal | int | str = 0,
        notes: str | None = None,
    ) -> AttendanceEntry:
        """Create or replace the entry for ``worker_id`` on ``work_date``.

        Raises:
            ValidationError: unknown status or negative hours
            NotFoundError: unknown worker
            ConflictError: a concurrent insert for the same day won the race
        """
        worker = self.db.get(Worker, worker_id, populate_existing=True)
        if worker is None:
            raise NotFoundError("Worker", worker_id)
        if work_date is None:
            raise ValidationError("work_date is required")

        entry_status = self._resolve_status(status, work_date)
        hours = to_decimal(hours_worked if hours_worked is not None else 0, "hours_worked")
        if hours < 0:
            raise ValidationError("hours_worked must not be negative")

        stored_hours, total_pay = compute_entry_pay(
            entry_status,
            hours,
            Decimal(worker.hourly_rate),
            Decimal(worker.daily_working_hours),
        )

        entry = self._existing_entry(worker_id, work_date)
        if entry is not None:
            entry.status = entry_status.value
            entry.hours_worked = stored_hours
            entry.total_pay = total_pay
            entry.notes = notes
            self.db.flush()
            return entry

        entry = AttendanceEntry(
            worker_id=worker_id,
            work_date=work_date,
            status=entry_status.value,
            hours_worked=stored_hours,
            total_pay=total_pay,
            notes=notes,
        )
        try:
            with self.db.begin_nested():
                self.db.add(entry)
                self.db.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"Attendance for worker {worker_id} on {work_date} was written concurrently"
            ) from e
        return entry

    def get_entries(
        self,
        *,
        worker_id: UUID | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[AttendanceEntry]:
        """Entries matching the filters, newest day first."""
        query = select(AttendanceEntry)
        if worker_id is not None:
            query = query.where(AttendanceEntry.worker_id == worker_id)
        if start is not None:
            query = query.where(AttendanceEntry.work_date >= start)
        if end is not None:
            query = query.where(AttendanceEntry.work_date <= end)
        query = query.order_by(AttendanceEntry.work_date.desc(), AttendanceEntry.worker_id)
        return list(self.db.execute(query).scalars().all())

    def delete_entry(self, entry_id: UUID) -> None:
        entry = self.db.get(AttendanceEntry, entry_id)
        if entry is None:
            raise NotFoundError("Attendance entry", entry_id)
        self.db.delete(entry)
        self.db.flush()
        logger.info(
            "Deleted attendance for worker %s on %s", entry.worker_id, entry.work_date
        )

    def aggregate(
        self, period: Period, worker_id: UUID | None = None
    ) -> dict[UUID, AttendanceTotals]:
        """Sum hours/pay and count days per worker over ``period``.

        A holiday stored with zero hours counts as a full standard day here;
        the stored entry is left as is.
        """
        query = (
            select(AttendanceEntry, Worker.hourly_rate, Worker.daily_working_hours)
            .join(Worker, Worker.worker_id == AttendanceEntry.worker_id)
            .where(
                AttendanceEntry.work_date >= period.start,
                AttendanceEntry.work_date <= period.end,
            )
            .execution_options(populate_existing=True)
        )
        if worker_id is not None:
            if self.db.get(Worker, worker_id) is None:
                raise NotFoundError("Worker", worker_id)
            query = query.where(AttendanceEntry.worker_id == worker_id)

        totals: dict[UUID, AttendanceTotals] = {}
        if worker_id is not None:
            totals[worker_id] = AttendanceTotals(worker_id)

        for entry, hourly_rate, daily_hours in self.db.execute(query).all():
            agg = totals.setdefault(entry.worker_id, AttendanceTotals(entry.worker_id))
            hours = Decimal(entry.hours_worked)
            pay = Decimal(entry.total_pay)

            if entry.status == AttendanceStatus.HOLIDAY.value and hours == 0:
                hours = Decimal(daily_hours)
                pay = money(hours * Decimal(hourly_rate))

            agg.total_hours += hours
            agg.total_pay = money(agg.total_pay + pay)
            agg.entry_count += 1
            if entry.status in (AttendanceStatus.PRESENT.value, AttendanceStatus.HOLIDAY.value):
                agg.days_present += 1
            elif entry.status == AttendanceStatus.ABSENT.value:
                agg.days_absent += 1
            elif entry.status == AttendanceStatus.HALF_DAY.value:
                agg.days_half += 1

        return totals

    def _existing_entry(self, worker_id: UUID, work_date: date) -> AttendanceEntry | None:
        return self.db.execute(
            select(AttendanceEntry)
            .where(
                AttendanceEntry.worker_id == worker_id,
                AttendanceEntry.work_date == work_date,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _resolve_status(
        self, status: AttendanceStatus | str | None, work_date: date
    ) -> AttendanceStatus:
        if status is None or status == "":
            if self.calendar.is_holiday(work_date):
                return AttendanceStatus.HOLIDAY
            return AttendanceStatus.PRESENT
        try:
            return AttendanceStatus(status)
        except ValueError as e:
            raise ValidationError(f"Invalid attendance status: {status!r}") from e

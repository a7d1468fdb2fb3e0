"""Attendance and holiday calendar endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from wage_ledger.api.dependencies import DbSession, QueryPeriod
from wage_ledger.api.schemas import (
    AttendanceEntryResponse,
    AttendanceTotalsResponse,
    AttendanceUpsertRequest,
    ErrorResponse,
    HolidayCreate,
    HolidayResponse,
)
from wage_ledger.services.attendance_service import AttendanceService, HolidayCalendar

router = APIRouter(tags=["attendance"])


# ============================================================================
# Attendance
# ============================================================================


@router.put(
    "/attendance",
    response_model=AttendanceEntryResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def upsert_attendance(
    db: DbSession, payload: AttendanceUpsertRequest
) -> AttendanceEntryResponse:
    """Create or replace the entry for one worker-day."""
    entry = AttendanceService(db).upsert(
        worker_id=payload.worker_id,
        work_date=payload.work_date,
        status=payload.status,
        hours_worked=payload.hours_worked,
        notes=payload.notes,
    )
    db.commit()
    return AttendanceEntryResponse.model_validate(entry)


@router.get("/attendance", response_model=list[AttendanceEntryResponse])
def list_attendance(
    db: DbSession,
    worker_id: UUID | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[AttendanceEntryResponse]:
    entries = AttendanceService(db).get_entries(worker_id=worker_id, start=start, end=end)
    return [AttendanceEntryResponse.model_validate(e) for e in entries]


@router.get("/attendance/aggregate", response_model=list[AttendanceTotalsResponse])
def aggregate_attendance(
    db: DbSession,
    period: QueryPeriod,
    worker_id: UUID | None = None,
) -> list[AttendanceTotalsResponse]:
    totals = AttendanceService(db).aggregate(period, worker_id=worker_id)
    return [AttendanceTotalsResponse.model_validate(t) for t in totals.values()]


@router.delete(
    "/attendance/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
def delete_attendance(db: DbSession, entry_id: Annotated[UUID, Path()]) -> None:
    AttendanceService(db).delete_entry(entry_id)
    db.commit()


# ============================================================================
# Holidays
# ============================================================================


@router.post(
    "/holidays",
    response_model=HolidayResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
def add_holiday(db: DbSession, payload: HolidayCreate) -> HolidayResponse:
    holiday = HolidayCalendar(db).add(payload.holiday_date, payload.name, payload.description)
    db.commit()
    return HolidayResponse.model_validate(holiday)


@router.get("/holidays", response_model=list[HolidayResponse])
def list_holidays(
    db: DbSession, year: Annotated[int | None, Query()] = None
) -> list[HolidayResponse]:
    return [HolidayResponse.model_validate(h) for h in HolidayCalendar(db).list(year)]


@router.delete(
    "/holidays/{holiday_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
def remove_holiday(db: DbSession, holiday_id: Annotated[UUID, Path()]) -> None:
    HolidayCalendar(db).remove(holiday_id)
    db.commit()

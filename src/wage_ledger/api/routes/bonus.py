"""Bonus draft endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from wage_ledger.api.dependencies import DbSession, QueryPeriod
from wage_ledger.api.schemas import (
    AmountRequest,
    BonusCalculateRequest,
    BonusCalculateResponse,
    BonusDraftResponse,
    BonusFinalizeRequest,
    BonusRecordResponse,
    BonusSummaryResponse,
    ErrorResponse,
    MarkPaidRequest,
    SettlementHistoryResponse,
)
from wage_ledger.calculators.types import Period
from wage_ledger.errors import ValidationError
from wage_ledger.services.bonus_service import BonusService

router = APIRouter(prefix="/bonus", tags=["bonus"])

ADJUST_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


@router.post(
    "/calculate",
    response_model=BonusCalculateResponse,
    responses={400: {"model": ErrorResponse}},
)
def calculate_bonus(db: DbSession, payload: BonusCalculateRequest) -> BonusCalculateResponse:
    """Compute drafts for the period; with ``persist`` the drafts are saved."""
    period = payload.to_period()
    service = BonusService(db)
    if not payload.persist:
        drafts = service.compute_drafts(
            period, payload.deduction_per_absent_day, payload.threshold_relative
        )
        return BonusCalculateResponse(
            period_start=period.start,
            period_end=period.end,
            persisted=False,
            drafts=[BonusDraftResponse.model_validate(d) for d in drafts],
        )

    records = service.compute_and_persist(
        period, payload.deduction_per_absent_day, payload.threshold_relative
    )
    db.commit()
    return BonusCalculateResponse(
        period_start=period.start,
        period_end=period.end,
        persisted=True,
        records=[BonusRecordResponse.model_validate(r) for r in records],
    )


@router.get("", response_model=list[BonusRecordResponse])
def list_bonus_records(
    db: DbSession,
    period_start: date | None = None,
    period_end: date | None = None,
) -> list[BonusRecordResponse]:
    if (period_start is None) != (period_end is None):
        raise ValidationError("period_start and period_end must be given together")
    period = Period(period_start, period_end) if period_start is not None else None
    return [BonusRecordResponse.model_validate(r) for r in BonusService(db).list_records(period)]


@router.get("/summary", response_model=BonusSummaryResponse)
def bonus_summary(db: DbSession, period: QueryPeriod) -> BonusSummaryResponse:
    summary = BonusService(db).summary(period)
    return BonusSummaryResponse(
        period_start=period.start,
        period_end=period.end,
        total_workers=summary.total_workers,
        workers_paid=summary.workers_paid,
        workers_pending=summary.workers_pending,
        total_gross=summary.total_gross,
        total_net=summary.total_net,
        total_paid=summary.total_paid,
        total_pending=summary.total_pending,
    )


@router.post(
    "/finalize",
    response_model=SettlementHistoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ADJUST_RESPONSES,
)
def finalize_bonus(db: DbSession, payload: BonusFinalizeRequest) -> SettlementHistoryResponse:
    """Post deposits and new advances, then snapshot the period's drafts."""
    history = BonusService(db).finalize(
        payload.to_period(), new_advances=payload.new_advances, notes=payload.notes
    )
    db.commit()
    return SettlementHistoryResponse.model_validate(history)


@router.get(
    "/{record_id}",
    response_model=BonusRecordResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_bonus_record(db: DbSession, record_id: Annotated[UUID, Path()]) -> BonusRecordResponse:
    return BonusRecordResponse.model_validate(BonusService(db).get_record(record_id))


@router.post(
    "/{record_id}/extra-bonus",
    response_model=BonusRecordResponse,
    responses=ADJUST_RESPONSES,
)
def add_extra_bonus(
    db: DbSession, record_id: Annotated[UUID, Path()], payload: AmountRequest
) -> BonusRecordResponse:
    record = BonusService(db).add_extra_bonus(record_id, payload.amount, payload.notes)
    db.commit()
    return BonusRecordResponse.model_validate(record)


@router.post(
    "/{record_id}/employee-deposit",
    response_model=BonusRecordResponse,
    responses=ADJUST_RESPONSES,
)
def add_employee_deposit(
    db: DbSession, record_id: Annotated[UUID, Path()], payload: AmountRequest
) -> BonusRecordResponse:
    record = BonusService(db).add_employee_deposit(record_id, payload.amount, payload.notes)
    db.commit()
    return BonusRecordResponse.model_validate(record)


@router.post(
    "/{record_id}/pay",
    response_model=BonusRecordResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def mark_bonus_paid(
    db: DbSession, record_id: Annotated[UUID, Path()], payload: MarkPaidRequest
) -> BonusRecordResponse:
    """Record the payout; the advance ledger is not touched."""
    record = BonusService(db).mark_paid(record_id, payload.amount_paid, payload.paid_date)
    db.commit()
    return BonusRecordResponse.model_validate(record)

"""Salary draft endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from wage_ledger.api.dependencies import DbSession
from wage_ledger.api.schemas import (
    ErrorResponse,
    SalaryAdjustmentInput,
    SalaryDraftResponse,
    SalaryRequest,
    SettlementHistoryResponse,
)
from wage_ledger.calculators.types import SalaryAdjustment
from wage_ledger.errors import ValidationError
from wage_ledger.services.salary_service import SalaryService

router = APIRouter(prefix="/salary", tags=["salary"])


def _adjustments(inputs: list[SalaryAdjustmentInput]) -> dict[UUID, SalaryAdjustment]:
    adjustments: dict[UUID, SalaryAdjustment] = {}
    for item in inputs:
        if item.worker_id in adjustments:
            raise ValidationError(f"Worker {item.worker_id} appears more than once")
        adjustments[item.worker_id] = SalaryAdjustment(item.deposit, item.new_advance)
    return adjustments


@router.post(
    "/calculate",
    response_model=list[SalaryDraftResponse],
    responses={400: {"model": ErrorResponse}},
)
def calculate_salary(db: DbSession, payload: SalaryRequest) -> list[SalaryDraftResponse]:
    drafts = SalaryService(db).compute_drafts(
        payload.to_period(), _adjustments(payload.adjustments)
    )
    return [SalaryDraftResponse.model_validate(d) for d in drafts]


@router.post(
    "/finalize",
    response_model=SettlementHistoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
def finalize_salary(db: DbSession, payload: SalaryRequest) -> SettlementHistoryResponse:
    """Post deposits and new advances, then snapshot the period's salary."""
    history = SalaryService(db).finalize(
        payload.to_period(), _adjustments(payload.adjustments), notes=payload.notes
    )
    db.commit()
    return SettlementHistoryResponse.model_validate(history)

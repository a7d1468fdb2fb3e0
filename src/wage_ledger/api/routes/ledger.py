"""Advance ledger endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from wage_ledger.api.dependencies import DbSession
from wage_ledger.api.schemas import (
    ErrorResponse,
    LedgerPostRequest,
    LedgerTransactionResponse,
    ReconciliationResponse,
    WorkerLedgerSummaryResponse,
)
from wage_ledger.models import LedgerEntryKind
from wage_ledger.services.ledger_service import LedgerService

router = APIRouter(prefix="/ledger", tags=["ledger"])

POST_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


def _post(db, kind: LedgerEntryKind, payload: LedgerPostRequest) -> LedgerTransactionResponse:
    transaction = LedgerService(db).append_transaction(
        worker_id=payload.worker_id,
        kind=kind,
        amount=payload.amount,
        entry_date=payload.entry_date,
        notes=payload.notes,
    )
    db.commit()
    return LedgerTransactionResponse.model_validate(transaction)


@router.post(
    "/advance",
    response_model=LedgerTransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=POST_RESPONSES,
)
def give_advance(db: DbSession, payload: LedgerPostRequest) -> LedgerTransactionResponse:
    """Lend money to a worker; increases the advance balance."""
    return _post(db, LedgerEntryKind.ADVANCE, payload)


@router.post(
    "/repayment",
    response_model=LedgerTransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=POST_RESPONSES,
)
def record_repayment(db: DbSession, payload: LedgerPostRequest) -> LedgerTransactionResponse:
    """Worker pays back part of the advance."""
    return _post(db, LedgerEntryKind.REPAYMENT, payload)


@router.post(
    "/deposit",
    response_model=LedgerTransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=POST_RESPONSES,
)
def record_deposit(db: DbSession, payload: LedgerPostRequest) -> LedgerTransactionResponse:
    """Withheld earnings applied against the advance balance."""
    return _post(db, LedgerEntryKind.DEPOSIT, payload)


@router.get(
    "/workers/{worker_id}/history",
    response_model=list[LedgerTransactionResponse],
    responses={404: {"model": ErrorResponse}},
)
def get_history(
    db: DbSession, worker_id: Annotated[UUID, Path()]
) -> list[LedgerTransactionResponse]:
    history = LedgerService(db).get_history(worker_id)
    return [LedgerTransactionResponse.model_validate(tx) for tx in history]


@router.get("/transactions", response_model=list[LedgerTransactionResponse])
def list_transactions(
    db: DbSession,
    worker_id: UUID | None = None,
    kind: Annotated[str | None, Query()] = None,
    start: date | None = None,
    end: date | None = None,
) -> list[LedgerTransactionResponse]:
    transactions = LedgerService(db).list_transactions(
        worker_id=worker_id, kind=kind, start=start, end=end
    )
    return [LedgerTransactionResponse.model_validate(tx) for tx in transactions]


@router.get("/summary", response_model=list[WorkerLedgerSummaryResponse])
def ledger_summary(db: DbSession) -> list[WorkerLedgerSummaryResponse]:
    return [WorkerLedgerSummaryResponse.model_validate(s) for s in LedgerService(db).summary()]


@router.get(
    "/workers/{worker_id}/reconcile",
    response_model=ReconciliationResponse,
    responses={404: {"model": ErrorResponse}},
)
def reconcile_worker(
    db: DbSession, worker_id: Annotated[UUID, Path()]
) -> ReconciliationResponse:
    """Compare the cached balance with the folded history. Read-only."""
    return ReconciliationResponse.model_validate(LedgerService(db).reconcile(worker_id))

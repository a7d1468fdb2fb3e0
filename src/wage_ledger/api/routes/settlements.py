"""Settlement history endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from wage_ledger.api.dependencies import DbSession
from wage_ledger.api.schemas import ErrorResponse, SettlementHistoryResponse
from wage_ledger.services.settlement_service import SettlementService

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.get("", response_model=list[SettlementHistoryResponse])
def list_settlements(
    db: DbSession,
    kind: Annotated[str | None, Query()] = None,
    year: Annotated[int | None, Query()] = None,
    start: date | None = None,
    end: date | None = None,
) -> list[SettlementHistoryResponse]:
    """Saved snapshots, newest first."""
    history = SettlementService(db).list_history(kind=kind, year=year, start=start, end=end)
    return [SettlementHistoryResponse.model_validate(h) for h in history]


@router.get(
    "/{history_id}",
    response_model=SettlementHistoryResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_settlement(
    db: DbSession, history_id: Annotated[UUID, Path()]
) -> SettlementHistoryResponse:
    return SettlementHistoryResponse.model_validate(SettlementService(db).get_history(history_id))


@router.delete(
    "/{history_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
def delete_settlement(db: DbSession, history_id: Annotated[UUID, Path()]) -> None:
    """Remove the snapshot; ledger transactions it posted remain."""
    SettlementService(db).delete_history(history_id)
    db.commit()

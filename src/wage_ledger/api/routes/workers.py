"""Worker directory endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from wage_ledger.api.dependencies import DbSession
from wage_ledger.api.schemas import (
    ErrorResponse,
    WorkerCreate,
    WorkerResponse,
    WorkerUpdate,
)
from wage_ledger.services.worker_service import WorkerService

router = APIRouter(prefix="/workers", tags=["workers"])


@router.post(
    "",
    response_model=WorkerResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_worker(db: DbSession, payload: WorkerCreate) -> WorkerResponse:
    """Register a worker with a zero advance balance."""
    worker = WorkerService(db).create_worker(
        worker_code=payload.worker_code,
        name=payload.name,
        hourly_rate=payload.hourly_rate,
        daily_working_hours=payload.daily_working_hours,
        is_active=payload.is_active,
    )
    db.commit()
    return WorkerResponse.model_validate(worker)


@router.get("", response_model=list[WorkerResponse])
def list_workers(
    db: DbSession,
    active_only: Annotated[bool, Query()] = False,
) -> list[WorkerResponse]:
    workers = WorkerService(db).list_workers(active_only=active_only)
    return [WorkerResponse.model_validate(w) for w in workers]


@router.get(
    "/{worker_id}",
    response_model=WorkerResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_worker(db: DbSession, worker_id: Annotated[UUID, Path()]) -> WorkerResponse:
    return WorkerResponse.model_validate(WorkerService(db).get_worker(worker_id))


@router.put(
    "/{worker_id}",
    response_model=WorkerResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
def update_worker(
    db: DbSession,
    worker_id: Annotated[UUID, Path()],
    payload: WorkerUpdate,
) -> WorkerResponse:
    """Update profile fields. The advance balance cannot be edited."""
    worker = WorkerService(db).update_worker(
        worker_id, **payload.model_dump(exclude_unset=True)
    )
    db.commit()
    return WorkerResponse.model_validate(worker)


@router.delete(
    "/{worker_id}",
    response_model=WorkerResponse,
    responses={404: {"model": ErrorResponse}},
)
def deactivate_worker(db: DbSession, worker_id: Annotated[UUID, Path()]) -> WorkerResponse:
    """Soft delete: the worker drops out of new drafts, history stays."""
    worker = WorkerService(db).set_active(worker_id, False)
    db.commit()
    return WorkerResponse.model_validate(worker)

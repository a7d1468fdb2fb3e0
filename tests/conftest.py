"""Pytest fixtures for wage ledger tests."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Generator
from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session, sessionmaker

from wage_ledger.database import get_engine
from wage_ledger.models import AttendanceStatus, Base, Worker
from wage_ledger.services.attendance_service import AttendanceService
from wage_ledger.services.worker_service import WorkerService

# In-memory SQLite, one fresh database per test
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture
def engine():
    """Create test database engine with the full schema."""
    engine = get_engine(TEST_DATABASE_URL)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return sessionmaker(engine, class_=Session, expire_on_commit=False, autoflush=False)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    """Database session for each test."""
    with session_factory() as session:
        yield session
        session.rollback()


@pytest.fixture
def make_worker(db: Session) -> Callable[..., Worker]:
    """Factory for workers with sequential codes W001, W002, ..."""
    counter = itertools.count(1)
    service = WorkerService(db)

    def _make(
        name: str | None = None,
        hourly_rate: str = "100",
        daily_working_hours: str = "8",
        is_active: bool = True,
        worker_code: str | None = None,
    ) -> Worker:
        n = next(counter)
        return service.create_worker(
            worker_code=worker_code or f"W{n:03d}",
            name=name or f"Worker {n}",
            hourly_rate=Decimal(hourly_rate),
            daily_working_hours=Decimal(daily_working_hours),
            is_active=is_active,
        )

    return _make


@pytest.fixture
def record_days(db: Session) -> Callable[..., None]:
    """Write consecutive attendance days for a worker starting at ``start``."""
    attendance = AttendanceService(db)

    def _record(
        worker: Worker,
        start: date,
        present: int = 0,
        absent: int = 0,
        hours: str = "8",
    ) -> None:
        day = start
        for _ in range(present):
            attendance.upsert(
                worker_id=worker.worker_id,
                work_date=day,
                status=AttendanceStatus.PRESENT,
                hours_worked=Decimal(hours),
            )
            day += timedelta(days=1)
        for _ in range(absent):
            attendance.upsert(
                worker_id=worker.worker_id,
                work_date=day,
                status=AttendanceStatus.ABSENT,
            )
            day += timedelta(days=1)

    return _record

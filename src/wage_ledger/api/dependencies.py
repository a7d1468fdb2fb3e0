"""FastAPI dependencies for dependency injection."""

from collections.abc import Generator
from datetime import date
from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from wage_ledger.calculators.types import Period
from wage_ledger.database import init_db


def get_db_session() -> Generator[Session, None, None]:
    """Get database session dependency.

    Routes commit explicitly; anything left uncommitted is rolled back on close.
    """
    _, factory = init_db()
    with factory() as session:
        yield session


def get_period(
    period_start: Annotated[date, Query()],
    period_end: Annotated[date, Query()],
) -> Period:
    """Inclusive period from ``period_start``/``period_end`` query parameters."""
    return Period(period_start, period_end)


# Type aliases for cleaner dependency injection
DbSession = Annotated[Session, Depends(get_db_session)]
QueryPeriod = Annotated[Period, Depends(get_period)]

"""API routes."""

from wage_ledger.api.routes.attendance import router as attendance_router
from wage_ledger.api.routes.bonus import router as bonus_router
from wage_ledger.api.routes.health import router as health_router
from wage_ledger.api.routes.ledger import router as ledger_router
from wage_ledger.api.routes.salary import router as salary_router
from wage_ledger.api.routes.settlements import router as settlements_router
from wage_ledger.api.routes.workers import router as workers_router

__all__ = [
    "attendance_router",
    "bonus_router",
    "health_router",
    "ledger_router",
    "salary_router",
    "settlements_router",
    "workers_router",
]

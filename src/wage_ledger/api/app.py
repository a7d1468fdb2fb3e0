"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from wage_ledger import __version__
from wage_ledger.api.routes import (
    attendance_router,
    bonus_router,
    health_router,
    ledger_router,
    salary_router,
    settlements_router,
    workers_router,
)
from wage_ledger.config import configure_logging
from wage_ledger.database import create_schema, dispose_db, init_db
from wage_ledger.errors import InternalError, WageLedgerError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    configure_logging()
    engine, _ = init_db()
    create_schema(engine)
    yield
    # Shutdown
    dispose_db()


def _error_response(exc: WageLedgerError, context: dict | None = None) -> JSONResponse:
    content = {"detail": exc.message, "code": exc.code}
    if context:
        content["context"] = context
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(content))


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Wage Ledger API",
        description="Worker advance ledger with bonus and salary settlement",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(WageLedgerError)
    async def domain_exception_handler(request: Request, exc: WageLedgerError) -> JSONResponse:
        """Render domain errors with their code and status."""
        context = None
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        cause = getattr(exc, "cause", None)
        if cause is not None:
            context = {"worker_id": exc.worker_id, "cause": cause.code}
        return _error_response(exc, context)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed bodies and parameters are validation errors like any other."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": "Request validation failed",
                "code": "VALIDATION_ERROR",
                "context": {"errors": jsonable_encoder(exc.errors())},
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        """Unexpected storage failures."""
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        return _error_response(InternalError("A storage error occurred"))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(workers_router, prefix="/api/v1")
    app.include_router(ledger_router, prefix="/api/v1")
    app.include_router(attendance_router, prefix="/api/v1")
    app.include_router(bonus_router, prefix="/api/v1")
    app.include_router(salary_router, prefix="/api/v1")
    app.include_router(settlements_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()

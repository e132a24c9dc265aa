"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hrms_payroll import __version__
from hrms_payroll.api.routes import health_router, payroll_router
from hrms_payroll.config import get_settings
from hrms_payroll.database import dispose_db, init_db
from hrms_payroll.exceptions import PayrollError, TransactionFailure, ValidationError
from hrms_payroll.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    init_db()
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(level=settings.log_level, fmt=settings.log_format)

    app = FastAPI(
        title="HRMS Payroll API",
        description="Salary structures, payroll runs and payslips",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Render schema rejections like any other validation error."""
        errors = [
            {"loc": [str(part) for part in e["loc"]], "msg": e["msg"], "type": e["type"]}
            for e in exc.errors()
        ]
        first = errors[0] if errors else None
        if first is None:
            detail = "Invalid request"
        else:
            field = ".".join(
                p for p in first["loc"] if p not in ("body", "query", "path", "header")
            )
            detail = f"{field}: {first['msg']}" if field else first["msg"]
        return JSONResponse(
            status_code=ValidationError.http_status,
            content={
                "detail": detail,
                "code": ValidationError.code,
                "context": {"errors": errors},
            },
        )

    @app.exception_handler(PayrollError)
    async def payroll_exception_handler(
        request: Request, exc: PayrollError
    ) -> JSONResponse:
        """Map typed payroll errors onto their HTTP status."""
        if isinstance(exc, TransactionFailure):
            # Already logged with traceback where it was raised
            return JSONResponse(
                status_code=exc.http_status,
                content={"detail": exc.message, "code": exc.code},
            )
        return JSONResponse(
            status_code=exc.http_status,
            content={
                "detail": exc.message,
                "code": exc.code,
                "context": {k: str(v) for k, v in exc.context.items()} or None,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
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
    app.include_router(payroll_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()

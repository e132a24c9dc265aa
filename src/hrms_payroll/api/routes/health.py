"""Liveness, readiness and health endpoints for the payroll service."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrms_payroll import __version__
from hrms_payroll.api.dependencies import DbSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

SERVICE_NAME = "hrms-payroll"


class HealthResponse(BaseModel):
    """Service identity plus database reachability."""

    service: str
    version: str
    status: str
    database: str
    checked_at: datetime


async def _database_reachable(db: AsyncSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Payroll database is unreachable", exc_info=True)
        return False
    return True


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession) -> HealthResponse:
    """Report version and database state; a degraded database still answers 200."""
    reachable = await _database_reachable(db)
    return HealthResponse(
        service=SERVICE_NAME,
        version=__version__,
        status="healthy" if reachable else "degraded",
        database="reachable" if reachable else "unreachable",
        checked_at=datetime.now(timezone.utc),
    )


@router.get("/ready")
async def readiness_check(db: DbSession) -> JSONResponse:
    """Ready only when payroll runs could reach the database."""
    if await _database_reachable(db):
        return JSONResponse({"status": "ready"})
    return JSONResponse(
        {"status": "not_ready", "reason": "database unreachable"},
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}

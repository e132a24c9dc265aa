"""FastAPI dependencies for dependency injection.

Tenant and acting user come from headers set by the upstream identity layer;
this service trusts them as given.
"""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrms_payroll.config import get_settings
from hrms_payroll.database import init_db
from hrms_payroll.services.payroll_service import PayrollOrchestrator


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the application session factory."""
    _, factory = init_db()
    return factory


SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


async def get_db_session(factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency; uncommitted work is rolled back on close."""
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_orchestrator(factory: SessionFactory) -> PayrollOrchestrator:
    """Payroll orchestrator bound to the application session factory."""
    return PayrollOrchestrator(
        factory,
        isolation_level=get_settings().payroll_isolation_level,
    )


def _parse_uuid_header(value: str, name: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name} format",
        )


async def get_tenant_id(
    x_tenant_id: Annotated[str | None, Header()] = None
) -> UUID:
    """Extract tenant ID from header."""
    if not x_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header is required",
        )
    return _parse_uuid_header(x_tenant_id, "X-Tenant-ID")


async def get_actor_id(
    x_user_id: Annotated[str | None, Header()] = None
) -> UUID | None:
    """Extract the acting user ID from header, if present."""
    if not x_user_id:
        return None
    return _parse_uuid_header(x_user_id, "X-User-ID")


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
TenantId = Annotated[UUID, Depends(get_tenant_id)]
ActorId = Annotated[UUID | None, Depends(get_actor_id)]
Orchestrator = Annotated[PayrollOrchestrator, Depends(get_orchestrator)]

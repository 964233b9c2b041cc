"""Service health endpoints.

``/health`` reports database reachability and how many payroll runs are
still open (DRAFT or LOCKED). ``/ready`` fails with 503 while the database is
unreachable; ``/live`` only says the process answers.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hr_engine import __version__
from hr_engine.api.dependencies import DbSession
from hr_engine.api.schemas import HealthResponse
from hr_engine.models import PayrollRun
from hr_engine.services.state_machine import PayrollRunStatus

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

OPEN_RUN_STATUSES = (PayrollRunStatus.DRAFT.value, PayrollRunStatus.LOCKED.value)


async def _open_payroll_runs(db: AsyncSession) -> int | None:
    """Count open payroll runs; None when the database cannot be queried."""
    try:
        return await db.scalar(
            select(func.count())
            .select_from(PayrollRun)
            .where(PayrollRun.status.in_(OPEN_RUN_STATUSES))
        )
    except SQLAlchemyError:
        logger.warning("Database health query failed", exc_info=True)
        return None


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession) -> HealthResponse:
    """API version, database state and open payroll run count."""
    open_runs = await _open_payroll_runs(db)
    reachable = open_runs is not None
    return HealthResponse(
        status="healthy" if reachable else "degraded",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        database="healthy" if reachable else "unhealthy",
        open_payroll_runs=open_runs,
    )


@router.get("/ready", responses={503: {"description": "Database unreachable"}})
async def readiness_check(db: DbSession) -> JSONResponse:
    if await _open_payroll_runs(db) is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable"},
        )
    return JSONResponse(content={"status": "ready"})


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}

"""Health check endpoints for container orchestration."""

from typing import Any

from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse

from src.database import check_database_connection

router = APIRouter(tags=["Health"])


async def _database_status(ok_label: str, failed_label: str) -> JSONResponse:
    if await check_database_connection():
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": ok_label, "database": "connected"},
        )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": failed_label, "database": "disconnected"},
    )


@router.get("/health", response_model=None)
async def health_check() -> Response:
    """Health check with database status.

    The token store and grant ledger live in the database, so the service
    is degraded without it. Bearer links keep working.
    """
    return await _database_status("healthy", "degraded")


@router.get("/health/live")
async def liveness_probe() -> dict[str, Any]:
    """Liveness probe: the process is running. Does not touch the database."""
    return {"status": "alive"}


@router.get("/health/ready", response_model=None)
async def readiness_probe() -> Response:
    """Readiness probe: the database is reachable."""
    return await _database_status("ready", "not_ready")

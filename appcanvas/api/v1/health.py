"""
Kubernetes-style health checks. Liveness never touches dependencies;
readiness fails only when the configured storage is unreachable, since
Redis merely backs the AI rate limiter.
"""
import asyncio
import time
from datetime import datetime, timezone
from typing import Awaitable, Dict, Literal, Optional

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from appcanvas.config import settings
from appcanvas.core.cache import cache_manager
from appcanvas.core.database import db_manager
from appcanvas.utils.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)

STARTED_AT = time.monotonic()

DependencyState = Literal["healthy", "unhealthy", "disabled"]


class LivenessResponse(BaseModel):
    status: str
    timestamp: str
    uptime_seconds: float


class DependencyStatus(BaseModel):
    name: str
    status: DependencyState
    response_time_ms: Optional[float] = None
    message: Optional[str] = None
    last_checked: str


class ReadinessResponse(BaseModel):
    status: Literal["ready", "not_ready"]
    ready: bool
    version: str
    storage_backend: str
    dependencies: Dict[str, DependencyStatus]
    timestamp: str


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _skipped(name: str, reason: Optional[str] = None) -> DependencyStatus:
    return DependencyStatus(name=name, status="disabled", message=reason, last_checked=_utc_now())


async def _check_dependency(name: str, check: Awaitable, timeout: float) -> DependencyStatus:
    """Run ``check`` under ``timeout``; a falsy result or any error is unhealthy"""
    started = time.perf_counter()
    try:
        ok = await asyncio.wait_for(check, timeout=timeout)
        message = "Connected" if ok else "Not connected"
    except asyncio.TimeoutError:
        ok, message = False, f"No answer within {timeout:g}s"
    except Exception as e:
        ok, message = False, str(e)

    return DependencyStatus(
        name=name,
        status="healthy" if ok else "unhealthy",
        response_time_ms=round((time.perf_counter() - started) * 1000, 2),
        message=message,
        last_checked=_utc_now(),
    )


async def _database_ok() -> bool:
    if not db_manager.is_connected:
        return False
    return await db_manager.fetch_val("SELECT 1") == 1


async def check_database() -> DependencyStatus:
    if settings.storage_backend != "postgres":
        return _skipped("PostgreSQL", "In-memory storage")
    return await _check_dependency("PostgreSQL", _database_ok(), timeout=2.0)


async def check_redis() -> DependencyStatus:
    if not settings.redis_enabled:
        return _skipped("Redis")
    return await _check_dependency("Redis", cache_manager.ping(), timeout=1.0)


@router.get("/health/live", response_model=LivenessResponse, summary="Liveness check")
async def liveness_check() -> LivenessResponse:
    return LivenessResponse(
        status="alive",
        timestamp=_utc_now(),
        uptime_seconds=round(time.monotonic() - STARTED_AT, 1),
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="503 while the configured storage is unreachable",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    database, redis = await asyncio.gather(check_database(), check_redis())
    dependencies = {"database": database, "redis": redis}
    ready = database.status != "unhealthy"

    states = {key: dep.status for key, dep in dependencies.items()}
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("health.ready.failing", extra={"dependencies": states})
    else:
        logger.debug("health.ready.ok", extra={"dependencies": states})

    return ReadinessResponse(
        status="ready" if ready else "not_ready",
        ready=ready,
        version=settings.app_version,
        storage_backend=settings.storage_backend,
        dependencies=dependencies,
        timestamp=_utc_now(),
    )

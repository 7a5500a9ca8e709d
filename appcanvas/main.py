"""
FastAPI application for the app builder service.

Serves:
1. App documents (/api/v1/apps) and their data records (/api/v1/data)
2. AI assistant endpoints (/api/v1/ai)
3. The widget palette (/api/v1/components)
4. Liveness and readiness checks (/health)
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uuid
import time

from appcanvas.config import settings
from appcanvas.core.cache import cache_manager
from appcanvas.core.database import db_manager
from appcanvas.core.logger import setup_logging
from appcanvas.utils.logging import get_logger, log_context
from appcanvas.api.v1 import api_router, health_router

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


# ============================================================================
# APPLICATION LIFESPAN
# ============================================================================

def _check_production_secrets() -> None:
    if settings.is_production and settings.jwt_secret_key == "change-me-in-production":
        logger.critical("app.startup.insecure_jwt_secret", message="Set APPCANVAS_JWT_SECRET_KEY")
        raise RuntimeError("Refusing to start in production with the default JWT secret")


async def _open_storage() -> None:
    """Postgres is mandatory when configured; startup aborts without it"""
    if settings.storage_backend != "postgres":
        logger.info("app.startup.storage.memory", message="Apps and records are kept in process memory")
        return

    try:
        await db_manager.connect()
        await db_manager.ensure_schema()
    except Exception as e:
        logger.critical("app.startup.storage.failed", exc_info=e)
        raise
    logger.info("app.startup.storage.ready", extra={"backend": "postgres"})


async def _open_rate_limit_store() -> None:
    """Redis only backs the AI rate limiter; without it the limiter lets everything through"""
    if not settings.redis_enabled:
        return

    try:
        await cache_manager.connect()
    except Exception as e:
        logger.error(
            "app.startup.redis.unavailable",
            message="AI rate limiting disabled until restart",
            exc_info=e,
        )
        return
    logger.info("app.startup.redis.ready")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    with log_context(correlation_id=f"startup-{uuid.uuid4().hex[:8]}"):
        logger.info(
            "app.startup.started",
            extra={
                "version": settings.app_version,
                "environment": settings.environment,
                "storage_backend": settings.storage_backend,
                "llm_enabled": settings.llm_enabled,
            }
        )
        _check_production_secrets()
        await _open_storage()
        await _open_rate_limit_store()
        logger.info("app.startup.completed")

    yield

    with log_context(correlation_id=f"shutdown-{uuid.uuid4().hex[:8]}"):
        await cache_manager.disconnect()
        await db_manager.disconnect()
        logger.info("app.shutdown.completed")


# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Drag-and-drop app builder: layout documents, app data and AI assistance",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_HEADER, "Retry-After"],
)


# ============================================================================
# CORRELATION / ACCESS LOG MIDDLEWARE
# ============================================================================

@app.middleware("http")
async def correlation_middleware(request: Request, call_next):
    """Tag every request with a correlation id and log its outcome"""
    correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
    request.state.correlation_id = correlation_id
    started = time.perf_counter()
    request_info = {"method": request.method, "path": request.url.path}

    with log_context(correlation_id=correlation_id):
        logger.debug("http.request.received", extra=request_info)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "http.request.failed",
                extra={**request_info, "duration_ms": (time.perf_counter() - started) * 1000},
                exc_info=e,
            )
            raise

        logger.performance(
            "http.request.completed",
            duration_ms=(time.perf_counter() - started) * 1000,
            extra={**request_info, "status_code": response.status_code},
        )

    response.headers[CORRELATION_HEADER] = correlation_id
    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    correlation_id = getattr(request.state, "correlation_id", None) or request.headers.get(CORRELATION_HEADER)

    with log_context(correlation_id=correlation_id):
        logger.error(
            "app.exception.unhandled",
            extra={"method": request.method, "path": request.url.path, "exception_type": type(exc).__name__},
            exc_info=exc,
        )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "correlation_id": correlation_id,
        },
    )


# ============================================================================
# ROUTERS
# ============================================================================

app.include_router(health_router, tags=["Health"])
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/", tags=["Health"])
async def root():
    """Service identity and entry points"""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs",
        "health": {
            "liveness": "/health/live",
            "readiness": "/health/ready"
        },
        "api": {
            "apps": f"{settings.api_prefix}/apps",
            "data": f"{settings.api_prefix}/data/{{appId}}",
            "ai": f"{settings.api_prefix}/ai",
            "components": f"{settings.api_prefix}/components"
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "appcanvas.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )

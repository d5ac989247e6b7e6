"""FastAPI application entrypoint — lifespan, middleware, health, routers."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from redis.asyncio import Redis
from sqlalchemy import text

from catalog.config import StorageBackend, get_settings
from catalog.database import engine
from catalog.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from catalog.middleware.rate_limit import RateLimitMiddleware
from catalog.routes import auth, cultivars, logs

logger = structlog.get_logger("catalog")

SERVICE_NAME = "cultivar-catalog"
SERVICE_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Configure structured logging
      2. Verify the database connection
      3. Connect to Redis (rate limiting)

    Shutdown:
      1. Close the Redis connection pool
      2. Dispose the SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "catalog_starting",
        log_level=settings.log_level,
        storage_backend=settings.storage_backend.value,
    )

    if settings.storage_backend == StorageBackend.local:
        Path(settings.storage_local_root).mkdir(parents=True, exist_ok=True)

    redis: Redis | None = None
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))

        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        await redis.ping()
        app.state.redis = redis
    except Exception as exc:
        logger.exception("startup_failed", error=str(exc))
        raise

    yield

    logger.info("catalog_shutting_down")
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="Cultivar Catalog API",
    description=(
        "Cannabis cultivar catalog with an append-only audit trail embedded "
        "in every cultivar, status transitions, image uploads and reviews."
    ),
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware ──────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)


# ── Health checks ───────────────────────────────────────────────────────────
async def _check_database() -> None:
    async with engine.connect() as connection:
        await connection.execute(text("SELECT 1"))


async def _run_readiness_checks(app: FastAPI) -> dict[str, str]:
    checks: dict[str, str] = {}
    try:
        await _check_database()
        checks["database"] = "ok"
    except Exception as exc:
        logger.warning("readiness_database_failed", error=str(exc))
        checks["database"] = "unavailable"

    redis_client = getattr(app.state, "redis", None)
    if redis_client is None:
        checks["redis"] = "unavailable"
    else:
        try:
            await redis_client.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            logger.warning("readiness_redis_failed", error=str(exc))
            checks["redis"] = "unavailable"
    return checks


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Liveness — the API process is up."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    """Readiness — database and Redis are reachable."""
    checks = await _run_readiness_checks(app)
    ready = all(value == "ok" for value in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ok" if ready else "degraded", "checks": checks},
    )


# ── Router registration ────────────────────────────────────────────────────
app.include_router(cultivars.router, prefix="/api/v1")
app.include_router(logs.router, prefix="/api/v1")
app.include_router(auth.router, prefix="/api/v1")

# Local uploads are served by the API itself; S3 objects are served by the bucket.
if get_settings().storage_backend == StorageBackend.local:
    app.mount(
        "/uploads",
        StaticFiles(directory=get_settings().storage_local_root, check_dir=False),
        name="uploads",
    )

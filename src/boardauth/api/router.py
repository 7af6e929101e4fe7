"""Root API router with health endpoints and module mounting."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text

from boardauth.core.auth.dependencies import Components, DBSession
from boardauth.core.auth.routes import router as auth_router
from boardauth.core.auth.websocket import router as realtime_router
from boardauth.core.cache import ping_redis


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str


class ReadinessResponse(BaseModel):
    """Readiness check response schema."""

    status: str
    checks: dict[str, str]


# Create root API router
api_router = APIRouter()

health_router = APIRouter(tags=["health"])


@health_router.get(
    "/health/live",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Returns 200 if the process is running.",
)
async def liveness() -> HealthResponse:
    """Liveness probe endpoint."""
    return HealthResponse(status="alive")


@health_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Checks database connectivity, and Redis when it backs rate limiting.",
)
async def readiness(db: DBSession, components: Components) -> JSONResponse:
    """Readiness probe endpoint."""
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = type(e).__name__

    if components.settings.rate_limit_backend == "redis":
        try:
            await ping_redis(str(components.settings.redis_url))
            checks["redis"] = "ok"
        except Exception as e:
            checks["redis"] = type(e).__name__

    all_ok = all(v == "ok" for v in checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK
        if all_ok
        else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if all_ok else "degraded",
            "checks": checks,
        },
    )


api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(realtime_router)

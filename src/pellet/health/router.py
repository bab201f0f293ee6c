"""Health, readiness, and version endpoints."""

from fastapi import APIRouter

from pellet.config import get_settings
from pellet.database import ping_db
from pellet.redis_client import get_redis

router = APIRouter()

_OK = frozenset({"ok", "memory", "disabled"})


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness() -> dict[str, object]:
    """Readiness probe: checks store and cache connectivity."""
    settings = get_settings()
    checks: dict[str, object] = {}

    if settings.store_backend == "memory":
        checks["database"] = "memory"
    else:
        try:
            await ping_db()
            checks["database"] = "ok"
        except Exception as exc:
            checks["database"] = f"error: {exc}"

    redis = get_redis()
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            checks["redis"] = f"error: {exc}"

    all_ok = all(v in _OK for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }

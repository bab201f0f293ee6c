"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pellet.analytics.router import router as analytics_router
from pellet.config import get_settings
from pellet.database import close_db, init_db
from pellet.gamification.router import router as gamification_router
from pellet.health.router import router as health_router
from pellet.middleware import setup_middleware
from pellet.redis_client import close_redis, init_redis
from pellet.tagging.router import router as tagging_router
from pellet.users.router import router as users_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    if settings.store_backend == "sql":
        await init_db(settings.database_url, create_tables=settings.create_tables)

    await init_redis(settings.redis_url)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Pellet API",
        description="Driver tagging, progression and analytics",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(tagging_router)
    app.include_router(gamification_router)
    app.include_router(analytics_router)

    return app


app = create_app()

"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from g15.admin.router import router as admin_router
from g15.assistant.router import router as assistant_router
from g15.auth.router import router as auth_router
from g15.config import get_settings
from g15.dashboard.router import router as dashboard_router
from g15.database import close_db, create_tables, get_session, init_db
from g15.finance.budget_router import router as budget_router
from g15.finance.goal_router import router as goal_router
from g15.finance.router import router as transactions_router
from g15.gamification.router import router as gamification_router
from g15.gamification.seed import seed_badges
from g15.groups.router import invitations_router
from g15.groups.router import router as groups_router
from g15.health.router import router as health_router
from g15.middleware import setup_middleware
from g15.pro.router import router as pro_router
from g15.redis_client import close_redis, init_redis
from g15.social.notification_router import router as notification_router
from g15.social.showcase_router import router as showcase_router
from g15.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.create_tables_on_startup:
        await create_tables()

    # Redis is optional: without it rate limiting, lockout and caching are off
    if settings.redis_url:
        await init_redis(settings.redis_url)
    else:
        logger.warning("Redis URL not configured; running without Redis")

    # Seed badge definitions (idempotent)
    if settings.seed_badges_on_startup:
        try:
            async for db in get_session():
                await seed_badges(db)
                break
        except Exception:
            logger.warning("Badge seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="G15 Finance API",
        description="Backend API for G15 Finance: personal budgets, savings goals and shared group expenses",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(transactions_router)
    app.include_router(goal_router)
    app.include_router(budget_router)
    app.include_router(dashboard_router)
    app.include_router(groups_router)
    app.include_router(invitations_router)
    app.include_router(gamification_router)
    app.include_router(notification_router)
    app.include_router(showcase_router)
    app.include_router(pro_router)
    app.include_router(admin_router)
    app.include_router(assistant_router)

    return app


app = create_app()

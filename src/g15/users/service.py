"""User profile business logic."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import User, UserBadge
from g15.users.schemas import ProfileResponse

logger = structlog.get_logger()


async def count_badges(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(UserBadge).where(UserBadge.user_id == user_id)
    )
    return result.scalar_one()


async def build_profile(db: AsyncSession, user: User) -> ProfileResponse:
    """Build a ProfileResponse, including the earned badge count."""
    return ProfileResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        display_name=user.display_name,
        is_pro=user.is_pro,
        is_admin=user.is_admin,
        points=user.points,
        login_streak=user.login_streak,
        badges_earned=await count_badges(db, user.id),
        created_at=user.created_at,
        last_login=user.last_login,
    )


async def update_profile(
    db: AsyncSession,
    user: User,
    first_name: str | None = None,
    last_name: str | None = None,
) -> User:
    """Update name fields. Blank strings are stored as NULL."""
    if first_name is not None:
        user.first_name = first_name.strip() or None
    if last_name is not None:
        user.last_name = last_name.strip() or None
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("profile_updated", user_id=user.id)
    return user

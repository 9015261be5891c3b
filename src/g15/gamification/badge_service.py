"""Badge award service with duplicate prevention and notification."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import Badge, User, UserBadge
from g15.social.notification_service import create_notification

logger = logging.getLogger(__name__)

SECRET_PLACEHOLDER = "???"


async def get_badge_by_slug(db: AsyncSession, slug: str) -> Badge | None:
    """Fetch a badge definition by slug."""
    result = await db.execute(select(Badge).where(Badge.slug == slug))
    return result.scalar_one_or_none()


async def has_badge(db: AsyncSession, user_id: int, badge_id: int) -> bool:
    """Check if user already has a specific badge."""
    result = await db.execute(
        select(UserBadge.id).where(
            UserBadge.user_id == user_id,
            UserBadge.badge_id == badge_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def award_badge(db: AsyncSession, user_id: int, badge_slug: str) -> bool:
    """Award a badge to a user.

    Returns True if awarded, False if already earned or badge not found.
    Handles:
    1. Insert into user_badges (with UNIQUE constraint)
    2. Credit the badge's points to the user
    3. Emit a badge_earned notification
    """
    badge = await get_badge_by_slug(db, badge_slug)
    if badge is None:
        logger.warning("Badge not found: %s", badge_slug)
        return False

    if await has_badge(db, user_id, badge.id):
        return False

    db.add(UserBadge(
        user_id=user_id,
        badge_id=badge.id,
        earned_at=datetime.now(timezone.utc),
        is_public=True,
    ))

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        return False  # Race condition: badge already awarded

    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(points=User.points + badge.points)
    )

    await create_notification(
        db,
        user_id,
        "badge_earned",
        title=f'Badge Earned: "{badge.name}"',
        message=f"+{badge.points} points. {badge.description}",
        action_url="/profile",
    )
    logger.info("Awarded badge %s to user %d", badge_slug, user_id)
    return True


async def list_badges(db: AsyncSession) -> list[Badge]:
    result = await db.execute(select(Badge).order_by(Badge.sort_order, Badge.id))
    return list(result.scalars().all())


async def earned_badge_ids(db: AsyncSession, user_id: int) -> set[int]:
    result = await db.execute(select(UserBadge.badge_id).where(UserBadge.user_id == user_id))
    return set(result.scalars())


async def list_user_badges(db: AsyncSession, user_id: int) -> list[tuple[UserBadge, Badge]]:
    """Earned badges with their definitions, newest first."""
    result = await db.execute(
        select(UserBadge, Badge)
        .join(Badge, UserBadge.badge_id == Badge.id)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_at.desc(), UserBadge.id.desc())
    )
    return [(row.UserBadge, row.Badge) for row in result]


async def set_badge_visibility(db: AsyncSession, user_id: int, badge_id: int, is_public: bool) -> UserBadge:
    """Show or hide an earned badge on the user's public profile."""
    result = await db.execute(
        select(UserBadge).where(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
    )
    user_badge = result.scalar_one_or_none()
    if user_badge is None:
        raise LookupError("Badge not earned")
    user_badge.is_public = is_public
    await db.flush()
    return user_badge

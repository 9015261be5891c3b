"""Showcase: members sharing achievements with everyone."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import Badge, Goal, ShowcaseItem, User
from g15.gamification.badge_service import has_badge

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 1000


async def create_showcase_item(
    db: AsyncSession,
    user_id: int,
    content: str,
    badge_id: int | None = None,
    goal_id: int | None = None,
) -> ShowcaseItem:
    """Post to the showcase. An attached badge must be earned and a goal owned."""
    content = content.strip()
    if not content:
        raise ValueError("Content cannot be empty")
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValueError(f"Content cannot exceed {MAX_CONTENT_LENGTH} characters")

    if badge_id is not None and not await has_badge(db, user_id, badge_id):
        raise ValueError("You can only showcase badges you have earned")
    if goal_id is not None:
        goal = await db.execute(select(Goal.id).where(Goal.id == goal_id, Goal.user_id == user_id))
        if goal.scalar_one_or_none() is None:
            raise ValueError("You can only showcase your own goals")

    item = ShowcaseItem(
        user_id=user_id,
        content=content,
        badge_id=badge_id,
        goal_id=goal_id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(item)
    await db.flush()
    logger.info("Showcase item %d posted by user %d", item.id, user_id)
    return item


async def list_showcase(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[tuple[ShowcaseItem, User, Badge | None, Goal | None]], int]:
    """Showcase items newest first, with author, badge and goal."""
    offset = (page - 1) * per_page

    total_result = await db.execute(select(func.count()).select_from(ShowcaseItem))
    total = total_result.scalar_one()

    result = await db.execute(
        select(ShowcaseItem, User, Badge, Goal)
        .join(User, ShowcaseItem.user_id == User.id)
        .outerjoin(Badge, ShowcaseItem.badge_id == Badge.id)
        .outerjoin(Goal, ShowcaseItem.goal_id == Goal.id)
        .order_by(ShowcaseItem.created_at.desc(), ShowcaseItem.id.desc())
        .offset(offset)
        .limit(per_page)
    )
    items = [(row.ShowcaseItem, row.User, row.Badge, row.Goal) for row in result]
    return items, total


async def get_showcase_item(
    db: AsyncSession, item_id: int
) -> tuple[ShowcaseItem, User, Badge | None, Goal | None]:
    result = await db.execute(
        select(ShowcaseItem, User, Badge, Goal)
        .join(User, ShowcaseItem.user_id == User.id)
        .outerjoin(Badge, ShowcaseItem.badge_id == Badge.id)
        .outerjoin(Goal, ShowcaseItem.goal_id == Goal.id)
        .where(ShowcaseItem.id == item_id)
    )
    row = result.first()
    if row is None:
        raise LookupError("Showcase item not found")
    return row.ShowcaseItem, row.User, row.Badge, row.Goal


async def delete_showcase_item(db: AsyncSession, user: User, item_id: int) -> None:
    """Authors delete their own items; admins delete any."""
    item = await db.get(ShowcaseItem, item_id)
    if item is None:
        raise LookupError("Showcase item not found")
    if item.user_id != user.id and not user.is_admin:
        raise PermissionError("You can only delete your own showcase items")
    await db.delete(item)
    await db.flush()

"""Notification creation and inbox queries.

Notifications are side effects of other operations (badge earned, goal
completed, group activity, Pro decisions). Callers that treat them as
non-critical use ``notify_safely`` so a failed insert never breaks the
operation that triggered it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import GroupMember, Notification, User

logger = logging.getLogger(__name__)

VALID_TYPES = {
    "badge_earned",
    "goal_completed",
    "budget_exceeded",
    "group_invitation",
    "group_joined",
    "group_transaction",
    "pro_upgrade",
    "pro_upgrade_rejected",
    "pro_downgrade",
    "upgrade_request",
    "system",
}


async def create_notification(
    db: AsyncSession,
    user_id: int,
    type_: str,
    title: str,
    message: str | None = None,
    action_url: str | None = None,
) -> Notification:
    """Persist a notification for a user."""
    if type_ not in VALID_TYPES:
        raise ValueError(f"Invalid notification type: {type_}. Must be one of {sorted(VALID_TYPES)}")

    notification = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        action_url=action_url,
        read=False,
        created_at=datetime.now(timezone.utc),
    )
    db.add(notification)
    await db.flush()
    return notification


async def notify_safely(
    db: AsyncSession,
    user_ids: Iterable[int],
    type_: str,
    title: str,
    message: str | None = None,
    action_url: str | None = None,
) -> int:
    """Notify several users, logging instead of raising on failure. Returns count sent."""
    sent = 0
    for uid in user_ids:
        try:
            await create_notification(db, uid, type_, title, message, action_url)
            sent += 1
        except Exception:
            logger.warning("Failed to create %s notification for user %d", type_, uid, exc_info=True)
    return sent


async def notify_group_members(
    db: AsyncSession,
    group_id: int,
    type_: str,
    title: str,
    message: str | None = None,
    exclude_user_id: int | None = None,
) -> int:
    """Send a notification to every member of a group."""
    result = await db.execute(
        select(GroupMember.user_id).where(GroupMember.group_id == group_id)
    )
    member_ids = [uid for uid in result.scalars() if uid != exclude_user_id]
    return await notify_safely(
        db, member_ids, type_, title, message, action_url=f"/groups/{group_id}",
    )


async def notify_admins(
    db: AsyncSession,
    type_: str,
    title: str,
    message: str | None = None,
    action_url: str | None = None,
) -> int:
    """Send a notification to every admin."""
    result = await db.execute(select(User.id).where(User.is_admin.is_(True)))
    return await notify_safely(db, list(result.scalars()), type_, title, message, action_url)


async def get_notifications(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 20,
    unread_only: bool = False,
) -> tuple[list[Notification], int]:
    """Get user's notifications (paginated, most recent first)."""
    offset = (page - 1) * per_page
    conditions = [Notification.user_id == user_id]
    if unread_only:
        conditions.append(Notification.read.is_(False))

    total_result = await db.execute(
        select(func.count()).select_from(Notification).where(*conditions)
    )
    total = total_result.scalar_one()

    result = await db.execute(
        select(Notification)
        .where(*conditions)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def mark_as_read(db: AsyncSession, user_id: int, notification_id: int) -> bool:
    """Mark a single notification as read. Returns True if found."""
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(read=True)
    )
    await db.flush()
    return result.rowcount > 0


async def mark_all_as_read(db: AsyncSession, user_id: int) -> int:
    """Mark all unread notifications as read. Returns count updated."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
    )
    await db.flush()
    return result.rowcount


async def delete_notification(db: AsyncSession, user_id: int, notification_id: int) -> bool:
    """Delete one of the user's notifications. Returns True if found."""
    result = await db.execute(
        delete(Notification).where(
            Notification.id == notification_id, Notification.user_id == user_id
        )
    )
    await db.flush()
    return result.rowcount > 0


async def get_unread_count(db: AsyncSession, user_id: int) -> int:
    """Get count of unread notifications."""
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
    )
    return result.scalar_one()

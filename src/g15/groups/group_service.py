"""Group business logic.

Rules:
- The creator is the owner; a live group always has exactly one owner
- Owner transfer on owner leave (to the longest-serving member)
- Last member leaving deletes the group
- Only the owner can rename, delete, or remove members
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import (
    Group,
    GroupInvitation,
    GroupMember,
    GroupTransaction,
    GroupTransactionMember,
    User,
)
from g15.social.notification_service import notify_group_members

logger = logging.getLogger(__name__)


async def get_group(db: AsyncSession, group_id: int) -> Group | None:
    """Get a group by ID."""
    result = await db.execute(select(Group).where(Group.id == group_id))
    return result.scalar_one_or_none()


async def get_membership(db: AsyncSession, group_id: int, user_id: int) -> GroupMember | None:
    result = await db.execute(
        select(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def require_member(db: AsyncSession, group_id: int, user_id: int) -> tuple[Group, GroupMember]:
    """Group and the caller's membership. Non-members get the same error as a missing group."""
    group = await get_group(db, group_id)
    membership = await get_membership(db, group_id, user_id) if group else None
    if group is None or membership is None:
        raise LookupError("Group not found")
    return group, membership


async def require_owner(db: AsyncSession, group_id: int, user_id: int) -> tuple[Group, GroupMember]:
    group, membership = await require_member(db, group_id, user_id)
    if membership.role != "owner":
        raise PermissionError("Only the group owner can do this")
    return group, membership


async def count_members(db: AsyncSession, group_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(GroupMember).where(GroupMember.group_id == group_id)
    )
    return result.scalar_one()


async def create_group(
    db: AsyncSession,
    owner_id: int,
    name: str,
    description: str | None = None,
) -> Group:
    """Create a new group. The creator becomes the owner."""
    name = name.strip()
    if not name:
        raise ValueError("Group name cannot be empty")

    now = datetime.now(timezone.utc)
    group = Group(
        name=name,
        description=description,
        created_by=owner_id,
        created_at=now,
        updated_at=now,
    )
    db.add(group)
    await db.flush()

    db.add(GroupMember(group_id=group.id, user_id=owner_id, role="owner", joined_at=now))
    await db.flush()

    logger.info("Group created: %s (id=%d, owner=%d)", name, group.id, owner_id)
    return group


async def list_user_groups(db: AsyncSession, user_id: int) -> list[tuple[Group, str, int]]:
    """The user's groups as (group, role, member_count), newest first."""
    counts = (
        select(GroupMember.group_id, func.count().label("member_count"))
        .group_by(GroupMember.group_id)
        .subquery()
    )
    result = await db.execute(
        select(Group, GroupMember.role, counts.c.member_count)
        .join(GroupMember, GroupMember.group_id == Group.id)
        .join(counts, counts.c.group_id == Group.id)
        .where(GroupMember.user_id == user_id)
        .order_by(Group.created_at.desc(), Group.id.desc())
    )
    return [(row.Group, row.role, row.member_count) for row in result]


async def get_group_members(db: AsyncSession, group_id: int) -> list[tuple[GroupMember, User]]:
    """All members of a group with user info, longest-serving first."""
    result = await db.execute(
        select(GroupMember, User)
        .join(User, GroupMember.user_id == User.id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.joined_at.asc(), GroupMember.id.asc())
    )
    return [(row.GroupMember, row.User) for row in result]


async def update_group(
    db: AsyncSession,
    group_id: int,
    user_id: int,
    name: str | None = None,
    description: str | None = None,
) -> Group:
    """Update group name/description (owner only)."""
    group, _ = await require_owner(db, group_id, user_id)

    if name is not None:
        name = name.strip()
        if not name:
            raise ValueError("Group name cannot be empty")
        group.name = name
    if description is not None:
        group.description = description or None

    group.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return group


async def _purge_group(db: AsyncSession, group: Group) -> None:
    tx_ids = select(GroupTransaction.id).where(GroupTransaction.group_id == group.id)
    await db.execute(
        delete(GroupTransactionMember).where(GroupTransactionMember.transaction_id.in_(tx_ids))
    )
    await db.execute(delete(GroupTransaction).where(GroupTransaction.group_id == group.id))
    await db.execute(delete(GroupInvitation).where(GroupInvitation.group_id == group.id))
    await db.execute(delete(GroupMember).where(GroupMember.group_id == group.id))
    await db.delete(group)
    await db.flush()


async def delete_group(db: AsyncSession, group_id: int, user_id: int) -> None:
    """Delete a group with its members, transactions and invitations (owner only)."""
    group, _ = await require_owner(db, group_id, user_id)
    await _purge_group(db, group)
    logger.info("Group %d deleted by owner %d", group_id, user_id)


async def add_member(db: AsyncSession, group: Group, user_id: int) -> GroupMember:
    """Add a user to a group and tell the existing members."""
    if await get_membership(db, group.id, user_id) is not None:
        raise ValueError("You are already a member of this group")

    member = GroupMember(
        group_id=group.id,
        user_id=user_id,
        role="member",
        joined_at=datetime.now(timezone.utc),
    )
    db.add(member)
    group.updated_at = datetime.now(timezone.utc)
    await db.flush()

    user = await db.get(User, user_id)
    display_name = user.display_name if user else "Someone"
    await notify_group_members(
        db,
        group.id,
        "group_joined",
        title=f'{display_name} joined "{group.name}"',
        exclude_user_id=user_id,
    )
    logger.info("User %d joined group %d", user_id, group.id)
    return member


async def join_group(db: AsyncSession, group_id: int, user_id: int) -> GroupMember:
    """Join a group by id."""
    group = await get_group(db, group_id)
    if group is None:
        raise LookupError("Group not found")
    return await add_member(db, group, user_id)


async def leave_group(db: AsyncSession, group_id: int, user_id: int) -> bool:
    """Leave a group. Returns True when the group was deleted because it emptied."""
    group, membership = await require_member(db, group_id, user_id)

    others = await db.execute(
        select(GroupMember)
        .where(GroupMember.group_id == group_id, GroupMember.user_id != user_id)
        .order_by(GroupMember.joined_at.asc(), GroupMember.id.asc())
    )
    successor = others.scalars().first()

    if successor is None:
        # Last member: delete the group
        await _purge_group(db, group)
        logger.info("Group %d deleted after its last member %d left", group_id, user_id)
        return True

    if membership.role == "owner":
        successor.role = "owner"
        logger.info("Group %d ownership moved from %d to %d", group_id, user_id, successor.user_id)

    await db.delete(membership)
    group.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("User %d left group %d", user_id, group_id)
    return False


async def remove_member(
    db: AsyncSession,
    group_id: int,
    owner_id: int,
    target_user_id: int,
) -> None:
    """Owner removes a member from the group."""
    group, _ = await require_owner(db, group_id, owner_id)

    if owner_id == target_user_id:
        raise ValueError("Use the leave endpoint to leave the group")

    target = await get_membership(db, group_id, target_user_id)
    if target is None:
        raise LookupError("User is not a member of this group")

    await db.delete(target)
    group.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("Owner %d removed user %d from group %d", owner_id, target_user_id, group_id)

"""Group invitations: shareable codes, optional e-mail targeting."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.config import get_settings
from g15.db.models import Group, GroupInvitation, GroupMember, User
from g15.groups.group_service import add_member, count_members, get_group, require_member
from g15.groups.invite_codes import (
    generate_unique_invite_code,
    is_well_formed,
    normalize_invite_code,
)
from g15.social.notification_service import notify_safely

logger = logging.getLogger(__name__)


def invite_url(code: str) -> str:
    return f"{get_settings().frontend_base_url.rstrip('/')}/join/{code}"


def effective_status(invitation: GroupInvitation, now: datetime | None = None) -> str:
    """Stored status, except that stale pending invitations read as expired."""
    now = now or datetime.now(timezone.utc)
    if invitation.status == "pending" and invitation.expires_at <= now:
        return "expired"
    return invitation.status


async def create_invitation(
    db: AsyncSession,
    group_id: int,
    user_id: int,
    email: str | None = None,
) -> GroupInvitation:
    """Any member can invite. A registered invitee is notified in-app."""
    group, _ = await require_member(db, group_id, user_id)

    now = datetime.now(timezone.utc)
    invitation = GroupInvitation(
        group_id=group.id,
        invited_by=user_id,
        email=email.strip().lower() if email else None,
        invitation_code=await generate_unique_invite_code(db),
        status="pending",
        created_at=now,
        expires_at=now + timedelta(days=get_settings().invitation_expire_days),
    )
    db.add(invitation)
    await db.flush()

    if invitation.email:
        result = await db.execute(select(User.id).where(func.lower(User.email) == invitation.email))
        invitee_id = result.scalar_one_or_none()
        if invitee_id is not None and invitee_id != user_id:
            inviter = await db.get(User, user_id)
            await notify_safely(
                db,
                [invitee_id],
                "group_invitation",
                title=f'You were invited to "{group.name}"',
                message=f"{inviter.display_name if inviter else 'A member'} invited you to join the group.",
                action_url=f"/join/{invitation.invitation_code}",
            )

    logger.info("Invitation %s created for group %d by user %d", invitation.invitation_code, group.id, user_id)
    return invitation


async def list_invitations(db: AsyncSession, group_id: int, user_id: int) -> list[GroupInvitation]:
    await require_member(db, group_id, user_id)
    result = await db.execute(
        select(GroupInvitation)
        .where(GroupInvitation.group_id == group_id)
        .order_by(GroupInvitation.created_at.desc(), GroupInvitation.id.desc())
    )
    return list(result.scalars().all())


async def get_invitation_by_code(db: AsyncSession, code: str) -> GroupInvitation:
    if not is_well_formed(code):
        raise LookupError("Invitation not found")
    result = await db.execute(
        select(GroupInvitation).where(
            GroupInvitation.invitation_code == normalize_invite_code(code)
        )
    )
    invitation = result.scalar_one_or_none()
    if invitation is None:
        raise LookupError("Invitation not found")
    return invitation


async def preview_invitation(db: AsyncSession, code: str) -> dict:
    """What a prospective member sees before accepting."""
    invitation = await get_invitation_by_code(db, code)
    group = await get_group(db, invitation.group_id)
    if group is None:
        raise LookupError("Invitation not found")

    owner = await db.execute(
        select(User)
        .join(GroupMember, GroupMember.user_id == User.id)
        .where(GroupMember.group_id == group.id, GroupMember.role == "owner")
    )
    owner_user = owner.scalar_one_or_none()
    return {
        "group_id": group.id,
        "group_name": group.name,
        "owner_name": owner_user.display_name if owner_user else None,
        "member_count": await count_members(db, group.id),
        "status": effective_status(invitation),
        "expires_at": invitation.expires_at,
    }


def _require_open(invitation: GroupInvitation, now: datetime) -> None:
    status = effective_status(invitation, now)
    if status == "expired":
        raise ValueError("Invitation has expired")
    if status != "pending":
        raise ValueError(f"Invitation is already {status}")


async def join_group_by_code(db: AsyncSession, user_id: int, code: str) -> tuple[Group, GroupMember]:
    """Accept an invitation and join its group."""
    invitation = await get_invitation_by_code(db, code)
    now = datetime.now(timezone.utc)
    _require_open(invitation, now)

    group = await get_group(db, invitation.group_id)
    if group is None:
        raise LookupError("Invitation not found")

    member = await add_member(db, group, user_id)
    invitation.status = "accepted"
    invitation.responded_at = now
    await db.flush()
    return group, member


async def decline_invitation(db: AsyncSession, code: str) -> GroupInvitation:
    invitation = await get_invitation_by_code(db, code)
    now = datetime.now(timezone.utc)
    _require_open(invitation, now)

    invitation.status = "declined"
    invitation.responded_at = now
    await db.flush()
    return invitation

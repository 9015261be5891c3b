"""Admin console: user listing and Pro request review."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import UpgradeRequest, User
from g15.pro.service import set_pro_status
from g15.social.notification_service import notify_safely

logger = structlog.get_logger()

REQUEST_STATUSES = ("pending", "approved", "rejected", "cancelled")


async def list_users(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 20,
    search: str | None = None,
) -> tuple[list[User], int]:
    """Users newest first, optionally filtered by e-mail or name."""
    conditions = []
    if search:
        term = search.strip().lower()
        conditions.append(
            or_(
                func.lower(User.email).contains(term, autoescape=True),
                func.lower(func.coalesce(User.first_name, "")).contains(term, autoescape=True),
                func.lower(func.coalesce(User.last_name, "")).contains(term, autoescape=True),
            )
        )

    total_result = await db.execute(select(func.count()).select_from(User).where(*conditions))
    total = total_result.scalar_one()

    result = await db.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def list_upgrade_requests(
    db: AsyncSession, status: str | None = None
) -> list[tuple[UpgradeRequest, User]]:
    if status is not None and status not in REQUEST_STATUSES:
        raise ValueError(f"Unknown status: {status}")

    query = (
        select(UpgradeRequest, User)
        .join(User, UpgradeRequest.user_id == User.id)
        .order_by(UpgradeRequest.created_at.desc(), UpgradeRequest.id.desc())
    )
    if status is not None:
        query = query.where(UpgradeRequest.status == status)
    result = await db.execute(query)
    return [(row.UpgradeRequest, row.User) for row in result]


async def _get_pending(db: AsyncSession, request_id: int) -> tuple[UpgradeRequest, User]:
    result = await db.execute(
        select(UpgradeRequest, User)
        .join(User, UpgradeRequest.user_id == User.id)
        .where(UpgradeRequest.id == request_id)
    )
    row = result.first()
    if row is None:
        raise LookupError("Upgrade request not found")
    if row.UpgradeRequest.status != "pending":
        raise ValueError(f"Upgrade request is already {row.UpgradeRequest.status}")
    return row.UpgradeRequest, row.User


async def approve_upgrade_request(db: AsyncSession, admin: User, request_id: int) -> tuple[UpgradeRequest, User]:
    request, user = await _get_pending(db, request_id)
    request.status = "approved"
    request.approved_by = admin.id
    request.approved_at = datetime.now(timezone.utc)
    await set_pro_status(db, user, True)
    logger.info("upgrade_request_approved", request_id=request.id, user_id=user.id, admin_id=admin.id)
    return request, user


async def reject_upgrade_request(
    db: AsyncSession, admin: User, request_id: int, notes: str | None = None
) -> tuple[UpgradeRequest, User]:
    request, user = await _get_pending(db, request_id)
    request.status = "rejected"
    request.approved_by = admin.id
    request.approved_at = datetime.now(timezone.utc)
    if notes:
        request.notes = notes
    await db.flush()

    await notify_safely(
        db,
        [user.id],
        "pro_upgrade_rejected",
        title="Your Pro upgrade request was declined",
        message=notes,
        action_url="/upgrade",
    )
    logger.info("upgrade_request_rejected", request_id=request.id, user_id=user.id, admin_id=admin.id)
    return request, user


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise LookupError("User not found")
    return user


async def grant_pro(db: AsyncSession, admin: User, user_id: int) -> User:
    user = await get_user(db, user_id)
    if user.is_pro:
        raise ValueError("User is already Pro")
    await set_pro_status(db, user, True)
    logger.info("pro_granted", user_id=user.id, admin_id=admin.id)
    return user


async def revoke_pro(db: AsyncSession, admin: User, user_id: int) -> User:
    user = await get_user(db, user_id)
    if not user.is_pro:
        raise ValueError("User is not Pro")
    await set_pro_status(db, user, False)
    logger.info("pro_revoked", user_id=user.id, admin_id=admin.id)
    return user

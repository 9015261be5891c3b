"""
Pro upgrades.

Two paths lead to Pro: a self-service checkout that can spend badge points
as a discount, and a manual request an admin approves.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
from decimal import ROUND_CEILING, Decimal

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from g15.config import get_settings
from g15.db.models import Subscription, UpgradeRequest, User
from g15.social.notification_service import notify_admins, notify_safely

logger = structlog.get_logger()


def add_one_month(moment: datetime) -> datetime:
    """Same day next calendar month, clamped to the month's last day."""
    year = moment.year + (1 if moment.month == 12 else 0)
    month = 1 if moment.month == 12 else moment.month + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def build_quote(available_points: int, requested_points: int) -> dict[str, Decimal | int]:
    """Price after redeeming points.

    Points are capped at what the user has and at what covers the full price.
    """
    settings = get_settings()
    price = settings.pro_price
    point_value = settings.point_value

    max_useful = int((price / point_value).to_integral_value(rounding=ROUND_CEILING))
    points = max(0, min(requested_points, available_points, max_useful))
    discount = min(price, Decimal(points) * point_value)
    return {
        "regular_price": price,
        "points_to_use": points,
        "discount": discount,
        "final_price": max(Decimal("0"), price - discount),
        "available_points": available_points,
    }


async def checkout(db: AsyncSession, user: User, points_to_use: int = 0) -> Subscription:
    """Upgrade immediately, paying with points and/or money for one month."""
    if user.is_pro:
        raise ValueError("You are already a Pro member")

    quote = build_quote(user.points, points_to_use)
    now = datetime.now(timezone.utc)

    # Matches no row if another checkout already upgraded or spent the points.
    result = await db.execute(
        update(User)
        .where(
            User.id == user.id,
            User.is_pro.is_(False),
            User.points >= quote["points_to_use"],
        )
        .values(is_pro=True, points=User.points - quote["points_to_use"], updated_at=now)
    )
    if result.rowcount == 0:
        await db.refresh(user)
        if user.is_pro:
            raise ValueError("You are already a Pro member")
        raise ValueError("Not enough points")
    subscription = Subscription(
        user_id=user.id,
        status="active",
        started_at=now,
        expires_at=add_one_month(now),
        points_used=quote["points_to_use"],
        amount_paid=quote["final_price"],
    )
    db.add(subscription)
    await db.flush()
    await db.refresh(user)

    logger.info(
        "pro_checkout",
        user_id=user.id,
        points_used=quote["points_to_use"],
        amount_paid=str(quote["final_price"]),
    )
    return subscription


async def get_pending_request(db: AsyncSession, user_id: int) -> UpgradeRequest | None:
    result = await db.execute(
        select(UpgradeRequest)
        .where(UpgradeRequest.user_id == user_id, UpgradeRequest.status == "pending")
        .order_by(UpgradeRequest.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def request_pro_upgrade(db: AsyncSession, user: User, notes: str | None = None) -> UpgradeRequest:
    """File a manual upgrade request for admins to review."""
    if user.is_pro:
        raise ValueError("You are already a Pro member")
    if await get_pending_request(db, user.id) is not None:
        raise ValueError("You already have a pending upgrade request")

    request = UpgradeRequest(
        user_id=user.id,
        status="pending",
        notes=notes,
        created_at=datetime.now(timezone.utc),
    )
    db.add(request)
    await db.flush()

    await notify_admins(
        db,
        "upgrade_request",
        title="New Pro upgrade request",
        message=f"{user.display_name} ({user.email}) asked to upgrade to Pro.",
        action_url="/admin",
    )
    logger.info("pro_upgrade_requested", user_id=user.id, request_id=request.id)
    return request


async def cancel_upgrade_request(db: AsyncSession, user_id: int) -> UpgradeRequest:
    request = await get_pending_request(db, user_id)
    if request is None:
        raise LookupError("No pending upgrade request")
    request.status = "cancelled"
    await db.flush()
    return request


async def latest_subscription(db: AsyncSession, user_id: int) -> Subscription | None:
    result = await db.execute(
        select(Subscription)
        .where(Subscription.user_id == user_id)
        .order_by(Subscription.started_at.desc(), Subscription.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def set_pro_status(db: AsyncSession, user: User, is_pro: bool) -> None:
    """Grant or revoke Pro and tell the user. Revoking cancels active subscriptions."""
    user.is_pro = is_pro
    user.updated_at = datetime.now(timezone.utc)

    if is_pro:
        await notify_safely(
            db,
            [user.id],
            "pro_upgrade",
            title="Welcome to G15 Pro!",
            message="Your account has been upgraded. Enjoy the AI assistant and the showcase.",
            action_url="/upgrade",
        )
    else:
        await db.execute(
            update(Subscription)
            .where(Subscription.user_id == user.id, Subscription.status == "active")
            .values(status="cancelled")
        )
        await notify_safely(
            db,
            [user.id],
            "pro_downgrade",
            title="Your Pro membership has ended",
            message="Your account is back on the free plan.",
            action_url="/upgrade",
        )
    await db.flush()

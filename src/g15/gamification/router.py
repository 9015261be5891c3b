"""Badge API endpoints: 3 routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from g15.auth.dependencies import get_current_user
from g15.database import get_session
from g15.db.models import Badge, User
from g15.gamification.badge_service import (
    SECRET_PLACEHOLDER,
    earned_badge_ids,
    list_badges,
    list_user_badges,
    set_badge_visibility,
)
from g15.gamification.schemas import (
    BadgeCatalogResponse,
    BadgeResponse,
    BadgeVisibilityRequest,
    EarnedBadgeResponse,
    UserBadgesResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Badges"])


def _badge_response(badge: Badge, earned: bool) -> BadgeResponse:
    """Build a BadgeResponse, masking secret badges the caller has not earned."""
    masked = badge.is_secret and not earned
    return BadgeResponse(
        id=badge.id,
        slug=badge.slug if not masked else f"secret_{badge.id}",
        name=badge.name if not masked else SECRET_PLACEHOLDER,
        description=badge.description if not masked else "",
        icon=badge.icon if not masked else "lock",
        points=badge.points,
        condition_type=badge.condition_type,
        condition_value=badge.condition_value,
        is_secret=badge.is_secret,
        earned=earned,
    )


@router.get("/badges", response_model=BadgeCatalogResponse)
async def list_badge_catalog(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Badge catalog with the caller's earned flags."""
    badges = await list_badges(db)
    earned = await earned_badge_ids(db, user.id)
    return BadgeCatalogResponse(
        badges=[_badge_response(b, b.id in earned) for b in badges],
        total_available=len(badges),
        total_earned=len(earned),
    )


@router.get("/users/me/badges", response_model=UserBadgesResponse)
async def get_my_badges(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Get current user's earned badges, newest first."""
    rows = await list_user_badges(db, user.id)
    return UserBadgesResponse(
        earned=[
            EarnedBadgeResponse(
                badge=_badge_response(badge, earned=True),
                earned_at=user_badge.earned_at,
                is_public=user_badge.is_public,
            )
            for user_badge, badge in rows
        ],
        total_earned=len(rows),
        points=user.points,
    )


@router.patch("/users/me/badges/{badge_id}", response_model=EarnedBadgeResponse)
async def update_badge_visibility(
    badge_id: int,
    body: BadgeVisibilityRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Show or hide an earned badge."""
    try:
        user_badge = await set_badge_visibility(db, user.id, badge_id, body.is_public)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()

    badge = next(b for _, b in await list_user_badges(db, user.id) if b.id == badge_id)
    return EarnedBadgeResponse(
        badge=_badge_response(badge, earned=True),
        earned_at=user_badge.earned_at,
        is_public=user_badge.is_public,
    )

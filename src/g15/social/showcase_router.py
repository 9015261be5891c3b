"""Showcase API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from g15.auth.dependencies import get_current_pro_user, get_current_user
from g15.database import get_session
from g15.db.models import Badge, Goal, ShowcaseItem, User
from g15.gamification.trigger_engine import fire_event
from g15.social.schemas import (
    CreateShowcaseRequest,
    ShowcaseBadge,
    ShowcaseCreatedResponse,
    ShowcaseGoal,
    ShowcaseItemResponse,
    ShowcaseListResponse,
)
from g15.social.showcase_service import (
    create_showcase_item,
    delete_showcase_item,
    get_showcase_item,
    list_showcase,
)

router = APIRouter(prefix="/api/v1/showcase", tags=["Showcase"])


def to_showcase_response(
    item: ShowcaseItem, author: User, badge: Badge | None, goal: Goal | None
) -> ShowcaseItemResponse:
    return ShowcaseItemResponse(
        id=item.id,
        user_id=item.user_id,
        author_name=author.display_name,
        content=item.content,
        badge=ShowcaseBadge(
            id=badge.id,
            name=badge.name,
            icon=badge.icon,
            description=badge.description,
            points=badge.points,
        ) if badge else None,
        goal=ShowcaseGoal(
            id=goal.id,
            name=goal.name,
            target_amount=float(goal.target_amount),
            current_amount=float(goal.current_amount),
            completed_at=goal.completed_at,
        ) if goal else None,
        created_at=item.created_at,
    )


@router.get("", response_model=ShowcaseListResponse)
async def list_showcase_endpoint(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Community showcase, newest first."""
    items, total = await list_showcase(db, page, per_page)
    return ShowcaseListResponse(
        items=[to_showcase_response(*row) for row in items],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post("", response_model=ShowcaseCreatedResponse, status_code=201)
async def create_showcase_endpoint(
    body: CreateShowcaseRequest,
    user: User = Depends(get_current_pro_user),
    db: AsyncSession = Depends(get_session),
):
    try:
        item = await create_showcase_item(db, user.id, body.content, body.badge_id, body.goal_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()

    response = ShowcaseCreatedResponse(
        **to_showcase_response(*await get_showcase_item(db, item.id)).model_dump()
    )
    response.new_badges = await fire_event(db, user.id, "showcase_posted")
    return response


@router.delete("/{item_id}", status_code=204)
async def delete_showcase_endpoint(
    item_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    try:
        await delete_showcase_item(db, user, item_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    await db.commit()

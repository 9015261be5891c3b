"""Savings goal API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from g15.auth.dependencies import get_current_user
from g15.database import get_session
from g15.db.models import Goal, User
from g15.finance.goal_service import (
    contribute,
    create_goal,
    delete_goal,
    get_goal,
    goal_progress,
    list_goals,
    update_goal,
)
from g15.finance.schemas import ContributeRequest, CreateGoalRequest, GoalResponse, UpdateGoalRequest
from g15.gamification.trigger_engine import fire_event

router = APIRouter(prefix="/api/v1/goals", tags=["Goals"])


def to_goal_response(goal: Goal) -> GoalResponse:
    return GoalResponse(
        id=goal.id,
        name=goal.name,
        target_amount=float(goal.target_amount),
        current_amount=float(goal.current_amount),
        progress=goal_progress(goal),
        completed_at=goal.completed_at,
        created_at=goal.created_at,
        updated_at=goal.updated_at,
    )


async def _after_save(db: AsyncSession, user_id: int, response: GoalResponse, completed: bool) -> GoalResponse:
    """Evaluate badges once the goal change is committed."""
    awarded = await fire_event(db, user_id, "goal_saved")
    if completed:
        awarded += await fire_event(db, user_id, "goal_completed")
    response.new_badges = awarded
    return response


@router.get("", response_model=list[GoalResponse])
async def list_goals_endpoint(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[GoalResponse]:
    return [to_goal_response(g) for g in await list_goals(db, user.id)]


@router.post("", response_model=GoalResponse, status_code=201)
async def create_goal_endpoint(
    body: CreateGoalRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GoalResponse:
    try:
        goal, completed = await create_goal(
            db, user.id, body.name, body.target_amount, body.current_amount
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return await _after_save(db, user.id, to_goal_response(goal), completed)


@router.get("/{goal_id}", response_model=GoalResponse)
async def get_goal_endpoint(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GoalResponse:
    try:
        goal = await get_goal(db, user.id, goal_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return to_goal_response(goal)


@router.patch("/{goal_id}", response_model=GoalResponse)
async def update_goal_endpoint(
    goal_id: int,
    body: UpdateGoalRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GoalResponse:
    try:
        goal, completed = await update_goal(db, user.id, goal_id, body.model_dump(exclude_unset=True))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return await _after_save(db, user.id, to_goal_response(goal), completed)


@router.post("/{goal_id}/contribute", response_model=GoalResponse)
async def contribute_endpoint(
    goal_id: int,
    body: ContributeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GoalResponse:
    """Add savings to a goal (negative amounts withdraw)."""
    try:
        goal, completed = await contribute(db, user.id, goal_id, body.amount)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return await _after_save(db, user.id, to_goal_response(goal), completed)


@router.delete("/{goal_id}", status_code=204)
async def delete_goal_endpoint(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    try:
        await delete_goal(db, user.id, goal_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()

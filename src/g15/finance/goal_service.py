"""Savings goals."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import Goal
from g15.social.notification_service import notify_safely

logger = structlog.get_logger()

_UPDATABLE_FIELDS = frozenset({"name", "target_amount", "current_amount"})


def goal_progress(goal: Goal) -> float:
    """Percent of the target saved, capped at 100."""
    if goal.target_amount <= 0:
        return 0.0
    pct = Decimal(goal.current_amount) / Decimal(goal.target_amount) * 100
    return float(min(Decimal("100"), round(pct, 1)))


def apply_completion(goal: Goal, now: datetime) -> bool:
    """Sync completed_at with the amounts. Returns True on the transition to complete."""
    if goal.current_amount >= goal.target_amount:
        if goal.completed_at is None:
            goal.completed_at = now
            return True
        return False
    goal.completed_at = None
    return False


async def _notify_completed(db: AsyncSession, goal: Goal) -> None:
    await notify_safely(
        db,
        [goal.user_id],
        "goal_completed",
        title=f'Goal reached: "{goal.name}"',
        message=f"You saved ${goal.target_amount:.2f}. Congratulations!",
        action_url="/goals",
    )


async def list_goals(db: AsyncSession, user_id: int) -> list[Goal]:
    result = await db.execute(
        select(Goal).where(Goal.user_id == user_id).order_by(Goal.created_at.desc(), Goal.id.desc())
    )
    return list(result.scalars().all())


async def get_goal(db: AsyncSession, user_id: int, goal_id: int) -> Goal:
    result = await db.execute(select(Goal).where(Goal.id == goal_id, Goal.user_id == user_id))
    goal = result.scalar_one_or_none()
    if goal is None:
        raise LookupError("Goal not found")
    return goal


async def create_goal(
    db: AsyncSession,
    user_id: int,
    name: str,
    target_amount: Decimal,
    current_amount: Decimal = Decimal("0"),
) -> tuple[Goal, bool]:
    """Create a goal. Returns (goal, completed) where completed flags an immediate completion."""
    name = name.strip()
    if not name:
        raise ValueError("Name cannot be empty")
    if target_amount <= 0:
        raise ValueError("Target amount must be greater than zero")
    if current_amount < 0:
        raise ValueError("Current amount cannot be negative")

    now = datetime.now(timezone.utc)
    goal = Goal(
        user_id=user_id,
        name=name,
        target_amount=target_amount,
        current_amount=current_amount,
        created_at=now,
        updated_at=now,
    )
    completed = apply_completion(goal, now)
    db.add(goal)
    await db.flush()
    if completed:
        await _notify_completed(db, goal)
    logger.info("goal_created", user_id=user_id, goal_id=goal.id)
    return goal, completed


async def update_goal(
    db: AsyncSession,
    user_id: int,
    goal_id: int,
    changes: dict[str, Any],
) -> tuple[Goal, bool]:
    goal = await get_goal(db, user_id, goal_id)
    for field, value in changes.items():
        if field not in _UPDATABLE_FIELDS or value is None:
            continue
        if field == "name":
            value = value.strip()
            if not value:
                raise ValueError("Name cannot be empty")
        setattr(goal, field, value)

    now = datetime.now(timezone.utc)
    goal.updated_at = now
    completed = apply_completion(goal, now)
    await db.flush()
    if completed:
        await _notify_completed(db, goal)
    return goal, completed


async def contribute(db: AsyncSession, user_id: int, goal_id: int, amount: Decimal) -> tuple[Goal, bool]:
    """Add to a goal's savings. Withdrawals never take the balance below zero."""
    goal = await get_goal(db, user_id, goal_id)
    goal.current_amount = max(Decimal("0"), Decimal(goal.current_amount) + amount)

    now = datetime.now(timezone.utc)
    goal.updated_at = now
    completed = apply_completion(goal, now)
    await db.flush()
    if completed:
        await _notify_completed(db, goal)
    logger.info("goal_contribution", user_id=user_id, goal_id=goal.id, amount=str(amount))
    return goal, completed


async def delete_goal(db: AsyncSession, user_id: int, goal_id: int) -> None:
    goal = await get_goal(db, user_id, goal_id)
    await db.delete(goal)
    await db.flush()

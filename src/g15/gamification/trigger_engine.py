"""Badge trigger engine: evaluates user activity events against badge conditions."""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import Badge, BudgetCategory, Goal, Group, Transaction, User
from g15.gamification.badge_service import award_badge, earned_badge_ids

logger = logging.getLogger(__name__)

# Event -> condition types it can satisfy
EVENT_CONDITIONS: dict[str, tuple[str, ...]] = {
    "transaction_created": ("transaction_count",),
    "goal_saved": ("goal_count", "saving_goal", "completed_goal"),
    "goal_completed": ("completed_goal", "saving_goal"),
    "budget_created": ("budget_count",),
    "group_created": ("group_creation",),
    "login": ("login_streak",),
    "pro_upgraded": ("pro_subscription",),
    "showcase_posted": (),
}


class TriggerEngine:
    """Evaluates badge conditions for one user event."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._badge_cache: list[Badge] | None = None

    async def _load_badges(self) -> list[Badge]:
        """Load and cache all badge definitions."""
        if self._badge_cache is None:
            result = await self.db.execute(select(Badge).order_by(Badge.sort_order))
            self._badge_cache = list(result.scalars())
        return self._badge_cache

    async def _count(self, model: type, *conditions: object) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(model).where(*conditions)
        )
        return int(result.scalar_one())

    async def measure(self, user_id: int, condition_type: str) -> Decimal:
        """Current value of the user's metric for a condition type."""
        if condition_type == "transaction_count":
            return Decimal(await self._count(Transaction, Transaction.user_id == user_id))
        if condition_type == "goal_count":
            return Decimal(await self._count(Goal, Goal.user_id == user_id))
        if condition_type == "completed_goal":
            return Decimal(await self._count(Goal, Goal.user_id == user_id, Goal.completed_at.is_not(None)))
        if condition_type == "budget_count":
            return Decimal(await self._count(BudgetCategory, BudgetCategory.user_id == user_id))
        if condition_type == "group_creation":
            return Decimal(await self._count(Group, Group.created_by == user_id))
        if condition_type == "saving_goal":
            result = await self.db.execute(
                select(func.max(Goal.current_amount)).where(Goal.user_id == user_id)
            )
            return Decimal(result.scalar_one_or_none() or 0)

        user = (await self.db.execute(select(User).where(User.id == user_id))).scalar_one()
        if condition_type == "login_streak":
            return Decimal(user.login_streak or 0)
        if condition_type == "pro_subscription":
            return Decimal(1 if user.is_pro else 0)
        raise ValueError(f"Unknown condition type: {condition_type}")

    async def evaluate(self, user_id: int, event: str) -> list[str]:
        """Evaluate all badges an event can unlock and commit any awards.

        Returns list of badge slugs awarded (may be empty).
        """
        if event not in EVENT_CONDITIONS:
            raise ValueError(f"Unknown badge event: {event}")

        badges = await self._load_badges()
        earned = await earned_badge_ids(self.db, user_id)
        condition_types = EVENT_CONDITIONS[event]

        metrics: dict[str, Decimal] = {}
        awarded: list[str] = []
        for badge in badges:
            if badge.id in earned:
                continue
            if badge.condition_type == "secret_achievement":
                satisfied = badge.condition_event == event
            elif badge.condition_type in condition_types:
                if badge.condition_type not in metrics:
                    metrics[badge.condition_type] = await self.measure(user_id, badge.condition_type)
                satisfied = metrics[badge.condition_type] >= badge.condition_value
            else:
                continue

            if satisfied and await award_badge(self.db, user_id, badge.slug):
                awarded.append(badge.slug)

        if awarded:
            await self.db.commit()
            logger.info("User %d earned %s on %s", user_id, awarded, event)
        return awarded


async def fire_event(db: AsyncSession, user_id: int, event: str) -> list[str]:
    """Run badge triggers after the triggering change was committed.

    Badge evaluation never fails the request: errors are logged and the
    session is rolled back.
    """
    try:
        return await TriggerEngine(db).evaluate(user_id, event)
    except Exception:
        logger.warning("Badge evaluation failed for user %d on %s", user_id, event, exc_info=True)
        await db.rollback()
        return []

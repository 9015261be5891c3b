"""Badge catalog seed data."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import Badge

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    # Transactions
    {
        "slug": "first_transaction",
        "name": "First Steps",
        "description": "Record your very first transaction",
        "icon": "receipt",
        "points": 10,
        "condition_type": "transaction_count",
        "condition_value": 1,
        "sort_order": 1,
    },
    {
        "slug": "transactions_10",
        "name": "Bookkeeper",
        "description": "Record 10 transactions",
        "icon": "book-open",
        "points": 25,
        "condition_type": "transaction_count",
        "condition_value": 10,
        "sort_order": 2,
    },
    {
        "slug": "transactions_100",
        "name": "Ledger Legend",
        "description": "Record 100 transactions",
        "icon": "library",
        "points": 100,
        "condition_type": "transaction_count",
        "condition_value": 100,
        "sort_order": 3,
    },
    # Goals
    {
        "slug": "first_goal",
        "name": "Dreamer",
        "description": "Create your first financial goal",
        "icon": "target",
        "points": 10,
        "condition_type": "goal_count",
        "condition_value": 1,
        "sort_order": 4,
    },
    {
        "slug": "goal_achiever",
        "name": "Goal Getter",
        "description": "Complete a financial goal",
        "icon": "trophy",
        "points": 50,
        "condition_type": "completed_goal",
        "condition_value": 1,
        "sort_order": 5,
    },
    {
        "slug": "goal_master",
        "name": "Goal Master",
        "description": "Complete 5 financial goals",
        "icon": "crown",
        "points": 150,
        "condition_type": "completed_goal",
        "condition_value": 5,
        "sort_order": 6,
    },
    {
        "slug": "big_saver",
        "name": "Big Saver",
        "description": "Save $1,000 towards a single goal",
        "icon": "piggy-bank",
        "points": 75,
        "condition_type": "saving_goal",
        "condition_value": 1000,
        "sort_order": 7,
    },
    # Budgets
    {
        "slug": "budget_planner",
        "name": "Budget Planner",
        "description": "Create your first budget category",
        "icon": "wallet",
        "points": 10,
        "condition_type": "budget_count",
        "condition_value": 1,
        "sort_order": 8,
    },
    {
        "slug": "budget_architect",
        "name": "Budget Architect",
        "description": "Create 5 budget categories",
        "icon": "layout-grid",
        "points": 30,
        "condition_type": "budget_count",
        "condition_value": 5,
        "sort_order": 9,
    },
    # Groups
    {
        "slug": "group_founder",
        "name": "Team Player",
        "description": "Create a group to share expenses",
        "icon": "users",
        "points": 20,
        "condition_type": "group_creation",
        "condition_value": 1,
        "sort_order": 10,
    },
    # Engagement
    {
        "slug": "streak_7",
        "name": "Week Warrior",
        "description": "Log in 7 days in a row",
        "icon": "flame",
        "points": 30,
        "condition_type": "login_streak",
        "condition_value": 7,
        "sort_order": 11,
    },
    {
        "slug": "streak_30",
        "name": "Habit Formed",
        "description": "Log in 30 days in a row",
        "icon": "calendar-check",
        "points": 100,
        "condition_type": "login_streak",
        "condition_value": 30,
        "sort_order": 12,
    },
    {
        "slug": "pro_member",
        "name": "Going Pro",
        "description": "Upgrade to G15 Pro",
        "icon": "star",
        "points": 50,
        "condition_type": "pro_subscription",
        "condition_value": 1,
        "sort_order": 13,
    },
    # Secret
    {
        "slug": "show_off",
        "name": "Show-Off",
        "description": "Share an achievement on the showcase",
        "icon": "sparkles",
        "points": 15,
        "condition_type": "secret_achievement",
        "condition_value": 1,
        "condition_event": "showcase_posted",
        "is_secret": True,
        "sort_order": 14,
    },
]


async def seed_badges(db: AsyncSession) -> int:
    """Insert missing badges and refresh existing ones by slug. Returns number seeded."""
    result = await db.execute(select(Badge))
    existing = {b.slug: b for b in result.scalars()}

    seeded = 0
    for badge_data in BADGE_SEED_DATA:
        data = {"condition_event": None, "is_secret": False, **badge_data}
        badge = existing.get(data["slug"])
        if badge is None:
            db.add(Badge(**data))
        else:
            for key, value in data.items():
                setattr(badge, key, value)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d badge definitions", seeded)
    return seeded

"""Budget categories and spending against them."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import BudgetCategory, Transaction
from g15.social.notification_service import notify_safely

logger = structlog.get_logger()

_UPDATABLE_FIELDS = frozenset({"name", "budget_amount", "color"})


async def category_spending(
    db: AsyncSession,
    user_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict[str, Decimal]:
    """Expense totals keyed by lower-cased category name."""
    key = func.lower(Transaction.category)
    query = (
        select(key, func.coalesce(func.sum(Transaction.amount), 0))
        .where(
            Transaction.user_id == user_id,
            Transaction.type == "expense",
            Transaction.category.is_not(None),
        )
        .group_by(key)
    )
    if start_date is not None:
        query = query.where(Transaction.date >= start_date)
    if end_date is not None:
        query = query.where(Transaction.date <= end_date)

    result = await db.execute(query)
    return {name: Decimal(str(total)) for name, total in result.all()}


def spending_summary(category: BudgetCategory, spent: Decimal) -> dict[str, float]:
    budget = Decimal(category.budget_amount)
    percentage = float(round(spent / budget * 100, 1)) if budget > 0 else 0.0
    return {
        "spent": float(spent),
        "remaining": float(budget - spent),
        "percentage": percentage,
    }


async def list_categories(db: AsyncSession, user_id: int) -> list[BudgetCategory]:
    result = await db.execute(
        select(BudgetCategory)
        .where(BudgetCategory.user_id == user_id)
        .order_by(BudgetCategory.name)
    )
    return list(result.scalars().all())


async def get_category(db: AsyncSession, user_id: int, category_id: int) -> BudgetCategory:
    result = await db.execute(
        select(BudgetCategory).where(
            BudgetCategory.id == category_id,
            BudgetCategory.user_id == user_id,
        )
    )
    category = result.scalar_one_or_none()
    if category is None:
        raise LookupError("Budget category not found")
    return category


async def find_category_by_name(db: AsyncSession, user_id: int, name: str) -> BudgetCategory | None:
    result = await db.execute(
        select(BudgetCategory).where(
            BudgetCategory.user_id == user_id,
            func.lower(BudgetCategory.name) == name.strip().lower(),
        )
    )
    return result.scalar_one_or_none()


async def create_category(
    db: AsyncSession,
    user_id: int,
    name: str,
    budget_amount: Decimal,
    color: str = "#3B82F6",
) -> BudgetCategory:
    """Create a budget category. Names are unique per user, ignoring case."""
    name = name.strip()
    if not name:
        raise ValueError("Name cannot be empty")
    if await find_category_by_name(db, user_id, name) is not None:
        raise ValueError(f"Budget category '{name}' already exists")

    category = BudgetCategory(
        user_id=user_id,
        name=name,
        budget_amount=budget_amount,
        color=color,
        created_at=datetime.now(timezone.utc),
    )
    db.add(category)
    await db.flush()
    logger.info("budget_category_created", user_id=user_id, category_id=category.id)
    return category


async def update_category(
    db: AsyncSession,
    user_id: int,
    category_id: int,
    changes: dict[str, Any],
) -> BudgetCategory:
    category = await get_category(db, user_id, category_id)
    new_name = changes.get("name")
    if new_name is not None:
        new_name = new_name.strip()
        if not new_name:
            raise ValueError("Name cannot be empty")
        existing = await find_category_by_name(db, user_id, new_name)
        if existing is not None and existing.id != category.id:
            raise ValueError(f"Budget category '{new_name}' already exists")
        changes = {**changes, "name": new_name}

    for field, value in changes.items():
        if field in _UPDATABLE_FIELDS and value is not None:
            setattr(category, field, value)
    await db.flush()
    return category


async def delete_category(db: AsyncSession, user_id: int, category_id: int) -> None:
    category = await get_category(db, user_id, category_id)
    await db.delete(category)
    await db.flush()


async def notify_if_over_budget(
    db: AsyncSession,
    user_id: int,
    category_name: str,
    amount: Decimal,
) -> bool:
    """Send budget_exceeded when the expense just recorded crossed the budget.

    Only the expense that first takes spending above the budget notifies;
    later expenses in an already-exceeded category stay silent.
    """
    category = await find_category_by_name(db, user_id, category_name)
    if category is None or category.budget_amount <= 0:
        return False

    spent_after = (await category_spending(db, user_id)).get(category.name.lower(), Decimal("0"))
    spent_before = spent_after - amount
    budget = Decimal(category.budget_amount)
    if not (spent_before <= budget < spent_after):
        return False

    await notify_safely(
        db,
        [user_id],
        "budget_exceeded",
        title=f'Budget exceeded: "{category.name}"',
        message=f"You have spent ${spent_after:.2f} of your ${budget:.2f} budget.",
        action_url="/budget",
    )
    logger.info("budget_exceeded", user_id=user_id, category_id=category.id)
    return True

"""Personal transaction business logic."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import Transaction
from g15.finance.budget_service import notify_if_over_budget
from g15.finance.pagination import apply_cursor, encode_cursor

logger = structlog.get_logger()

MAX_PAGE_SIZE = 100
_UPDATABLE_FIELDS = frozenset({"amount", "type", "category", "date", "description"})


async def create_transaction(
    db: AsyncSession,
    user_id: int,
    amount: Decimal,
    type_: str,
    category: str | None = None,
    tx_date: date | None = None,
    description: str | None = None,
) -> Transaction:
    """Record a transaction. Expenses are checked against the matching budget category."""
    if amount <= 0:
        raise ValueError("Amount must be greater than zero")
    if type_ not in ("income", "expense"):
        raise ValueError("Type must be 'income' or 'expense'")

    now = datetime.now(timezone.utc)
    transaction = Transaction(
        user_id=user_id,
        amount=amount,
        type=type_,
        category=category,
        date=tx_date or now.date(),
        description=description,
        created_at=now,
    )
    db.add(transaction)
    await db.flush()
    logger.info("transaction_created", user_id=user_id, transaction_id=transaction.id, type=type_)

    if type_ == "expense" and category:
        await notify_if_over_budget(db, user_id, category, amount)
    return transaction


async def get_transaction(db: AsyncSession, user_id: int, transaction_id: int) -> Transaction:
    """Fetch one of the user's transactions. Raises LookupError if absent."""
    result = await db.execute(
        select(Transaction).where(
            Transaction.id == transaction_id,
            Transaction.user_id == user_id,
        )
    )
    transaction = result.scalar_one_or_none()
    if transaction is None:
        raise LookupError("Transaction not found")
    return transaction


async def list_transactions(
    db: AsyncSession,
    user_id: int,
    limit: int = 50,
    cursor: str | None = None,
    type_: str | None = None,
    category: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    search: str | None = None,
) -> tuple[list[Transaction], str | None]:
    """Fetch a page of transactions, newest first.

    Returns:
        Tuple of (transactions, next_cursor or None).

    Raises:
        ValueError: If the cursor is malformed.
    """
    limit = min(limit, MAX_PAGE_SIZE)

    query = (
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
    )
    if type_ is not None:
        query = query.where(Transaction.type == type_)
    if category is not None:
        query = query.where(Transaction.category == category)
    if start_date is not None:
        query = query.where(Transaction.date >= start_date)
    if end_date is not None:
        query = query.where(Transaction.date <= end_date)
    if search:
        query = query.where(
            func.lower(Transaction.description).contains(search.lower(), autoescape=True)
        )

    query = apply_cursor(query, cursor)

    # Fetch one extra to detect has_more
    result = await db.execute(query.limit(limit + 1))
    rows = list(result.scalars().all())

    items = rows[:limit]
    next_cursor = None
    if len(rows) > limit and items:
        next_cursor = encode_cursor(items[-1].date, items[-1].id)
    return items, next_cursor


async def recent_transactions(db: AsyncSession, user_id: int, limit: int = 5) -> list[Transaction]:
    items, _ = await list_transactions(db, user_id, limit=limit)
    return items


async def update_transaction(
    db: AsyncSession,
    user_id: int,
    transaction_id: int,
    changes: dict[str, Any],
) -> Transaction:
    """Apply a partial update. Only the fields present in `changes` are touched."""
    transaction = await get_transaction(db, user_id, transaction_id)
    for field, value in changes.items():
        if field not in _UPDATABLE_FIELDS:
            continue
        if field in ("amount", "type", "date") and value is None:
            raise ValueError(f"{field} cannot be null")
        setattr(transaction, field, value)
    await db.flush()
    return transaction


async def delete_transaction(db: AsyncSession, user_id: int, transaction_id: int) -> None:
    transaction = await get_transaction(db, user_id, transaction_id)
    await db.delete(transaction)
    await db.flush()
    logger.info("transaction_deleted", user_id=user_id, transaction_id=transaction_id)


async def get_balance_summary(
    db: AsyncSession,
    user_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict[str, Decimal]:
    """Total income, total expenses and balance for the user."""
    conditions = [Transaction.user_id == user_id]
    if start_date is not None:
        conditions.append(Transaction.date >= start_date)
    if end_date is not None:
        conditions.append(Transaction.date <= end_date)

    result = await db.execute(
        select(
            func.coalesce(
                func.sum(case((Transaction.type == "income", Transaction.amount), else_=0)), 0
            ),
            func.coalesce(
                func.sum(case((Transaction.type == "expense", Transaction.amount), else_=0)), 0
            ),
        ).where(*conditions)
    )
    income, expenses = result.one()
    income = Decimal(str(income))
    expenses = Decimal(str(expenses))
    return {
        "total_income": income,
        "total_expenses": expenses,
        "balance": income - expenses,
    }

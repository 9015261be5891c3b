"""Dashboard and report aggregation.

The dashboard combines balances, recent activity, goals and gamification
state into one response. It is cached in Redis for a few seconds when Redis
is available.
"""

from __future__ import annotations

import json
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.config import get_settings
from g15.db.models import Goal, Transaction, User
from g15.finance.goal_service import goal_progress
from g15.finance.transaction_service import get_balance_summary, recent_transactions
from g15.social.notification_service import get_unread_count
from g15.users.service import count_badges

logger = structlog.get_logger()

DASHBOARD_CACHE_KEY = "dashboard:{user_id}"
RECENT_TRANSACTIONS = 5
TOP_GOALS = 3

UNCATEGORIZED = "Uncategorized"


async def _top_goals(session: AsyncSession, user_id: int) -> list[dict]:
    result = await session.execute(
        select(Goal)
        .where(Goal.user_id == user_id)
        .order_by(Goal.target_amount.desc(), Goal.id)
        .limit(TOP_GOALS)
    )
    return [
        {
            "id": g.id,
            "name": g.name,
            "target_amount": float(g.target_amount),
            "current_amount": float(g.current_amount),
            "progress": goal_progress(g),
            "completed_at": g.completed_at.isoformat() if g.completed_at else None,
        }
        for g in result.scalars()
    ]


async def get_dashboard(
    session: AsyncSession,
    redis: aioredis.Redis | None,
    user: User,
) -> dict:
    """Aggregated dashboard for one user."""
    cache_key = DASHBOARD_CACHE_KEY.format(user_id=user.id)

    if redis is not None:
        try:
            cached = await redis.get(cache_key)
        except RedisError:
            logger.warning("dashboard_cache_read_failed", user_id=user.id, exc_info=True)
            cached = None
        if cached:
            return json.loads(cached)

    summary = await get_balance_summary(session, user.id)
    recent = await recent_transactions(session, user.id, RECENT_TRANSACTIONS)

    dashboard = {
        "summary": {k: float(v) for k, v in summary.items()},
        "recent_transactions": [
            {
                "id": tx.id,
                "amount": float(tx.amount),
                "type": tx.type,
                "category": tx.category,
                "date": tx.date.isoformat(),
                "description": tx.description,
            }
            for tx in recent
        ],
        "top_goals": await _top_goals(session, user.id),
        "unread_notifications": await get_unread_count(session, user.id),
        "badges_earned": await count_badges(session, user.id),
        "points": user.points,
        "is_pro": user.is_pro,
    }

    if redis is not None:
        try:
            await redis.setex(cache_key, get_settings().dashboard_cache_ttl_seconds, json.dumps(dashboard))
        except RedisError:
            logger.warning("dashboard_cache_write_failed", user_id=user.id, exc_info=True)

    return dashboard


def report_window(duration: str, today: date) -> tuple[date, date]:
    """First and last day (inclusive) covered by a report duration."""
    if duration == "year":
        return date(today.year, 1, 1), today
    days = {"7days": 7, "30days": 30, "90days": 90}.get(duration)
    if days is None:
        msg = f"Unknown duration: {duration}"
        raise ValueError(msg)
    return today - timedelta(days=days - 1), today


def _ratio(part: Decimal, whole: Decimal) -> float:
    return float(round(part / whole * 100, 1)) if whole > 0 else 0.0


async def get_report(
    session: AsyncSession,
    user_id: int,
    duration: str = "30days",
    today: date | None = None,
) -> dict:
    """Daily income/expense series, expense breakdown by category and totals."""
    today = today or datetime.now(timezone.utc).date()
    start, end = report_window(duration, today)

    result = await session.execute(
        select(Transaction.date, Transaction.type, Transaction.category, Transaction.amount)
        .where(
            Transaction.user_id == user_id,
            Transaction.date >= start,
            Transaction.date <= end,
        )
    )

    daily: dict[date, dict[str, Decimal]] = defaultdict(
        lambda: {"income": Decimal("0"), "expenses": Decimal("0")}
    )
    by_category: dict[str, Decimal] = defaultdict(Decimal)
    income = Decimal("0")
    expenses = Decimal("0")

    for tx_date, tx_type, category, amount in result.all():
        amount = Decimal(str(amount))
        if tx_type == "income":
            daily[tx_date]["income"] += amount
            income += amount
        else:
            daily[tx_date]["expenses"] += amount
            expenses += amount
            by_category[(category or "").strip() or UNCATEGORIZED] += amount

    days = (end - start).days + 1
    series = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        totals = daily.get(day)
        series.append({
            "date": day.isoformat(),
            "income": float(totals["income"]) if totals else 0.0,
            "expenses": float(totals["expenses"]) if totals else 0.0,
        })

    categories = [
        {"category": name, "amount": float(amount), "percentage": _ratio(amount, expenses)}
        for name, amount in sorted(by_category.items(), key=lambda kv: (-kv[1], kv[0]))
    ]

    return {
        "duration": duration,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "daily": series,
        "categories": categories,
        "totals": {
            "income": float(income),
            "expenses": float(expenses),
            "net": float(income - expenses),
            "avg_daily_spending": float(round(expenses / max(1, days), 2)),
        },
    }

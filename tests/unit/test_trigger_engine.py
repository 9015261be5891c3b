"""Badge trigger engine against a real (SQLite) session."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import Goal, Notification, Transaction, User
from g15.gamification.trigger_engine import TriggerEngine, fire_event
from tests.helpers import register_user


async def _user_id(client: AsyncClient) -> int:
    return (await register_user(client))["user_id"]


def _transaction(user_id: int) -> Transaction:
    return Transaction(
        user_id=user_id,
        amount=Decimal("12.50"),
        type="expense",
        category="Food",
        date=date(2026, 3, 1),
        created_at=datetime.now(timezone.utc),
    )


class TestTriggerEngine:
    @pytest.mark.asyncio
    async def test_unknown_event_rejected(self, client: AsyncClient, db_session: AsyncSession):
        user_id = await _user_id(client)
        with pytest.raises(ValueError, match="Unknown badge event"):
            await TriggerEngine(db_session).evaluate(user_id, "mined_a_block")

    @pytest.mark.asyncio
    async def test_first_transaction_awards_badge_and_points(self, client: AsyncClient, db_session: AsyncSession):
        user_id = await _user_id(client)
        db_session.add(_transaction(user_id))
        await db_session.commit()

        awarded = await TriggerEngine(db_session).evaluate(user_id, "transaction_created")
        assert awarded == ["first_transaction"]

        user = (await db_session.execute(select(User).where(User.id == user_id))).scalar_one()
        await db_session.refresh(user)
        assert user.points == 10

        notes = (await db_session.execute(
            select(Notification).where(Notification.user_id == user_id, Notification.type == "badge_earned")
        )).scalars().all()
        assert len(notes) == 1
        assert notes[0].action_url == "/profile"

    @pytest.mark.asyncio
    async def test_badge_not_awarded_twice(self, client: AsyncClient, db_session: AsyncSession):
        user_id = await _user_id(client)
        db_session.add(_transaction(user_id))
        await db_session.commit()

        assert await TriggerEngine(db_session).evaluate(user_id, "transaction_created") == ["first_transaction"]
        db_session.add(_transaction(user_id))
        await db_session.commit()
        assert await TriggerEngine(db_session).evaluate(user_id, "transaction_created") == []

    @pytest.mark.asyncio
    async def test_event_only_checks_its_conditions(self, client: AsyncClient, db_session: AsyncSession):
        user_id = await _user_id(client)
        db_session.add(_transaction(user_id))
        await db_session.commit()
        assert await TriggerEngine(db_session).evaluate(user_id, "budget_created") == []

    @pytest.mark.asyncio
    async def test_completed_big_goal_awards_several(self, client: AsyncClient, db_session: AsyncSession):
        user_id = await _user_id(client)
        now = datetime.now(timezone.utc)
        db_session.add(Goal(
            user_id=user_id,
            name="Emergency fund",
            target_amount=Decimal("1000"),
            current_amount=Decimal("1000"),
            completed_at=now,
            created_at=now,
            updated_at=now,
        ))
        await db_session.commit()

        awarded = await TriggerEngine(db_session).evaluate(user_id, "goal_saved")
        assert set(awarded) == {"first_goal", "goal_achiever", "big_saver"}

    @pytest.mark.asyncio
    async def test_secret_badge_matches_event(self, client: AsyncClient, db_session: AsyncSession):
        user_id = await _user_id(client)
        assert await TriggerEngine(db_session).evaluate(user_id, "showcase_posted") == ["show_off"]

    @pytest.mark.asyncio
    async def test_fire_event_swallows_errors(self, client: AsyncClient, db_session: AsyncSession):
        user_id = await _user_id(client)
        assert await fire_event(db_session, user_id, "not_an_event") == []

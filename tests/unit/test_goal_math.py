"""Goal progress/completion and budget spending summaries."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from g15.db.models import BudgetCategory, Goal
from g15.finance.budget_service import spending_summary
from g15.finance.goal_service import apply_completion, goal_progress

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _goal(current: str, target: str, completed_at: datetime | None = None) -> Goal:
    return Goal(
        user_id=1,
        name="Vacation",
        target_amount=Decimal(target),
        current_amount=Decimal(current),
        completed_at=completed_at,
    )


class TestGoalProgress:
    def test_partial(self):
        assert goal_progress(_goal("250", "1000")) == 25.0

    def test_rounded_to_one_decimal(self):
        assert goal_progress(_goal("1", "3")) == 33.3

    def test_capped_at_100(self):
        assert goal_progress(_goal("1500", "1000")) == 100.0

    def test_zero_target(self):
        assert goal_progress(_goal("10", "0")) == 0.0


class TestApplyCompletion:
    def test_reaching_target_completes(self):
        goal = _goal("1000", "1000")
        assert apply_completion(goal, NOW) is True
        assert goal.completed_at == NOW

    def test_already_complete_keeps_timestamp(self):
        earlier = datetime(2026, 1, 1, tzinfo=timezone.utc)
        goal = _goal("1200", "1000", completed_at=earlier)
        assert apply_completion(goal, NOW) is False
        assert goal.completed_at == earlier

    def test_dropping_below_target_clears_completion(self):
        goal = _goal("900", "1000", completed_at=NOW)
        assert apply_completion(goal, NOW) is False
        assert goal.completed_at is None

    def test_below_target_stays_open(self):
        goal = _goal("10", "1000")
        assert apply_completion(goal, NOW) is False
        assert goal.completed_at is None


class TestSpendingSummary:
    def _category(self, budget: str) -> BudgetCategory:
        return BudgetCategory(user_id=1, name="Food", budget_amount=Decimal(budget))

    def test_under_budget(self):
        assert spending_summary(self._category("400"), Decimal("100")) == {
            "spent": 100.0,
            "remaining": 300.0,
            "percentage": 25.0,
        }

    def test_over_budget_goes_negative(self):
        summary = spending_summary(self._category("100"), Decimal("150"))
        assert summary["remaining"] == -50.0
        assert summary["percentage"] == 150.0

    def test_zero_budget(self):
        assert spending_summary(self._category("0"), Decimal("20"))["percentage"] == 0.0

"""Prompt construction for the finance assistant."""

from __future__ import annotations

import json

from g15.assistant.prompts import (
    NO_DATA_NOTE,
    build_budget_suggestion_prompt,
    build_system_prompt,
    format_financial_context,
)


class TestFinancialContext:
    def test_no_data(self):
        assert format_financial_context() == NO_DATA_NOTE

    def test_goals_section(self):
        text = format_financial_context(goals=[
            {"name": "Vacation", "target_amount": 1000, "current_amount": 250},
        ])
        assert text == "Financial Goals:\n- Vacation: $250.00 of $1000.00 (25.0% complete)"

    def test_zero_target_goal(self):
        text = format_financial_context(goals=[
            {"name": "Odd", "target_amount": 0, "current_amount": 5},
        ])
        assert "(0.0% complete)" in text

    def test_non_mapping_entries_skipped(self):
        text = format_financial_context(
            goals=["Car", None, {"name": "Bike", "target_amount": 200, "current_amount": 50}],
            categories="Food",
            transactions=[42, ["2026-03-01", 10]],
        )
        assert text == "Financial Goals:\n- Bike: $50.00 of $200.00 (25.0% complete)"

    def test_unreadable_amounts_count_as_zero(self):
        text = format_financial_context(categories=[
            {"name": "Food", "budget_amount": "lots"},
            {"name": "Fun", "budget_amount": float("nan")},
        ])
        assert text.splitlines() == ["Budget Categories:", "- Food: $0.00", "- Fun: $0.00"]

    def test_categories_section(self):
        text = format_financial_context(categories=[{"name": "Food", "budget_amount": 300}])
        assert text == "Budget Categories:\n- Food: $300.00"

    def test_transaction_lines(self):
        text = format_financial_context(transactions=[
            {"date": "2026-03-01", "type": "income", "amount": 2500, "category": "Salary"},
            {"date": "2026-03-02", "type": "expense", "amount": 12.5, "category": None},
        ])
        assert text.splitlines() == [
            "Recent Transactions:",
            "- 2026-03-01: Income of $2500.00 in Salary",
            "- 2026-03-02: Expense of $12.50",
        ]

    def test_sections_joined_by_blank_line(self):
        text = format_financial_context(
            goals=[{"name": "G", "target_amount": 10, "current_amount": 1}],
            categories=[{"name": "Food", "budget_amount": 300}],
        )
        assert "\n\nBudget Categories:" in text


class TestPrompts:
    def test_system_prompt_embeds_context(self):
        prompt = build_system_prompt("Budget Categories:\n- Food: $300.00")
        assert "You are G15" in prompt
        assert "- Food: $300.00" in prompt
        assert "[PROGRESS:name:current:target]" in prompt

    def test_budget_prompt_embeds_json(self):
        categories = [{"id": 1, "name": "Food", "budget_amount": 300.0}]
        prompt = build_budget_suggestion_prompt(categories, [])
        assert json.dumps(categories) in prompt
        assert '"categoryId"' in prompt

"""Parsing the model's budget suggestions."""

from __future__ import annotations

import pytest

from g15.assistant.llm import LLMError
from g15.assistant.service import parse_budget_suggestions, suggest_budgets
from tests.helpers import FakeLLMProvider


class TestParse:
    def test_plain_array(self):
        text = '[{"categoryId": 1, "suggestedBudget": 250}, {"categoryId": 2, "suggestedBudget": 99.999}]'
        assert parse_budget_suggestions(text, {1, 2}) == [
            {"categoryId": 1, "suggestedBudget": 250.0},
            {"categoryId": 2, "suggestedBudget": 100.0},
        ]

    def test_code_fence_tolerated(self):
        text = '```json\n[{"categoryId": 3, "suggestedBudget": 40}]\n```'
        assert parse_budget_suggestions(text, {3}) == [{"categoryId": 3, "suggestedBudget": 40.0}]

    def test_prose_around_array(self):
        text = 'Here you go: [{"categoryId": 3, "suggestedBudget": "40"}] Enjoy!'
        assert parse_budget_suggestions(text, {3}) == [{"categoryId": 3, "suggestedBudget": 40.0}]

    def test_unknown_and_duplicate_ids_dropped(self):
        text = (
            '[{"categoryId": 1, "suggestedBudget": 10},'
            ' {"categoryId": 9, "suggestedBudget": 20},'
            ' {"categoryId": 1, "suggestedBudget": 30}]'
        )
        assert parse_budget_suggestions(text, {1}) == [{"categoryId": 1, "suggestedBudget": 10.0}]

    def test_negative_and_malformed_items_dropped(self):
        text = (
            '[{"categoryId": 1, "suggestedBudget": -5},'
            ' {"categoryId": "two", "suggestedBudget": 5},'
            ' {"suggestedBudget": 5}, "junk",'
            ' {"categoryId": 2, "suggestedBudget": 0}]'
        )
        assert parse_budget_suggestions(text, {1, 2}) == [{"categoryId": 2, "suggestedBudget": 0.0}]

    @pytest.mark.parametrize("value", ['"NaN"', '"inf"', '"-Infinity"', "NaN", "Infinity"])
    def test_non_finite_amounts_dropped(self, value: str):
        text = f'[{{"categoryId": 1, "suggestedBudget": {value}}}, {{"categoryId": 2, "suggestedBudget": 15}}]'
        assert parse_budget_suggestions(text, {1, 2}) == [{"categoryId": 2, "suggestedBudget": 15.0}]

    def test_not_an_array(self):
        with pytest.raises(LLMError, match="not a JSON array"):
            parse_budget_suggestions("I think you should spend less.", {1})

    def test_invalid_json(self):
        with pytest.raises(LLMError, match="not valid JSON"):
            parse_budget_suggestions("[{categoryId: 1}]", {1})


class TestSuggestBudgets:
    @pytest.mark.asyncio
    async def test_no_categories_skips_model(self):
        provider = FakeLLMProvider()
        assert await suggest_budgets(provider, []) == []
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_prompt_sent_without_user_message(self):
        provider = FakeLLMProvider()
        provider.replies = ['[{"categoryId": 4, "suggestedBudget": 120}]']
        result = await suggest_budgets(
            provider,
            [{"id": 4, "name": "Food", "budget_amount": 100}],
            [{"date": "2026-03-01", "amount": 30, "category": "Food", "type": "expense"}],
        )
        assert result == [{"categoryId": 4, "suggestedBudget": 120.0}]
        prompt, user_prompt = provider.calls[0]
        assert user_prompt == ""
        assert '"name": "Food"' in prompt

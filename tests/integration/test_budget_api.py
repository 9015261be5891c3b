"""Budget category and budget suggestion endpoint tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from g15.assistant.llm import LLMError, LLMRateLimitError
from g15.assistant.prompts import BUSY_MESSAGE
from tests.helpers import FakeLLMProvider


async def _category(client: AsyncClient, name: str = "Food", budget: float = 100) -> dict:
    resp = await client.post("/api/v1/budget/categories", json={"name": name, "budget_amount": budget})
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _expense(client: AsyncClient, amount: float, category: str = "Food") -> None:
    resp = await client.post(
        "/api/v1/transactions", json={"amount": amount, "type": "expense", "category": category}
    )
    assert resp.status_code == 201


async def _budget_notifications(client: AsyncClient) -> list[dict]:
    data = (await client.get("/api/v1/notifications")).json()
    return [n for n in data["notifications"] if n["type"] == "budget_exceeded"]


class TestCategories:
    @pytest.mark.asyncio
    async def test_create_awards_badge(self, authed_client: AsyncClient):
        data = await _category(authed_client)
        assert data["name"] == "Food"
        assert data["budget_amount"] == 100.0
        assert data["color"] == "#3B82F6"
        assert data["spent"] == 0.0
        assert data["new_badges"] == ["budget_planner"]

    @pytest.mark.asyncio
    async def test_duplicate_name_ignores_case(self, authed_client: AsyncClient):
        await _category(authed_client)
        resp = await authed_client.post("/api/v1/budget/categories", json={"name": "food", "budget_amount": 5})
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_bad_color(self, authed_client: AsyncClient):
        resp = await authed_client.post(
            "/api/v1/budget/categories", json={"name": "Fun", "budget_amount": 5, "color": "red"}
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_list_includes_spending(self, authed_client: AsyncClient):
        await _category(authed_client, "Food", 200)
        await _category(authed_client, "Rent", 1000)
        await _expense(authed_client, 50, "food")
        await _expense(authed_client, 25, "Food")

        data = (await authed_client.get("/api/v1/budget/categories")).json()
        food = next(c for c in data["categories"] if c["name"] == "Food")
        assert food["spent"] == 75.0
        assert food["remaining"] == 125.0
        assert food["percentage"] == 37.5
        assert data["total_budget"] == 1200.0
        assert data["total_spent"] == 75.0

    @pytest.mark.asyncio
    async def test_update_and_delete(self, authed_client: AsyncClient):
        food = await _category(authed_client)
        await _category(authed_client, "Rent")

        resp = await authed_client.patch(f"/api/v1/budget/categories/{food['id']}", json={"budget_amount": 300})
        assert resp.json()["budget_amount"] == 300.0

        clash = await authed_client.patch(f"/api/v1/budget/categories/{food['id']}", json={"name": "RENT"})
        assert clash.status_code == 409

        assert (await authed_client.delete(f"/api/v1/budget/categories/{food['id']}")).status_code == 204
        assert (await authed_client.delete(f"/api/v1/budget/categories/{food['id']}")).status_code == 404


class TestOverBudget:
    @pytest.mark.asyncio
    async def test_notifies_only_on_crossing(self, authed_client: AsyncClient):
        await _category(authed_client, "Food", 100)
        await _expense(authed_client, 60)
        assert await _budget_notifications(authed_client) == []

        await _expense(authed_client, 50)
        notes = await _budget_notifications(authed_client)
        assert len(notes) == 1
        assert notes[0]["action_url"] == "/budget"

        await _expense(authed_client, 10)
        assert len(await _budget_notifications(authed_client)) == 1

    @pytest.mark.asyncio
    async def test_income_never_notifies(self, authed_client: AsyncClient):
        await _category(authed_client, "Food", 10)
        resp = await authed_client.post(
            "/api/v1/transactions", json={"amount": 500, "type": "income", "category": "Food"}
        )
        assert resp.status_code == 201
        assert await _budget_notifications(authed_client) == []


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_free_user_forbidden(self, authed_client: AsyncClient):
        resp = await authed_client.post("/api/v1/budget/suggestions")
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_no_categories(self, pro_client: AsyncClient, fake_llm: FakeLLMProvider):
        resp = await pro_client.post("/api/v1/budget/suggestions")
        assert resp.json() == {"suggestions": []}
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_suggestions(self, pro_client: AsyncClient, fake_llm: FakeLLMProvider):
        food = await _category(pro_client, "Food", 100)
        await _expense(pro_client, 40)
        fake_llm.replies = [f'[{{"categoryId": {food["id"]}, "suggestedBudget": 150}}, {{"categoryId": 999, "suggestedBudget": 1}}]']

        resp = await pro_client.post("/api/v1/budget/suggestions")
        assert resp.status_code == 200
        assert resp.json() == {"suggestions": [{"categoryId": food["id"], "suggestedBudget": 150.0}]}
        assert '"amount": 40.0' in fake_llm.calls[0][0]

    @pytest.mark.asyncio
    async def test_rate_limited(self, pro_client: AsyncClient, fake_llm: FakeLLMProvider):
        await _category(pro_client)
        fake_llm.error = LLMRateLimitError("slow down")
        resp = await pro_client.post("/api/v1/budget/suggestions")
        assert resp.status_code == 503
        assert resp.json()["detail"] == BUSY_MESSAGE

    @pytest.mark.asyncio
    async def test_unparseable_reply(self, pro_client: AsyncClient, fake_llm: FakeLLMProvider):
        await _category(pro_client)
        fake_llm.replies = ["no idea"]
        resp = await pro_client.post("/api/v1/budget/suggestions")
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Failed to generate response"

    @pytest.mark.asyncio
    async def test_provider_error(self, pro_client: AsyncClient, fake_llm: FakeLLMProvider):
        await _category(pro_client)
        fake_llm.error = LLMError("boom")
        assert (await pro_client.post("/api/v1/budget/suggestions")).status_code == 500

"""Savings goal endpoint tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


async def _create(client: AsyncClient, **overrides) -> dict:
    body = {"name": "Vacation", "target_amount": 1000, **overrides}
    resp = await client.post("/api/v1/goals", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _notification_types(client: AsyncClient) -> list[str]:
    data = (await client.get("/api/v1/notifications")).json()
    return [n["type"] for n in data["notifications"]]


class TestGoals:
    @pytest.mark.asyncio
    async def test_create(self, authed_client: AsyncClient):
        goal = await _create(authed_client, current_amount=250)
        assert goal["name"] == "Vacation"
        assert goal["target_amount"] == 1000.0
        assert goal["progress"] == 25.0
        assert goal["completed_at"] is None
        assert goal["new_badges"] == ["first_goal"]

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, authed_client: AsyncClient):
        resp = await authed_client.post("/api/v1/goals", json={"name": "   ", "target_amount": 10})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_zero_target_rejected(self, authed_client: AsyncClient):
        resp = await authed_client.post("/api/v1/goals", json={"name": "X", "target_amount": 0})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_list_and_get(self, authed_client: AsyncClient):
        first = await _create(authed_client, name="Car")
        second = await _create(authed_client, name="House")
        listed = (await authed_client.get("/api/v1/goals")).json()
        assert [g["id"] for g in listed] == [second["id"], first["id"]]

        resp = await authed_client.get(f"/api/v1/goals/{first['id']}")
        assert resp.json()["name"] == "Car"
        assert (await authed_client.get("/api/v1/goals/9999")).status_code == 404

    @pytest.mark.asyncio
    async def test_update_and_delete(self, authed_client: AsyncClient):
        goal = await _create(authed_client)
        resp = await authed_client.patch(f"/api/v1/goals/{goal['id']}", json={"name": "Trip", "target_amount": 500})
        assert resp.json()["name"] == "Trip"
        assert resp.json()["target_amount"] == 500.0

        assert (await authed_client.delete(f"/api/v1/goals/{goal['id']}")).status_code == 204
        assert (await authed_client.get(f"/api/v1/goals/{goal['id']}")).status_code == 404


class TestContributions:
    @pytest.mark.asyncio
    async def test_contribution_to_completion(self, authed_client: AsyncClient):
        goal = await _create(authed_client, current_amount=900)
        resp = await authed_client.post(f"/api/v1/goals/{goal['id']}/contribute", json={"amount": 100})
        data = resp.json()
        assert data["current_amount"] == 1000.0
        assert data["progress"] == 100.0
        assert data["completed_at"] is not None
        assert "goal_achiever" in data["new_badges"]
        assert "big_saver" in data["new_badges"]
        assert "goal_completed" in await _notification_types(authed_client)

    @pytest.mark.asyncio
    async def test_withdrawal_reopens_goal(self, authed_client: AsyncClient):
        goal = await _create(authed_client, current_amount=1000)
        assert goal["completed_at"] is not None

        resp = await authed_client.post(f"/api/v1/goals/{goal['id']}/contribute", json={"amount": -200})
        assert resp.json()["current_amount"] == 800.0
        assert resp.json()["completed_at"] is None

    @pytest.mark.asyncio
    async def test_withdrawal_floors_at_zero(self, authed_client: AsyncClient):
        goal = await _create(authed_client, current_amount=50)
        resp = await authed_client.post(f"/api/v1/goals/{goal['id']}/contribute", json={"amount": -80})
        assert resp.json()["current_amount"] == 0.0

    @pytest.mark.asyncio
    async def test_zero_contribution_rejected(self, authed_client: AsyncClient):
        goal = await _create(authed_client)
        resp = await authed_client.post(f"/api/v1/goals/{goal['id']}/contribute", json={"amount": 0})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_completion_notifies_once(self, authed_client: AsyncClient):
        goal = await _create(authed_client, target_amount=100)
        url = f"/api/v1/goals/{goal['id']}/contribute"
        await authed_client.post(url, json={"amount": 100})
        await authed_client.post(url, json={"amount": 10})
        assert (await _notification_types(authed_client)).count("goal_completed") == 1

"""Badge catalog and earned badge endpoint tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


async def _first_transaction(client: AsyncClient) -> None:
    resp = await client.post("/api/v1/transactions", json={"amount": 5, "type": "expense"})
    assert resp.json()["new_badges"] == ["first_transaction"]


class TestCatalog:
    @pytest.mark.asyncio
    async def test_catalog_for_new_user(self, authed_client: AsyncClient):
        data = (await authed_client.get("/api/v1/badges")).json()
        assert data["total_available"] == 14
        assert data["total_earned"] == 0
        assert not any(b["earned"] for b in data["badges"])

    @pytest.mark.asyncio
    async def test_secret_badge_masked_until_earned(self, authed_client: AsyncClient):
        data = (await authed_client.get("/api/v1/badges")).json()
        secret = next(b for b in data["badges"] if b["is_secret"])
        assert secret["name"] == "???"
        assert secret["slug"] == f"secret_{secret['id']}"
        assert secret["description"] == ""
        assert secret["icon"] == "lock"

    @pytest.mark.asyncio
    async def test_earned_flag(self, authed_client: AsyncClient):
        await _first_transaction(authed_client)
        data = (await authed_client.get("/api/v1/badges")).json()
        assert data["total_earned"] == 1
        earned = [b["slug"] for b in data["badges"] if b["earned"]]
        assert earned == ["first_transaction"]

    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient):
        assert (await client.get("/api/v1/badges")).status_code == 401


class TestMyBadges:
    @pytest.mark.asyncio
    async def test_empty(self, authed_client: AsyncClient):
        data = (await authed_client.get("/api/v1/users/me/badges")).json()
        assert data == {"earned": [], "total_earned": 0, "points": 0}

    @pytest.mark.asyncio
    async def test_earned_badges_and_points(self, authed_client: AsyncClient):
        await _first_transaction(authed_client)
        await authed_client.post("/api/v1/goals", json={"name": "Car", "target_amount": 100})

        data = (await authed_client.get("/api/v1/users/me/badges")).json()
        assert {e["badge"]["slug"] for e in data["earned"]} == {"first_transaction", "first_goal"}
        assert data["points"] == 20
        assert all(e["is_public"] for e in data["earned"])

    @pytest.mark.asyncio
    async def test_badge_earned_notification(self, authed_client: AsyncClient):
        await _first_transaction(authed_client)
        notes = (await authed_client.get("/api/v1/notifications")).json()["notifications"]
        assert [n["type"] for n in notes] == ["badge_earned"]
        assert notes[0]["title"] == 'Badge Earned: "First Steps"'
        assert notes[0]["message"].startswith("+10 points.")

    @pytest.mark.asyncio
    async def test_hide_badge(self, authed_client: AsyncClient):
        await _first_transaction(authed_client)
        badge_id = (await authed_client.get("/api/v1/users/me/badges")).json()["earned"][0]["badge"]["id"]

        resp = await authed_client.patch(f"/api/v1/users/me/badges/{badge_id}", json={"is_public": False})
        assert resp.status_code == 200
        assert resp.json()["is_public"] is False

    @pytest.mark.asyncio
    async def test_hide_unearned_badge(self, authed_client: AsyncClient):
        catalog = (await authed_client.get("/api/v1/badges")).json()
        badge_id = catalog["badges"][0]["id"]
        resp = await authed_client.patch(f"/api/v1/users/me/badges/{badge_id}", json={"is_public": False})
        assert resp.status_code == 404

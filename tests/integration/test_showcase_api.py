"""Showcase endpoint tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.helpers import auth_headers, register_user


class TestPost:
    @pytest.mark.asyncio
    async def test_free_user_forbidden(self, authed_client: AsyncClient):
        resp = await authed_client.post("/api/v1/showcase", json={"content": "Hi"})
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_post_awards_secret_badge(self, pro_client: AsyncClient):
        resp = await pro_client.post("/api/v1/showcase", json={"content": "  Debt free!  "})
        assert resp.status_code == 201
        data = resp.json()
        assert data["content"] == "Debt free!"
        assert data["author_name"] == "Alice"
        assert data["badge"] is None
        assert data["new_badges"] == ["show_off"]

        again = await pro_client.post("/api/v1/showcase", json={"content": "Still debt free"})
        assert again.json()["new_badges"] == []

    @pytest.mark.asyncio
    async def test_blank_content(self, pro_client: AsyncClient):
        assert (await pro_client.post("/api/v1/showcase", json={"content": "   "})).status_code == 422

    @pytest.mark.asyncio
    async def test_with_earned_badge_and_goal(self, pro_client: AsyncClient):
        goal = (await pro_client.post("/api/v1/goals", json={"name": "Car", "target_amount": 50})).json()
        badge = (await pro_client.get("/api/v1/users/me/badges")).json()["earned"][0]["badge"]

        resp = await pro_client.post(
            "/api/v1/showcase", json={"content": "First goal!", "badge_id": badge["id"], "goal_id": goal["id"]}
        )
        data = resp.json()
        assert data["badge"]["name"] == badge["name"]
        assert data["goal"]["name"] == "Car"

    @pytest.mark.asyncio
    async def test_unearned_badge_rejected(self, pro_client: AsyncClient):
        catalog = (await pro_client.get("/api/v1/badges")).json()
        resp = await pro_client.post(
            "/api/v1/showcase", json={"content": "Look", "badge_id": catalog["badges"][0]["id"]}
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "You can only showcase badges you have earned"

    @pytest.mark.asyncio
    async def test_foreign_goal_rejected(self, pro_client: AsyncClient):
        bob = await register_user(pro_client, email="bob@example.com", first_name="Bob")
        goal = (await pro_client.post(
            "/api/v1/goals", json={"name": "Bike", "target_amount": 50}, headers=auth_headers(bob)
        )).json()
        resp = await pro_client.post("/api/v1/showcase", json={"content": "Look", "goal_id": goal["id"]})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "You can only showcase your own goals"


class TestListAndDelete:
    @pytest.mark.asyncio
    async def test_anyone_can_read(self, pro_client: AsyncClient):
        await pro_client.post("/api/v1/showcase", json={"content": "One"})
        await pro_client.post("/api/v1/showcase", json={"content": "Two"})
        bob = await register_user(pro_client, email="bob@example.com", first_name="Bob")

        data = (await pro_client.get("/api/v1/showcase", headers=auth_headers(bob))).json()
        assert data["total"] == 2
        assert [i["content"] for i in data["items"]] == ["Two", "One"]

    @pytest.mark.asyncio
    async def test_delete_own(self, pro_client: AsyncClient):
        item = (await pro_client.post("/api/v1/showcase", json={"content": "Bye"})).json()
        assert (await pro_client.delete(f"/api/v1/showcase/{item['id']}")).status_code == 204
        assert (await pro_client.delete(f"/api/v1/showcase/{item['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_cannot_delete_others(self, pro_client: AsyncClient):
        item = (await pro_client.post("/api/v1/showcase", json={"content": "Mine"})).json()
        bob = await register_user(pro_client, email="bob@example.com", first_name="Bob")
        resp = await pro_client.delete(f"/api/v1/showcase/{item['id']}", headers=auth_headers(bob))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_can_delete(self, pro_client: AsyncClient, admin_user: dict):
        item = (await pro_client.post("/api/v1/showcase", json={"content": "Spam"})).json()
        resp = await pro_client.delete(f"/api/v1/showcase/{item['id']}", headers=auth_headers(admin_user))
        assert resp.status_code == 204


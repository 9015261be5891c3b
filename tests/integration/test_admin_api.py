"""Admin console endpoint tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.helpers import auth_headers, register_user


async def _pending_request(client: AsyncClient) -> dict:
    resp = await client.post("/api/v1/upgrade/requests", json={"notes": "Student discount?"})
    assert resp.status_code == 201
    return resp.json()


class TestAccess:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("get", "/api/v1/admin/users"),
            ("get", "/api/v1/admin/upgrade-requests"),
            ("post", "/api/v1/admin/upgrade-requests/1/approve"),
            ("post", "/api/v1/admin/users/1/grant-pro"),
        ],
    )
    async def test_non_admin_forbidden(self, authed_client: AsyncClient, method: str, path: str):
        resp = await getattr(authed_client, method)(path)
        assert resp.status_code == 403


class TestUsers:
    @pytest.mark.asyncio
    async def test_list_and_search(self, authed_client: AsyncClient, admin_user: dict):
        await register_user(authed_client, email="bob@example.com", first_name="Bob", last_name="Builder")
        headers = auth_headers(admin_user)

        data = (await authed_client.get("/api/v1/admin/users", headers=headers)).json()
        assert data["total"] == 3
        assert data["page"] == 1

        found = (await authed_client.get("/api/v1/admin/users", params={"search": "build"}, headers=headers)).json()
        assert [u["email"] for u in found["users"]] == ["bob@example.com"]
        assert found["users"][0]["display_name"] == "Bob Builder"

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, authed_client: AsyncClient, admin_user: dict):
        await register_user(authed_client, email="bob_smith@example.com", first_name="Bob")
        await register_user(authed_client, email="bobxsmith@example.com", first_name="Rob")
        headers = auth_headers(admin_user)

        found = (await authed_client.get("/api/v1/admin/users", params={"search": "_"}, headers=headers)).json()
        assert [u["email"] for u in found["users"]] == ["bob_smith@example.com"]

        found = (await authed_client.get("/api/v1/admin/users", params={"search": "%"}, headers=headers)).json()
        assert found["total"] == 0

    @pytest.mark.asyncio
    async def test_grant_and_revoke(self, authed_client: AsyncClient, registered_user: dict, admin_user: dict):
        headers = auth_headers(admin_user)
        uid = registered_user["user_id"]

        granted = await authed_client.post(f"/api/v1/admin/users/{uid}/grant-pro", headers=headers)
        assert granted.json()["is_pro"] is True
        again = await authed_client.post(f"/api/v1/admin/users/{uid}/grant-pro", headers=headers)
        assert again.status_code == 400
        assert again.json()["detail"] == "User is already Pro"

        badges = (await authed_client.get("/api/v1/users/me/badges")).json()
        assert "pro_member" in [e["badge"]["slug"] for e in badges["earned"]]

        revoked = await authed_client.post(f"/api/v1/admin/users/{uid}/revoke-pro", headers=headers)
        assert revoked.json()["is_pro"] is False
        again = await authed_client.post(f"/api/v1/admin/users/{uid}/revoke-pro", headers=headers)
        assert again.json()["detail"] == "User is not Pro"

        types = [n["type"] for n in (await authed_client.get("/api/v1/notifications")).json()["notifications"]]
        assert "pro_upgrade" in types
        assert "pro_downgrade" in types

    @pytest.mark.asyncio
    async def test_revoke_cancels_subscription(self, authed_client: AsyncClient, registered_user: dict, admin_user: dict):
        await authed_client.post("/api/v1/upgrade/checkout", json={})
        await authed_client.post(
            f"/api/v1/admin/users/{registered_user['user_id']}/revoke-pro", headers=auth_headers(admin_user)
        )
        sub = (await authed_client.get("/api/v1/upgrade/subscription")).json()
        assert sub["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_unknown_user(self, authed_client: AsyncClient, admin_user: dict):
        resp = await authed_client.post("/api/v1/admin/users/9999/grant-pro", headers=auth_headers(admin_user))
        assert resp.status_code == 404


class TestUpgradeRequests:
    @pytest.mark.asyncio
    async def test_list_by_status(self, authed_client: AsyncClient, admin_user: dict):
        await _pending_request(authed_client)
        headers = auth_headers(admin_user)

        pending = (await authed_client.get(
            "/api/v1/admin/upgrade-requests", params={"status": "pending"}, headers=headers
        )).json()
        assert len(pending) == 1
        assert pending[0]["user_email"] == "alice@example.com"
        assert pending[0]["user_name"] == "Alice"

        approved = (await authed_client.get(
            "/api/v1/admin/upgrade-requests", params={"status": "approved"}, headers=headers
        )).json()
        assert approved == []

        bad = await authed_client.get("/api/v1/admin/upgrade-requests", params={"status": "bogus"}, headers=headers)
        assert bad.status_code == 400

    @pytest.mark.asyncio
    async def test_approve(self, authed_client: AsyncClient, admin_user: dict):
        request = await _pending_request(authed_client)
        url = f"/api/v1/admin/upgrade-requests/{request['id']}/approve"

        resp = await authed_client.post(url, headers=auth_headers(admin_user))
        assert resp.json()["status"] == "approved"
        assert resp.json()["approved_by"] == admin_user["user_id"]
        assert (await authed_client.get("/api/v1/users/me")).json()["is_pro"] is True

        again = await authed_client.post(url, headers=auth_headers(admin_user))
        assert again.status_code == 400
        assert again.json()["detail"] == "Upgrade request is already approved"

    @pytest.mark.asyncio
    async def test_reject_with_notes(self, authed_client: AsyncClient, admin_user: dict):
        request = await _pending_request(authed_client)
        resp = await authed_client.post(
            f"/api/v1/admin/upgrade-requests/{request['id']}/reject",
            json={"notes": "Not eligible"},
            headers=auth_headers(admin_user),
        )
        assert resp.json()["status"] == "rejected"
        assert resp.json()["notes"] == "Not eligible"
        assert (await authed_client.get("/api/v1/users/me")).json()["is_pro"] is False

        notes = (await authed_client.get("/api/v1/notifications")).json()["notifications"]
        rejected = [n for n in notes if n["type"] == "pro_upgrade_rejected"]
        assert rejected[0]["message"] == "Not eligible"

    @pytest.mark.asyncio
    async def test_reject_without_body(self, authed_client: AsyncClient, admin_user: dict):
        request = await _pending_request(authed_client)
        resp = await authed_client.post(
            f"/api/v1/admin/upgrade-requests/{request['id']}/reject", headers=auth_headers(admin_user)
        )
        assert resp.status_code == 200
        assert resp.json()["notes"] == "Student discount?"

    @pytest.mark.asyncio
    async def test_unknown_request(self, authed_client: AsyncClient, admin_user: dict):
        resp = await authed_client.post(
            "/api/v1/admin/upgrade-requests/9999/approve", headers=auth_headers(admin_user)
        )
        assert resp.status_code == 404

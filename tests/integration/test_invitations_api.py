"""Group invitation endpoint tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from g15.db.models import GroupInvitation
from tests.helpers import auth_headers, register_user


async def _group_with_invite(client: AsyncClient, email: str | None = None) -> tuple[dict, dict]:
    group = (await client.post("/api/v1/groups", json={"name": "Trip"})).json()
    body = {"email": email} if email else {}
    resp = await client.post(f"/api/v1/groups/{group['id']}/invitations", json=body)
    assert resp.status_code == 201, resp.text
    return group, resp.json()


class TestCreateInvitation:
    @pytest.mark.asyncio
    async def test_invitation_fields(self, authed_client: AsyncClient):
        group, invitation = await _group_with_invite(authed_client)
        code = invitation["invitation_code"]
        assert invitation["group_id"] == group["id"]
        assert invitation["status"] == "pending"
        assert invitation["invite_url"] == f"http://localhost:8080/join/{code}"

        expires = datetime.fromisoformat(invitation["expires_at"])
        created = datetime.fromisoformat(invitation["created_at"])
        assert expires - created == timedelta(days=7)

    @pytest.mark.asyncio
    async def test_registered_invitee_is_notified(self, authed_client: AsyncClient):
        bob = await register_user(authed_client, email="bob@example.com", first_name="Bob")
        _, invitation = await _group_with_invite(authed_client, email="BOB@example.com")
        assert invitation["email"] == "bob@example.com"

        notes = (await authed_client.get("/api/v1/notifications", headers=auth_headers(bob))).json()
        invite_notes = [n for n in notes["notifications"] if n["type"] == "group_invitation"]
        assert len(invite_notes) == 1
        assert invite_notes[0]["action_url"] == f"/join/{invitation['invitation_code']}"

    @pytest.mark.asyncio
    async def test_non_member_cannot_invite(self, authed_client: AsyncClient):
        group, _ = await _group_with_invite(authed_client)
        bob = await register_user(authed_client, email="bob@example.com", first_name="Bob")
        resp = await authed_client.post(
            f"/api/v1/groups/{group['id']}/invitations", json={}, headers=auth_headers(bob)
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_list(self, authed_client: AsyncClient):
        group, first = await _group_with_invite(authed_client)
        second = (await authed_client.post(f"/api/v1/groups/{group['id']}/invitations", json={})).json()
        listed = (await authed_client.get(f"/api/v1/groups/{group['id']}/invitations")).json()
        assert [i["id"] for i in listed] == [second["id"], first["id"]]


class TestRespond:
    @pytest.mark.asyncio
    async def test_preview(self, authed_client: AsyncClient):
        group, invitation = await _group_with_invite(authed_client)
        bob = await register_user(authed_client, email="bob@example.com", first_name="Bob")
        resp = await authed_client.get(
            f"/api/v1/invitations/{invitation['invitation_code']}", headers=auth_headers(bob)
        )
        data = resp.json()
        assert data["group_id"] == group["id"]
        assert data["group_name"] == "Trip"
        assert data["owner_name"] == "Alice"
        assert data["member_count"] == 1
        assert data["status"] == "pending"

    @pytest.mark.asyncio
    async def test_code_lookup_ignores_case(self, authed_client: AsyncClient):
        _, invitation = await _group_with_invite(authed_client)
        code = invitation["invitation_code"].lower()
        resp = await authed_client.get(f"/api/v1/invitations/{code}")
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_unknown_code(self, authed_client: AsyncClient):
        assert (await authed_client.get("/api/v1/invitations/NOPE1234")).status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["ABC", "ABCD-123", "ABCDE12345"])
    async def test_malformed_code(self, authed_client: AsyncClient, code: str):
        preview = await authed_client.get(f"/api/v1/invitations/{code}")
        assert preview.status_code == 404
        assert preview.json()["detail"] == "Invitation not found"
        assert (await authed_client.post(f"/api/v1/invitations/{code}/accept")).status_code == 404
        assert (await authed_client.post(f"/api/v1/invitations/{code}/decline")).status_code == 404

    @pytest.mark.asyncio
    async def test_accept(self, authed_client: AsyncClient):
        group, invitation = await _group_with_invite(authed_client)
        bob = await register_user(authed_client, email="bob@example.com", first_name="Bob")
        code = invitation["invitation_code"]

        resp = await authed_client.post(f"/api/v1/invitations/{code}/accept", headers=auth_headers(bob))
        assert resp.json() == {"group_id": group["id"], "group_name": "Trip", "role": "member"}

        again = await authed_client.post(f"/api/v1/invitations/{code}/accept", headers=auth_headers(bob))
        assert again.status_code == 400
        assert again.json()["detail"] == "Invitation is already accepted"

    @pytest.mark.asyncio
    async def test_member_cannot_accept(self, authed_client: AsyncClient):
        _, invitation = await _group_with_invite(authed_client)
        resp = await authed_client.post(f"/api/v1/invitations/{invitation['invitation_code']}/accept")
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_decline(self, authed_client: AsyncClient):
        _, invitation = await _group_with_invite(authed_client)
        bob = await register_user(authed_client, email="bob@example.com", first_name="Bob")
        code = invitation["invitation_code"]

        resp = await authed_client.post(f"/api/v1/invitations/{code}/decline", headers=auth_headers(bob))
        assert resp.json()["status"] == "declined"
        assert resp.json()["responded_at"] is not None

        accept = await authed_client.post(f"/api/v1/invitations/{code}/accept", headers=auth_headers(bob))
        assert accept.status_code == 400

    @pytest.mark.asyncio
    async def test_expired(self, authed_client: AsyncClient, db_session: AsyncSession):
        _, invitation = await _group_with_invite(authed_client)
        await db_session.execute(
            update(GroupInvitation)
            .where(GroupInvitation.id == invitation["id"])
            .values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
        )
        await db_session.commit()
        bob = await register_user(authed_client, email="bob@example.com", first_name="Bob")
        code = invitation["invitation_code"]

        preview = await authed_client.get(f"/api/v1/invitations/{code}", headers=auth_headers(bob))
        assert preview.json()["status"] == "expired"

        resp = await authed_client.post(f"/api/v1/invitations/{code}/accept", headers=auth_headers(bob))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invitation has expired"

"""Integration tests for Invitations API."""

from collections.abc import Callable

import pytest
from httpx import AsyncClient

from domain.entities.identity import Identity
from domain.entities.workspace import Workspace
from domain.services.access_control_service import AccessControlService
from domain.services.delivery import DeliveryKind
from tests.conftest import FakeClock, RecordingDeliveryChannel

Headers = Callable[[Identity], dict[str, str]]


@pytest.fixture
async def workspace(service: AccessControlService, owner: Identity) -> Workspace:
    return await service.create_workspace(owner, "Growth Analytics")


async def _invite(
    client: AsyncClient, headers: dict[str, str], workspace: Workspace, email: str, role: str = "viewer"
):
    return await client.post(
        f"/api/v1/workspaces/{workspace.id}/invitations",
        json={"email": email, "role": role},
        headers=headers,
    )


class TestCreateInvitation:
    @pytest.mark.asyncio
    async def test_owner_invites(
        self,
        api_client: AsyncClient,
        headers_for: Headers,
        workspace: Workspace,
        owner: Identity,
        delivery: RecordingDeliveryChannel,
    ) -> None:
        response = await _invite(api_client, headers_for(owner), workspace, "New@Example.com", "analyst")

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["email"] == "new@example.com"
        assert data["role"] == "analyst"
        assert data["status"] == "pending"
        assert data["invited_by"] == owner.email
        assert [i.kind for i in delivery.intents] == [DeliveryKind.INVITATION_CREATED]

    @pytest.mark.asyncio
    async def test_invalid_email_is_validation_error(
        self, api_client: AsyncClient, headers_for: Headers, workspace: Workspace, owner: Identity
    ) -> None:
        response = await _invite(api_client, headers_for(owner), workspace, "not-an-email")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_owner_role_not_invitable(
        self, api_client: AsyncClient, headers_for: Headers, workspace: Workspace, owner: Identity
    ) -> None:
        response = await _invite(api_client, headers_for(owner), workspace, "x@example.com", "owner")

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_ROLE"

    @pytest.mark.asyncio
    async def test_duplicate_pending(
        self, api_client: AsyncClient, headers_for: Headers, workspace: Workspace, owner: Identity
    ) -> None:
        await _invite(api_client, headers_for(owner), workspace, "x@example.com")
        response = await _invite(api_client, headers_for(owner), workspace, "x@example.com")

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_INVITATION"

    @pytest.mark.asyncio
    async def test_outsider_cannot_invite(
        self, api_client: AsyncClient, headers_for: Headers, workspace: Workspace, outsider: Identity
    ) -> None:
        response = await _invite(api_client, headers_for(outsider), workspace, "x@example.com")

        assert response.status_code == 403


class TestAcceptInvitation:
    @pytest.mark.asyncio
    async def test_invitee_accepts_and_becomes_member(
        self,
        api_client: AsyncClient,
        headers_for: Headers,
        workspace: Workspace,
        owner: Identity,
        analyst: Identity,
    ) -> None:
        created = await _invite(api_client, headers_for(owner), workspace, analyst.email, "analyst")
        invitation_id = created.json()["data"]["id"]

        pending = await api_client.get("/api/v1/invitations/pending", headers=headers_for(analyst))
        assert [i["id"] for i in pending.json()["data"]] == [invitation_id]

        response = await api_client.post(
            f"/api/v1/invitations/{invitation_id}/accept", headers=headers_for(analyst)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["workspace_id"] == str(workspace.id)
        assert body["role"] == "analyst"

        again = await api_client.post(
            f"/api/v1/invitations/{invitation_id}/accept", headers=headers_for(analyst)
        )
        assert again.status_code == 409
        assert again.json()["error_code"] == "INVITATION_ALREADY_ACCEPTED"

    @pytest.mark.asyncio
    async def test_wrong_identity_is_forbidden(
        self,
        api_client: AsyncClient,
        headers_for: Headers,
        workspace: Workspace,
        owner: Identity,
        outsider: Identity,
    ) -> None:
        created = await _invite(api_client, headers_for(owner), workspace, "someone@example.com")

        response = await api_client.post(
            f"/api/v1/invitations/{created.json()['data']['id']}/accept",
            headers=headers_for(outsider),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "INVITATION_EMAIL_MISMATCH"

    @pytest.mark.asyncio
    async def test_expired_invitation(
        self,
        api_client: AsyncClient,
        headers_for: Headers,
        workspace: Workspace,
        owner: Identity,
        viewer: Identity,
        clock: FakeClock,
    ) -> None:
        created = await _invite(api_client, headers_for(owner), workspace, viewer.email)
        invitation_id = created.json()["data"]["id"]
        clock.advance(days=8)

        response = await api_client.post(
            f"/api/v1/invitations/{invitation_id}/accept", headers=headers_for(viewer)
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVITATION_EXPIRED"

        listed = await api_client.get(
            f"/api/v1/workspaces/{workspace.id}/invitations", headers=headers_for(owner)
        )
        assert listed.json()["data"][0]["status"] == "expired"


class TestManageInvitation:
    @pytest.mark.asyncio
    async def test_resend_too_soon_sets_retry_after(
        self,
        api_client: AsyncClient,
        headers_for: Headers,
        workspace: Workspace,
        owner: Identity,
        clock: FakeClock,
    ) -> None:
        created = await _invite(api_client, headers_for(owner), workspace, "x@example.com")
        invitation_id = created.json()["data"]["id"]
        url = f"/api/v1/workspaces/{workspace.id}/invitations/{invitation_id}/resend"

        clock.advance(seconds=10)
        too_soon = await api_client.post(url, headers=headers_for(owner))
        assert too_soon.status_code == 429
        assert too_soon.headers["retry-after"] == "51"

        clock.advance(seconds=60)
        ok = await api_client.post(url, headers=headers_for(owner))
        assert ok.status_code == 200

    @pytest.mark.asyncio
    async def test_revoke(
        self, api_client: AsyncClient, headers_for: Headers, workspace: Workspace, owner: Identity
    ) -> None:
        created = await _invite(api_client, headers_for(owner), workspace, "x@example.com")
        url = f"/api/v1/workspaces/{workspace.id}/invitations/{created.json()['data']['id']}"

        assert (await api_client.delete(url, headers=headers_for(owner))).status_code == 204

        second = await api_client.delete(url, headers=headers_for(owner))
        assert second.status_code == 409
        assert second.json()["error_code"] == "INVALID_STATE"

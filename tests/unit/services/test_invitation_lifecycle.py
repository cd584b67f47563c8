"""Unit tests for InvitationLifecycle."""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest

from core.exceptions import (
    AlreadyMemberError,
    DuplicateInvitationError,
    DuplicateMemberError,
    EmailNotVerifiedError,
    InvalidRoleError,
    InvalidStateError,
    InvitationAlreadyAcceptedError,
    InvitationEmailMismatchError,
    InvitationExpiredError,
    InvitationNotFoundError,
    ResendTooSoonError,
)
from domain.entities.identity import Identity
from domain.entities.invitation import Invitation, InvitationStatus
from domain.entities.role import Role
from domain.entities.workspace import TeamMember
from domain.services.invitation_lifecycle import InvitationLifecycle
from domain.services.membership_store import MembershipStore
from tests.unit.conftest import FakeUnitOfWork


@pytest.fixture
def lifecycle() -> InvitationLifecycle:
    return InvitationLifecycle(
        MembershipStore(), ttl=timedelta(days=7), resend_cooldown=timedelta(seconds=60)
    )


@pytest.fixture
def invitation(workspace_id: UUID, now: datetime) -> Invitation:
    return Invitation(
        workspace_id=workspace_id,
        email="invitee@example.com",
        role=Role.ANALYST,
        invited_by="owner@example.com",
        created_at=now,
        expires_at=now + timedelta(days=7),
    )


async def _echo(entity: Any) -> Any:
    return entity


class TestInvite:
    @pytest.mark.asyncio
    async def test_creates_pending_invitation_with_ttl(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, workspace_id: UUID, now: datetime
    ) -> None:
        uow.workspaces.get_member.return_value = None
        uow.invitations.get_pending_for_workspace_email.return_value = None
        uow.invitations.create.side_effect = _echo

        result = await lifecycle.invite(
            uow, workspace_id, " New@Example.com", "viewer", invited_by="Owner@example.com", now=now
        )

        assert result.status == InvitationStatus.PENDING
        assert result.email == "new@example.com"
        assert result.invited_by == "owner@example.com"
        assert result.role == Role.VIEWER
        assert result.expires_at == now + timedelta(days=7)
        assert result.last_sent_at == now

    @pytest.mark.asyncio
    async def test_owner_role_cannot_be_invited(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, workspace_id: UUID, now: datetime
    ) -> None:
        with pytest.raises(InvalidRoleError):
            await lifecycle.invite(uow, workspace_id, "a@example.com", Role.OWNER, "o@example.com", now)

    @pytest.mark.asyncio
    async def test_active_member_cannot_be_invited(
        self,
        lifecycle: InvitationLifecycle,
        uow: FakeUnitOfWork,
        workspace_id: UUID,
        now: datetime,
        make_member: Callable[..., TeamMember],
    ) -> None:
        uow.workspaces.get_member.return_value = make_member(workspace_id, "a@example.com")

        with pytest.raises(AlreadyMemberError):
            await lifecycle.invite(uow, workspace_id, "a@example.com", "viewer", "o@example.com", now)

    @pytest.mark.asyncio
    async def test_duplicate_pending_invitation(
        self,
        lifecycle: InvitationLifecycle,
        uow: FakeUnitOfWork,
        workspace_id: UUID,
        now: datetime,
        invitation: Invitation,
    ) -> None:
        uow.workspaces.get_member.return_value = None
        uow.invitations.get_pending_for_workspace_email.return_value = invitation

        with pytest.raises(DuplicateInvitationError):
            await lifecycle.invite(uow, workspace_id, invitation.email, "viewer", "o@example.com", now)
        uow.invitations.create.assert_not_called()


class TestAccept:
    @pytest.mark.asyncio
    async def test_accept_adds_member_and_marks_accepted(
        self,
        lifecycle: InvitationLifecycle,
        uow: FakeUnitOfWork,
        invitation: Invitation,
        identity: Identity,
        now: datetime,
    ) -> None:
        uow.invitations.get_by_id.return_value = invitation
        uow.workspaces.get_member.return_value = None
        uow.workspaces.count_owners.return_value = 1
        uow.workspaces.add_member.side_effect = _echo

        member = await lifecycle.accept(uow, invitation.id, identity, now + timedelta(days=1))

        assert member.email == "invitee@example.com"
        assert member.role == Role.ANALYST
        assert member.invited_by == "owner@example.com"
        uow.invitations.update_status.assert_awaited_once_with(
            invitation.id, InvitationStatus.ACCEPTED, now + timedelta(days=1)
        )

    @pytest.mark.asyncio
    async def test_accept_at_exact_expiry_still_valid(
        self,
        lifecycle: InvitationLifecycle,
        uow: FakeUnitOfWork,
        invitation: Invitation,
        identity: Identity,
    ) -> None:
        uow.invitations.get_by_id.return_value = invitation
        uow.workspaces.get_member.return_value = None
        uow.workspaces.add_member.side_effect = _echo

        await lifecycle.accept(uow, invitation.id, identity, invitation.expires_at)

        assert uow.invitations.update_status.await_args.args[1] == InvitationStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_lapsed_invitation_is_expired_and_committed(
        self,
        lifecycle: InvitationLifecycle,
        uow: FakeUnitOfWork,
        invitation: Invitation,
        identity: Identity,
        now: datetime,
    ) -> None:
        uow.invitations.get_by_id.return_value = invitation
        later = now + timedelta(days=7, seconds=1)

        with pytest.raises(InvitationExpiredError):
            await lifecycle.accept(uow, invitation.id, identity, later)

        uow.invitations.update_status.assert_awaited_once_with(
            invitation.id, InvitationStatus.EXPIRED, later
        )
        assert uow.committed
        uow.workspaces.add_member.assert_not_called()

    @pytest.mark.asyncio
    async def test_second_accept_fails(
        self,
        lifecycle: InvitationLifecycle,
        uow: FakeUnitOfWork,
        invitation: Invitation,
        identity: Identity,
        now: datetime,
    ) -> None:
        invitation.status = InvitationStatus.ACCEPTED
        uow.invitations.get_by_id.return_value = invitation

        with pytest.raises(InvitationAlreadyAcceptedError):
            await lifecycle.accept(uow, invitation.id, identity, now)

    @pytest.mark.asyncio
    async def test_revoked_invitation_cannot_be_accepted(
        self,
        lifecycle: InvitationLifecycle,
        uow: FakeUnitOfWork,
        invitation: Invitation,
        identity: Identity,
        now: datetime,
    ) -> None:
        invitation.status = InvitationStatus.REVOKED
        uow.invitations.get_by_id.return_value = invitation

        with pytest.raises(InvalidStateError) as exc_info:
            await lifecycle.accept(uow, invitation.id, identity, now)
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_email_must_match(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, invitation: Invitation, now: datetime
    ) -> None:
        uow.invitations.get_by_id.return_value = invitation

        with pytest.raises(InvitationEmailMismatchError):
            await lifecycle.accept(uow, invitation.id, Identity(email="other@example.com"), now)

    @pytest.mark.asyncio
    async def test_email_must_be_verified(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, invitation: Invitation, now: datetime
    ) -> None:
        uow.invitations.get_by_id.return_value = invitation
        unverified = Identity(email="invitee@example.com", email_verified=False)

        with pytest.raises(EmailNotVerifiedError):
            await lifecycle.accept(uow, invitation.id, unverified, now)

    @pytest.mark.asyncio
    async def test_existing_membership_blocks_accept(
        self,
        lifecycle: InvitationLifecycle,
        uow: FakeUnitOfWork,
        invitation: Invitation,
        identity: Identity,
        now: datetime,
        make_member: Callable[..., TeamMember],
    ) -> None:
        uow.invitations.get_by_id.return_value = invitation
        uow.workspaces.get_member.return_value = make_member(invitation.workspace_id, identity.email)

        with pytest.raises(DuplicateMemberError):
            await lifecycle.accept(uow, invitation.id, identity, now)
        uow.invitations.update_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_invitation(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, identity: Identity, now: datetime
    ) -> None:
        uow.invitations.get_by_id.return_value = None

        with pytest.raises(InvitationNotFoundError):
            await lifecycle.accept(uow, uuid4(), identity, now)


class TestRevokeAndExpire:
    @pytest.mark.asyncio
    async def test_revoke_pending(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, invitation: Invitation, now: datetime
    ) -> None:
        uow.invitations.get_by_id.return_value = invitation

        await lifecycle.revoke(uow, invitation.id, now)

        uow.invitations.update_status.assert_awaited_once_with(
            invitation.id, InvitationStatus.REVOKED, now
        )

    @pytest.mark.asyncio
    async def test_revoke_accepted_fails(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, invitation: Invitation, now: datetime
    ) -> None:
        invitation.status = InvitationStatus.ACCEPTED
        uow.invitations.get_by_id.return_value = invitation

        with pytest.raises(InvalidStateError):
            await lifecycle.revoke(uow, invitation.id, now)

    @pytest.mark.asyncio
    async def test_expire_requires_elapsed_ttl(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, invitation: Invitation, now: datetime
    ) -> None:
        uow.invitations.get_by_id.return_value = invitation

        with pytest.raises(InvalidStateError):
            await lifecycle.expire(uow, invitation.id, now + timedelta(days=1))

        await lifecycle.expire(uow, invitation.id, now + timedelta(days=8))
        uow.invitations.update_status.assert_awaited_once_with(
            invitation.id, InvitationStatus.EXPIRED, now + timedelta(days=8)
        )

    @pytest.mark.asyncio
    async def test_expire_non_pending_fails(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, invitation: Invitation, now: datetime
    ) -> None:
        invitation.status = InvitationStatus.REVOKED
        uow.invitations.get_by_id.return_value = invitation

        with pytest.raises(InvalidStateError):
            await lifecycle.expire(uow, invitation.id, now + timedelta(days=30))

    @pytest.mark.asyncio
    async def test_row_changed_since_read_is_invalid_state(
        self,
        lifecycle: InvitationLifecycle,
        uow: FakeUnitOfWork,
        invitation: Invitation,
        identity: Identity,
        now: datetime,
    ) -> None:
        uow.invitations.get_by_id.return_value = invitation
        uow.invitations.update_status.return_value = None
        uow.workspaces.get_member.return_value = None
        uow.workspaces.count_owners.return_value = 1
        uow.workspaces.add_member.side_effect = _echo

        with pytest.raises(InvalidStateError):
            await lifecycle.revoke(uow, invitation.id, now)
        with pytest.raises(InvalidStateError):
            await lifecycle.accept(uow, invitation.id, identity, now)
        assert not uow.committed


class TestResend:
    @pytest.mark.asyncio
    async def test_resend_within_cooldown_is_rejected(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, invitation: Invitation, now: datetime
    ) -> None:
        uow.invitations.get_by_id.return_value = invitation

        with pytest.raises(ResendTooSoonError) as exc_info:
            await lifecycle.resend(uow, invitation.id, now + timedelta(seconds=20))

        assert exc_info.value.status_code == 429
        assert exc_info.value.details == {"retry_after": 41}
        uow.invitations.touch_last_sent.assert_not_called()

    @pytest.mark.asyncio
    async def test_resend_after_cooldown(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, invitation: Invitation, now: datetime
    ) -> None:
        uow.invitations.get_by_id.return_value = invitation
        later = now + timedelta(minutes=5)

        await lifecycle.resend(uow, invitation.id, later)

        uow.invitations.touch_last_sent.assert_awaited_once_with(invitation.id, later)

    @pytest.mark.asyncio
    async def test_cooldown_counts_from_creation_when_never_sent(
        self, lifecycle: InvitationLifecycle, uow: FakeUnitOfWork, invitation: Invitation, now: datetime
    ) -> None:
        invitation.last_sent_at = None
        uow.invitations.get_by_id.return_value = invitation

        with pytest.raises(ResendTooSoonError):
            await lifecycle.resend(uow, invitation.id, now + timedelta(seconds=20))

        await lifecycle.resend(uow, invitation.id, now + timedelta(seconds=61))
        uow.invitations.touch_last_sent.assert_awaited_once()


class TestInvitationEntity:
    def test_effective_status_reports_lapsed_pending_as_expired(
        self, invitation: Invitation, now: datetime
    ) -> None:
        assert invitation.effective_status(now) == InvitationStatus.PENDING
        assert invitation.effective_status(now + timedelta(days=8)) == InvitationStatus.EXPIRED
        # Reading the projection does not change the stored status
        assert invitation.status == InvitationStatus.PENDING

    def test_missing_expiry_never_reads_as_expired(self, invitation: Invitation, now: datetime) -> None:
        invitation.expires_at = None

        assert not invitation.is_expired_at(now + timedelta(days=365))
        assert invitation.effective_status(now + timedelta(days=365)) == InvitationStatus.PENDING

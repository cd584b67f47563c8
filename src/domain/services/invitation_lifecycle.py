"""Invitation state machine: pending -> accepted | revoked | expired."""

from datetime import datetime, timedelta
from uuid import UUID

import structlog

from core.exceptions import (
    AlreadyMemberError,
    DuplicateInvitationError,
    EmailNotVerifiedError,
    InvalidRoleError,
    InvalidStateError,
    InvitationAlreadyAcceptedError,
    InvitationEmailMismatchError,
    InvitationExpiredError,
    InvitationNotFoundError,
    ResendTooSoonError,
)
from domain.entities.identity import Identity, normalize_email
from domain.entities.invitation import INVITATION_EXPIRY_DAYS, Invitation, InvitationStatus
from domain.entities.role import Role
from domain.entities.workspace import MemberStatus, TeamMember
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services import role_catalog
from domain.services.membership_store import MembershipStore

logger = structlog.get_logger()


class InvitationLifecycle:
    """Manages invitations from creation through acceptance, revocation or expiry.

    Expiry is lazy: a pending invitation whose TTL has passed is moved to
    ``expired`` the moment it is acted upon, using the ``now`` supplied by
    the caller's clock. No background timer is needed for correctness.
    """

    def __init__(
        self,
        membership: MembershipStore,
        ttl: timedelta = timedelta(days=INVITATION_EXPIRY_DAYS),
        resend_cooldown: timedelta = timedelta(0),
    ) -> None:
        self._membership = membership
        self._ttl = ttl
        self._resend_cooldown = resend_cooldown

    async def invite(
        self,
        uow: IUnitOfWork,
        workspace_id: UUID,
        email: str,
        role: Role | str,
        invited_by: str,
        now: datetime,
    ) -> Invitation:
        """Create a pending invitation.

        Raises:
            UnknownRoleError: If ``role`` is outside the enumeration.
            InvalidRoleError: If ``role`` is owner.
            AlreadyMemberError: If the email already has an active membership.
            DuplicateInvitationError: If a pending invitation already exists.
        """
        role = role_catalog.parse_role(role)
        if role == Role.OWNER:
            raise InvalidRoleError(role.label, "ownership cannot be granted by invitation")

        email = normalize_email(email)
        if await self._membership.find_active(uow, workspace_id, email):
            raise AlreadyMemberError(email)

        existing = await uow.invitations.get_pending_for_workspace_email(workspace_id, email, now)
        if existing:
            raise DuplicateInvitationError(email)

        invitation = Invitation(
            workspace_id=workspace_id,
            email=email,
            role=role,
            invited_by=normalize_email(invited_by),
            created_at=now,
            expires_at=now + self._ttl,
            last_sent_at=now,
        )
        return await uow.invitations.create(invitation)

    async def get(self, uow: IUnitOfWork, invitation_id: UUID) -> Invitation:
        """Get an invitation or raise InvitationNotFoundError."""
        invitation = await uow.invitations.get_by_id(invitation_id)
        if not invitation:
            raise InvitationNotFoundError(str(invitation_id))
        return invitation

    async def accept(
        self,
        uow: IUnitOfWork,
        invitation_id: UUID,
        identity: Identity,
        now: datetime,
    ) -> TeamMember:
        """Accept a pending invitation and create the active membership.

        Both writes happen in the caller's transaction, so either the
        invitation is ``accepted`` and the member exists, or neither.

        Raises:
            InvitationNotFoundError: If the invitation does not exist.
            InvalidStateError: If the invitation is not pending (including
                a second acceptance and a lapsed TTL).
            InvitationEmailMismatchError: If the identity is not the invitee.
            EmailNotVerifiedError: If the identity's email is unverified.
            DuplicateMemberError: If the identity already has a membership.
        """
        invitation = await self.get(uow, invitation_id)
        await self._require_pending(uow, invitation, now)

        if identity.email != invitation.email:
            raise InvitationEmailMismatchError()
        if not identity.email_verified:
            raise EmailNotVerifiedError()

        member = await self._membership.add(
            uow,
            invitation.workspace_id,
            identity,
            invitation.role,
            MemberStatus.ACTIVE,
            invited_by=invitation.invited_by,
        )
        await self._transition(uow, invitation, InvitationStatus.ACCEPTED, now)
        return member

    async def revoke(self, uow: IUnitOfWork, invitation_id: UUID, now: datetime) -> Invitation:
        """Revoke a pending invitation.

        Raises:
            InvalidStateError: If the invitation is not pending.
        """
        invitation = await self.get(uow, invitation_id)
        await self._require_pending(uow, invitation, now)
        return await self._transition(uow, invitation, InvitationStatus.REVOKED, now)

    async def expire(self, uow: IUnitOfWork, invitation_id: UUID, now: datetime) -> Invitation:
        """Move a pending invitation whose TTL has elapsed at ``now`` to expired.

        Raises:
            InvalidStateError: If the invitation is not pending or not yet due.
        """
        invitation = await self.get(uow, invitation_id)
        if invitation.status != InvitationStatus.PENDING:
            raise InvalidStateError(
                f"Invitation is {invitation.status.value}, not pending",
                details={"status": invitation.status.value},
            )
        if not invitation.is_expired_at(now):
            raise InvalidStateError(
                "Invitation has not reached its expiry time",
                details={"expires_at": invitation.expires_at.isoformat() if invitation.expires_at else None},
            )
        return await self._transition(uow, invitation, InvitationStatus.EXPIRED, now)

    async def resend(self, uow: IUnitOfWork, invitation_id: UUID, now: datetime) -> Invitation:
        """Reset the "last sent" timestamp of a pending invitation.

        Raises:
            InvalidStateError: If the invitation is not pending.
            ResendTooSoonError: If the previous delivery is within the cooldown.
        """
        invitation = await self.get(uow, invitation_id)
        await self._require_pending(uow, invitation, now)

        last_sent = invitation.last_sent_at or invitation.created_at
        next_allowed = last_sent + self._resend_cooldown
        if now < next_allowed:
            retry_after = int((next_allowed - now).total_seconds()) + 1
            raise ResendTooSoonError(retry_after)

        return await uow.invitations.touch_last_sent(invitation.id, now)

    async def list_for_workspace(self, uow: IUnitOfWork, workspace_id: UUID) -> list[Invitation]:
        return await uow.invitations.get_for_workspace(workspace_id)

    async def pending_for(self, uow: IUnitOfWork, email: str, now: datetime) -> list[Invitation]:
        return await uow.invitations.get_pending_for_email(normalize_email(email), now)

    async def sweep(self, uow: IUnitOfWork, now: datetime) -> int:
        """Persist expiry for every lapsed pending invitation."""
        return await uow.invitations.expire_old_invitations(now)

    async def _require_pending(
        self, uow: IUnitOfWork, invitation: Invitation, now: datetime
    ) -> None:
        """Reject non-pending invitations, persisting a lapsed TTL before failing."""
        if invitation.status == InvitationStatus.ACCEPTED:
            raise InvitationAlreadyAcceptedError()
        if invitation.status != InvitationStatus.PENDING:
            raise InvalidStateError(
                f"Invitation is {invitation.status.value}, not pending",
                details={"status": invitation.status.value},
            )
        if invitation.is_expired_at(now):
            await uow.invitations.update_status(invitation.id, InvitationStatus.EXPIRED, now)
            # The failure below must not roll the expiry back.
            await uow.commit()
            logger.info("invitation_expired", invitation_id=str(invitation.id))
            raise InvitationExpiredError()

    async def _transition(
        self,
        uow: IUnitOfWork,
        invitation: Invitation,
        status: InvitationStatus,
        now: datetime,
    ) -> Invitation:
        """Move a pending invitation to ``status``.

        Raises:
            InvalidStateError: If another transition (such as the expiry
                sweep) left the invitation non-pending since it was read.
        """
        updated = await uow.invitations.update_status(invitation.id, status, now)
        if updated is None:
            raise InvalidStateError(
                "Invitation is no longer pending",
                details={"invitation_id": str(invitation.id)},
            )
        return updated

"""Invitation repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.invitation import Invitation, InvitationStatus


class IInvitationRepository(Protocol):
    """Repository interface for Invitation entities."""

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        ...

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        ...

    async def get_for_workspace(self, workspace_id: UUID) -> list[Invitation]:
        """Get all invitations for a workspace."""
        ...

    async def get_pending_for_email(self, email: str, now: datetime) -> list[Invitation]:
        """Get all pending invitations for an email that are unexpired at ``now``."""
        ...

    async def get_pending_for_workspace_email(
        self, workspace_id: UUID, email: str, now: datetime
    ) -> Invitation | None:
        """Get the pending, unexpired invitation for a workspace and email."""
        ...

    async def update_status(
        self, id: UUID, status: InvitationStatus, at: datetime
    ) -> Invitation | None:
        """Move a pending invitation to ``status``; None if it is no longer pending."""
        ...

    async def touch_last_sent(self, id: UUID, at: datetime) -> Invitation:
        """Record a fresh delivery of the invitation."""
        ...

    async def expire_old_invitations(self, now: datetime) -> int:
        """Mark all lapsed pending invitations expired. Returns count of updated rows."""
        ...

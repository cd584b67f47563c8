"""Invitation domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID, uuid4

from domain.entities.role import Role


class InvitationStatus(StrEnum):
    """Status of a workspace invitation."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"
    EXPIRED = "expired"


# Default invitation expiry: 7 days
INVITATION_EXPIRY_DAYS = 7


@dataclass
class Invitation:
    """Domain entity for a workspace invitation."""

    workspace_id: UUID
    email: str
    role: Role
    invited_by: str
    id: UUID = field(default_factory=uuid4)
    status: InvitationStatus = InvitationStatus.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: datetime | None = None
    last_sent_at: datetime | None = None
    accepted_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.expires_at is None:
            self.expires_at = self.created_at + timedelta(days=INVITATION_EXPIRY_DAYS)
        if self.last_sent_at is None:
            self.last_sent_at = self.created_at

    def is_expired_at(self, now: datetime) -> bool:
        """Whether the TTL has elapsed at ``now``."""
        return self.expires_at is not None and now > self.expires_at

    def effective_status(self, now: datetime) -> InvitationStatus:
        """Status as observed at ``now``; a lapsed pending invitation reads as expired."""
        if self.status == InvitationStatus.PENDING and self.is_expired_at(now):
            return InvitationStatus.EXPIRED
        return self.status

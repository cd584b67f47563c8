"""Workspace domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from domain.entities.role import Role


class MemberStatus(StrEnum):
    """Lifecycle status of a team member."""

    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"


@dataclass
class Workspace:
    """Domain entity for a Workspace (the tenant boundary)."""

    name: str
    created_by: str
    id: UUID = field(default_factory=uuid4)
    slug: str = ""
    description: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at


@dataclass
class TeamMember:
    """Domain entity for a workspace membership, keyed by (workspace, email)."""

    workspace_id: UUID
    email: str
    role: Role = Role.VIEWER
    status: MemberStatus = MemberStatus.ACTIVE
    display_name: str | None = None
    joined_at: datetime = field(default_factory=datetime.utcnow)
    invited_by: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == MemberStatus.ACTIVE

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER

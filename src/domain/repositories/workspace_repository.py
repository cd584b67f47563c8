"""Workspace repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.role import Role
from domain.entities.workspace import TeamMember, Workspace


class IWorkspaceRepository(Protocol):
    """Repository interface for Workspace entities and their members."""

    async def get(self, id: UUID) -> Workspace | None:
        """Get a workspace by ID."""
        ...

    async def get_by_slug(self, slug: str) -> Workspace | None:
        """Get a workspace by slug."""
        ...

    async def create(self, workspace: Workspace) -> Workspace:
        """Create a new workspace."""
        ...

    async def get_member(self, workspace_id: UUID, email: str) -> TeamMember | None:
        """Get a member by workspace ID and normalized email."""
        ...

    async def get_members(self, workspace_id: UUID) -> list[TeamMember]:
        """Get all members of a workspace."""
        ...

    async def add_member(self, member: TeamMember) -> TeamMember:
        """Add a member to a workspace."""
        ...

    async def update_member_role(self, workspace_id: UUID, email: str, role: Role) -> TeamMember:
        """Update a member's role in a workspace."""
        ...

    async def remove_member(self, workspace_id: UUID, email: str) -> bool:
        """Remove a member from a workspace."""
        ...

    async def count_owners(self, workspace_id: UUID) -> int:
        """Count the number of owners in a workspace."""
        ...

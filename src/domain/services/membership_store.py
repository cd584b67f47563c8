"""Per-workspace team membership with the single-owner invariant."""

from uuid import UUID

from core.exceptions import (
    DuplicateMemberError,
    MemberNotFoundError,
    OwnerRoleImmutableError,
)
from domain.entities.identity import Identity, normalize_email
from domain.entities.role import Role
from domain.entities.workspace import MemberStatus, TeamMember
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services import role_catalog


class MembershipStore:
    """Source of truth for "does this identity belong to the workspace, and with what role".

    Every method runs inside the caller's Unit of Work and never commits;
    ``AccessControlService`` owns the transaction and the workspace lock.
    """

    async def add(
        self,
        uow: IUnitOfWork,
        workspace_id: UUID,
        identity: Identity,
        role: Role | str,
        status: MemberStatus = MemberStatus.ACTIVE,
        invited_by: str | None = None,
    ) -> TeamMember:
        """Add a member.

        Raises:
            DuplicateMemberError: If (workspace, identity) already exists.
            OwnerRoleImmutableError: If adding an owner to a workspace that has one.
            UnknownRoleError: If ``role`` is outside the enumeration.
        """
        role = role_catalog.parse_role(role)

        existing = await uow.workspaces.get_member(workspace_id, identity.email)
        if existing:
            raise DuplicateMemberError(identity.email)

        if role == Role.OWNER and await uow.workspaces.count_owners(workspace_id) > 0:
            raise OwnerRoleImmutableError("This workspace already has an owner")

        member = TeamMember(
            workspace_id=workspace_id,
            email=identity.email,
            display_name=identity.display_name,
            role=role,
            status=status,
            invited_by=invited_by,
        )
        return await uow.workspaces.add_member(member)

    async def set_role(
        self,
        uow: IUnitOfWork,
        workspace_id: UUID,
        email: str,
        new_role: Role | str,
    ) -> TeamMember:
        """Change a member's role through the generic path (never to or from owner).

        Raises:
            OwnerRoleImmutableError: If the target is the owner or ``new_role`` is owner.
            MemberNotFoundError: If no such member.
        """
        new_role = role_catalog.parse_role(new_role)
        if new_role == Role.OWNER:
            raise OwnerRoleImmutableError("Ownership can only be transferred, not assigned")

        member = await self.get(uow, workspace_id, email)
        if member.is_owner:
            raise OwnerRoleImmutableError()

        if member.role == new_role:
            return member
        return await uow.workspaces.update_member_role(workspace_id, member.email, new_role)

    async def remove(self, uow: IUnitOfWork, workspace_id: UUID, email: str) -> TeamMember:
        """Remove a member and return the removed record.

        Raises:
            MemberNotFoundError: If no such member.
            OwnerRoleImmutableError: If the target is the owner.
        """
        member = await self.get(uow, workspace_id, email)
        if member.is_owner:
            raise OwnerRoleImmutableError("Cannot remove the workspace owner")

        await uow.workspaces.remove_member(workspace_id, member.email)
        return member

    async def get(self, uow: IUnitOfWork, workspace_id: UUID, email: str) -> TeamMember:
        """Get a member or raise MemberNotFoundError."""
        email = normalize_email(email)
        member = await uow.workspaces.get_member(workspace_id, email)
        if not member:
            raise MemberNotFoundError(email)
        return member

    async def find_active(
        self, uow: IUnitOfWork, workspace_id: UUID, email: str
    ) -> TeamMember | None:
        """Get the member only if its status is active."""
        member = await uow.workspaces.get_member(workspace_id, normalize_email(email))
        return member if member and member.is_active else None

    async def list_by_workspace(self, uow: IUnitOfWork, workspace_id: UUID) -> list[TeamMember]:
        """All members of the workspace. Order is unspecified; callers sort for display."""
        return await uow.workspaces.get_members(workspace_id)

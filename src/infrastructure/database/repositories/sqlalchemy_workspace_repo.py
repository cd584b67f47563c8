"""SQLAlchemy implementation of Workspace repository."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.role import Role
from domain.entities.workspace import MemberStatus, TeamMember, Workspace
from infrastructure.database.models import WorkspaceMemberModel, WorkspaceModel

# Map string role values in DB to Role enum
_ROLE_TO_ENUM = {role.label: role for role in Role}

_ENUM_TO_ROLE = {v: k for k, v in _ROLE_TO_ENUM.items()}


class SQLAlchemyWorkspaceRepository:
    """SQLAlchemy implementation of IWorkspaceRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Workspace | None:
        """Get a workspace by ID."""
        stmt = select(WorkspaceModel).where(WorkspaceModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_slug(self, slug: str) -> Workspace | None:
        """Get a workspace by slug."""
        stmt = select(WorkspaceModel).where(WorkspaceModel.slug == slug)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, workspace: Workspace) -> Workspace:
        """Create a new workspace."""
        model = self._to_model(workspace)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get_member(self, workspace_id: UUID, email: str) -> TeamMember | None:
        """Get a workspace member by workspace ID and email."""
        model = await self._get_member_model(workspace_id, email)
        return self._member_to_entity(model) if model else None

    async def get_members(self, workspace_id: UUID) -> list[TeamMember]:
        """Get all members of a workspace."""
        stmt = (
            select(WorkspaceMemberModel)
            .where(WorkspaceMemberModel.workspace_id == workspace_id)
            .order_by(WorkspaceMemberModel.joined_at)
        )
        result = await self._session.execute(stmt)
        return [self._member_to_entity(model) for model in result.scalars()]

    async def add_member(self, member: TeamMember) -> TeamMember:
        """Add a member to a workspace."""
        model = self._member_to_model(member)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._member_to_entity(model)

    async def update_member_role(self, workspace_id: UUID, email: str, role: Role) -> TeamMember:
        """Update a member's role in a workspace."""
        model = await self._get_member_model(workspace_id, email)
        if not model:
            raise ValueError("Member not found in workspace")

        model.role = _ENUM_TO_ROLE[role]
        await self._session.flush()
        return self._member_to_entity(model)

    async def remove_member(self, workspace_id: UUID, email: str) -> bool:
        """Remove a member from a workspace."""
        model = await self._get_member_model(workspace_id, email)
        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def count_owners(self, workspace_id: UUID) -> int:
        """Count the number of owners in a workspace."""
        stmt = (
            select(func.count())
            .select_from(WorkspaceMemberModel)
            .where(
                WorkspaceMemberModel.workspace_id == workspace_id,
                WorkspaceMemberModel.role == "owner",
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def _get_member_model(
        self, workspace_id: UUID, email: str
    ) -> WorkspaceMemberModel | None:
        stmt = select(WorkspaceMemberModel).where(
            WorkspaceMemberModel.workspace_id == workspace_id,
            WorkspaceMemberModel.email == email,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: WorkspaceModel) -> Workspace:
        """Convert ORM model to domain entity."""
        return Workspace(
            id=model.id,
            name=model.name,
            slug=model.slug,
            description=model.description,
            created_by=model.created_by,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Workspace) -> WorkspaceModel:
        """Convert domain entity to ORM model."""
        return WorkspaceModel(
            id=entity.id,
            name=entity.name,
            slug=entity.slug,
            description=entity.description,
            created_by=entity.created_by,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def _member_to_entity(self, model: WorkspaceMemberModel) -> TeamMember:
        """Convert member ORM model to domain entity."""
        return TeamMember(
            workspace_id=model.workspace_id,
            email=model.email,
            display_name=model.display_name,
            role=_ROLE_TO_ENUM[model.role],
            status=MemberStatus(model.status),
            joined_at=model.joined_at,
            invited_by=model.invited_by,
        )

    def _member_to_model(self, entity: TeamMember) -> WorkspaceMemberModel:
        """Convert member domain entity to ORM model."""
        return WorkspaceMemberModel(
            workspace_id=entity.workspace_id,
            email=entity.email,
            display_name=entity.display_name,
            role=_ENUM_TO_ROLE[entity.role],
            status=entity.status.value,
            joined_at=entity.joined_at,
            invited_by=entity.invited_by,
        )

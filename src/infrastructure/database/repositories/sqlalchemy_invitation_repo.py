"""SQLAlchemy implementation of Invitation repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.invitation import Invitation, InvitationStatus
from domain.entities.role import Role
from infrastructure.database.models import InvitationModel


class SQLAlchemyInvitationRepository:
    """SQLAlchemy implementation of IInvitationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        model = self._to_model(invitation)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        model = await self._get_model(id)
        return self._to_entity(model) if model else None

    async def get_for_workspace(self, workspace_id: UUID) -> list[Invitation]:
        """Get all invitations for a workspace."""
        stmt = (
            select(InvitationModel)
            .where(InvitationModel.workspace_id == workspace_id)
            .order_by(InvitationModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_pending_for_email(self, email: str, now: datetime) -> list[Invitation]:
        """Get all pending (non-expired) invitations for an email address."""
        stmt = (
            select(InvitationModel)
            .where(
                InvitationModel.email == email,
                InvitationModel.status == InvitationStatus.PENDING.value,
                InvitationModel.expires_at >= now,
            )
            .order_by(InvitationModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_pending_for_workspace_email(
        self, workspace_id: UUID, email: str, now: datetime
    ) -> Invitation | None:
        """Get a pending invitation for a specific workspace and email."""
        stmt = select(InvitationModel).where(
            InvitationModel.workspace_id == workspace_id,
            InvitationModel.email == email,
            InvitationModel.status == InvitationStatus.PENDING.value,
            InvitationModel.expires_at >= now,
        )
        result = await self._session.execute(stmt)
        model = result.scalars().first()
        return self._to_entity(model) if model else None

    async def update_status(
        self, id: UUID, status: InvitationStatus, at: datetime
    ) -> Invitation | None:
        """Move a pending invitation to ``status``.

        The update only matches a row that is still pending, so a concurrent
        transition (such as the expiry sweep) wins. Returns None in that case.
        """
        values: dict = {"status": status.value}
        if status == InvitationStatus.ACCEPTED:
            values["accepted_at"] = at

        stmt = (
            update(InvitationModel)
            .where(
                InvitationModel.id == id,
                InvitationModel.status == InvitationStatus.PENDING.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            return None

        model = await self._get_model(id)
        await self._session.refresh(model)
        return self._to_entity(model)  # type: ignore[arg-type]

    async def touch_last_sent(self, id: UUID, at: datetime) -> Invitation:
        """Record a fresh delivery of the invitation."""
        model = await self._get_model(id)
        if not model:
            raise ValueError(f"Invitation {id} not found")

        model.last_sent_at = at
        await self._session.flush()
        return self._to_entity(model)

    async def expire_old_invitations(self, now: datetime) -> int:
        """Mark all expired pending invitations. Returns count of updated rows."""
        stmt = (
            update(InvitationModel)
            .where(
                InvitationModel.status == InvitationStatus.PENDING.value,
                InvitationModel.expires_at < now,
            )
            .values(status=InvitationStatus.EXPIRED.value)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def _get_model(self, id: UUID) -> InvitationModel | None:
        stmt = select(InvitationModel).where(InvitationModel.id == id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: InvitationModel) -> Invitation:
        """Convert ORM model to domain entity."""
        return Invitation(
            id=model.id,
            workspace_id=model.workspace_id,
            email=model.email,
            role=Role[model.role.upper()],
            invited_by=model.invited_by,
            status=InvitationStatus(model.status),
            created_at=model.created_at,
            expires_at=model.expires_at,
            last_sent_at=model.last_sent_at,
            accepted_at=model.accepted_at,
        )

    def _to_model(self, entity: Invitation) -> InvitationModel:
        """Convert domain entity to ORM model."""
        return InvitationModel(
            id=entity.id,
            workspace_id=entity.workspace_id,
            email=entity.email,
            role=entity.role.label,
            invited_by=entity.invited_by,
            status=entity.status.value,
            created_at=entity.created_at,
            expires_at=entity.expires_at,
            last_sent_at=entity.last_sent_at,
            accepted_at=entity.accepted_at,
        )

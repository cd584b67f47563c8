"""SQLAlchemy implementation of ShareGrant repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.dashboard import SharePermission, ShareGrant
from infrastructure.database.models import ShareGrantModel


class SQLAlchemyShareGrantRepository:
    """SQLAlchemy implementation of IShareGrantRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, dashboard_id: UUID, email: str) -> ShareGrant | None:
        """Get the grant for a dashboard and email."""
        model = await self._get_model(dashboard_id, email)
        return self._to_entity(model) if model else None

    async def get_for_dashboard(self, dashboard_id: UUID) -> list[ShareGrant]:
        """Get all grants on a dashboard."""
        stmt = (
            select(ShareGrantModel)
            .where(ShareGrantModel.dashboard_id == dashboard_id)
            .order_by(ShareGrantModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def upsert(self, grant: ShareGrant) -> ShareGrant:
        """Insert a grant, or overwrite the permission of the existing one."""
        model = await self._get_model(grant.dashboard_id, grant.email)
        if model:
            model.permission = grant.permission.value
            model.granted_by = grant.granted_by
            model.updated_at = grant.updated_at
        else:
            model = self._to_model(grant)
            self._session.add(model)

        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def delete(self, dashboard_id: UUID, email: str) -> bool:
        """Delete a grant."""
        model = await self._get_model(dashboard_id, email)
        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def _get_model(self, dashboard_id: UUID, email: str) -> ShareGrantModel | None:
        stmt = select(ShareGrantModel).where(
            ShareGrantModel.dashboard_id == dashboard_id,
            ShareGrantModel.email == email,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: ShareGrantModel) -> ShareGrant:
        """Convert ORM model to domain entity."""
        return ShareGrant(
            dashboard_id=model.dashboard_id,
            email=model.email,
            permission=SharePermission(model.permission),
            granted_by=model.granted_by,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: ShareGrant) -> ShareGrantModel:
        """Convert domain entity to ORM model."""
        return ShareGrantModel(
            dashboard_id=entity.dashboard_id,
            email=entity.email,
            permission=entity.permission.value,
            granted_by=entity.granted_by,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

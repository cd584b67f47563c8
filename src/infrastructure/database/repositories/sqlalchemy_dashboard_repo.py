"""SQLAlchemy implementation of Dashboard repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.dashboard import Dashboard, Visibility
from infrastructure.database.models import DashboardModel


class SQLAlchemyDashboardRepository:
    """SQLAlchemy implementation of IDashboardRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Dashboard | None:
        """Get a dashboard by ID."""
        stmt = select(DashboardModel).where(DashboardModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_for_workspace(self, workspace_id: UUID) -> list[Dashboard]:
        """Get all dashboards owned by a workspace."""
        stmt = (
            select(DashboardModel)
            .where(DashboardModel.workspace_id == workspace_id)
            .order_by(DashboardModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, dashboard: Dashboard) -> Dashboard:
        """Create a new dashboard."""
        model = self._to_model(dashboard)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def set_visibility(self, id: UUID, visibility: Visibility) -> Dashboard:
        """Change the visibility of a dashboard. Share grants are left untouched."""
        stmt = select(DashboardModel).where(DashboardModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Dashboard {id} not found")

        model.visibility = visibility.value
        model.updated_at = datetime.utcnow()
        await self._session.flush()
        return self._to_entity(model)

    def _to_entity(self, model: DashboardModel) -> Dashboard:
        """Convert ORM model to domain entity."""
        return Dashboard(
            id=model.id,
            workspace_id=model.workspace_id,
            name=model.name,
            description=model.description,
            visibility=Visibility(model.visibility),
            created_by=model.created_by,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Dashboard) -> DashboardModel:
        """Convert domain entity to ORM model."""
        return DashboardModel(
            id=entity.id,
            workspace_id=entity.workspace_id,
            name=entity.name,
            description=entity.description,
            visibility=entity.visibility.value,
            created_by=entity.created_by,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

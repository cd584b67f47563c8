"""Dashboard repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.dashboard import Dashboard, Visibility


class IDashboardRepository(Protocol):
    """Repository interface for Dashboard entities."""

    async def get(self, id: UUID) -> Dashboard | None:
        """Get a dashboard by ID."""
        ...

    async def get_for_workspace(self, workspace_id: UUID) -> list[Dashboard]:
        """Get all dashboards owned by a workspace."""
        ...

    async def create(self, dashboard: Dashboard) -> Dashboard:
        """Create a new dashboard."""
        ...

    async def set_visibility(self, id: UUID, visibility: Visibility) -> Dashboard:
        """Change the visibility of a dashboard."""
        ...

"""Share grant repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.dashboard import ShareGrant


class IShareGrantRepository(Protocol):
    """Repository interface for ShareGrant entities."""

    async def get(self, dashboard_id: UUID, email: str) -> ShareGrant | None:
        """Get the grant for a dashboard and normalized email."""
        ...

    async def get_for_dashboard(self, dashboard_id: UUID) -> list[ShareGrant]:
        """Get all grants on a dashboard."""
        ...

    async def upsert(self, grant: ShareGrant) -> ShareGrant:
        """Insert a grant, or update the permission of the existing one."""
        ...

    async def delete(self, dashboard_id: UUID, email: str) -> bool:
        """Delete a grant. Returns False when there was nothing to delete."""
        ...

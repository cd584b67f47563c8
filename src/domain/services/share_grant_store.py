"""Explicit per-dashboard, per-identity share grants."""

from datetime import datetime
from uuid import UUID

from domain.entities.dashboard import SharePermission, ShareGrant
from domain.entities.identity import normalize_email
from domain.repositories.unit_of_work import IUnitOfWork


class ShareGrantStore:
    """Additive, idempotent grants keyed by (dashboard_id, email).

    Grants exist independently of workspace membership and survive
    visibility changes. Methods run inside the caller's Unit of Work.
    """

    async def grant(
        self,
        uow: IUnitOfWork,
        dashboard_id: UUID,
        email: str,
        permission: SharePermission | str,
        granted_by: str | None = None,
        now: datetime | None = None,
    ) -> ShareGrant:
        """Create the grant, or overwrite the permission of an existing one."""
        now = now or datetime.utcnow()
        grant = ShareGrant(
            dashboard_id=dashboard_id,
            email=normalize_email(email),
            permission=SharePermission(permission),
            granted_by=normalize_email(granted_by) if granted_by else None,
            created_at=now,
            updated_at=now,
        )
        return await uow.share_grants.upsert(grant)

    async def revoke(self, uow: IUnitOfWork, dashboard_id: UUID, email: str) -> bool:
        """Delete the grant. A missing grant is not an error; returns whether one existed."""
        return await uow.share_grants.delete(dashboard_id, normalize_email(email))

    async def get(self, uow: IUnitOfWork, dashboard_id: UUID, email: str) -> ShareGrant | None:
        return await uow.share_grants.get(dashboard_id, normalize_email(email))

    async def grants_for(self, uow: IUnitOfWork, dashboard_id: UUID) -> list[ShareGrant]:
        """All grants on the dashboard; order is irrelevant."""
        return await uow.share_grants.get_for_dashboard(dashboard_id)

"""Effective dashboard permission resolution.

Access is additive: public visibility, an active workspace role and an
explicit share grant each contribute a level, and the result is the maximum
of all applicable sources. No source ever lowers what another one granted.
"""

from domain.entities.dashboard import AccessLevel, Dashboard, ShareGrant, Visibility
from domain.entities.identity import normalize_email
from domain.entities.workspace import TeamMember
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services import role_catalog


def resolve_access(
    visibility: Visibility,
    member: TeamMember | None = None,
    grant: ShareGrant | None = None,
) -> AccessLevel:
    """Combine the three access sources into one level.

    Args:
        visibility: The dashboard's visibility switch.
        member: The identity's membership in the dashboard's owning
            workspace, if any. Only ``active`` members contribute.
        grant: The identity's explicit share grant on the dashboard, if any.
    """
    level = AccessLevel.VIEW if visibility == Visibility.PUBLIC else AccessLevel.NONE

    if member is not None and member.is_active:
        level = max(level, role_catalog.dashboard_access_for(member.role))

    if grant is not None:
        level = max(level, AccessLevel.from_permission(grant.permission))

    return level


class VisibilityPolicy:
    """Loads the access sources for an (identity, dashboard) pair and resolves them."""

    async def resolve(self, uow: IUnitOfWork, email: str, dashboard: Dashboard) -> AccessLevel:
        """Resolve the effective permission of ``email`` on ``dashboard``.

        Reads happen inside the caller's transaction, so all sources come
        from the same snapshot.
        """
        email = normalize_email(email)
        member = await uow.workspaces.get_member(dashboard.workspace_id, email)
        grant = await uow.share_grants.get(dashboard.id, email)
        return resolve_access(dashboard.visibility, member, grant)

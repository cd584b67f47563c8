"""Single entry point for collaboration and access-control decisions and mutations."""

import dataclasses
import re
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

import structlog

from core.exceptions import (
    DashboardAccessDeniedError,
    DashboardNotFoundError,
    InsufficientPermissionsError,
    InvalidRoleError,
    InvitationNotFoundError,
    NotAMemberError,
    OwnerRoleImmutableError,
    WorkspaceNotFoundError,
)
from core.locks import KeyedLock
from domain.entities.dashboard import (
    AccessLevel,
    Dashboard,
    SharePermission,
    ShareGrant,
    Visibility,
)
from domain.entities.identity import Identity, normalize_email
from domain.entities.invitation import INVITATION_EXPIRY_DAYS, Invitation
from domain.entities.role import Capability, Role
from domain.entities.workspace import MemberStatus, TeamMember, Workspace
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services import role_catalog
from domain.services.delivery import (
    DeliveryIntent,
    DeliveryKind,
    IDeliveryChannel,
    LoggingDeliveryChannel,
)
from domain.services.invitation_lifecycle import InvitationLifecycle
from domain.services.membership_store import MembershipStore
from domain.services.role_catalog import RoleSummary
from domain.services.share_grant_store import ShareGrantStore
from domain.services.visibility_policy import VisibilityPolicy
from domain.services.visibility_policy import resolve_access as combine_access

logger = structlog.get_logger()


class AccessControlService:
    """Answers "can X do Y on Z" and performs every membership and sharing mutation.

    Each operation runs in one Unit of Work. Mutations scoped to a workspace
    hold that workspace's lock; visibility and sharing mutations hold the
    dashboard's lock instead, since a dashboard can be shared across
    workspace boundaries. Reads take no lock and observe committed state.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        delivery: IDeliveryChannel | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        invitation_ttl: timedelta = timedelta(days=INVITATION_EXPIRY_DAYS),
        resend_cooldown: timedelta = timedelta(0),
    ) -> None:
        self._uow_factory = uow_factory
        self._delivery = delivery or LoggingDeliveryChannel()
        self._clock = clock
        self._membership = MembershipStore()
        self._invitations = InvitationLifecycle(
            self._membership, ttl=invitation_ttl, resend_cooldown=resend_cooldown
        )
        self._shares = ShareGrantStore()
        self._policy = VisibilityPolicy()
        self._workspace_locks = KeyedLock()
        self._dashboard_locks = KeyedLock()

    # --- Workspaces & membership ---

    async def create_workspace(
        self, actor: Identity, name: str, description: str | None = None
    ) -> Workspace:
        """Create a workspace with ``actor`` as its single active owner."""
        async with self._uow_factory() as uow:
            slug = self._generate_slug(name)
            if await uow.workspaces.get_by_slug(slug):
                slug = f"{slug[:100]}-{secrets.token_hex(4)}"

            workspace = await uow.workspaces.create(
                Workspace(name=name, slug=slug, description=description, created_by=actor.email)
            )
            await self._membership.add(
                uow, workspace.id, actor, Role.OWNER, MemberStatus.ACTIVE
            )
            await uow.commit()

        logger.info("workspace_created", workspace_id=str(workspace.id), owner=actor.email)
        return workspace

    async def get_workspace(self, workspace_id: UUID, actor: Identity) -> Workspace:
        """Get a workspace the actor is an active member of."""
        async with self._uow_factory() as uow:
            workspace = await self._get_workspace(uow, workspace_id)
            await self._require_member(uow, workspace_id, actor)
            return workspace

    async def list_members(self, workspace_id: UUID, actor: Identity) -> list[TeamMember]:
        """Members of the workspace. Requires active membership."""
        async with self._uow_factory() as uow:
            await self._get_workspace(uow, workspace_id)
            await self._require_member(uow, workspace_id, actor)
            return await self._membership.list_by_workspace(uow, workspace_id)

    async def role_summary(self, workspace_id: UUID, actor: Identity) -> list[RoleSummary]:
        """Per-role member counts with descriptions, highest role first."""
        members = await self.list_members(workspace_id, actor)
        return role_catalog.summarize(member.role for member in members)

    async def change_member_role(
        self,
        workspace_id: UUID,
        actor: Identity,
        target_email: str,
        new_role: Role | str,
    ) -> TeamMember:
        """Change a member's role.

        The actor needs the ``manage_members`` capability and must outrank
        both the target's current role and the new role.

        Raises:
            UnknownRoleError: If ``new_role`` is outside the enumeration.
            NotAMemberError / InsufficientPermissionsError: Forbidden.
            MemberNotFoundError: If the target is not a member.
            OwnerRoleImmutableError: If the target is the owner or the new role is owner.
        """
        new_role = role_catalog.parse_role(new_role)

        async with self._workspace_locks.hold(workspace_id):
            async with self._uow_factory() as uow:
                await self._get_workspace(uow, workspace_id)
                manager = await self._require_manager(uow, workspace_id, actor)
                target = await self._membership.get(uow, workspace_id, target_email)

                if target.is_owner:
                    raise OwnerRoleImmutableError()
                if new_role == Role.OWNER:
                    raise OwnerRoleImmutableError("Ownership can only be transferred, not assigned")
                self._require_outranks(manager.role, target.role, "member has an equal or higher role")
                self._require_outranks(manager.role, new_role, "cannot assign a role at or above your own")

                updated = await self._membership.set_role(uow, workspace_id, target.email, new_role)
                await uow.commit()

        logger.info(
            "member_role_changed",
            workspace_id=str(workspace_id),
            actor=actor.email,
            target=target.email,
            old_role=target.role.label,
            new_role=new_role.label,
        )
        return updated

    async def remove_member(
        self, workspace_id: UUID, actor: Identity, target_email: str
    ) -> TeamMember:
        """Remove a member. Same privilege rule as ``change_member_role``.

        Raises:
            OwnerRoleImmutableError: If the target is the owner (including self-removal).
        """
        async with self._workspace_locks.hold(workspace_id):
            async with self._uow_factory() as uow:
                await self._get_workspace(uow, workspace_id)
                manager = await self._require_manager(uow, workspace_id, actor)
                target = await self._membership.get(uow, workspace_id, target_email)

                if target.is_owner:
                    raise OwnerRoleImmutableError("Cannot remove the workspace owner")
                self._require_outranks(manager.role, target.role, "member has an equal or higher role")

                removed = await self._membership.remove(uow, workspace_id, target.email)
                await uow.commit()

        logger.info(
            "member_removed",
            workspace_id=str(workspace_id),
            actor=actor.email,
            target=removed.email,
            role=removed.role.label,
        )
        return removed

    # --- Invitations ---

    async def invite_member(
        self,
        workspace_id: UUID,
        actor: Identity,
        email: str,
        role: Role | str,
    ) -> Invitation:
        """Invite ``email`` to the workspace with a proposed role below the actor's."""
        role = role_catalog.parse_role(role)
        if role == Role.OWNER:
            raise InvalidRoleError(role.label, "ownership cannot be granted by invitation")

        async with self._workspace_locks.hold(workspace_id):
            async with self._uow_factory() as uow:
                workspace = await self._get_workspace(uow, workspace_id)
                manager = await self._require_manager(uow, workspace_id, actor)
                self._require_outranks(manager.role, role, "cannot invite at or above your own role")

                invitation = await self._invitations.invite(
                    uow, workspace_id, email, role, invited_by=actor.email, now=self._clock()
                )
                await uow.commit()

        logger.info(
            "invitation_created",
            workspace_id=str(workspace_id),
            invitation_id=str(invitation.id),
            actor=actor.email,
            role=role.label,
        )
        await self._deliver(
            DeliveryIntent(
                kind=DeliveryKind.INVITATION_CREATED,
                recipient=invitation.email,
                sender=actor.email,
                reference_id=invitation.id,
                workspace_id=workspace_id,
                role=role.label,
                metadata={"workspace_name": workspace.name},
            )
        )
        return invitation

    async def accept_invitation(self, invitation_id: UUID, identity: Identity) -> TeamMember:
        """Accept an invitation as the invitee. No privilege check beyond validity."""
        workspace_id = await self._workspace_of_invitation(invitation_id)

        async with self._workspace_locks.hold(workspace_id):
            async with self._uow_factory() as uow:
                member = await self._invitations.accept(
                    uow, invitation_id, identity, now=self._clock()
                )
                await uow.commit()

        logger.info(
            "invitation_accepted",
            workspace_id=str(workspace_id),
            invitation_id=str(invitation_id),
            member=member.email,
            role=member.role.label,
        )
        return member

    async def revoke_invitation(
        self, workspace_id: UUID, actor: Identity, invitation_id: UUID
    ) -> Invitation:
        """Revoke a pending invitation. The actor must outrank the proposed role."""
        async with self._workspace_locks.hold(workspace_id):
            async with self._uow_factory() as uow:
                await self._get_workspace(uow, workspace_id)
                manager = await self._require_manager(uow, workspace_id, actor)
                invitation = await self._get_workspace_invitation(uow, workspace_id, invitation_id)
                self._require_outranks(manager.role, invitation.role, "invitation role is at or above yours")

                revoked = await self._invitations.revoke(uow, invitation_id, now=self._clock())
                await uow.commit()

        logger.info(
            "invitation_revoked",
            workspace_id=str(workspace_id),
            invitation_id=str(invitation_id),
            actor=actor.email,
        )
        return revoked

    async def resend_invitation(
        self, workspace_id: UUID, actor: Identity, invitation_id: UUID
    ) -> Invitation:
        """Re-deliver a pending invitation, subject to the resend cooldown."""
        async with self._workspace_locks.hold(workspace_id):
            async with self._uow_factory() as uow:
                workspace = await self._get_workspace(uow, workspace_id)
                manager = await self._require_manager(uow, workspace_id, actor)
                invitation = await self._get_workspace_invitation(uow, workspace_id, invitation_id)
                self._require_outranks(manager.role, invitation.role, "invitation role is at or above yours")

                resent = await self._invitations.resend(uow, invitation_id, now=self._clock())
                await uow.commit()

        await self._deliver(
            DeliveryIntent(
                kind=DeliveryKind.INVITATION_RESENT,
                recipient=resent.email,
                sender=actor.email,
                reference_id=resent.id,
                workspace_id=workspace_id,
                role=resent.role.label,
                metadata={"workspace_name": workspace.name},
            )
        )
        return resent

    async def expire_invitation(
        self, invitation_id: UUID, now: datetime | None = None
    ) -> Invitation:
        """Move a lapsed pending invitation to ``expired`` (externally clocked)."""
        workspace_id = await self._workspace_of_invitation(invitation_id)

        async with self._workspace_locks.hold(workspace_id):
            async with self._uow_factory() as uow:
                expired = await self._invitations.expire(
                    uow, invitation_id, now=now or self._clock()
                )
                await uow.commit()
        return expired

    async def expire_stale_invitations(self, now: datetime | None = None) -> int:
        """Persist expiry for all lapsed pending invitations. Returns the count."""
        async with self._uow_factory() as uow:
            count = await self._invitations.sweep(uow, now=now or self._clock())
            await uow.commit()
        return count

    async def list_invitations(self, workspace_id: UUID, actor: Identity) -> list[Invitation]:
        """Invitations of the workspace, with lapsed pending ones reported as expired."""
        now = self._clock()
        async with self._uow_factory() as uow:
            await self._get_workspace(uow, workspace_id)
            await self._require_member(uow, workspace_id, actor)
            invitations = await self._invitations.list_for_workspace(uow, workspace_id)
        return [dataclasses.replace(inv, status=inv.effective_status(now)) for inv in invitations]

    async def pending_invitations_for(self, identity: Identity) -> list[Invitation]:
        """Pending, unexpired invitations addressed to the identity's email."""
        async with self._uow_factory() as uow:
            return await self._invitations.pending_for(uow, identity.email, now=self._clock())

    # --- Dashboards & sharing ---

    async def create_dashboard(
        self,
        actor: Identity,
        workspace_id: UUID,
        name: str,
        description: str | None = None,
        visibility: Visibility | str = Visibility.PRIVATE,
    ) -> Dashboard:
        """Create a dashboard owned by the workspace. Requires ``edit_dashboards``."""
        async with self._uow_factory() as uow:
            await self._get_workspace(uow, workspace_id)
            member = await self._require_member(uow, workspace_id, actor)
            if not role_catalog.has_capability(member.role, Capability.EDIT_DASHBOARDS):
                raise InsufficientPermissionsError(Capability.EDIT_DASHBOARDS.value)

            dashboard = await uow.dashboards.create(
                Dashboard(
                    workspace_id=workspace_id,
                    name=name,
                    description=description,
                    visibility=Visibility(visibility),
                    created_by=actor.email,
                )
            )
            await uow.commit()

        logger.info(
            "dashboard_created",
            dashboard_id=str(dashboard.id),
            workspace_id=str(workspace_id),
            actor=actor.email,
        )
        return dashboard

    async def get_dashboard(
        self, identity: Identity | str | None, dashboard_id: UUID
    ) -> tuple[Dashboard, AccessLevel]:
        """Load a dashboard the identity can at least view.

        ``identity=None`` stands for an anonymous holder of the share link,
        which only reaches public dashboards.
        """
        async with self._uow_factory() as uow:
            dashboard = await self._get_dashboard(uow, dashboard_id)
            level = await self._resolve(uow, identity, dashboard)
        if level < AccessLevel.VIEW:
            raise DashboardAccessDeniedError(str(dashboard_id), AccessLevel.VIEW.label)
        return dashboard, level

    async def resolve_access(
        self, identity: Identity | str | None, dashboard_id: UUID
    ) -> AccessLevel:
        """Effective permission of the identity on the dashboard."""
        async with self._uow_factory() as uow:
            dashboard = await self._get_dashboard(uow, dashboard_id)
            return await self._resolve(uow, identity, dashboard)

    async def can_access(
        self,
        identity: Identity | str | None,
        dashboard_id: UUID,
        action: SharePermission | str,
    ) -> bool:
        """Whether the identity may perform ``action`` (view or edit) on the dashboard."""
        required = AccessLevel.from_permission(SharePermission(action))
        return await self.resolve_access(identity, dashboard_id) >= required

    async def set_dashboard_visibility(
        self, actor: Identity, dashboard_id: UUID, visibility: Visibility | str
    ) -> Dashboard:
        """Toggle public/private. Existing share grants are kept either way."""
        visibility = Visibility(visibility)

        async with self._dashboard_locks.hold(dashboard_id):
            async with self._uow_factory() as uow:
                dashboard = await self._get_dashboard(uow, dashboard_id)
                await self._require_edit(uow, actor, dashboard)

                updated = await uow.dashboards.set_visibility(dashboard_id, visibility)
                await uow.commit()

        logger.info(
            "dashboard_visibility_changed",
            dashboard_id=str(dashboard_id),
            actor=actor.email,
            old=dashboard.visibility.value,
            new=visibility.value,
        )
        return updated

    async def share_dashboard(
        self,
        actor: Identity,
        dashboard_id: UUID,
        email: str,
        permission: SharePermission | str,
    ) -> ShareGrant:
        """Grant (or re-grant) ``email`` view/edit on the dashboard."""
        permission = SharePermission(permission)

        async with self._dashboard_locks.hold(dashboard_id):
            async with self._uow_factory() as uow:
                dashboard = await self._get_dashboard(uow, dashboard_id)
                await self._require_edit(uow, actor, dashboard)

                grant = await self._shares.grant(
                    uow, dashboard_id, email, permission, granted_by=actor.email, now=self._clock()
                )
                await uow.commit()

        logger.info(
            "dashboard_shared",
            dashboard_id=str(dashboard_id),
            actor=actor.email,
            recipient=grant.email,
            permission=permission.value,
        )
        await self._deliver(
            DeliveryIntent(
                kind=DeliveryKind.DASHBOARD_SHARED,
                recipient=grant.email,
                sender=actor.email,
                reference_id=dashboard_id,
                workspace_id=dashboard.workspace_id,
                permission=permission.value,
                metadata={"dashboard_name": dashboard.name},
            )
        )
        return grant

    async def unshare_dashboard(self, actor: Identity, dashboard_id: UUID, email: str) -> bool:
        """Remove ``email``'s grant. Removing a missing grant succeeds."""
        async with self._dashboard_locks.hold(dashboard_id):
            async with self._uow_factory() as uow:
                dashboard = await self._get_dashboard(uow, dashboard_id)
                await self._require_edit(uow, actor, dashboard)

                removed = await self._shares.revoke(uow, dashboard_id, email)
                await uow.commit()

        if removed:
            logger.info(
                "dashboard_unshared",
                dashboard_id=str(dashboard_id),
                actor=actor.email,
                recipient=normalize_email(email),
            )
        return removed

    async def list_shares(self, actor: Identity, dashboard_id: UUID) -> list[ShareGrant]:
        """Explicit grants on the dashboard. Requires view access."""
        async with self._uow_factory() as uow:
            dashboard = await self._get_dashboard(uow, dashboard_id)
            if await self._resolve(uow, actor, dashboard) < AccessLevel.VIEW:
                raise DashboardAccessDeniedError(str(dashboard_id), AccessLevel.VIEW.label)
            return await self._shares.grants_for(uow, dashboard_id)

    # --- Internal helpers ---

    async def _deliver(self, intent: DeliveryIntent) -> None:
        """Hand an intent to the delivery channel after the change has committed.

        A failing channel is logged and does not undo or fail the operation.
        """
        try:
            await self._delivery.deliver(intent)
        except Exception:
            logger.exception(
                "delivery_failed",
                kind=intent.kind.value,
                recipient=intent.recipient,
                reference_id=str(intent.reference_id),
            )

    async def _get_workspace(self, uow: IUnitOfWork, workspace_id: UUID) -> Workspace:
        workspace = await uow.workspaces.get(workspace_id)
        if not workspace:
            raise WorkspaceNotFoundError(str(workspace_id))
        return workspace

    async def _get_dashboard(self, uow: IUnitOfWork, dashboard_id: UUID) -> Dashboard:
        dashboard = await uow.dashboards.get(dashboard_id)
        if not dashboard:
            raise DashboardNotFoundError(str(dashboard_id))
        return dashboard

    async def _get_workspace_invitation(
        self, uow: IUnitOfWork, workspace_id: UUID, invitation_id: UUID
    ) -> Invitation:
        invitation = await self._invitations.get(uow, invitation_id)
        if invitation.workspace_id != workspace_id:
            raise InvitationNotFoundError(str(invitation_id))
        return invitation

    async def _workspace_of_invitation(self, invitation_id: UUID) -> UUID:
        async with self._uow_factory() as uow:
            invitation = await self._invitations.get(uow, invitation_id)
            return invitation.workspace_id

    async def _require_member(
        self, uow: IUnitOfWork, workspace_id: UUID, actor: Identity
    ) -> TeamMember:
        """The actor's active membership, or NotAMemberError."""
        member = await self._membership.find_active(uow, workspace_id, actor.email)
        if not member:
            raise NotAMemberError(str(workspace_id))
        return member

    async def _require_manager(
        self, uow: IUnitOfWork, workspace_id: UUID, actor: Identity
    ) -> TeamMember:
        """The actor's active membership if its role can manage members."""
        member = await self._require_member(uow, workspace_id, actor)
        if not role_catalog.has_capability(member.role, Capability.MANAGE_MEMBERS):
            raise InsufficientPermissionsError(Capability.MANAGE_MEMBERS.value)
        return member

    @staticmethod
    def _require_outranks(actor_role: Role, other: Role, reason: str) -> None:
        if not role_catalog.outranks(actor_role, other):
            raise InsufficientPermissionsError(reason)

    async def _require_edit(self, uow: IUnitOfWork, actor: Identity, dashboard: Dashboard) -> None:
        if await self._resolve(uow, actor, dashboard) < AccessLevel.EDIT:
            raise DashboardAccessDeniedError(str(dashboard.id), AccessLevel.EDIT.label)

    async def _resolve(
        self, uow: IUnitOfWork, identity: Identity | str | None, dashboard: Dashboard
    ) -> AccessLevel:
        if identity is None:
            return combine_access(dashboard.visibility)
        email = identity.email if isinstance(identity, Identity) else identity
        return await self._policy.resolve(uow, email, dashboard)

    @staticmethod
    def _generate_slug(name: str) -> str:
        """Generate a URL-friendly slug from a workspace name."""
        slug = name.lower().strip()
        slug = re.sub(r"[^a-z0-9\s-]", "", slug)
        slug = re.sub(r"[\s_]+", "-", slug)
        slug = re.sub(r"-+", "-", slug)
        slug = slug.strip("-")
        return slug[:100] if slug else "workspace"

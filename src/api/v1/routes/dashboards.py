"""Dashboard visibility and sharing API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentIdentity, OptionalIdentity
from api.v1.dependencies import get_access_control_service
from api.v1.schemas.dashboard import (
    AccessResponse,
    DashboardCreate,
    DashboardDetailResponse,
    DashboardResponse,
    ShareGrantListResponse,
    ShareGrantResponse,
    ShareRequest,
    VisibilityUpdate,
)
from core.rate_limit import limiter
from domain.entities.dashboard import AccessLevel, Dashboard, ShareGrant
from domain.services.access_control_service import AccessControlService

router = APIRouter(prefix="/dashboards", tags=["dashboards"])


@router.post(
    "",
    response_model=DashboardDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a dashboard",
    responses={
        201: {"description": "Dashboard created"},
        403: {"description": "Not a member or role cannot edit dashboards"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_dashboard(
    request: Request,
    body: DashboardCreate,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> DashboardDetailResponse:
    """Create a dashboard in a workspace. Requires the edit_dashboards capability."""
    dashboard = await service.create_dashboard(
        identity,
        body.workspace_id,
        name=body.name,
        description=body.description,
        visibility=body.visibility,
    )
    return DashboardDetailResponse(data=_build_dashboard_response(dashboard, AccessLevel.EDIT))


@router.get(
    "/{dashboard_id}",
    response_model=DashboardDetailResponse,
    summary="Get a dashboard",
    responses={
        200: {"description": "Dashboard the caller can view"},
        403: {"description": "No access"},
        404: {"description": "Dashboard not found"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_dashboard(
    request: Request,
    dashboard_id: UUID,
    identity: OptionalIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> DashboardDetailResponse:
    """Get a dashboard. Anonymous callers can open public dashboards."""
    dashboard, level = await service.get_dashboard(identity, dashboard_id)
    return DashboardDetailResponse(data=_build_dashboard_response(dashboard, level))


@router.get(
    "/{dashboard_id}/access",
    response_model=AccessResponse,
    summary="Resolve caller access",
    responses={404: {"description": "Dashboard not found"}},
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_access(
    request: Request,
    dashboard_id: UUID,
    identity: OptionalIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> AccessResponse:
    """Effective permission of the caller: none, view or edit."""
    level = await service.resolve_access(identity, dashboard_id)
    return AccessResponse(
        dashboard_id=dashboard_id,
        access=level.label,
        can_view=level >= AccessLevel.VIEW,
        can_edit=level >= AccessLevel.EDIT,
    )


@router.put(
    "/{dashboard_id}/visibility",
    response_model=DashboardDetailResponse,
    summary="Set dashboard visibility",
    responses={
        200: {"description": "Visibility updated"},
        403: {"description": "Edit access required"},
        404: {"description": "Dashboard not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def set_visibility(
    request: Request,
    dashboard_id: UUID,
    body: VisibilityUpdate,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> DashboardDetailResponse:
    """Make a dashboard public or private. Share grants are kept."""
    dashboard = await service.set_dashboard_visibility(identity, dashboard_id, body.visibility)
    return DashboardDetailResponse(data=_build_dashboard_response(dashboard, AccessLevel.EDIT))


# --- Sharing ---


@router.get(
    "/{dashboard_id}/shares",
    response_model=ShareGrantListResponse,
    summary="List share grants",
    responses={
        200: {"description": "Explicit grants on the dashboard"},
        403: {"description": "No access"},
        404: {"description": "Dashboard not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_shares(
    request: Request,
    dashboard_id: UUID,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> ShareGrantListResponse:
    """List who the dashboard is explicitly shared with."""
    grants = await service.list_shares(identity, dashboard_id)
    grants.sort(key=lambda g: g.email)
    data = [_build_grant_response(g) for g in grants]
    return ShareGrantListResponse(data=data, meta={"total": len(data)})


@router.put(
    "/{dashboard_id}/shares",
    response_model=ShareGrantResponse,
    summary="Share dashboard",
    responses={
        200: {"description": "Grant created or updated"},
        403: {"description": "Edit access required"},
        404: {"description": "Dashboard not found"},
    },
)
@limiter.limit("20/minute")  # type: ignore[untyped-decorator]
async def share_dashboard(
    request: Request,
    dashboard_id: UUID,
    body: ShareRequest,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> ShareGrantResponse:
    """Grant an email view or edit access. Re-sharing overwrites the permission."""
    grant = await service.share_dashboard(identity, dashboard_id, body.email, body.permission)
    return _build_grant_response(grant)


@router.delete(
    "/{dashboard_id}/shares/{email}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unshare dashboard",
    responses={
        204: {"description": "Grant removed (or did not exist)"},
        403: {"description": "Edit access required"},
        404: {"description": "Dashboard not found"},
    },
)
@limiter.limit("20/minute")  # type: ignore[untyped-decorator]
async def unshare_dashboard(
    request: Request,
    dashboard_id: UUID,
    email: str,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> None:
    """Remove an email's explicit grant."""
    await service.unshare_dashboard(identity, dashboard_id, email)
    return None


def _build_dashboard_response(dashboard: Dashboard, level: AccessLevel) -> DashboardResponse:
    """Convert domain entity to response schema."""
    return DashboardResponse(
        id=dashboard.id,
        workspace_id=dashboard.workspace_id,
        name=dashboard.name,
        description=dashboard.description,
        visibility=dashboard.visibility.value,
        created_by=dashboard.created_by,
        access=level.label,
        created_at=dashboard.created_at,
        updated_at=dashboard.updated_at,
    )


def _build_grant_response(grant: ShareGrant) -> ShareGrantResponse:
    """Convert domain entity to response schema."""
    return ShareGrantResponse(
        dashboard_id=grant.dashboard_id,
        email=grant.email,
        permission=grant.permission.value,
        granted_by=grant.granted_by,
        created_at=grant.created_at,
        updated_at=grant.updated_at,
    )

"""Workspace and team membership API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentIdentity
from api.v1.dependencies import get_access_control_service
from api.v1.schemas.workspace import (
    RoleSummaryListResponse,
    RoleSummaryResponse,
    TeamMemberListResponse,
    TeamMemberResponse,
    UpdateMemberRoleRequest,
    WorkspaceCreate,
    WorkspaceDetailResponse,
    WorkspaceResponse,
)
from core.rate_limit import limiter
from domain.entities.workspace import TeamMember, Workspace
from domain.services.access_control_service import AccessControlService

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.post(
    "",
    response_model=WorkspaceDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a workspace",
    responses={201: {"description": "Workspace created successfully"}},
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_workspace(
    request: Request,
    body: WorkspaceCreate,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> WorkspaceDetailResponse:
    """Create a new workspace. The creator becomes its owner."""
    workspace = await service.create_workspace(
        identity, name=body.name, description=body.description
    )
    return WorkspaceDetailResponse(data=_build_workspace_response(workspace))


@router.get(
    "/{workspace_id}",
    response_model=WorkspaceDetailResponse,
    summary="Get workspace details",
    responses={
        200: {"description": "Workspace details"},
        403: {"description": "Not a member"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_workspace(
    request: Request,
    workspace_id: UUID,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> WorkspaceDetailResponse:
    """Get a specific workspace by ID. Requires membership."""
    workspace = await service.get_workspace(workspace_id, identity)
    return WorkspaceDetailResponse(data=_build_workspace_response(workspace))


# --- Member Management ---


@router.get(
    "/{workspace_id}/members",
    response_model=TeamMemberListResponse,
    summary="List workspace members",
    responses={
        200: {"description": "List of workspace members"},
        403: {"description": "Not a member"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_members(
    request: Request,
    workspace_id: UUID,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> TeamMemberListResponse:
    """Get all members of a workspace, highest role first. Requires membership."""
    members = await service.list_members(workspace_id, identity)
    members.sort(key=lambda m: (-m.role, m.email))
    data = [_build_member_response(m) for m in members]
    return TeamMemberListResponse(data=data, meta={"total": len(data)})


@router.get(
    "/{workspace_id}/roles",
    response_model=RoleSummaryListResponse,
    summary="Summarize workspace roles",
    responses={
        200: {"description": "Member count and capabilities per role"},
        403: {"description": "Not a member"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def role_summary(
    request: Request,
    workspace_id: UUID,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> RoleSummaryListResponse:
    """Count members per role. Requires membership."""
    summaries = await service.role_summary(workspace_id, identity)
    data = [
        RoleSummaryResponse(
            role=s.role.label,
            count=s.count,
            description=s.description,
            capabilities=sorted(c.value for c in s.capabilities),
        )
        for s in summaries
    ]
    return RoleSummaryListResponse(
        data=data, meta={"total_members": sum(s.count for s in data)}
    )


@router.patch(
    "/{workspace_id}/members/{email}",
    response_model=TeamMemberResponse,
    summary="Change member role",
    responses={
        200: {"description": "Role updated"},
        400: {"description": "Unknown role or owner role is immutable"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Workspace or member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def change_member_role(
    request: Request,
    workspace_id: UUID,
    email: str,
    body: UpdateMemberRoleRequest,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> TeamMemberResponse:
    """Change a member's role. The caller must outrank both the old and the new role."""
    member = await service.change_member_role(workspace_id, identity, email, body.role)
    return _build_member_response(member)


@router.delete(
    "/{workspace_id}/members/{email}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove workspace member",
    responses={
        204: {"description": "Member removed"},
        400: {"description": "Cannot remove the owner"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Workspace or member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_member(
    request: Request,
    workspace_id: UUID,
    email: str,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> None:
    """Remove a member from a workspace."""
    await service.remove_member(workspace_id, identity, email)
    return None


def _build_workspace_response(workspace: Workspace) -> WorkspaceResponse:
    """Convert domain entity to response schema."""
    return WorkspaceResponse(
        id=workspace.id,
        name=workspace.name,
        slug=workspace.slug,
        description=workspace.description,
        created_by=workspace.created_by,
        created_at=workspace.created_at,
        updated_at=workspace.updated_at,
    )


def _build_member_response(member: TeamMember) -> TeamMemberResponse:
    """Convert domain entity to response schema."""
    return TeamMemberResponse(
        email=member.email,
        display_name=member.display_name,
        role=member.role.label,
        status=member.status.value,
        joined_at=member.joined_at,
        invited_by=member.invited_by,
    )

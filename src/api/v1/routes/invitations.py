"""Invitation API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentIdentity
from api.v1.dependencies import get_access_control_service
from api.v1.schemas.invitation import (
    AcceptInvitationResponse,
    CreateInvitationRequest,
    InvitationDetailResponse,
    InvitationListResponse,
    InvitationResponse,
)
from core.rate_limit import limiter
from domain.entities.invitation import Invitation
from domain.services.access_control_service import AccessControlService

# Workspace-scoped invitation routes
workspace_invitations_router = APIRouter(
    prefix="/workspaces/{workspace_id}/invitations",
    tags=["invitations"],
)

# Invitee-scoped invitation routes (accept, pending)
invitations_router = APIRouter(
    prefix="/invitations",
    tags=["invitations"],
)


@workspace_invitations_router.post(
    "",
    response_model=InvitationDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create workspace invitation",
    responses={
        201: {"description": "Invitation created"},
        400: {"description": "Unknown or non-invitable role"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Workspace not found"},
        409: {"description": "Duplicate invitation or already a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_invitation(
    request: Request,
    workspace_id: UUID,
    body: CreateInvitationRequest,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> InvitationDetailResponse:
    """Invite an email address to the workspace with a role below the caller's."""
    invitation = await service.invite_member(workspace_id, identity, body.email, body.role)
    return InvitationDetailResponse(data=_build_invitation_response(invitation))


@workspace_invitations_router.get(
    "",
    response_model=InvitationListResponse,
    summary="List workspace invitations",
    responses={
        200: {"description": "List of workspace invitations"},
        403: {"description": "Not a member"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_workspace_invitations(
    request: Request,
    workspace_id: UUID,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> InvitationListResponse:
    """List all invitations for a workspace. Requires membership."""
    invitations = await service.list_invitations(workspace_id, identity)
    data = [_build_invitation_response(inv) for inv in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@workspace_invitations_router.post(
    "/{invitation_id}/resend",
    response_model=InvitationDetailResponse,
    summary="Resend invitation",
    responses={
        200: {"description": "Invitation re-delivered"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Invitation not found"},
        409: {"description": "Invitation is no longer pending"},
        429: {"description": "Resent too recently"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def resend_invitation(
    request: Request,
    workspace_id: UUID,
    invitation_id: UUID,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> InvitationDetailResponse:
    """Deliver a pending invitation again."""
    invitation = await service.resend_invitation(workspace_id, identity, invitation_id)
    return InvitationDetailResponse(data=_build_invitation_response(invitation))


@workspace_invitations_router.delete(
    "/{invitation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke invitation",
    responses={
        204: {"description": "Invitation revoked"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Invitation not found"},
        409: {"description": "Invitation is no longer pending"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def revoke_invitation(
    request: Request,
    workspace_id: UUID,
    invitation_id: UUID,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> None:
    """Revoke a pending invitation."""
    await service.revoke_invitation(workspace_id, identity, invitation_id)
    return None


# --- Invitee-scoped routes ---


@invitations_router.post(
    "/{invitation_id}/accept",
    response_model=AcceptInvitationResponse,
    summary="Accept invitation",
    responses={
        200: {"description": "Invitation accepted, identity added to workspace"},
        403: {"description": "Email mismatch or email not verified"},
        404: {"description": "Invitation not found"},
        409: {"description": "Invitation expired, already accepted or revoked"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def accept_invitation(
    request: Request,
    invitation_id: UUID,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> AcceptInvitationResponse:
    """Accept a workspace invitation addressed to the caller's email."""
    member = await service.accept_invitation(invitation_id, identity)
    return AcceptInvitationResponse(
        workspace_id=member.workspace_id,
        email=member.email,
        role=member.role.label,
    )


@invitations_router.get(
    "/pending",
    response_model=InvitationListResponse,
    summary="Get pending invitations",
    responses={
        200: {"description": "List of pending invitations for the caller"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_pending_invitations(
    request: Request,
    identity: CurrentIdentity,
    service: AccessControlService = Depends(get_access_control_service),
) -> InvitationListResponse:
    """Get all pending invitations for the caller's email."""
    invitations = await service.pending_invitations_for(identity)
    data = [_build_invitation_response(inv) for inv in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


def _build_invitation_response(invitation: Invitation) -> InvitationResponse:
    """Convert domain entity to response schema."""
    return InvitationResponse(
        id=invitation.id,
        workspace_id=invitation.workspace_id,
        email=invitation.email,
        role=invitation.role.label,
        status=invitation.status.value,
        invited_by=invitation.invited_by,
        created_at=invitation.created_at,
        expires_at=invitation.expires_at,
        last_sent_at=invitation.last_sent_at,
        accepted_at=invitation.accepted_at,
    )

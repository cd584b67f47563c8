"""Pydantic schemas for Workspace and team membership API."""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WorkspaceCreate(BaseModel):
    """Schema for creating a Workspace."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)


class WorkspaceResponse(BaseModel):
    """Schema for Workspace response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Growth Analytics",
                "slug": "growth-analytics",
                "description": "Product and marketing dashboards",
                "created_by": "owner@example.com",
                "created_at": "2026-02-01T10:00:00",
                "updated_at": "2026-02-01T10:00:00",
            }
        },
    )

    id: UUID
    name: str
    slug: str
    description: Optional[str]
    created_by: str
    created_at: datetime
    updated_at: datetime


class WorkspaceDetailResponse(BaseModel):
    """Schema for single Workspace response."""

    data: WorkspaceResponse


class TeamMemberResponse(BaseModel):
    """Schema for Team Member response."""

    model_config = ConfigDict(from_attributes=True)

    email: str
    display_name: Optional[str] = None
    role: str
    status: str
    joined_at: datetime
    invited_by: Optional[str] = None


class TeamMemberListResponse(BaseModel):
    """Schema for list of Team Members response."""

    data: List[TeamMemberResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class UpdateMemberRoleRequest(BaseModel):
    """Schema for changing a member's role.

    The value is checked against the role enumeration by the service so an
    unknown role surfaces as ``UNKNOWN_ROLE``.
    """

    role: str = Field(..., min_length=1, max_length=32)


class RoleSummaryResponse(BaseModel):
    """Member count and capabilities of one role."""

    role: str
    count: int
    description: str
    capabilities: List[str]


class RoleSummaryListResponse(BaseModel):
    """Schema for the team role summary."""

    data: List[RoleSummaryResponse]
    meta: dict[str, Any] = Field(default_factory=dict)

"""Pydantic schemas for Dashboard and sharing API."""

from datetime import datetime
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DashboardCreate(BaseModel):
    """Schema for creating a Dashboard."""

    workspace_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    visibility: Literal["private", "public"] = "private"


class DashboardResponse(BaseModel):
    """Schema for Dashboard response.

    ``access`` is the caller's resolved permission: ``view`` or ``edit``.
    """

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "workspace_id": "456e4567-e89b-12d3-a456-426614174000",
                "name": "Weekly Active Users",
                "description": None,
                "visibility": "private",
                "created_by": "analyst@example.com",
                "access": "edit",
                "created_at": "2026-02-01T10:00:00",
                "updated_at": "2026-02-01T10:00:00",
            }
        },
    )

    id: UUID
    workspace_id: UUID
    name: str
    description: Optional[str]
    visibility: str
    created_by: str
    access: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DashboardDetailResponse(BaseModel):
    """Schema for single Dashboard response."""

    data: DashboardResponse


class VisibilityUpdate(BaseModel):
    """Schema for toggling dashboard visibility."""

    visibility: Literal["private", "public"]


class ShareRequest(BaseModel):
    """Schema for granting an identity access to a dashboard."""

    email: str = Field(..., min_length=3, max_length=255)
    permission: Literal["view", "edit"] = "view"

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Basic email validation."""
        v = v.strip().lower()
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Invalid email address")
        return v


class ShareGrantResponse(BaseModel):
    """Schema for Share Grant response."""

    model_config = ConfigDict(from_attributes=True)

    dashboard_id: UUID
    email: str
    permission: str
    granted_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ShareGrantListResponse(BaseModel):
    """Schema for list of Share Grants response."""

    data: list[ShareGrantResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class AccessResponse(BaseModel):
    """Resolved permission of the caller on a dashboard."""

    dashboard_id: UUID
    access: str
    can_view: bool
    can_edit: bool

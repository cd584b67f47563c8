"""Dashboard and sharing domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum, StrEnum
from uuid import UUID, uuid4


class Visibility(StrEnum):
    """Dashboard-level visibility switch."""

    PRIVATE = "private"
    PUBLIC = "public"


class SharePermission(StrEnum):
    """Permission carried by an explicit share grant."""

    VIEW = "view"
    EDIT = "edit"


class AccessLevel(IntEnum):
    """Resolved dashboard permission. ``edit`` dominates ``view`` dominates ``none``."""

    NONE = 0
    VIEW = 1
    EDIT = 2

    @classmethod
    def from_permission(cls, permission: SharePermission) -> "AccessLevel":
        return cls.EDIT if permission == SharePermission.EDIT else cls.VIEW

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass
class Dashboard:
    """Domain entity for a Dashboard owned by a workspace."""

    workspace_id: UUID
    name: str
    created_by: str
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    visibility: Visibility = Visibility.PRIVATE
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ShareGrant:
    """Explicit per-identity grant on a dashboard, keyed by (dashboard_id, email)."""

    dashboard_id: UUID
    email: str
    permission: SharePermission
    granted_by: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

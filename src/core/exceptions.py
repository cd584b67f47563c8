"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    DASHBOARD_ACCESS_DENIED = "DASHBOARD_ACCESS_DENIED"
    INVITATION_EMAIL_MISMATCH = "INVITATION_EMAIL_MISMATCH"
    EMAIL_NOT_VERIFIED = "EMAIL_NOT_VERIFIED"

    # Not found errors (404)
    NOT_FOUND = "NOT_FOUND"
    WORKSPACE_NOT_FOUND = "WORKSPACE_NOT_FOUND"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"
    DASHBOARD_NOT_FOUND = "DASHBOARD_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_ROLE = "UNKNOWN_ROLE"
    INVALID_ROLE = "INVALID_ROLE"
    OWNER_ROLE_IMMUTABLE = "OWNER_ROLE_IMMUTABLE"

    # Conflict errors (409)
    DUPLICATE_MEMBER = "DUPLICATE_MEMBER"
    ALREADY_A_MEMBER = "ALREADY_A_MEMBER"
    DUPLICATE_INVITATION = "DUPLICATE_INVITATION"
    INVALID_STATE = "INVALID_STATE"
    INVITATION_EXPIRED = "INVITATION_EXPIRED"
    INVITATION_ALREADY_ACCEPTED = "INVITATION_ALREADY_ACCEPTED"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    RESEND_TOO_SOON = "RESEND_TOO_SOON"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


# --- Forbidden ---


class ForbiddenError(AppException):
    """Actor lacks sufficient privilege for the requested operation."""

    def __init__(
        self,
        message: str = "Access denied",
        error_code: ErrorCode = ErrorCode.FORBIDDEN,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=403,
            details=details,
        )


class NotAMemberError(ForbiddenError):
    """Actor is not an active member of the workspace."""

    def __init__(self, workspace_id: str) -> None:
        super().__init__(
            message="You are not a member of this workspace",
            error_code=ErrorCode.NOT_A_MEMBER,
            details={"workspace_id": workspace_id},
        )


class InsufficientPermissionsError(ForbiddenError):
    """Actor's role is not high enough for the operation."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            message=f"Insufficient permissions: {reason}",
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            details={"reason": reason},
        )


class DashboardAccessDeniedError(ForbiddenError):
    """Actor's resolved dashboard permission is too low."""

    def __init__(self, dashboard_id: str, required: str) -> None:
        super().__init__(
            message=f"You need {required} access to this dashboard",
            error_code=ErrorCode.DASHBOARD_ACCESS_DENIED,
            details={"dashboard_id": dashboard_id, "required": required},
        )


class InvitationEmailMismatchError(ForbiddenError):
    """The accepting identity's email does not match the invitation email."""

    def __init__(self) -> None:
        super().__init__(
            message="Your email does not match the invitation email",
            error_code=ErrorCode.INVITATION_EMAIL_MISMATCH,
        )


class EmailNotVerifiedError(ForbiddenError):
    """The accepting identity has not verified its email address."""

    def __init__(self) -> None:
        super().__init__(
            message="Verify your email address before accepting invitations",
            error_code=ErrorCode.EMAIL_NOT_VERIFIED,
        )


# --- Not found ---


class NotFoundError(AppException):
    """Referenced member, invitation, workspace or dashboard does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        error_code: ErrorCode = ErrorCode.NOT_FOUND,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=404,
            details=details,
        )


class WorkspaceNotFoundError(NotFoundError):
    """Workspace not found."""

    def __init__(self, workspace_id: str) -> None:
        super().__init__(
            message=f"Workspace not found: {workspace_id}",
            error_code=ErrorCode.WORKSPACE_NOT_FOUND,
            details={"workspace_id": workspace_id},
        )


class MemberNotFoundError(NotFoundError):
    """No member with that email in the workspace."""

    def __init__(self, email: str) -> None:
        super().__init__(
            message="This person is not a member of the workspace",
            error_code=ErrorCode.MEMBER_NOT_FOUND,
            details={"email": email},
        )


class InvitationNotFoundError(NotFoundError):
    """Invitation not found."""

    def __init__(self, invitation_id: str = "") -> None:
        super().__init__(
            message="Invitation not found",
            error_code=ErrorCode.INVITATION_NOT_FOUND,
            details={"invitation_id": invitation_id} if invitation_id else None,
        )


class DashboardNotFoundError(NotFoundError):
    """Dashboard not found."""

    def __init__(self, dashboard_id: str) -> None:
        super().__init__(
            message=f"Dashboard not found: {dashboard_id}",
            error_code=ErrorCode.DASHBOARD_NOT_FOUND,
            details={"dashboard_id": dashboard_id},
        )


# --- Roles ---


class UnknownRoleError(AppException):
    """Role value outside the fixed enumeration."""

    def __init__(self, role: object) -> None:
        super().__init__(
            error_code=ErrorCode.UNKNOWN_ROLE,
            message=f"Unknown role: {role}",
            status_code=400,
            details={"role": str(role)},
        )


class InvalidRoleError(AppException):
    """Role is known but cannot be used for this operation."""

    def __init__(self, role: str, reason: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_ROLE,
            message=f"Role '{role}' cannot be used here: {reason}",
            status_code=400,
            details={"role": role},
        )


class OwnerRoleImmutableError(AppException):
    """Attempted removal or role change of the owner, or owner assignment."""

    def __init__(self, message: str = "Cannot change the workspace owner's role") -> None:
        super().__init__(
            error_code=ErrorCode.OWNER_ROLE_IMMUTABLE,
            message=message,
            status_code=400,
        )


# --- Conflicts ---


class DuplicateMemberError(AppException):
    """A membership record for this identity already exists."""

    def __init__(self, email: str) -> None:
        super().__init__(
            error_code=ErrorCode.DUPLICATE_MEMBER,
            message="This person already has a membership in this workspace",
            status_code=409,
            details={"email": email},
        )


class AlreadyMemberError(AppException):
    """The invited email already belongs to an active member."""

    def __init__(self, email: str) -> None:
        super().__init__(
            error_code=ErrorCode.ALREADY_A_MEMBER,
            message="This person is already a member of the workspace",
            status_code=409,
            details={"email": email},
        )


class DuplicateInvitationError(AppException):
    """A pending invitation already exists for this email and workspace."""

    def __init__(self, email: str) -> None:
        super().__init__(
            error_code=ErrorCode.DUPLICATE_INVITATION,
            message="A pending invitation already exists for this email",
            status_code=409,
            details={"email": email},
        )


class InvalidStateError(AppException):
    """Invitation transition attempted from a non-source state."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_STATE,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=409,
            details=details,
        )


class InvitationExpiredError(InvalidStateError):
    """Invitation has expired."""

    def __init__(self) -> None:
        super().__init__(
            message="This invitation has expired",
            error_code=ErrorCode.INVITATION_EXPIRED,
        )


class InvitationAlreadyAcceptedError(InvalidStateError):
    """Invitation has already been accepted."""

    def __init__(self) -> None:
        super().__init__(
            message="This invitation has already been accepted",
            error_code=ErrorCode.INVITATION_ALREADY_ACCEPTED,
        )


class ResendTooSoonError(AppException):
    """Invitation was delivered too recently to be sent again."""

    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__(
            error_code=ErrorCode.RESEND_TOO_SOON,
            message="This invitation was sent recently. Try again shortly",
            status_code=429,
            details={"retry_after": retry_after_seconds},
        )

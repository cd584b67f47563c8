"""Fixed role hierarchy and the capability set each role grants."""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from core.exceptions import UnknownRoleError
from domain.entities.dashboard import AccessLevel
from domain.entities.role import Capability, Role

# ── Capability matrix ────────────────────────────────────────────────

_ROLE_CAPABILITIES: Mapping[Role, frozenset[Capability]] = MappingProxyType(
    {
        Role.OWNER: frozenset(Capability),
        Role.ADMIN: frozenset(Capability) - {Capability.MANAGE_BILLING},
        Role.ANALYST: frozenset(
            {
                Capability.READ_DASHBOARDS,
                Capability.EDIT_INSIGHTS,
                Capability.EDIT_DASHBOARDS,
            }
        ),
        Role.VIEWER: frozenset({Capability.READ_DASHBOARDS}),
    }
)

_ROLE_DESCRIPTIONS: Mapping[Role, str] = MappingProxyType(
    {
        Role.OWNER: "Full access including billing and team management",
        Role.ADMIN: "Manage team members, databases, and all insights",
        Role.ANALYST: "Create and edit insights, dashboards, and queries",
        Role.VIEWER: "View dashboards and insights only",
    }
)


def parse_role(value: "Role | str | int") -> Role:
    """Coerce a wire value ("admin", 30, Role.ADMIN) into a Role.

    Raises:
        UnknownRoleError: If the value is outside the four-role enumeration.
    """
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        try:
            return Role[value.strip().upper()]
        except KeyError:
            raise UnknownRoleError(value) from None
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return Role(value)
        except ValueError:
            raise UnknownRoleError(value) from None
    raise UnknownRoleError(value)


def capabilities_of(role: "Role | str") -> frozenset[Capability]:
    """Return the capability set granted by ``role``."""
    return _ROLE_CAPABILITIES[parse_role(role)]


def has_capability(role: "Role | str", capability: Capability) -> bool:
    return capability in capabilities_of(role)


def compare(role_a: "Role | str", role_b: "Role | str") -> int:
    """Three-way comparison in the privilege order: <0, 0, >0."""
    a, b = parse_role(role_a), parse_role(role_b)
    return (a > b) - (a < b)


def outranks(role_a: "Role | str", role_b: "Role | str") -> bool:
    """Whether ``role_a`` is strictly above ``role_b``."""
    return compare(role_a, role_b) > 0


def describe(role: "Role | str") -> str:
    return _ROLE_DESCRIPTIONS[parse_role(role)]


def dashboard_access_for(role: "Role | str") -> AccessLevel:
    """Dashboard permission implied by workspace role alone."""
    capabilities = capabilities_of(role)
    if Capability.EDIT_DASHBOARDS in capabilities:
        return AccessLevel.EDIT
    if Capability.READ_DASHBOARDS in capabilities:
        return AccessLevel.VIEW
    return AccessLevel.NONE


@dataclass(frozen=True)
class RoleSummary:
    """Member count for one role, for the team settings view."""

    role: Role
    count: int
    description: str
    capabilities: frozenset[Capability]


def summarize(roles: Iterable[Role]) -> list[RoleSummary]:
    """Count members per role. Every role is listed, highest first, even with zero members."""
    counts = Counter(roles)
    return [
        RoleSummary(
            role=role,
            count=counts.get(role, 0),
            description=describe(role),
            capabilities=_ROLE_CAPABILITIES[role],
        )
        for role in sorted(Role, reverse=True)
    ]

"""Role and capability enumerations."""

from enum import IntEnum, StrEnum


class Role(IntEnum):
    """Workspace role hierarchy. Higher value = more privilege.

    The order is total, so plain comparison answers "is A above B":
        actor_role > target_role  # actor outranks target
    """

    VIEWER = 10
    ANALYST = 20
    ADMIN = 30
    OWNER = 40

    @property
    def label(self) -> str:
        """Lowercase wire name of the role."""
        return self.name.lower()


class Capability(StrEnum):
    """Atomic permissions granted by a role."""

    READ_DASHBOARDS = "read_dashboards"
    EDIT_INSIGHTS = "edit_insights"
    EDIT_DASHBOARDS = "edit_dashboards"
    MANAGE_DATABASES = "manage_databases"
    MANAGE_MEMBERS = "manage_members"
    MANAGE_BILLING = "manage_billing"

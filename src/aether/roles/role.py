from enum import Enum
from typing import Optional


class OrganizationRole(str, Enum):
    VIEWER = "viewer"
    MEMBER = "member"
    ADMIN = "admin"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return ROLE_ORDER[self]

    def at_least(self, other: "OrganizationRole") -> bool:
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: "str | OrganizationRole | None") -> Optional["OrganizationRole"]:
        """Return the role for ``value``, or None for empty or unknown values."""
        if value is None or value == "":
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


ROLE_ORDER: dict[OrganizationRole, int] = {
    OrganizationRole.VIEWER: 1,
    OrganizationRole.MEMBER: 2,
    OrganizationRole.ADMIN: 3,
    OrganizationRole.OWNER: 4,
}

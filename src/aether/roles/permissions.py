from enum import Enum

from aether.roles.role import OrganizationRole


class Permission(str, Enum):
    READ = "read"
    WRITE = "write"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ADMIN = "admin"


ROLE_PERMISSIONS: dict[OrganizationRole, tuple[Permission, ...]] = {
    OrganizationRole.OWNER: (
        Permission.READ,
        Permission.WRITE,
        Permission.CREATE,
        Permission.UPDATE,
        Permission.DELETE,
        Permission.ADMIN,
    ),
    OrganizationRole.ADMIN: (
        Permission.READ,
        Permission.WRITE,
        Permission.CREATE,
        Permission.UPDATE,
        Permission.DELETE,
    ),
    OrganizationRole.MEMBER: (
        Permission.READ,
        Permission.WRITE,
        Permission.CREATE,
        Permission.UPDATE,
    ),
    OrganizationRole.VIEWER: (Permission.READ,),
}

DEFAULT_PERMISSIONS: tuple[Permission, ...] = (Permission.READ,)

# Personal spaces have no delegation, the owner gets everything but `admin`
PERSONAL_SPACE_PERMISSIONS: tuple[Permission, ...] = (
    Permission.READ,
    Permission.WRITE,
    Permission.CREATE,
    Permission.UPDATE,
    Permission.DELETE,
)


def permissions_for(role: "str | OrganizationRole | None") -> tuple[Permission, ...]:
    """Map an organization role to its ordered capability set.

    Unknown or empty roles get read-only access.
    """
    parsed = OrganizationRole.parse(role)
    if parsed is None:
        return DEFAULT_PERMISSIONS

    return ROLE_PERMISSIONS[parsed]

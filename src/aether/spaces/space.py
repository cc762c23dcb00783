from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field

from aether.main.models import BaseModel
from aether.roles.permissions import Permission
from aether.roles.role import OrganizationRole
from aether.tenants.tenant import TenantBinding


class SpaceType(str, Enum):
    PERSONAL = "personal"
    ORGANIZATION = "organization"


class SpaceSelector(BaseModel):
    """The space a request asks for, as received.

    ``space_type`` stays a raw string so that an unknown type is rejected
    by the resolver rather than by request parsing.
    """

    space_type: str
    space_id: str


class SpaceInfo(BaseModel):
    space_type: SpaceType
    space_id: str
    space_name: str
    tenant_id: str
    user_role: OrganizationRole
    permissions: tuple[Permission, ...]


class SpaceContext(BaseModel):
    """Resolved authorization context for one request.

    A snapshot: it holds no references back into the stores and is never
    persisted.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    space_type: SpaceType
    space_id: str
    tenant_id: str
    api_key: str = Field(default="", exclude=True, repr=False)
    user_id: str
    user_role: OrganizationRole
    space_name: str
    permissions: tuple[Permission, ...]
    resolved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_personal_space(self) -> bool:
        return self.space_type is SpaceType.PERSONAL

    @property
    def is_organization_space(self) -> bool:
        return self.space_type is SpaceType.ORGANIZATION

    @property
    def is_manager(self) -> bool:
        return self.user_role.at_least(OrganizationRole.ADMIN)

    def has_permission(self, permission: "Permission | str") -> bool:
        return permission in self.permissions

    def can_create(self) -> bool:
        return (
            self.has_permission(Permission.CREATE)
            or self.has_permission(Permission.WRITE)
            or self.is_manager
        )

    def can_read(self) -> bool:
        return self.has_permission(Permission.READ) or self.can_create()

    def can_update(self) -> bool:
        return (
            self.has_permission(Permission.UPDATE)
            or self.has_permission(Permission.WRITE)
            or self.is_manager
        )

    def can_delete(self) -> bool:
        return self.has_permission(Permission.DELETE) or self.is_manager

    def get_tenant_info(self) -> TenantBinding:
        return TenantBinding(tenant_id=self.tenant_id, api_key=self.api_key)

    def to_space_info(self) -> SpaceInfo:
        return SpaceInfo(
            space_type=self.space_type,
            space_id=self.space_id,
            space_name=self.space_name,
            tenant_id=self.tenant_id,
            user_role=self.user_role,
            permissions=self.permissions,
        )


class SpaceList(BaseModel):
    personal_space: Optional[SpaceInfo] = None
    organization_spaces: list[SpaceInfo] = Field(default_factory=list)
    current_space: Optional[SpaceInfo] = None

import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from aether.main.models import BaseModel
from aether.roles.role import OrganizationRole
from aether.tenants.tenant import TenantBinding


class OrganizationVisibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


def generate_slug(name: str) -> str:
    """Lowercase ``name`` and collapse every run of non-alphanumerics into one hyphen."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")


class OrganizationCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    slug: Optional[str] = Field(default=None, min_length=2, max_length=100)
    description: str = Field(default="", max_length=500)
    visibility: OrganizationVisibility = OrganizationVisibility.PRIVATE
    billing_email: str = ""


class OrganizationUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    slug: Optional[str] = Field(default=None, min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    visibility: Optional[OrganizationVisibility] = None


class OrganizationInviteRequest(BaseModel):
    email: str
    role: OrganizationRole = OrganizationRole.MEMBER
    title: Optional[str] = None
    department: Optional[str] = None


class OrganizationMemberRoleUpdateRequest(BaseModel):
    role: OrganizationRole
    title: Optional[str] = None
    department: Optional[str] = None


class Organization(BaseModel):
    id: str
    name: str
    slug: str
    description: str = ""
    visibility: OrganizationVisibility = OrganizationVisibility.PRIVATE
    tenant_id: Optional[str] = None
    tenant_api_key: Optional[str] = Field(default=None, exclude=True, repr=False)
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    member_count: int = 0

    # The requesting user's role, filled in by reads made on their behalf
    user_role: Optional[OrganizationRole] = None

    @property
    def has_tenant(self) -> bool:
        return bool(self.tenant_id)

    @property
    def tenant(self) -> Optional[TenantBinding]:
        if not self.has_tenant:
            return None

        return TenantBinding(tenant_id=self.tenant_id, api_key=self.tenant_api_key or "")


class OrganizationMember(BaseModel):
    user_id: str
    organization_id: str
    role: OrganizationRole
    joined_at: Optional[datetime] = None
    invited_by: Optional[str] = None
    title: Optional[str] = None
    department: Optional[str] = None

    # Joined from the user record
    name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None

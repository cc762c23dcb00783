from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from aether.main.config import Settings
    from aether.organizations.organization import Organization
    from aether.users.user import UserInDB


TENANT_ID_PREFIX = "tenant_"


class BillingPlan(str, Enum):
    PERSONAL = "personal"
    ORGANIZATION = "organization"


class TenantBinding(BaseModel):
    """The (tenant id, api key) pair attached to a user or organization."""

    tenant_id: str
    api_key: str = ""


class TenantSpec(BaseModel):
    name: str
    display_name: str
    billing_plan: BillingPlan
    contact_email: str = ""
    quotas: dict[str, Any] = Field(default_factory=dict)
    compliance: dict[str, Any] = Field(default_factory=dict)
    settings: dict[str, Any] = Field(default_factory=dict)


class ProvisionedTenant(TenantBinding):
    status: str = "active"


def personal_space_name(full_name: str) -> str:
    return f"{full_name}'s Personal Space"


def personal_tenant_spec(user: "UserInDB", settings: "Settings") -> TenantSpec:
    return TenantSpec(
        name=f"{user.username}-personal",
        display_name=personal_space_name(user.full_name),
        billing_plan=BillingPlan.PERSONAL,
        contact_email=user.email,
        quotas={
            "max_data_sources": settings.personal_max_data_sources,
            "max_files": settings.personal_max_files,
            "max_storage_mb": settings.personal_max_storage_mb,
            "max_vector_dimensions": settings.personal_max_vector_dimensions,
            "max_monthly_searches": settings.personal_max_monthly_searches,
        },
        compliance={
            "data_retention_days": settings.personal_data_retention_days,
            "encryption_enabled": True,
            "audit_logging_enabled": True,
            "gdpr_compliant": True,
        },
        settings={
            "user_id": user.id,
            "user_email": user.email,
            "creation_type": "on_demand_setup",
        },
    )


def organization_tenant_spec(organization: "Organization", billing_email: str) -> TenantSpec:
    return TenantSpec(
        name=organization.slug,
        display_name=organization.name,
        billing_plan=BillingPlan.ORGANIZATION,
        contact_email=billing_email,
        settings={
            "organization_id": organization.id,
            "creation_type": "organization_setup",
        },
    )

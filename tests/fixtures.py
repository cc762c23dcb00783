from datetime import datetime, timezone

from aether.organizations.organization import Organization, OrganizationVisibility
from aether.users.user import UserInDB

TEST_USER = UserInDB(
    id="u1",
    email="ada@example.com",
    username="ada",
    full_name="Ada Lovelace",
    personal_tenant_id="tenant_abc123",
    personal_api_key="personal-key",
    created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
)

TEST_USER_WITHOUT_TENANT = TEST_USER.model_copy(
    update={"personal_tenant_id": None, "personal_api_key": None}
)

TEST_OTHER_USER = UserInDB(
    id="u2",
    email="grace@example.com",
    username="grace",
    full_name="Grace Hopper",
    personal_tenant_id="tenant_def456",
    personal_api_key="other-personal-key",
)

TEST_ORGANIZATION = Organization(
    id="o1",
    name="Analytical Engines",
    slug="analytical-engines",
    visibility=OrganizationVisibility.PRIVATE,
    tenant_id="tenant_org789",
    tenant_api_key="org-key",
    created_by="u1",
    member_count=2,
)

TEST_ORGANIZATION_WITHOUT_TENANT = TEST_ORGANIZATION.model_copy(
    update={"id": "o2", "slug": "difference-engines", "tenant_id": None, "tenant_api_key": None}
)

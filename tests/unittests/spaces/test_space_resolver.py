import asyncio
from unittest.mock import AsyncMock

import pytest

from aether.main.exceptions import (
    BadRequestException,
    DatabaseException,
    ForbiddenException,
    NotFoundException,
)
from aether.roles.permissions import Permission
from aether.roles.role import OrganizationRole
from aether.spaces.space import SpaceSelector, SpaceType
from aether.spaces.space_resolver import SpaceResolver
from tests.fixtures import (
    TEST_ORGANIZATION,
    TEST_ORGANIZATION_WITHOUT_TENANT,
    TEST_USER,
    TEST_USER_WITHOUT_TENANT,
)


@pytest.fixture
def user_repo():
    repo = AsyncMock()
    repo.get_user_by_id.return_value = TEST_USER
    return repo


@pytest.fixture
def organization_repo():
    repo = AsyncMock()
    repo.get_organization.return_value = TEST_ORGANIZATION
    repo.get_member_role.return_value = OrganizationRole.MEMBER
    return repo


@pytest.fixture
def resolver(user_repo, organization_repo):
    return SpaceResolver(user_repo=user_repo, organization_repo=organization_repo)


def personal(space_id: str) -> SpaceSelector:
    return SpaceSelector(space_type="personal", space_id=space_id)


def organization(org_id: str) -> SpaceSelector:
    return SpaceSelector(space_type="organization", space_id=org_id)


class TestPersonalSpace:
    async def test_own_space_resolves_as_owner(self, resolver):
        context = await resolver.resolve("u1", personal("space_abc123"))

        assert context.space_type is SpaceType.PERSONAL
        assert context.space_id == "space_abc123"
        assert context.tenant_id == "tenant_abc123"
        assert context.api_key == "personal-key"
        assert context.user_id == "u1"
        assert context.user_role is OrganizationRole.OWNER
        assert context.space_name == "Ada Lovelace's Personal Space"
        assert [permission.value for permission in context.permissions] == [
            "read",
            "write",
            "create",
            "update",
            "delete",
        ]
        assert context.resolved_at is not None

    @pytest.mark.parametrize(
        "space_id", ["space_def456", "tenant_abc123", "space_abc1234", "", "u1"]
    )
    async def test_any_other_space_id_is_forbidden(self, resolver, space_id):
        with pytest.raises(ForbiddenException):
            await resolver.resolve("u1", personal(space_id))

    async def test_missing_personal_tenant_is_not_found(self, resolver, user_repo):
        user_repo.get_user_by_id.return_value = TEST_USER_WITHOUT_TENANT

        with pytest.raises(NotFoundException):
            await resolver.resolve("u1", personal("space_abc123"))

    async def test_missing_user_propagates(self, resolver, user_repo):
        user_repo.get_user_by_id.side_effect = NotFoundException("User not found")

        with pytest.raises(NotFoundException):
            await resolver.resolve("u1", personal("space_abc123"))

    async def test_resolve_own_personal_space(self, resolver):
        context = await resolver.resolve_own_personal_space("u1")

        assert context.space_id == "space_abc123"
        assert context.user_role is OrganizationRole.OWNER

    async def test_resolve_own_personal_space_without_tenant(self, resolver, user_repo):
        user_repo.get_user_by_id.return_value = TEST_USER_WITHOUT_TENANT

        with pytest.raises(NotFoundException):
            await resolver.resolve_own_personal_space("u1")


class TestOrganizationSpace:
    async def test_member_gets_role_permissions(self, resolver, organization_repo):
        context = await resolver.resolve("u2", organization("o1"))

        assert context.space_type is SpaceType.ORGANIZATION
        assert context.space_id == "o1"
        assert context.tenant_id == "tenant_org789"
        assert context.api_key == "org-key"
        assert context.user_role is OrganizationRole.MEMBER
        assert context.space_name == "Analytical Engines"
        assert Permission.DELETE not in context.permissions
        organization_repo.get_member_role.assert_awaited_once_with("o1", "u2")

    async def test_owner_gets_admin_permission(self, resolver, organization_repo):
        organization_repo.get_member_role.return_value = OrganizationRole.OWNER

        context = await resolver.resolve("u1", organization("o1"))

        assert Permission.ADMIN in context.permissions

    async def test_non_member_is_forbidden(self, resolver, organization_repo):
        organization_repo.get_member_role.return_value = None

        with pytest.raises(ForbiddenException):
            await resolver.resolve("u3", organization("o1"))

    async def test_organization_without_tenant_is_not_found(self, resolver, organization_repo):
        organization_repo.get_organization.return_value = TEST_ORGANIZATION_WITHOUT_TENANT

        with pytest.raises(NotFoundException):
            await resolver.resolve("u2", organization("o2"))

        # Membership is never consulted for an unprovisioned organization
        organization_repo.get_member_role.assert_not_awaited()

    async def test_unknown_organization_is_not_found(self, resolver, organization_repo):
        organization_repo.get_organization.side_effect = NotFoundException("Organization not found")

        with pytest.raises(NotFoundException):
            await resolver.resolve("u2", organization("missing"))


class TestFailures:
    @pytest.mark.parametrize("space_type", ["team", "", "Personal", "ORGANIZATION"])
    async def test_invalid_space_type_is_bad_request(self, resolver, user_repo, space_type):
        with pytest.raises(BadRequestException):
            await resolver.resolve("u1", SpaceSelector(space_type=space_type, space_id="x"))

        user_repo.get_user_by_id.assert_not_awaited()

    async def test_store_errors_propagate_without_retry(self, resolver, organization_repo):
        organization_repo.get_organization.side_effect = DatabaseException("boom")

        with pytest.raises(DatabaseException):
            await resolver.resolve("u1", organization("o1"))

        assert organization_repo.get_organization.await_count == 1

    async def test_cancellation_propagates(self, resolver, user_repo):
        user_repo.get_user_by_id.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await resolver.resolve("u1", personal("space_abc123"))

    async def test_validate_space_access(self, resolver):
        await resolver.validate_space_access("u1", personal("space_abc123"))

        with pytest.raises(ForbiddenException):
            await resolver.validate_space_access("u1", personal("space_def456"))

    async def test_contexts_are_snapshots(self, resolver, user_repo):
        context = await resolver.resolve("u1", personal("space_abc123"))

        user_repo.get_user_by_id.return_value = TEST_USER.model_copy(
            update={"personal_api_key": "rotated"}
        )

        assert context.api_key == "personal-key"

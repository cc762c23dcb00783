"""OrganizationRepository against in-memory SQLite."""

import pytest

from aether.main.exceptions import ConflictException, ForbiddenException, NotFoundException
from aether.organizations.organization import (
    Organization,
    OrganizationMember,
    OrganizationVisibility,
)
from aether.organizations.organization_repo import OrganizationRepository
from aether.roles.role import OrganizationRole
from aether.users.user import UserAdd
from aether.users.user_repo import UsersRepository


@pytest.fixture
async def organization_repo(async_session):
    return OrganizationRepository(async_session)


@pytest.fixture
async def users(async_session):
    user_repo = UsersRepository(async_session)
    ada = await user_repo.add(
        UserAdd(email="ada@example.com", username="ada", full_name="Ada Lovelace")
    )
    grace = await user_repo.add(
        UserAdd(email="grace@example.com", username="grace", full_name="Grace Hopper")
    )
    return ada, grace


def make_organization(id="o1", slug="analytical-engines", **kwargs) -> Organization:
    return Organization(
        id=id,
        name=kwargs.pop("name", "Analytical Engines"),
        slug=slug,
        tenant_id=kwargs.pop("tenant_id", "tenant_org789"),
        tenant_api_key="org-key",
        created_by=kwargs.pop("created_by", "u1"),
        **kwargs,
    )


def owner_of(organization: Organization, user_id: str) -> OrganizationMember:
    return OrganizationMember(
        user_id=user_id,
        organization_id=organization.id,
        role=OrganizationRole.OWNER,
        invited_by=user_id,
    )


@pytest.fixture
async def organization(organization_repo, users):
    ada, _ = users
    organization = make_organization(created_by=ada.id)
    return await organization_repo.add(organization, owner_of(organization, ada.id))


async def test_add_stores_owner(organization_repo, organization, users):
    ada, _ = users

    assert organization.member_count == 1
    assert organization.user_role is OrganizationRole.OWNER
    assert await organization_repo.get_member_role("o1", ada.id) is OrganizationRole.OWNER
    assert await organization_repo.count_owners("o1") == 1


async def test_get_organization_reports_caller_role(organization_repo, organization, users):
    ada, grace = users

    as_owner = await organization_repo.get_organization("o1", ada.id)
    as_stranger = await organization_repo.get_organization("o1", grace.id)

    assert as_owner.user_role is OrganizationRole.OWNER
    assert as_owner.tenant.tenant_id == "tenant_org789"
    assert as_stranger.user_role is None
    assert as_stranger.member_count == 1


async def test_missing_organization_is_not_found(organization_repo):
    with pytest.raises(NotFoundException):
        await organization_repo.get_organization("missing", "u1")


async def test_duplicate_slug_conflicts(organization_repo, organization, users):
    ada, _ = users
    duplicate = make_organization(id="o2", created_by=ada.id)

    with pytest.raises(ConflictException):
        await organization_repo.add(duplicate, owner_of(duplicate, ada.id))


async def test_slug_exists(organization_repo, organization):
    assert await organization_repo.slug_exists("analytical-engines")
    assert not await organization_repo.slug_exists("analytical-engines", exclude_id="o1")
    assert not await organization_repo.slug_exists("other")


async def test_get_organizations_lists_memberships(organization_repo, organization, users):
    ada, grace = users
    second = make_organization(id="o2", slug="difference-engines", tenant_id=None)
    await organization_repo.add(second, owner_of(second, grace.id))
    await organization_repo.add_member(
        OrganizationMember(
            user_id=ada.id, organization_id="o2", role=OrganizationRole.VIEWER
        )
    )

    organizations = await organization_repo.get_organizations(ada.id)

    assert {org.id: org.user_role for org in organizations} == {
        "o1": OrganizationRole.OWNER,
        "o2": OrganizationRole.VIEWER,
    }
    assert not next(org for org in organizations if org.id == "o2").has_tenant
    assert await organization_repo.get_organizations("nobody") == []


async def test_members_are_visible_to_members_only(organization_repo, organization, users):
    ada, grace = users

    members = await organization_repo.get_organization_members("o1", ada.id)

    assert [(member.user_id, member.role) for member in members] == [
        (ada.id, OrganizationRole.OWNER)
    ]
    assert members[0].name == "Ada Lovelace"
    assert members[0].email == "ada@example.com"

    with pytest.raises(ForbiddenException):
        await organization_repo.get_organization_members("o1", grace.id)


async def test_membership_lifecycle(organization_repo, organization, users):
    _, grace = users

    added = await organization_repo.add_member(
        OrganizationMember(
            user_id=grace.id,
            organization_id="o1",
            role=OrganizationRole.MEMBER,
            title="Rear Admiral",
        )
    )
    assert added.joined_at is not None

    await organization_repo.update_member("o1", grace.id, OrganizationRole.OWNER)
    assert await organization_repo.get_member_role("o1", grace.id) is OrganizationRole.OWNER
    assert await organization_repo.count_owners("o1") == 2

    await organization_repo.remove_member("o1", grace.id)
    assert await organization_repo.get_member_role("o1", grace.id) is None


async def test_duplicate_membership_conflicts(
    async_session, organization_repo, organization, users
):
    ada, _ = users
    # A fresh request would not have the owner row loaded
    async_session.expunge_all()

    with pytest.raises(ConflictException):
        await organization_repo.add_member(
            OrganizationMember(
                user_id=ada.id, organization_id="o1", role=OrganizationRole.VIEWER
            )
        )


async def test_update_applies_changes(organization_repo, organization, users):
    ada, _ = users

    updated = await organization_repo.update(
        "o1", {"name": "Engines Ltd", "visibility": "public"}, ada.id
    )

    assert updated.name == "Engines Ltd"
    assert updated.visibility is OrganizationVisibility.PUBLIC
    assert updated.slug == "analytical-engines"


async def test_delete_removes_memberships(organization_repo, organization, users):
    ada, _ = users

    await organization_repo.delete("o1")

    assert await organization_repo.get_member_role("o1", ada.id) is None
    with pytest.raises(NotFoundException):
        await organization_repo.get_organization("o1", ada.id)

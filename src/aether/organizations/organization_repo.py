from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from aether.database.database import translate_database_errors
from aether.database.tables.organizations_table import OrganizationMembers, Organizations
from aether.database.tables.users_table import Users
from aether.main.exceptions import ForbiddenException, NotFoundException
from aether.organizations.organization import Organization, OrganizationMember
from aether.roles.role import OrganizationRole


class OrganizationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _member_count():
        return (
            sa.select(sa.func.count())
            .where(OrganizationMembers.organization_id == Organizations.id)
            .correlate(Organizations)
            .scalar_subquery()
            .label("member_count")
        )

    @staticmethod
    def _to_organization(
        record: Organizations, member_count: int, user_role: Optional[str]
    ) -> Organization:
        return Organization.model_validate(record).model_copy(
            update={
                "member_count": member_count or 0,
                "user_role": OrganizationRole.parse(user_role),
            }
        )

    @staticmethod
    def _to_member(record: OrganizationMembers, full_name=None, email=None, username=None):
        return OrganizationMember(
            user_id=record.user_id,
            organization_id=record.organization_id,
            role=record.role,
            joined_at=record.joined_at,
            invited_by=record.invited_by,
            title=record.title,
            department=record.department,
            name=full_name,
            email=email,
            username=username,
        )

    async def get_organization(self, id: str, caller_id: str) -> Organization:
        caller_role = (
            sa.select(OrganizationMembers.role)
            .where(OrganizationMembers.organization_id == Organizations.id)
            .where(OrganizationMembers.user_id == caller_id)
            .correlate(Organizations)
            .scalar_subquery()
            .label("user_role")
        )
        query = (
            sa.select(Organizations, self._member_count(), caller_role)
            .where(Organizations.id == id)
            .execution_options(populate_existing=True)
        )

        async with translate_database_errors(
            "Failed to get organization", details={"org_id": id}
        ):
            row = (await self.session.execute(query)).one_or_none()

        if row is None:
            raise NotFoundException("Organization not found", details={"org_id": id})

        record, member_count, user_role = row
        return self._to_organization(record, member_count, user_role)

    async def get_organizations(self, user_id: str) -> list[Organization]:
        query = (
            sa.select(Organizations, self._member_count(), OrganizationMembers.role)
            .join(
                OrganizationMembers,
                OrganizationMembers.organization_id == Organizations.id,
            )
            .where(OrganizationMembers.user_id == user_id)
            .order_by(Organizations.created_at, Organizations.id)
            .execution_options(populate_existing=True)
        )

        async with translate_database_errors(
            "Failed to get organizations", details={"user_id": user_id}
        ):
            rows = (await self.session.execute(query)).all()

        return [
            self._to_organization(record, member_count, role)
            for record, member_count, role in rows
        ]

    async def get_member_role(self, org_id: str, user_id: str) -> Optional[OrganizationRole]:
        query = (
            sa.select(OrganizationMembers.role)
            .where(OrganizationMembers.organization_id == org_id)
            .where(OrganizationMembers.user_id == user_id)
        )

        async with translate_database_errors(
            "Failed to get user role", details={"org_id": org_id, "user_id": user_id}
        ):
            role = await self.session.scalar(query)

        return OrganizationRole.parse(role)

    async def get_organization_members(
        self, org_id: str, caller_id: str
    ) -> list[OrganizationMember]:
        """List members of an organization, visible to its members only."""
        if await self.get_member_role(org_id, caller_id) is None:
            raise ForbiddenException(
                "User is not a member of this organization",
                details={"org_id": org_id, "user_id": caller_id},
            )

        query = (
            sa.select(OrganizationMembers, Users.full_name, Users.email, Users.username)
            .join(Users, Users.id == OrganizationMembers.user_id)
            .where(OrganizationMembers.organization_id == org_id)
            .order_by(OrganizationMembers.joined_at, OrganizationMembers.user_id)
            .execution_options(populate_existing=True)
        )

        async with translate_database_errors(
            "Failed to get organization members", details={"org_id": org_id}
        ):
            rows = (await self.session.execute(query)).all()

        return [self._to_member(*row) for row in rows]

    async def count_owners(self, org_id: str) -> int:
        query = (
            sa.select(sa.func.count())
            .where(OrganizationMembers.organization_id == org_id)
            .where(OrganizationMembers.role == OrganizationRole.OWNER.value)
        )

        async with translate_database_errors(
            "Failed to count owners", details={"org_id": org_id}
        ):
            return await self.session.scalar(query) or 0

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = sa.select(Organizations.id).where(Organizations.slug == slug)
        if exclude_id is not None:
            query = query.where(Organizations.id != exclude_id)

        async with translate_database_errors(
            "Failed to check organization slug", details={"slug": slug}
        ):
            return await self.session.scalar(query.limit(1)) is not None

    async def add(self, organization: Organization, owner: OrganizationMember) -> Organization:
        """Store an organization together with its first owner in one flush."""
        record = Organizations(
            id=organization.id,
            name=organization.name,
            slug=organization.slug,
            description=organization.description,
            visibility=organization.visibility.value,
            tenant_id=organization.tenant_id,
            tenant_api_key=organization.tenant_api_key,
            created_by=organization.created_by,
        )
        membership = OrganizationMembers(
            organization_id=organization.id,
            user_id=owner.user_id,
            role=owner.role.value,
            invited_by=owner.invited_by,
            title=owner.title,
            department=owner.department,
        )

        async with translate_database_errors(
            "Organization slug already exists",
            details={"org_id": organization.id, "slug": organization.slug},
        ):
            self.session.add_all([record, membership])
            await self.session.flush()

        return self._to_organization(record, 1, owner.role.value)

    async def update(self, org_id: str, changes: dict[str, Any], caller_id: str) -> Organization:
        if changes:
            stmt = (
                sa.update(Organizations)
                .where(Organizations.id == org_id)
                .values(**changes)
                .execution_options(synchronize_session=False)
            )
            async with translate_database_errors(
                "Failed to update organization", details={"org_id": org_id}
            ):
                await self.session.execute(stmt)

        return await self.get_organization(org_id, caller_id)

    async def delete(self, org_id: str) -> None:
        async with translate_database_errors(
            "Failed to delete organization", details={"org_id": org_id}
        ):
            await self.session.execute(
                sa.delete(OrganizationMembers).where(
                    OrganizationMembers.organization_id == org_id
                )
            )
            await self.session.execute(
                sa.delete(Organizations).where(Organizations.id == org_id)
            )

    async def add_member(self, member: OrganizationMember) -> OrganizationMember:
        record = OrganizationMembers(
            organization_id=member.organization_id,
            user_id=member.user_id,
            role=member.role.value,
            invited_by=member.invited_by,
            title=member.title,
            department=member.department,
        )

        async with translate_database_errors(
            "User is already a member of this organization",
            details={"org_id": member.organization_id, "user_id": member.user_id},
        ):
            self.session.add(record)
            await self.session.flush()

        return member.model_copy(update={"joined_at": record.joined_at})

    async def update_member(
        self,
        org_id: str,
        user_id: str,
        role: OrganizationRole,
        title: Optional[str] = None,
        department: Optional[str] = None,
    ) -> None:
        values: dict[str, Any] = {"role": role.value}
        if title is not None:
            values["title"] = title
        if department is not None:
            values["department"] = department

        stmt = (
            sa.update(OrganizationMembers)
            .where(OrganizationMembers.organization_id == org_id)
            .where(OrganizationMembers.user_id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        async with translate_database_errors(
            "Failed to update member role", details={"org_id": org_id, "user_id": user_id}
        ):
            await self.session.execute(stmt)

    async def remove_member(self, org_id: str, user_id: str) -> None:
        stmt = (
            sa.delete(OrganizationMembers)
            .where(OrganizationMembers.organization_id == org_id)
            .where(OrganizationMembers.user_id == user_id)
            .execution_options(synchronize_session=False)
        )

        async with translate_database_errors(
            "Failed to remove member", details={"org_id": org_id, "user_id": user_id}
        ):
            await self.session.execute(stmt)

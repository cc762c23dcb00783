from typing import Optional
from uuid import uuid4

from aether.main.exceptions import BadRequestException, ConflictException, ForbiddenException
from aether.main.logging import get_logger
from aether.organizations import organization_policy as policy
from aether.organizations.organization import (
    Organization,
    OrganizationCreateRequest,
    OrganizationInviteRequest,
    OrganizationMember,
    OrganizationMemberRoleUpdateRequest,
    OrganizationUpdateRequest,
    OrganizationVisibility,
    generate_slug,
)
from aether.organizations.organization_repo import OrganizationRepository
from aether.roles.role import OrganizationRole
from aether.tenants.tenant import organization_tenant_spec
from aether.tenants.tenant_provisioner import TenantProvisioner
from aether.users.user_repo import UsersRepository

logger = get_logger(__name__)


class OrganizationService:
    def __init__(
        self,
        repo: OrganizationRepository,
        user_repo: UsersRepository,
        tenant_provisioner: Optional[TenantProvisioner] = None,
    ):
        self.repo = repo
        self.user_repo = user_repo
        self.tenant_provisioner = tenant_provisioner

    async def _check_slug_available(self, slug: str, exclude_id: Optional[str] = None):
        if await self.repo.slug_exists(slug, exclude_id=exclude_id):
            raise ConflictException(
                "Organization slug already exists", details={"slug": slug}
            )

    async def create_organization(
        self, request: OrganizationCreateRequest, created_by: str
    ) -> Organization:
        slug = request.slug or generate_slug(request.name)
        if not slug:
            raise BadRequestException(
                "Could not derive a slug from the organization name",
                details={"name": request.name},
            )

        await self._check_slug_available(slug)

        organization = Organization(
            id=str(uuid4()),
            name=request.name,
            slug=slug,
            description=request.description,
            visibility=request.visibility,
            created_by=created_by,
        )

        if self.tenant_provisioner is not None:
            spec = organization_tenant_spec(organization, request.billing_email)
            tenant = await self.tenant_provisioner.create_tenant(spec)
            organization = organization.model_copy(
                update={"tenant_id": tenant.tenant_id, "tenant_api_key": tenant.api_key}
            )

        owner = OrganizationMember(
            user_id=created_by,
            organization_id=organization.id,
            role=OrganizationRole.OWNER,
            invited_by=created_by,
        )

        try:
            organization = await self.repo.add(organization, owner)
        except BaseException:
            # Includes cancellation, the tenant exists either way
            if organization.has_tenant and self.tenant_provisioner is not None:
                logger.error(
                    "Organization store failed after tenant creation",
                    extra={"org_id": organization.id, "tenant_id": organization.tenant_id},
                )
                await self.tenant_provisioner.delete_tenant(organization.tenant_id)
            raise

        logger.info(
            "Organization created",
            extra={
                "org_id": organization.id,
                "slug": organization.slug,
                "user_id": created_by,
                "tenant_id": organization.tenant_id,
            },
        )
        return organization

    async def get_organization(self, org_id: str, user_id: str) -> Organization:
        organization = await self.repo.get_organization(org_id, user_id)

        if (
            organization.visibility is OrganizationVisibility.PRIVATE
            and organization.user_role is None
        ):
            raise ForbiddenException(
                "User is not a member of this organization",
                details={"org_id": org_id, "user_id": user_id},
            )

        return organization

    async def get_organizations(self, user_id: str) -> list[Organization]:
        return await self.repo.get_organizations(user_id)

    async def get_members(self, org_id: str, user_id: str) -> list[OrganizationMember]:
        return await self.repo.get_organization_members(org_id, user_id)

    async def update_organization(
        self, org_id: str, request: OrganizationUpdateRequest, actor_id: str
    ) -> Organization:
        actor_role = await self.repo.get_member_role(org_id, actor_id)
        policy.ensure_can_update_organization(actor_role, org_id)

        changes = request.model_dump(exclude_unset=True, exclude_none=True, mode="json")
        if "slug" in changes:
            await self._check_slug_available(changes["slug"], exclude_id=org_id)

        organization = await self.repo.update(org_id, changes, actor_id)

        logger.info(
            "Organization updated",
            extra={"org_id": org_id, "user_id": actor_id, "fields": sorted(changes)},
        )
        return organization

    async def delete_organization(self, org_id: str, actor_id: str) -> None:
        actor_role = await self.repo.get_member_role(org_id, actor_id)
        policy.ensure_can_delete_organization(actor_role, org_id)

        organization = await self.repo.get_organization(org_id, actor_id)
        await self.repo.delete(org_id)

        if organization.has_tenant and self.tenant_provisioner is not None:
            await self.tenant_provisioner.delete_tenant(organization.tenant_id)

        logger.info("Organization deleted", extra={"org_id": org_id, "user_id": actor_id})

    async def invite_member(
        self, org_id: str, request: OrganizationInviteRequest, actor_id: str
    ) -> OrganizationMember:
        actor_role = await self.repo.get_member_role(org_id, actor_id)
        policy.ensure_can_invite_member(actor_role, request.role, org_id)

        user = await self.user_repo.get_user_by_email(request.email)
        target_role = await self.repo.get_member_role(org_id, user.id)
        policy.ensure_not_member(target_role, org_id)

        member = await self.repo.add_member(
            OrganizationMember(
                user_id=user.id,
                organization_id=org_id,
                role=request.role,
                invited_by=actor_id,
                title=request.title,
                department=request.department,
                name=user.full_name,
                email=user.email,
                username=user.username,
            )
        )

        logger.info(
            "Organization member invited",
            extra={
                "org_id": org_id,
                "user_id": actor_id,
                "member_id": user.id,
                "role": request.role.value,
            },
        )
        return member

    async def update_member_role(
        self,
        org_id: str,
        user_id: str,
        request: OrganizationMemberRoleUpdateRequest,
        actor_id: str,
    ) -> None:
        actor_role = await self.repo.get_member_role(org_id, actor_id)
        current_role = await self.repo.get_member_role(org_id, user_id)
        policy.ensure_can_update_member_role(actor_role, current_role, request.role, org_id)

        if current_role is OrganizationRole.OWNER and request.role is not OrganizationRole.OWNER:
            owners = await self.repo.count_owners(org_id)
            policy.ensure_owner_remains(owners - 1, org_id)

        await self.repo.update_member(
            org_id,
            user_id,
            request.role,
            title=request.title,
            department=request.department,
        )

        logger.info(
            "Organization member role updated",
            extra={
                "org_id": org_id,
                "user_id": actor_id,
                "member_id": user_id,
                "old_role": current_role.value,
                "new_role": request.role.value,
            },
        )

    async def remove_member(self, org_id: str, user_id: str, actor_id: str) -> None:
        actor_role = await self.repo.get_member_role(org_id, actor_id)
        target_role = await self.repo.get_member_role(org_id, user_id)
        policy.ensure_can_remove_member(actor_role, target_role, org_id)

        if target_role is OrganizationRole.OWNER:
            owners = await self.repo.count_owners(org_id)
            policy.ensure_owner_remains(owners - 1, org_id)

        await self.repo.remove_member(org_id, user_id)

        logger.info(
            "Organization member removed",
            extra={"org_id": org_id, "user_id": actor_id, "member_id": user_id},
        )

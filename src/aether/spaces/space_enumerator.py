import asyncio
import contextlib
from typing import TYPE_CHECKING, AsyncIterator, Optional

from aether.main.exceptions import AetherException
from aether.main.logging import get_logger
from aether.organizations.organization_repo import OrganizationRepository
from aether.roles.permissions import PERSONAL_SPACE_PERMISSIONS, permissions_for
from aether.roles.role import OrganizationRole
from aether.spaces.space import SpaceInfo, SpaceList, SpaceType
from aether.spaces.utils.space_utils import space_id_from_tenant_id
from aether.tenants.tenant import TenantBinding, personal_space_name, personal_tenant_spec
from aether.tenants.tenant_provisioner import TenantProvisioner
from aether.users.user import UserInDB
from aether.users.user_repo import PersonalTenantBinder, UsersRepository

if TYPE_CHECKING:
    from aether.main.config import Settings

logger = get_logger(__name__)


class SpaceEnumerator:
    """Lists every space a user can see.

    A user without a personal tenant gets one provisioned on first listing.
    That step is best effort: if it fails the personal space is left out and
    the listing still succeeds. Failing to list organizations likewise
    degrades to an empty organization list.
    """

    # One lock per user with provisioning in flight, dropped with its last user
    _provisioning_locks: dict[str, asyncio.Lock] = {}
    _provisioning_lock_users: dict[str, int] = {}

    def __init__(
        self,
        user_repo: UsersRepository,
        organization_repo: OrganizationRepository,
        tenant_provisioner: TenantProvisioner,
        tenant_binder: PersonalTenantBinder,
        settings: "Settings",
    ):
        self.user_repo = user_repo
        self.organization_repo = organization_repo
        self.tenant_provisioner = tenant_provisioner
        self.tenant_binder = tenant_binder
        self.settings = settings

    @classmethod
    @contextlib.asynccontextmanager
    async def _provisioning_lock(cls, user_id: str) -> AsyncIterator[None]:
        # Lookup and registration never await, so they need no guard
        lock = cls._provisioning_locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            cls._provisioning_locks[user_id] = lock
        cls._provisioning_lock_users[user_id] = cls._provisioning_lock_users.get(user_id, 0) + 1

        try:
            async with lock:
                yield
        finally:
            remaining = cls._provisioning_lock_users[user_id] - 1
            if remaining:
                cls._provisioning_lock_users[user_id] = remaining
            else:
                del cls._provisioning_lock_users[user_id]
                del cls._provisioning_locks[user_id]

    async def list_spaces(self, user_id: str) -> SpaceList:
        user = await self.user_repo.get_user_by_id(user_id)

        return SpaceList(
            personal_space=await self._get_personal_space(user),
            organization_spaces=await self._get_organization_spaces(user_id),
        )

    @staticmethod
    def _personal_space_info(user: UserInDB) -> SpaceInfo:
        return SpaceInfo(
            space_type=SpaceType.PERSONAL,
            space_id=space_id_from_tenant_id(user.personal_tenant_id),
            space_name=personal_space_name(user.full_name),
            tenant_id=user.personal_tenant_id,
            user_role=OrganizationRole.OWNER,
            permissions=PERSONAL_SPACE_PERMISSIONS,
        )

    async def _get_personal_space(self, user: UserInDB) -> Optional[SpaceInfo]:
        if user.has_personal_tenant:
            return self._personal_space_info(user)

        if not self.settings.lazy_personal_provisioning:
            return None

        try:
            binding = await self._provision_personal_tenant(user)
        except AetherException:
            logger.exception(
                "Failed to set up personal space, leaving it out of the listing",
                extra={"user_id": user.id},
            )
            return None

        if binding is None:
            return None

        return self._personal_space_info(user.with_personal_tenant(binding))

    async def _provision_personal_tenant(self, user: UserInDB) -> Optional[TenantBinding]:
        async with self._provisioning_lock(user.id):
            # Another request may have finished provisioning while we waited
            user = await self.user_repo.get_user_by_id(user.id)
            if user.has_personal_tenant:
                return user.personal_tenant

            logger.info(
                "User missing personal tenant, creating one",
                extra={"user_id": user.id, "email": user.email},
            )

            tenant = await self.tenant_provisioner.create_tenant(
                personal_tenant_spec(user, self.settings)
            )
            # Committed before the lock is released, so the next waiter sees it
            bound = await self.tenant_binder.bind(user.id, tenant.tenant_id, tenant.api_key)

            if not bound:
                # Someone outside this process bound a tenant first
                logger.warning(
                    "Personal tenant already bound, provisioned tenant is orphaned",
                    extra={"user_id": user.id, "tenant_id": tenant.tenant_id},
                )
                await self.tenant_provisioner.delete_tenant(tenant.tenant_id)
                winner = await self.user_repo.get_user_by_id(user.id)
                return winner.personal_tenant

        logger.info(
            "Successfully created personal tenant",
            extra={"user_id": user.id, "tenant_id": tenant.tenant_id},
        )
        return TenantBinding(tenant_id=tenant.tenant_id, api_key=tenant.api_key)

    async def _get_organization_spaces(self, user_id: str) -> list[SpaceInfo]:
        try:
            organizations = await self.organization_repo.get_organizations(user_id)
        except AetherException:
            logger.exception(
                "Failed to get user organizations", extra={"user_id": user_id}
            )
            return []

        spaces = []
        for organization in organizations:
            if not organization.has_tenant:
                continue

            try:
                role = await self.organization_repo.get_member_role(organization.id, user_id)
            except AetherException:
                logger.warning(
                    "Could not resolve organization role",
                    extra={"user_id": user_id, "org_id": organization.id},
                )
                continue

            if role is None:
                continue

            spaces.append(
                SpaceInfo(
                    space_type=SpaceType.ORGANIZATION,
                    space_id=organization.id,
                    space_name=organization.name,
                    tenant_id=organization.tenant_id,
                    user_role=role,
                    permissions=permissions_for(role),
                )
            )

        return spaces

from aether.main.exceptions import BadRequestException, ForbiddenException, NotFoundException
from aether.main.logging import get_logger
from aether.organizations.organization_repo import OrganizationRepository
from aether.roles.permissions import PERSONAL_SPACE_PERMISSIONS, permissions_for
from aether.roles.role import OrganizationRole
from aether.spaces.space import SpaceContext, SpaceSelector, SpaceType
from aether.spaces.utils.space_utils import space_id_from_tenant_id
from aether.tenants.tenant import personal_space_name
from aether.users.user import UserInDB
from aether.users.user_repo import UsersRepository

logger = get_logger(__name__)


class SpaceResolver:
    """Turns a (user, space selector) pair into a ``SpaceContext``.

    Every lookup is read-only. Store failures are not retried here and
    propagate unchanged to the caller.
    """

    def __init__(self, user_repo: UsersRepository, organization_repo: OrganizationRepository):
        self.user_repo = user_repo
        self.organization_repo = organization_repo

    @staticmethod
    def _parse_space_type(space_type: str) -> SpaceType:
        try:
            return SpaceType(space_type)
        except ValueError:
            raise BadRequestException(
                "Invalid space type", details={"space_type": space_type}
            )

    async def resolve(self, user_id: str, selector: SpaceSelector) -> SpaceContext:
        space_type = self._parse_space_type(selector.space_type)

        if space_type is SpaceType.PERSONAL:
            context = await self._resolve_personal_space(user_id, selector.space_id)
        else:
            context = await self._resolve_organization_space(user_id, selector.space_id)

        logger.info(
            "Space context resolved",
            extra={
                "user_id": user_id,
                "space_type": context.space_type.value,
                "space_id": context.space_id,
                "tenant_id": context.tenant_id,
            },
        )
        return context

    async def resolve_own_personal_space(self, user_id: str) -> SpaceContext:
        """Resolve the caller's personal space without knowing its id up front."""
        user = await self._get_user_with_personal_tenant(user_id)
        space_id = space_id_from_tenant_id(user.personal_tenant_id)

        return await self.resolve(
            user_id,
            SpaceSelector(space_type=SpaceType.PERSONAL.value, space_id=space_id),
        )

    async def validate_space_access(self, user_id: str, selector: SpaceSelector) -> None:
        await self.resolve(user_id, selector)

    async def _get_user_with_personal_tenant(self, user_id: str) -> UserInDB:
        user = await self.user_repo.get_user_by_id(user_id)

        if not user.has_personal_tenant:
            raise NotFoundException(
                "Personal space not configured", details={"user_id": user_id}
            )

        return user

    async def _resolve_personal_space(self, user_id: str, space_id: str) -> SpaceContext:
        user = await self._get_user_with_personal_tenant(user_id)

        # The only thing keeping users out of each other's personal spaces
        expected_space_id = space_id_from_tenant_id(user.personal_tenant_id)
        if space_id != expected_space_id:
            raise ForbiddenException(
                "Cannot access another user's personal space",
                details={
                    "user_id": user_id,
                    "space_id": space_id,
                    "expected_space_id": expected_space_id,
                },
            )

        tenant = user.personal_tenant
        return SpaceContext(
            space_type=SpaceType.PERSONAL,
            space_id=space_id,
            tenant_id=tenant.tenant_id,
            api_key=tenant.api_key,
            user_id=user_id,
            user_role=OrganizationRole.OWNER,
            space_name=personal_space_name(user.full_name),
            permissions=PERSONAL_SPACE_PERMISSIONS,
        )

    async def _resolve_organization_space(self, user_id: str, org_id: str) -> SpaceContext:
        organization = await self.organization_repo.get_organization(org_id, user_id)

        if not organization.has_tenant:
            raise NotFoundException(
                "Organization space not configured", details={"org_id": org_id}
            )

        role = await self.organization_repo.get_member_role(org_id, user_id)
        if role is None:
            raise ForbiddenException(
                "User is not a member of this organization",
                details={"user_id": user_id, "org_id": org_id},
            )

        tenant = organization.tenant
        return SpaceContext(
            space_type=SpaceType.ORGANIZATION,
            space_id=org_id,
            tenant_id=tenant.tenant_id,
            api_key=tenant.api_key,
            user_id=user_id,
            user_role=role,
            space_name=organization.name,
            permissions=permissions_for(role),
        )

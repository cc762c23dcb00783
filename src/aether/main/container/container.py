from dependency_injector import containers, providers
from sqlalchemy.ext.asyncio import AsyncSession

from aether.database.database import sessionmanager
from aether.main.aiohttp_client import aiohttp_client
from aether.main.config import get_settings
from aether.organizations.organization_repo import OrganizationRepository
from aether.organizations.organization_service import OrganizationService
from aether.spaces.space_enumerator import SpaceEnumerator
from aether.spaces.space_resolver import SpaceResolver
from aether.tenants.tenant_provisioner import TenantProvisioner
from aether.users.user_repo import PersonalTenantBinder, UsersRepository


class Container(containers.DeclarativeContainer):
    session = providers.Dependency(instance_of=AsyncSession)
    settings = providers.Callable(get_settings)

    # Repositories
    user_repo = providers.Factory(UsersRepository, session=session)
    organization_repo = providers.Factory(OrganizationRepository, session=session)
    personal_tenant_binder = providers.Factory(
        PersonalTenantBinder, session_factory=providers.Object(sessionmanager.session)
    )

    # Clients
    tenant_provisioner = providers.Factory(
        TenantProvisioner, settings=settings, client=providers.Object(aiohttp_client)
    )

    # Services
    space_resolver = providers.Factory(
        SpaceResolver, user_repo=user_repo, organization_repo=organization_repo
    )
    space_enumerator = providers.Factory(
        SpaceEnumerator,
        user_repo=user_repo,
        organization_repo=organization_repo,
        tenant_provisioner=tenant_provisioner,
        tenant_binder=personal_tenant_binder,
        settings=settings,
    )
    organization_service = providers.Factory(
        OrganizationService,
        repo=organization_repo,
        user_repo=user_repo,
        tenant_provisioner=tenant_provisioner,
    )

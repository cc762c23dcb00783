from fastapi import APIRouter, Depends, status

from aether.main.container.container import Container
from aether.organizations.organization import (
    Organization,
    OrganizationCreateRequest,
    OrganizationInviteRequest,
    OrganizationMember,
    OrganizationMemberRoleUpdateRequest,
    OrganizationUpdateRequest,
)
from aether.server.dependencies.container import get_container
from aether.server.protocol import responses
from aether.spaces.api.space_dependencies import get_current_user_id

router = APIRouter()


@router.post(
    "/",
    response_model=Organization,
    status_code=status.HTTP_201_CREATED,
    responses=responses.get_responses([400, 401, 409, 502]),
)
async def create_organization(
    organization: OrganizationCreateRequest,
    user_id: str = Depends(get_current_user_id),
    container: Container = Depends(get_container()),
):
    """Create an organization with the caller as its owner.

    A tenant is provisioned for the organization before anything is stored.
    """
    service = container.organization_service()
    return await service.create_organization(organization, created_by=user_id)


@router.get(
    "/",
    response_model=list[Organization],
    responses=responses.get_responses([401]),
)
async def get_organizations(
    user_id: str = Depends(get_current_user_id),
    container: Container = Depends(get_container()),
):
    service = container.organization_service()
    return await service.get_organizations(user_id)


@router.get(
    "/{org_id}/",
    response_model=Organization,
    responses=responses.get_responses([401, 403, 404]),
)
async def get_organization(
    org_id: str,
    user_id: str = Depends(get_current_user_id),
    container: Container = Depends(get_container()),
):
    service = container.organization_service()
    return await service.get_organization(org_id, user_id)


@router.patch(
    "/{org_id}/",
    response_model=Organization,
    responses=responses.get_responses([400, 401, 403, 404, 409]),
)
async def update_organization(
    org_id: str,
    organization: OrganizationUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    container: Container = Depends(get_container()),
):
    service = container.organization_service()
    return await service.update_organization(org_id, organization, actor_id=user_id)


@router.delete(
    "/{org_id}/",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=responses.get_responses([401, 403, 404]),
)
async def delete_organization(
    org_id: str,
    user_id: str = Depends(get_current_user_id),
    container: Container = Depends(get_container()),
):
    service = container.organization_service()
    await service.delete_organization(org_id, actor_id=user_id)


@router.get(
    "/{org_id}/members/",
    response_model=list[OrganizationMember],
    responses=responses.get_responses([401, 403]),
)
async def get_members(
    org_id: str,
    user_id: str = Depends(get_current_user_id),
    container: Container = Depends(get_container()),
):
    service = container.organization_service()
    return await service.get_members(org_id, user_id)


@router.post(
    "/{org_id}/members/",
    response_model=OrganizationMember,
    status_code=status.HTTP_201_CREATED,
    responses=responses.get_responses([400, 401, 403, 404, 409]),
)
async def invite_member(
    org_id: str,
    invite: OrganizationInviteRequest,
    user_id: str = Depends(get_current_user_id),
    container: Container = Depends(get_container()),
):
    """Add an existing user, looked up by email, to the organization."""
    service = container.organization_service()
    return await service.invite_member(org_id, invite, actor_id=user_id)


@router.patch(
    "/{org_id}/members/{member_id}/",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=responses.get_responses([400, 401, 403, 404, 409]),
)
async def update_member_role(
    org_id: str,
    member_id: str,
    update: OrganizationMemberRoleUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    container: Container = Depends(get_container()),
):
    service = container.organization_service()
    await service.update_member_role(org_id, member_id, update, actor_id=user_id)


@router.delete(
    "/{org_id}/members/{member_id}/",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=responses.get_responses([400, 401, 403, 404, 409]),
)
async def remove_member(
    org_id: str,
    member_id: str,
    user_id: str = Depends(get_current_user_id),
    container: Container = Depends(get_container()),
):
    service = container.organization_service()
    await service.remove_member(org_id, member_id, actor_id=user_id)

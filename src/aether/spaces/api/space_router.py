from typing import Optional

from fastapi import APIRouter, Depends

from aether.main.container.container import Container
from aether.server.dependencies.container import get_container
from aether.server.protocol import responses
from aether.spaces.api.space_dependencies import (
    get_current_user_id,
    get_space_context,
    require_space_context,
)
from aether.spaces.space import SpaceContext, SpaceInfo, SpaceList

router = APIRouter()


@router.get(
    "/",
    response_model=SpaceList,
    responses=responses.get_responses([400, 401, 403, 404]),
)
async def get_spaces(
    user_id: str = Depends(get_current_user_id),
    space_context: Optional[SpaceContext] = Depends(get_space_context),
    container: Container = Depends(get_container()),
):
    """List the caller's personal space and organization spaces.

    A missing personal tenant is provisioned on the fly. If the request
    also selects a space it is returned as `current_space`.
    """
    space_enumerator = container.space_enumerator()
    spaces = await space_enumerator.list_spaces(user_id)

    if space_context is not None:
        spaces.current_space = space_context.to_space_info()

    return spaces


@router.get(
    "/current/",
    response_model=SpaceInfo,
    responses=responses.get_responses([400, 401, 403, 404]),
)
async def get_current_space(space_context: SpaceContext = Depends(require_space_context)):
    return space_context.to_space_info()


@router.get(
    "/{space_type}/{space_id}/",
    response_model=SpaceInfo,
    responses=responses.get_responses([400, 401, 403, 404]),
)
async def get_space(
    space_type: str,
    space_id: str,
    space_context: SpaceContext = Depends(require_space_context),
):
    return space_context.to_space_info()

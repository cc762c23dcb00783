from typing import Optional

from fastapi import Depends, Request

from aether.main.config import get_settings
from aether.main.container.container import Container
from aether.main.exceptions import BadRequestException, ForbiddenException, UnauthorizedException
from aether.main.logging import get_logger
from aether.main.request_context import set_request_context
from aether.roles.permissions import Permission
from aether.server.dependencies.container import get_container
from aether.spaces.space import SpaceContext, SpaceSelector

logger = get_logger(__name__)

SPACE_TYPE_HEADER = "X-Space-Type"
SPACE_ID_HEADER = "X-Space-ID"
PERSONAL_PATH_SEGMENT = "/personal/"


async def get_current_user_id(request: Request) -> str:
    """Caller identity, established by the authentication layer in front of us.

    The gateway header is ignored unless ``trust_user_id_header`` is set.
    """
    user_id = getattr(request.state, "user_id", None)

    settings = get_settings()
    if not user_id and settings.trust_user_id_header:
        user_id = request.headers.get(settings.user_id_header)

    if not user_id:
        raise UnauthorizedException("Authentication required")

    set_request_context(user_id=user_id)
    return user_id


def extract_space_selector(request: Request) -> Optional[SpaceSelector]:
    """Read the requested space from headers, then path, then query string.

    Returns None when the request does not name a space at all.
    """
    space_type = request.headers.get(SPACE_TYPE_HEADER)
    if space_type:
        space_id = request.headers.get(SPACE_ID_HEADER)
        if not space_id:
            raise BadRequestException(
                f"{SPACE_ID_HEADER} header required when {SPACE_TYPE_HEADER} is provided"
            )
        return SpaceSelector(space_type=space_type, space_id=space_id)

    space_type = request.path_params.get("space_type")
    if space_type:
        space_id = request.path_params.get("space_id")
        if not space_id:
            raise BadRequestException("space_id parameter required in URL")
        return SpaceSelector(space_type=space_type, space_id=space_id)

    space_type = request.query_params.get("space_type")
    if space_type:
        space_id = request.query_params.get("space_id")
        if not space_id:
            raise BadRequestException(
                "space_id query parameter required when space_type is provided"
            )
        return SpaceSelector(space_type=space_type, space_id=space_id)

    return None


async def get_space_context(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    container: Container = Depends(get_container()),
) -> Optional[SpaceContext]:
    selector = extract_space_selector(request)
    resolver = container.space_resolver()

    if selector is not None:
        space_context = await resolver.resolve(user_id, selector)
    elif PERSONAL_PATH_SEGMENT in request.url.path:
        space_context = await resolver.resolve_own_personal_space(user_id)
    else:
        return None

    request.state.space_context = space_context
    set_request_context(space_id=space_context.space_id, tenant_id=space_context.tenant_id)

    return space_context


async def require_space_context(
    space_context: Optional[SpaceContext] = Depends(get_space_context),
) -> SpaceContext:
    if space_context is None:
        raise BadRequestException("Space context required")

    return space_context


def require_space_permission(*permissions: Permission):
    """Dependency factory: the resolved space must grant at least one of ``permissions``."""

    async def _require_space_permission(
        space_context: SpaceContext = Depends(require_space_context),
    ) -> SpaceContext:
        if not any(space_context.has_permission(permission) for permission in permissions):
            logger.info(
                "Insufficient space permissions",
                extra={
                    "user_id": space_context.user_id,
                    "space_id": space_context.space_id,
                    "required": [permission.value for permission in permissions],
                },
            )
            raise ForbiddenException(
                "Insufficient permissions",
                details={
                    "space_id": space_context.space_id,
                    "required": [permission.value for permission in permissions],
                },
            )

        return space_context

    return _require_space_permission

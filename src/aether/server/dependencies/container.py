from dependency_injector import providers
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from aether.database.database import get_session_with_transaction
from aether.main.container.container import Container


async def _get_container(
    session: AsyncSession = Depends(get_session_with_transaction),
) -> Container:
    return Container(session=providers.Object(session))


def get_container():
    # Always hand out the same callable so FastAPI resolves one container per request
    return _get_container

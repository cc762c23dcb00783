from typing import AsyncContextManager, Callable

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from aether.database.database import translate_database_errors
from aether.database.tables.users_table import Users
from aether.main.exceptions import NotFoundException
from aether.main.logging import get_logger
from aether.users.user import UserAdd, UserInDB

logger = get_logger(__name__)


class UsersRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, user: UserAdd) -> UserInDB:
        async with translate_database_errors(
            "User already exists", details={"email": user.email}
        ):
            record = Users(**user.model_dump())
            self.session.add(record)
            await self.session.flush()

        return UserInDB.model_validate(record)

    async def get_user_by_id(self, id: str) -> UserInDB:
        query = (
            sa.select(Users)
            .where(Users.id == id)
            .execution_options(populate_existing=True)
        )

        async with translate_database_errors("Failed to get user", details={"user_id": id}):
            record = await self.session.scalar(query)

        if record is None:
            raise NotFoundException("User not found", details={"user_id": id})

        return UserInDB.model_validate(record)

    async def get_user_by_email(self, email: str) -> UserInDB:
        query = sa.select(Users).where(sa.func.lower(Users.email) == sa.func.lower(email))

        async with translate_database_errors("Failed to find user", details={"email": email}):
            record = await self.session.scalar(query)

        if record is None:
            raise NotFoundException("User not found", details={"email": email})

        return UserInDB.model_validate(record)

    async def update_personal_tenant_info(
        self,
        id: str,
        tenant_id: str,
        api_key: str,
        *,
        only_if_unset: bool = False,
    ) -> bool:
        """Bind a personal tenant to the user.

        With ``only_if_unset`` the write only lands while the user has no
        personal tenant, so concurrent provisioners cannot overwrite each
        other. Returns whether a row was updated.
        """
        stmt = (
            sa.update(Users)
            .where(Users.id == id)
            .values(personal_tenant_id=tenant_id, personal_api_key=api_key)
            .execution_options(synchronize_session=False)
        )
        if only_if_unset:
            stmt = stmt.where(Users.personal_tenant_id.is_(None))

        async with translate_database_errors(
            "Failed to update personal tenant",
            details={"user_id": id, "tenant_id": tenant_id},
        ):
            result = await self.session.execute(stmt)

        updated = result.rowcount == 1
        if not updated:
            logger.info(
                "Personal tenant binding not written",
                extra={"user_id": id, "tenant_id": tenant_id, "only_if_unset": only_if_unset},
            )

        return updated


class PersonalTenantBinder:
    """Writes a personal tenant binding in a transaction of its own.

    The request transaction commits only when the request ends, so a binding
    written through it stays invisible to other requests until then. This
    commits before returning, which lets a caller hold a lock across
    provision-and-persist and release it once the binding is visible.
    """

    def __init__(self, session_factory: Callable[[], AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    async def bind(self, user_id: str, tenant_id: str, api_key: str) -> bool:
        """Bind only if the user has no personal tenant yet; return whether it landed."""
        async with self.session_factory() as session, session.begin():
            return await UsersRepository(session).update_personal_tenant_info(
                user_id, tenant_id, api_key, only_if_unset=True
            )

import contextlib
from typing import Any, AsyncIterator, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from aether.main.exceptions import ConflictException, DatabaseException, UnavailableException
from aether.main.logging import get_logger

logger = get_logger(__name__)


class DatabaseSessionManager:
    def __init__(self):
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    def init(self, host: str):
        if self._engine is not None:
            logger.debug("Database already initialized, skipping reinitialization")
            return

        self._engine = create_async_engine(host, pool_size=20, max_overflow=10)
        self._sessionmaker = async_sessionmaker(
            autocommit=False,
            bind=self._engine,
            expire_on_commit=False,
        )

    async def close(self):
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    @contextlib.asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self._sessionmaker is None:
            raise Exception("DatabaseSessionManager is not initialized")

        session = self._sessionmaker()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


sessionmanager = DatabaseSessionManager()


async def get_session_with_transaction():
    async with sessionmanager.session() as session, session.begin():
        yield session


@contextlib.asynccontextmanager
async def translate_database_errors(
    message: str, details: Optional[dict[str, Any]] = None
) -> AsyncIterator[None]:
    """Re-raise SQLAlchemy errors as service errors.

    Integrity violations become ``ConflictException``; connection-level
    failures become ``UnavailableException``; anything else from the driver
    becomes ``DatabaseException``.
    """
    try:
        yield
    except IntegrityError as e:
        raise ConflictException(message, details=details) from e
    except DBAPIError as e:
        if e.connection_invalidated:
            logger.error(f"{message}: database connection lost", extra=details or {})
            raise UnavailableException(message, details=details) from e
        logger.error(f"{message}: {e}", extra=details or {})
        raise DatabaseException(message, details=details) from e
    except SQLAlchemyError as e:
        logger.error(f"{message}: {e}", extra=details or {})
        raise DatabaseException(message, details=details) from e

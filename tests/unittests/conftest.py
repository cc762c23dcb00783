import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from aether.database.tables.base_class import Base
from aether.database.tables.organizations_table import Organizations  # noqa: F401
from aether.database.tables.users_table import Users  # noqa: F401
from aether.main.config import Settings, reset_settings, set_settings


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Explicit settings that do not depend on a .env file or the environment."""
    return Settings(
        # Minimal database settings (not used in unit tests)
        postgres_user="unit_test_user",
        postgres_host="localhost",
        postgres_password="unit_test_password",
        postgres_port=5432,
        postgres_db="unit_test_db",

        provisioner_url="http://provisioner.test",
        provisioner_api_key="service-key",
    )


@pytest.fixture
async def async_session():
    """In-memory SQLite database with every aether table created."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_factory = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
async def session_factory():
    """Session factory over one shared in-memory database, for code that opens its own sessions."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def trusted_user_header(test_settings):
    """Accept the X-User-ID gateway header as the caller's identity."""
    set_settings(test_settings.model_copy(update={"trust_user_id_header": True}))
    yield
    reset_settings()

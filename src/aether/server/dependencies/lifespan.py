from contextlib import asynccontextmanager

from fastapi import FastAPI

from aether.database.database import sessionmanager
from aether.main.aiohttp_client import aiohttp_client
from aether.main.config import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup()
    yield
    await shutdown()


async def startup():
    settings = get_settings()

    aiohttp_client.start()
    sessionmanager.init(settings.database_url)


async def shutdown():
    await sessionmanager.close()
    await aiohttp_client.stop()

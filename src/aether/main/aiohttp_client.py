import aiohttp

from aether.main.config import get_settings
from aether.main.logging import get_logger

logger = get_logger(__name__)


class AioHttpClient:
    """Holds the process-wide aiohttp session, opened and closed by the app lifespan."""

    session: aiohttp.ClientSession = None

    def start(self):
        timeout = aiohttp.ClientTimeout(
            total=float(get_settings().provisioner_timeout_seconds),
            connect=10.0,
        )
        connector = aiohttp.TCPConnector(
            limit=100,
            limit_per_host=30,
            enable_cleanup_closed=True,
        )

        self.session = aiohttp.ClientSession(timeout=timeout, connector=connector)
        logger.debug("aiohttp client session started")

    async def stop(self):
        if self.session is None:
            return
        await self.session.close()
        self.session = None

    def __call__(self) -> aiohttp.ClientSession:
        assert self.session is not None
        return self.session


aiohttp_client = AioHttpClient()

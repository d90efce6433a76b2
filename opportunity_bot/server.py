"""
HTTP status endpoint and keep-alive pinger.

Serves liveness information for external uptime monitors and, on hosts
that sleep idle services, pings its own health endpoint.
"""

import asyncio
import logging

import aiohttp
from aiohttp import web

from opportunity_bot.state import BotState

logger = logging.getLogger(__name__)

STATE_KEY = web.AppKey("state", BotState)
BOT_NAME_KEY = web.AppKey("bot_name", str)


async def handle_root(request: web.Request) -> web.Response:
    """Report liveness, total posts and uptime."""
    state = request.app[STATE_KEY]
    return web.json_response(
        {
            "status": "running",
            "bot": request.app[BOT_NAME_KEY],
            "total_posts": state.stats.total_posted,
            "uptime": state.uptime_seconds(),
        }
    )


async def handle_health(request: web.Request) -> web.Response:
    """Report a fixed healthy status."""
    return web.json_response({"status": "healthy"})


def create_status_app(state: BotState, bot_name: str) -> web.Application:
    """
    Build the status web application.

    Parameters
    ----------
    state : BotState
        Runtime state read by the endpoints.
    bot_name : str
        Name reported by ``GET /``.

    Returns
    -------
    web.Application
        Application serving ``/`` and ``/health``.
    """
    app = web.Application()
    app[STATE_KEY] = state
    app[BOT_NAME_KEY] = bot_name
    app.router.add_get("/", handle_root)
    app.router.add_get("/health", handle_health)
    return app


class StatusServer:
    """Runs the status application on a TCP port."""

    def __init__(self, state: BotState, bot_name: str, host: str = "0.0.0.0", port: int = 3000):
        self.app = create_status_app(state, bot_name)
        self.host = host
        self.port = port
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        self._runner = web.AppRunner(self.app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info("Status server running on port %d", self.port)

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            logger.debug("Status server stopped")


class SelfPinger:
    """
    Periodically requests ``<base_url>/health``.

    Failures are logged and never stop the loop.
    """

    def __init__(self, base_url: str, interval: int = 840, timeout: int = 10):
        self.url = base_url.rstrip("/") + "/health"
        self.interval = interval
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def ping(self) -> bool:
        """
        Request the health endpoint once.

        Returns
        -------
        bool
            True if the endpoint answered with a success status.
        """
        session = await self._get_session()
        try:
            async with session.get(self.url) as response:
                response.raise_for_status()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("Self-ping to %s failed: %s", self.url, e)
            return False
        logger.debug("Self-ping OK")
        return True

    async def run(self) -> None:
        """Ping forever, every ``interval`` seconds."""
        logger.info("Self-ping enabled: %s every %ds", self.url, self.interval)
        while True:
            await asyncio.sleep(self.interval)
            await self.ping()

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

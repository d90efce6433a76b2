"""
Main entry point for Opportunity Bot.

Wires the fetcher, publisher, pipeline, control commands, status server
and scheduled scans together and runs them on one event loop.
"""

import argparse
import asyncio
import logging
import signal
import sys
from urllib.parse import urlparse

import coloredlogs
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError
from telegram.ext import Application, ApplicationBuilder
from telegram.request import HTTPXRequest

from opportunity_bot.commands import ControlPanel
from opportunity_bot.config import AppConfig, ConfigError, load_config, load_config_from_env
from opportunity_bot.pipeline import DiscoveryPipeline, ScanSummary
from opportunity_bot.rss_parser import FeedFetcher
from opportunity_bot.server import SelfPinger, StatusServer
from opportunity_bot.state import BotState
from opportunity_bot.telegram import ChannelPublisher

logger = logging.getLogger(__name__)


def redact_proxy_url(proxy_url: str) -> str:
    """
    Redact credentials from a proxy URL for safe logging.

    Parameters
    ----------
    proxy_url : str
        The proxy URL potentially containing credentials.

    Returns
    -------
    str
        The proxy URL with password redacted.
    """
    try:
        parsed = urlparse(proxy_url)
        if parsed.password:
            netloc = parsed.hostname or ""
            if parsed.port:
                netloc = f"{netloc}:{parsed.port}"
            if parsed.username:
                netloc = f"{parsed.username}:****@{netloc}"
            return f"{parsed.scheme}://{netloc}{parsed.path}"
        return proxy_url
    except ValueError:
        return "<proxy url>"


class OpportunityBot:
    """
    Main bot application.

    Owns the runtime state and every long-running component.
    """

    def __init__(self, config: AppConfig, state: BotState | None = None):
        """
        Initialize the bot.

        Parameters
        ----------
        config : AppConfig
            Validated application configuration.
        state : BotState | None
            Runtime state; built from the configuration when omitted.
        """
        self.config = config
        self.state = state or BotState.from_config(config)
        self.fetcher: FeedFetcher | None = None
        self.application: Application | None = None
        self.publisher: ChannelPublisher | None = None
        self.pipeline: DiscoveryPipeline | None = None
        self.status_server: StatusServer | None = None
        self.pinger: SelfPinger | None = None
        self._running = False
        self._initialized = False
        self._tasks: list[asyncio.Task] = []
        self._stop_event = asyncio.Event()

    def _build(self) -> None:
        """Create the components from the configuration."""
        defaults = self.config.defaults
        proxy_url = defaults.proxy
        if proxy_url:
            logger.info("Using proxy: %s", redact_proxy_url(proxy_url))

        self.fetcher = FeedFetcher(
            timeout=defaults.request_timeout,
            max_items=defaults.max_items_per_feed,
            user_agent=defaults.user_agent,
            proxy_url=proxy_url,
        )

        builder = ApplicationBuilder().token(self.config.telegram.bot_token)
        if proxy_url:
            builder = builder.request(HTTPXRequest(proxy=proxy_url))
        self.application = builder.build()

        self.publisher = ChannelPublisher(
            self.application.bot,
            self.config.telegram,
            self.state,
            send_delay=defaults.send_delay,
        )
        self.pipeline = DiscoveryPipeline(
            self.config.sources,
            self.fetcher,
            self.publisher,
            self.state,
            item_delay=defaults.item_delay,
        )
        ControlPanel(self.config, self.state, self.pipeline).register(self.application)

    async def _connect(self) -> None:
        """Initialize the Telegram application and check the token."""
        if self.application is None or self.publisher is None:
            self._build()
        await self.application.initialize()
        self._initialized = True

        if not await self.publisher.test_connection():
            logger.error("Failed to connect to Telegram, exiting")
            await self.stop()
            sys.exit(1)

    async def start(self) -> None:
        """Start the bot and run until stopped."""
        logger.info("Starting %s Bot", self.config.bot_name)
        logger.info(
            "Mode: %s | Auto-scan: %s | Self-ping: %s",
            self.config.mode.upper(),
            "ENABLED" if self.config.auto_scan_enabled else "DISABLED",
            "ENABLED" if self.config.self_ping_enabled else "DISABLED",
        )

        server = self.config.server
        self.status_server = StatusServer(
            self.state, self.config.bot_name, host=server.host, port=server.port
        )
        await self.status_server.start()

        await self._connect()
        await self.application.start()
        await self.application.updater.start_polling()
        self._running = True

        if self.config.auto_scan_enabled:
            self._tasks.append(asyncio.create_task(self._scan_loop()))
        if self.config.self_ping_enabled:
            self.pinger = SelfPinger(server.base_url, interval=server.self_ping_interval)
            self._tasks.append(asyncio.create_task(self.pinger.run()))

        logger.info("Bot is running, posting to %d channel(s)", len(self.state.active_destinations))
        await self._stop_event.wait()

    async def scan_once(self) -> ScanSummary | None:
        """Run a single scan and shut down."""
        await self._connect()
        try:
            return await self.pipeline.run_scan()
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop the bot gracefully."""
        logger.info("Stopping bot")
        self._running = False

        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
            self._tasks = []

        if self.application and self._initialized:
            if self.application.updater and self.application.updater.running:
                await self.application.updater.stop()
            if self.application.running:
                await self.application.stop()
            await self.application.shutdown()
            self._initialized = False

        if self.fetcher:
            await self.fetcher.close()
        if self.publisher:
            await self.publisher.close()
        if self.pinger:
            await self.pinger.close()
        if self.status_server:
            await self.status_server.stop()

        self._stop_event.set()
        logger.info("Bot stopped")

    async def _scan_loop(self) -> None:
        """Run a scheduled scan every ``scan_interval`` seconds."""
        interval = self.config.defaults.scan_interval

        while self._running:
            await asyncio.sleep(interval)
            await self._scheduled_scan()

    async def _scheduled_scan(self) -> None:
        if self.state.operational.paused:
            logger.info("Scheduled scan skipped, bot is paused")
            return

        logger.info("Scheduled scan")
        try:
            await self.pipeline.run_scan()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Scheduled scan failed: %s", e, exc_info=True)


def setup_logging(verbose: bool = False) -> None:
    """
    Configure application logging.

    Parameters
    ----------
    verbose : bool
        If True, set log level to DEBUG.
    """
    level = logging.DEBUG if verbose else logging.INFO

    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Post opportunities from RSS feeds to Telegram channels",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to a YAML configuration file (default: read the environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--scan-once",
        action="store_true",
        help="Run a single scan and exit",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)
    load_dotenv()

    try:
        config = load_config(args.config) if args.config else load_config_from_env()
    except (ConfigError, ValidationError, FileNotFoundError, yaml.YAMLError) as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    bot = OpportunityBot(config)

    if args.scan_once:
        try:
            summary = loop.run_until_complete(bot.scan_once())
            if summary is not None:
                logger.info("Posted %d opportunities", summary.posted)
        finally:
            loop.close()
        return

    def signal_handler():
        logger.info("Received shutdown signal")
        asyncio.create_task(bot.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        loop.run_until_complete(bot.start())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.run_until_complete(bot.stop())
        loop.close()


if __name__ == "__main__":
    main()

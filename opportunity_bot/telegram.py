"""
Telegram channel publisher.

Posts formatted opportunities to every active destination channel.
"""

import asyncio
import logging

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError

from opportunity_bot.config import TelegramConfig
from opportunity_bot.notifier import DeliveryReport
from opportunity_bot.state import BotState

logger = logging.getLogger(__name__)

# Maximum message length for Telegram
MAX_MESSAGE_LENGTH = 4096


class ChannelPublisher:
    """
    Telegram delivery to the bot's destination channels.

    A failure on one channel is logged and does not stop delivery to the
    others. Consecutive sends are spaced by ``send_delay`` seconds.
    """

    def __init__(
        self,
        bot: Bot,
        config: TelegramConfig,
        state: BotState,
        send_delay: float = 3.0,
    ):
        """
        Initialize the publisher.

        Parameters
        ----------
        bot : Bot
            Telegram bot used for sending.
        config : TelegramConfig
            Telegram configuration with parse mode and preview settings.
        state : BotState
            Holds the destination list and per-destination counters.
        send_delay : float
            Seconds to wait between two sends.
        """
        self._bot = bot
        self.config = config
        self.state = state
        self.send_delay = send_delay

    @property
    def parse_mode(self) -> str:
        if self.config.parse_mode == "HTML":
            return ParseMode.HTML
        if self.config.parse_mode == "MarkdownV2":
            return ParseMode.MARKDOWN_V2
        return ParseMode.MARKDOWN

    async def publish(self, message: str) -> DeliveryReport:
        """
        Send a message to every active destination.

        Parameters
        ----------
        message : str
            Formatted message text.

        Returns
        -------
        DeliveryReport
            Destinations reached and destinations that failed.
        """
        if len(message) > MAX_MESSAGE_LENGTH:
            message = message[: MAX_MESSAGE_LENGTH - 3] + "..."

        report = DeliveryReport()
        destinations = self.state.active_destinations
        if not destinations:
            logger.warning("No active destinations, nothing posted")
            return report

        for index, destination in enumerate(destinations):
            if index > 0 and self.send_delay > 0:
                await asyncio.sleep(self.send_delay)
            try:
                await self._bot.send_message(
                    chat_id=destination.chat_id,
                    text=message,
                    parse_mode=self.parse_mode,
                    disable_web_page_preview=self.config.disable_web_page_preview,
                )
            except Exception as e:
                logger.error("Failed to post to %s: %s", destination.name, e)
                report.failed.append((destination, str(e)))
                continue

            destination.total_posts += 1
            report.delivered.append(destination)
            logger.info("Posted to %s", destination.name)

        return report

    async def test_connection(self) -> bool:
        """
        Test the Telegram bot connection.

        Returns
        -------
        bool
            True if the connection is working.
        """
        try:
            me = await self._bot.get_me()
            logger.info("Connected to Telegram as @%s", me.username)
            return True
        except TelegramError as e:
            logger.error("Failed to connect to Telegram: %s", e)
            return False

    async def close(self) -> None:
        """Nothing to release; the bot is owned by the Telegram application."""
        logger.debug("Channel publisher closed")

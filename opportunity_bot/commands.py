"""
Admin control commands.

Registers the /start command and the reply-keyboard buttons on a
python-telegram-bot Application. Only the configured admin can use them.
"""

import logging

from telegram import KeyboardButton, ReplyKeyboardMarkup, ReplyKeyboardRemove, Update
from telegram.constants import ParseMode
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from opportunity_bot.config import AppConfig
from opportunity_bot.models import Category
from opportunity_bot.pipeline import DiscoveryPipeline
from opportunity_bot.state import BotState

logger = logging.getLogger(__name__)

DASHBOARD = "📊 Dashboard"
SCAN_NOW = "🔍 Scan Now"
PAUSE = "⏸️ Pause Bot"
RESUME = "▶️ Resume Bot"
SOURCES = "📚 Sources"
SETTINGS = "⚙️ Settings"
CLOSE_MENU = "❌ Close Menu"

PUBLIC_START_REPLY = "This bot posts to channels automatically."

CATEGORY_LABELS = {
    Category.SCHOLARSHIPS: "📚 Scholarships",
    Category.VOLUNTEER: "🤝 Volunteer",
    Category.NGO: "🏢 NGO",
    Category.TECH: "💻 Tech",
}


def admin_keyboard() -> ReplyKeyboardMarkup:
    """Build the persistent admin reply keyboard."""
    rows = [
        [DASHBOARD, SCAN_NOW],
        [PAUSE, RESUME],
        [SOURCES, SETTINGS],
        [CLOSE_MENU],
    ]
    return ReplyKeyboardMarkup(
        [[KeyboardButton(text) for text in row] for row in rows],
        resize_keyboard=True,
        one_time_keyboard=False,
    )


class ControlPanel:
    """
    Handlers for the admin chat interface.

    Every handler checks the sender first. Apart from /start, which gives
    a generic answer, messages from anyone but the admin are ignored.
    """

    def __init__(self, config: AppConfig, state: BotState, pipeline: DiscoveryPipeline):
        self.config = config
        self.state = state
        self.pipeline = pipeline

    def is_admin(self, user_id: int | None) -> bool:
        """Return True only for the exact configured admin user ID."""
        return isinstance(user_id, int) and user_id == self.config.telegram.admin_id

    def _from_admin(self, update: Update) -> bool:
        user = update.effective_user
        allowed = user is not None and self.is_admin(user.id)
        if not allowed:
            logger.debug(
                "Ignoring command from non-admin user %s",
                user.id if user else "<unknown>",
            )
        return allowed

    def register(self, application: Application) -> None:
        """Attach all handlers to a Telegram application."""
        application.add_handler(CommandHandler("start", self.start))
        application.add_handler(MessageHandler(filters.Text([DASHBOARD]), self.dashboard))
        # Scans take minutes; let other commands through meanwhile
        application.add_handler(
            MessageHandler(filters.Text([SCAN_NOW]), self.scan_now, block=False)
        )
        application.add_handler(MessageHandler(filters.Text([PAUSE]), self.pause))
        application.add_handler(MessageHandler(filters.Text([RESUME]), self.resume))
        application.add_handler(MessageHandler(filters.Text([SOURCES]), self.sources))
        application.add_handler(MessageHandler(filters.Text([SETTINGS]), self.settings))
        application.add_handler(MessageHandler(filters.Text([CLOSE_MENU]), self.close_menu))
        application.add_error_handler(self.error_handler)

    def _status_label(self) -> str:
        return "⏸️ Paused" if self.state.operational.paused else "✅ Active"

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Greet the admin and show the control keyboard."""
        if not self._from_admin(update):
            await update.effective_message.reply_text(PUBLIC_START_REPLY)
            return

        msg = (
            f"🤖 *{self.config.bot_name} Bot*\n\n"
            "Welcome, Admin!\n\n"
            f"Status: {self._status_label()}\n"
            f"Total Posts: {self.state.stats.total_posted}\n\n"
            "Use buttons below to control the bot."
        )
        await update.effective_message.reply_text(
            msg, parse_mode=ParseMode.MARKDOWN, reply_markup=admin_keyboard()
        )

    async def dashboard(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Show the stats snapshot."""
        if not self._from_admin(update):
            return

        stats = self.state.stats
        last_scan = (
            stats.last_scan_at.strftime("%H:%M:%S UTC") if stats.last_scan_at else "Not yet"
        )
        lines = [
            "📊 *Dashboard*",
            "",
            f"Status: {self._status_label()}",
            f"Total Posts: {stats.total_posted}",
            f"Last Scan: {last_scan}",
            f"Scans Today: {stats.scans_today}",
            "",
            "*Breakdown:*",
        ]
        for category in Category:
            lines.append(f"{CATEGORY_LABELS[category]}: {stats.per_category.get(category, 0)}")
        lines += ["", "*Channels:*"]
        for destination in self.state.destinations:
            marker = "✅" if destination.active else "⏸️"
            lines.append(f"{marker} {destination.name}: {destination.total_posts} posts")

        await update.effective_message.reply_text("\n".join(lines), parse_mode=ParseMode.MARKDOWN)

    async def scan_now(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Run a scan on demand unless the bot is paused."""
        if not self._from_admin(update):
            return

        message = update.effective_message
        if self.state.operational.paused:
            await message.reply_text("⚠️ Bot is paused. Resume it first.")
            return

        try:
            await message.reply_text("🔍 Starting scan... Please wait.")
            summary = await self.pipeline.run_scan()
            if summary is None:
                await message.reply_text("⏳ A scan is already running. Try again later.")
                return
            await message.reply_text(
                f"✅ Scan complete! Posted {summary.posted} new "
                f"({self.state.stats.total_posted} total) opportunities."
            )
        except Exception:
            logger.exception("On-demand scan failed")
            await message.reply_text("⚠️ Scan completed with some errors. Check the logs.")

    async def pause(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Stop scheduled and on-demand scans."""
        if not self._from_admin(update):
            return

        self.state.operational.pause()
        logger.info("Bot paused by admin")
        await update.effective_message.reply_text(
            f"⏸️ Bot paused. Press [{RESUME}] to continue."
        )

    async def resume(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Allow scans again."""
        if not self._from_admin(update):
            return

        self.state.operational.resume()
        logger.info("Bot resumed by admin")
        await update.effective_message.reply_text("▶️ Bot resumed!")

    async def sources(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """List the monitored feeds per category."""
        if not self._from_admin(update):
            return

        lines = ["📚 *Monitored Sources*", ""]
        for category, sources in self.config.sources.items():
            lines.append(f"*{category.value.upper()}*")
            lines += [f"{i}. {source.name}" for i, source in enumerate(sources, start=1)]
            lines.append("")

        await update.effective_message.reply_text("\n".join(lines), parse_mode=ParseMode.MARKDOWN)

    async def settings(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Show the effective runtime settings."""
        if not self._from_admin(update):
            return

        auto_scan = "Enabled" if self.config.auto_scan_enabled else "Disabled"
        msg = (
            "⚙️ *Settings*\n\n"
            f"Mode: {self.config.mode.capitalize()}\n"
            f"Channel: {self.config.telegram.chat_id}\n"
            f"Auto-scan: {auto_scan}\n"
            f"Scan Interval: {self.config.defaults.scan_interval // 60} min\n"
            f"Items per Feed: {self.config.defaults.max_items_per_feed}"
        )
        await update.effective_message.reply_text(msg, parse_mode=ParseMode.MARKDOWN)

    async def close_menu(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Hide the admin keyboard."""
        if not self._from_admin(update):
            return

        await update.effective_message.reply_text("Menu closed.", reply_markup=ReplyKeyboardRemove())

    async def error_handler(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Log handler errors and tell the user, if possible."""
        logger.error("Bot error caught: %s", context.error, exc_info=context.error)

        if not isinstance(update, Update) or update.effective_message is None:
            return
        try:
            await update.effective_message.reply_text("⚠️ An error occurred. Please try again.")
        except Exception as e:
            logger.debug("Could not send error notice: %s", e)

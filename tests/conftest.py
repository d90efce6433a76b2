"""
Shared fixtures for Opportunity Bot tests.

Provides common test fixtures for use across all test modules.
"""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from opportunity_bot.config import AppConfig, FeedSource, TelegramConfig
from opportunity_bot.models import Category, Opportunity
from opportunity_bot.notifier import DeliveryReport
from opportunity_bot.state import BotState, Destination

# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"

ADMIN_ID = 42


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_config_path(fixtures_dir: Path) -> Path:
    """Return path to sample config file."""
    return fixtures_dir / "sample_config.yaml"


@pytest.fixture
def sample_rss_content(fixtures_dir: Path) -> str:
    """Return contents of sample RSS feed."""
    return (fixtures_dir / "sample_rss.xml").read_text()


@pytest.fixture
def sample_source() -> FeedSource:
    """Create a feed source pointing at a fake URL."""
    return FeedSource(name="Test Scholarships", url="https://example.com/scholarships.xml")


@pytest.fixture
def sample_opportunity() -> Opportunity:
    """
    Create a sample opportunity for testing.

    Returns
    -------
    Opportunity
        A fully populated opportunity.
    """
    return Opportunity(
        identifier="abc123",
        title="Mastercard Foundation Scholarship 2025",
        link="https://example.com/mastercard-scholarship",
        description="Fully funded undergraduate and graduate scholarships.",
        published_label="Jan 6",
        source_name="Test Scholarships",
        category=Category.SCHOLARSHIPS,
    )


@pytest.fixture
def minimal_telegram_config() -> TelegramConfig:
    """Create a minimal valid Telegram configuration."""
    return TelegramConfig(
        bot_token="1234567890:ABCdefGHIjklMNOpqrsTUVwxyz",
        chat_id="-1001234567890",
        admin_id=ADMIN_ID,
    )


@pytest.fixture
def minimal_config_dict() -> dict[str, Any]:
    """
    Create a minimal valid configuration dictionary.

    Returns
    -------
    dict
        Configuration dictionary that can be used to create AppConfig.
    """
    return {
        "telegram": {
            "bot_token": "1234567890:ABCdefGHIjklMNOpqrsTUVwxyz",
            "chat_id": "-1001234567890",
            "admin_id": ADMIN_ID,
        },
    }


@pytest.fixture
def minimal_app_config(minimal_telegram_config: TelegramConfig) -> AppConfig:
    """Create an app configuration with one source per category and no delays."""
    return AppConfig(
        telegram=minimal_telegram_config,
        defaults={"send_delay": 0, "item_delay": 0},
        sources={
            Category.SCHOLARSHIPS: [
                FeedSource(name="Test Scholarships", url="https://example.com/scholarships.xml")
            ],
            Category.TECH: [FeedSource(name="Test Jobs", url="https://example.com/jobs.xml")],
        },
    )


@pytest.fixture
def bot_state() -> BotState:
    """Create state with a primary and a secondary destination."""
    return BotState(
        [
            Destination(chat_id="-1001234567890", name="Main Channel"),
            Destination(chat_id="@backup_channel", name="Backup Channel"),
        ]
    )


@pytest.fixture
def mock_telegram_bot() -> MagicMock:
    """
    Create a mock Telegram bot.

    Returns
    -------
    MagicMock
        A mock Bot instance with common methods mocked.
    """
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.get_me = AsyncMock(return_value=MagicMock(username="test_bot"))
    return bot


@pytest.fixture
def mock_publisher() -> MagicMock:
    """Create a publisher that reports an empty delivery."""
    publisher = MagicMock()
    publisher.publish = AsyncMock(return_value=DeliveryReport())
    publisher.close = AsyncMock()
    return publisher


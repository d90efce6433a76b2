"""
Unit tests for the status server and self-pinger.
"""

import asyncio
from datetime import timedelta

import aiohttp
from aiohttp import test_utils
from aioresponses import aioresponses

from opportunity_bot.models import Category
from opportunity_bot.server import SelfPinger, create_status_app
from opportunity_bot.state import BotState


class TestStatusApp:
    """Tests for the status endpoints."""

    async def test_root_reports_total_posts(self, bot_state: BotState) -> None:
        """Test GET / after two posts."""
        bot_state.stats.record_post(Category.TECH)
        bot_state.stats.record_post(Category.NGO)
        bot_state.started_at -= timedelta(seconds=90)
        app = create_status_app(bot_state, "Opportunities4Africa")

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.get("/")
            body = await response.json()

        assert response.status == 200
        assert body["status"] == "running"
        assert body["bot"] == "Opportunities4Africa"
        assert body["total_posts"] == 2
        assert body["uptime"] >= 90

    async def test_root_reads_live_state(self, bot_state: BotState) -> None:
        """Test the endpoint reflects posts made after startup."""
        app = create_status_app(bot_state, "Bot")

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            before = await (await client.get("/")).json()
            bot_state.stats.record_post(Category.TECH)
            after = await (await client.get("/")).json()

        assert before["total_posts"] == 0
        assert after["total_posts"] == 1

    async def test_health(self, bot_state: BotState) -> None:
        """Test GET /health."""
        app = create_status_app(bot_state, "Bot")

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.get("/health")
            body = await response.json()

        assert response.status == 200
        assert body == {"status": "healthy"}


class TestSelfPinger:
    """Tests for the keep-alive pinger."""

    def test_health_url(self) -> None:
        """Test the health path is appended once."""
        assert SelfPinger("https://bot.example.com/").url == "https://bot.example.com/health"

    async def test_ping_ok(self) -> None:
        """Test a successful ping."""
        pinger = SelfPinger("https://bot.example.com")

        with aioresponses() as m:
            m.get("https://bot.example.com/health", payload={"status": "healthy"})
            assert await pinger.ping() is True

        await pinger.close()

    async def test_ping_failure_not_raised(self) -> None:
        """Test ping errors are reported as False."""
        pinger = SelfPinger("https://bot.example.com")

        with aioresponses() as m:
            m.get("https://bot.example.com/health", status=502)
            m.get(
                "https://bot.example.com/health",
                exception=aiohttp.ClientConnectionError("refused"),
            )
            assert await pinger.ping() is False
            assert await pinger.ping() is False

        await pinger.close()

    async def test_ping_timeout_not_raised(self) -> None:
        """Test ping timeouts are reported as False."""
        pinger = SelfPinger("https://bot.example.com")

        with aioresponses() as m:
            m.get("https://bot.example.com/health", exception=asyncio.TimeoutError())
            assert await pinger.ping() is False

        await pinger.close()

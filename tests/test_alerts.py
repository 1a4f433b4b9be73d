"""
Tests for alert formatting and delivery
"""
from datetime import datetime

import aiohttp
import pytest

import sys
sys.path.insert(0, "src")

from conftest import FakeResponse, FakeSession
from polybot.alerts import AlertManager, format_status_alert, format_win_alert
from polybot.config import AlertConfig
from polybot.models import Side
from polybot.paper_trading.models import BotMode, CloseReason, Trade


@pytest.fixture
def winning_trade():
    return Trade(
        id="t1",
        timestamp=datetime(2026, 1, 15, 12, 0, 0),
        strategy="A",
        market="will-btc-close-above-100k-on-friday",
        market_id="0xm1",
        side=Side.YES,
        entry_price=0.45,
        exit_price=0.50,
        size=20.0,
        profit=1.87,
        close_reason=CloseReason.TAKE_PROFIT,
    )


def manager(*responses, error=None, **settings) -> AlertManager:
    alerts = AlertManager(
        AlertConfig(
            notify_url=None,
            telegram_token=settings.get("telegram_token"),
            telegram_chat_id=settings.get("telegram_chat_id"),
            enabled=settings.get("enabled", True),
        ),
        backend_url="http://backend.test",
    )
    alerts._session = FakeSession(*responses, error=error)
    return alerts


class TestFormatting:
    def test_win_alert(self, winning_trade):
        text = format_win_alert(winning_trade, BotMode.PAPER, 301.87)

        assert "PAPER" in text
        assert "+1.87" in text
        assert "will-btc-close-above-100" in text
        assert "will-btc-close-above-100k-on-friday" not in text
        assert "301.87" in text

    def test_live_header(self, winning_trade):
        assert "LIVE" in format_win_alert(winning_trade, BotMode.LIVE, 300)

    def test_status_alert(self, engine):
        status = engine.get_status()

        text = format_status_alert(status, BotMode.PAPER)

        assert "STATUS" in text
        assert "Balance: $300.00" in text
        assert "Positions: 0" in text


class TestAlertManager:
    """Tests for delivery and failure isolation"""

    def test_default_notify_url(self):
        assert manager().notify_url == "http://backend.test/notify"

    @pytest.mark.asyncio
    async def test_notify_posts_message(self):
        alerts = manager(FakeResponse(200))

        results = await alerts.notify("hello")

        assert results == [True]
        assert alerts.sent == 1
        method, url, kwargs = alerts.session.calls[0]
        assert url == "http://backend.test/notify"
        assert kwargs["json"] == {"message": "hello"}

    @pytest.mark.asyncio
    async def test_telegram_when_configured(self):
        alerts = manager(FakeResponse(200), telegram_token="123:abc", telegram_chat_id="42")

        results = await alerts.notify("hello")

        assert results == [True, True]
        telegram_url, payload = alerts.session.calls[1][1], alerts.session.calls[1][2]["json"]
        assert telegram_url == "https://api.telegram.org/bot123:abc/sendMessage"
        assert payload["chat_id"] == "42"

    @pytest.mark.asyncio
    async def test_failures_swallowed(self):
        alerts = manager(error=aiohttp.ClientError("refused"))

        results = await alerts.notify("hello")

        assert results == [False]
        assert alerts.failed == 1

    @pytest.mark.asyncio
    async def test_non_200_is_failure(self):
        alerts = manager(FakeResponse(502))

        assert await alerts.notify("hello") == [False]

    @pytest.mark.asyncio
    async def test_disabled_sends_nothing(self):
        alerts = manager(enabled=False)

        assert await alerts.notify("hello") == []
        assert alerts.session.calls == []

    @pytest.mark.asyncio
    async def test_telegram_without_chat_id(self):
        alerts = manager(telegram_token="123:abc")
        assert await alerts.send_telegram("hello") is False

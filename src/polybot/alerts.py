"""
Alert system for trade notifications (backend notify endpoint, Telegram)
"""
import asyncio
import logging
from typing import Dict, List, Optional

import aiohttp

from .config import AlertConfig, config
from .paper_trading.models import BotMode, Trade

logger = logging.getLogger(__name__)

RULE = "━" * 15


def _header(mode: BotMode) -> str:
    return "🔴 LIVE" if mode is BotMode.LIVE else "🟢 PAPER"


def format_win_alert(trade: Trade, mode: BotMode, balance: float) -> str:
    return f"""{RULE}
{_header(mode)} │ WIN 💰
{RULE}
✅ ${trade.profit:+.2f}
📊 {trade.market[:25]}
💼 Balance: ${balance:.2f}
{RULE}"""


def format_status_alert(status: Dict, mode: BotMode) -> str:
    """Periodic summary from PositionEngine.get_status()"""
    realized = status["today_pnl"]
    unrealized = status["unrealized_pnl"]
    return f"""{RULE}
{_header(mode)} │ STATUS 📈
{RULE}
💰 Realized: ${realized:+.2f}
📊 Unrealized: ${unrealized:+.2f}
📈 Total: ${realized + unrealized:+.2f}
{RULE}
💼 Balance: ${status['balance']:.2f}
🎯 Positions: {status['open_positions']}
📊 Trades: {status['today_trades']} today | Win rate {status['win_rate']*100:.0f}%
{RULE}"""


class AlertManager:
    """
    Fire-and-forget notifications.

    Every send swallows its own failure: alerts never affect trading.
    """

    def __init__(self, settings: Optional[AlertConfig] = None, backend_url: Optional[str] = None):
        settings = settings or config.alerts
        backend = backend_url or config.api.backend_url
        self.notify_url = settings.notify_url or f"{backend}/notify"
        self.telegram_token = settings.telegram_token
        self.telegram_chat_id = settings.telegram_chat_id
        self.enabled = settings.enabled
        self.timeout = aiohttp.ClientTimeout(total=config.api.timeout)
        self._session: Optional[aiohttp.ClientSession] = None

        self.sent = 0
        self.failed = 0

    async def __aenter__(self):
        self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._session:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def send_notify(self, message: str) -> bool:
        """POST /notify {message}"""
        try:
            async with self.session.post(self.notify_url, json={"message": message}) as response:
                return response.status == 200
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug("Notify error: %s", e)
            return False

    async def send_telegram(self, message: str) -> bool:
        """Send directly to Telegram"""
        if not self.telegram_token or not self.telegram_chat_id:
            return False

        try:
            async with self.session.post(
                f"https://api.telegram.org/bot{self.telegram_token}/sendMessage",
                json={
                    "chat_id": self.telegram_chat_id,
                    "text": message,
                    "disable_web_page_preview": True,
                },
            ) as response:
                return response.status == 200
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug("Telegram error: %s", e)
            return False

    async def notify(self, message: str) -> List[bool]:
        """Send to all configured channels"""
        if not self.enabled:
            return []

        results = [await self.send_notify(message)]
        if self.telegram_token:
            results.append(await self.send_telegram(message))

        if any(results):
            self.sent += 1
        else:
            self.failed += 1
            logger.debug("Alert not delivered")
        return results

"""
Trading Backend Client - live orders and wallet through the signing backend.

The backend holds the private key; this client never sees it.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import config
from ..errors import ExternalOrderError, NetworkError
from ..models import MarketSnapshot, Side

logger = logging.getLogger(__name__)

MIN_GAS = 0.001  # Native balance needed to transact


@dataclass
class WalletInfo:
    address: str
    usdc_balance: float
    native_balance: float

    @property
    def has_gas(self) -> bool:
        return self.native_balance > MIN_GAS


@dataclass
class OrderResult:
    order_id: str
    status: str
    raw: Dict[str, Any]


class TradingClient:
    """Async client for the order-signing backend"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = base_url or config.api.backend_url
        self.timeout = aiohttp.ClientTimeout(total=timeout or config.api.timeout)
        self._session: Optional[aiohttp.ClientSession] = None

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

    async def health(self) -> Optional[Dict[str, Any]]:
        """None when the backend is down"""
        try:
            async with self.session.get(f"{self.base_url}/health") as response:
                if response.status == 200:
                    return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("Backend unavailable: %s", e)
        return None

    async def get_wallet_info(self) -> WalletInfo:
        try:
            async with self.session.get(f"{self.base_url}/api/wallet") as response:
                if response.status != 200:
                    raise NetworkError(f"Wallet API error: {response.status}")
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Wallet API unreachable: {e}") from e

        return WalletInfo(
            address=data.get("address") or "",
            usdc_balance=float(data.get("usdcBalance") or 0),
            native_balance=float(data.get("maticBalance") or 0),
        )

    async def place_limit_order(
        self, token_id: str, side: str, price: float, size: float
    ) -> OrderResult:
        """Create a GTC limit order. side is BUY or SELL."""
        payload = {
            "tokenId": token_id,
            "side": side.upper(),
            "price": f"{price:.4f}",
            "size": f"{size:.2f}",
            "type": "GTC",
        }
        try:
            async with self.session.post(
                f"{self.base_url}/api/order", json=payload
            ) as response:
                if response.status != 200:
                    detail = await response.text()
                    raise ExternalOrderError(f"Order rejected ({response.status}): {detail}")
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ExternalOrderError(f"Order backend unreachable: {e}") from e
        if not isinstance(data, dict):
            raise ExternalOrderError(f"Unexpected order reply: {data!r}")

        order_id = data.get("orderID") or data.get("orderId") or data.get("id") or ""
        logger.info("Order placed: %s %s @ %.3f ($%.2f) -> %s", side, token_id[:10], price, size, order_id)
        return OrderResult(order_id=str(order_id), status=str(data.get("status", "")), raw=data)

    async def cancel_order(self, order_id: str) -> bool:
        try:
            async with self.session.delete(
                f"{self.base_url}/api/order/{order_id}"
            ) as response:
                if response.status != 200:
                    raise ExternalOrderError(f"Cancel rejected ({response.status})")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ExternalOrderError(f"Order backend unreachable: {e}") from e
        return True

    async def get_open_orders(self) -> List[Dict[str, Any]]:
        try:
            async with self.session.get(f"{self.base_url}/api/orders") as response:
                if response.status != 200:
                    raise NetworkError(f"Orders API error: {response.status}")
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Orders API unreachable: {e}") from e
        return data if isinstance(data, list) else []

    async def execute_live_trade(
        self, market: MarketSnapshot, side: Side, price: float, size: float
    ) -> OrderResult:
        """
        Buy `side` of `market` at `price` for `size` dollars.

        price is the side token price (not the YES axis).
        """
        token_id = market.token_id(side)
        if not token_id:
            raise ExternalOrderError(f"No token id for {side.value} on {market.id}")
        return await self.place_limit_order(token_id, "BUY", price, size)

"""
Pytest fixtures for Polybot tests.

These fixtures provide real-like market data without mocking internal logic.
We only mock external calls (network I/O).
"""
import asyncio
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest

import sys
sys.path.insert(0, "src")

from polybot.config import DispatchConfig, EngineConfig
from polybot.errors import ExternalOrderError, NetworkError
from polybot.models import MarketSnapshot
from polybot.api.trading import OrderResult
from polybot.paper_trading.engine import PositionEngine


def snapshot(
    market_id: str = "0xmarket",
    yes: float = 0.50,
    no: Optional[float] = None,
    volume24h: float = 20000.0,
    previous: Optional[MarketSnapshot] = None,
    quotes: Optional[Dict[str, float]] = None,
    tokens=("yes_token", "no_token"),
) -> MarketSnapshot:
    """Market with +/-1% derived quotes unless `quotes` overrides them"""
    no = round(1 - yes, 6) if no is None else no
    q = {
        "yes_bid": yes * 0.99,
        "yes_ask": yes * 1.01,
        "no_bid": no * 0.99,
        "no_ask": no * 1.01,
    }
    q.update(quotes or {})
    return MarketSnapshot(
        id=market_id,
        question=f"Will {market_id} resolve YES?",
        slug=f"slug-{market_id}",
        yes_price=yes,
        no_price=no,
        volume=volume24h * 10,
        volume24h=volume24h,
        liquidity=50000.0,
        category="Test",
        clob_token_ids=tuple(f"{market_id}_{t}" for t in tokens),
        previous=previous,
        **q,
    )


@pytest.fixture
def make_market():
    return snapshot


class FakeClock:
    """Deterministic clock for the engine"""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 1, 15, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine_config():
    return EngineConfig()


@pytest.fixture
def engine(engine_config, clock):
    """Fresh $300 paper engine"""
    return PositionEngine(engine_config, clock=clock)


@pytest.fixture
def dispatch_config():
    return DispatchConfig()


# =============================================================================
# Mock clients - Only mock network I/O
# =============================================================================

class MockMarketClient:
    """
    Serves a fixed market list, or fails with NetworkError.
    get_quotes returns the snapshot's own quotes.
    """

    def __init__(self, markets: Optional[List[MarketSnapshot]] = None, fail: bool = False):
        self.markets = markets or []
        self.fail = fail
        self.fetches = 0
        self.quote_requests = 0

    async def fetch_markets(self, limit: Optional[int] = None) -> List[MarketSnapshot]:
        self.fetches += 1
        if self.fail:
            raise NetworkError("Markets API unreachable: connection refused")
        return list(self.markets)

    async def get_quotes(self, market: MarketSnapshot):
        self.quote_requests += 1
        return market.quotes

    async def close(self):
        pass


class MockTradingClient:
    """
    Records live orders. `fail` raises ExternalOrderError; `gate` holds the
    order call open until the test sets it.
    """

    def __init__(self, fail: bool = False, gate: Optional[asyncio.Event] = None):
        self.fail = fail
        self.gate = gate
        self.orders: List[dict] = []
        self.started: Optional[asyncio.Event] = None

    async def execute_live_trade(self, market, side, price, size) -> OrderResult:
        if self.started is not None:
            self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise ExternalOrderError("Order rejected (400): insufficient allowance")
        self.orders.append({"market": market.id, "side": side, "price": price, "size": size})
        return OrderResult(order_id=f"order-{len(self.orders)}", status="live", raw={})

    async def close(self):
        pass


@pytest.fixture
def market_client():
    return MockMarketClient()


@pytest.fixture
def trading_client():
    return MockTradingClient()


# =============================================================================
# Fake aiohttp session - for client tests
# =============================================================================

class FakeResponse:
    def __init__(self, status: int = 200, payload=None, text: str = ""):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """
    Stand-in for aiohttp.ClientSession.

    Responses are served in order (the last one repeats); `error` is
    raised from every request instead.
    """

    def __init__(self, *responses: FakeResponse, error: Optional[Exception] = None):
        self.responses = list(responses) or [FakeResponse()]
        self.error = error
        self.calls: List[tuple] = []
        self.closed = False

    def _request(self, method: str, url: str, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def get(self, url, **kwargs):
        return self._request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._request("POST", url, **kwargs)

    def delete(self, url, **kwargs):
        return self._request("DELETE", url, **kwargs)

    async def close(self):
        self.closed = True


@pytest.fixture
def raw_market() -> dict:
    """Venue market payload as the proxy returns it"""
    return {
        "id": "512345",
        "conditionId": "0xcond123",
        "question": "Will BTC close above $100k on Friday?",
        "slug": "btc-above-100k-friday",
        "category": "Crypto",
        "outcomePrices": '["0.62", "0.40"]',
        "bestBid": "0.61",
        "bestAsk": "0.63",
        "volume": "250000",
        "volume24hr": "42000",
        "liquidity": "18000",
        "clobTokenIds": '["111", "222"]',
        "active": True,
        "closed": False,
    }

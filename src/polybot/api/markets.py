"""
Market Data Client - markets and order books through the backend proxy
"""
import asyncio
import json
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import config
from ..errors import NetworkError, ValidationError
from ..models import MarketSnapshot, OrderBook, OrderBookLevel, Quotes, Side

logger = logging.getLogger(__name__)

MIN_PRICE = 0.01
MAX_PRICE = 0.99
QUOTE_SPREAD = 0.01  # Derived bid/ask when the venue gives none


def clamp_price(price: float) -> float:
    """Keep probabilities away from exact 0/1"""
    return min(max(price, MIN_PRICE), MAX_PRICE)


def _parse_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_json_list(value: Any) -> List[Any]:
    """Gamma encodes arrays as JSON strings: '["0.45", "0.55"]'"""
    if isinstance(value, list):
        return value
    if isinstance(value, str) and value:
        try:
            parsed = json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return [v.strip() for v in value.split(",") if v.strip()]
        return parsed if isinstance(parsed, list) else []
    return []


class MarketClient:
    """
    Async client for the market-data proxy.

    Remembers the previous poll so each new snapshot carries the same
    market from the last cycle (`MarketSnapshot.previous`).
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = base_url or config.api.api_url
        self.timeout = aiohttp.ClientTimeout(total=timeout or config.api.timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self._semaphore = asyncio.Semaphore(config.api.max_concurrent)
        self._previous: Dict[str, MarketSnapshot] = {}

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

    async def fetch_raw_markets(self, limit: int = 100) -> List[Dict[str, Any]]:
        """GET /markets?closed=false&limit=N"""
        params = {"closed": "false", "limit": limit}
        try:
            async with self.session.get(
                f"{self.base_url}/markets", params=params
            ) as response:
                if response.status != 200:
                    raise NetworkError(f"Markets API error: {response.status}")
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Markets API unreachable: {e}") from e

        if not isinstance(data, list):
            raise NetworkError("Markets API returned a non-list payload")
        return data

    def parse_market(
        self, raw: Dict[str, Any], previous: Optional[MarketSnapshot] = None
    ) -> Optional[MarketSnapshot]:
        """
        Parse a raw venue market into a snapshot.

        Returns None for closed/inactive markets; raises ValidationError
        when the record has no id or no usable price.
        """
        if not isinstance(raw, dict):
            raise ValidationError("Market record is not an object")

        market_id = raw.get("conditionId") or raw.get("id")
        if not market_id:
            raise ValidationError("Market record has no id")
        market_id = str(market_id)

        if raw.get("closed") is True or raw.get("active") is False:
            return None

        yes_price, no_price = self._parse_prices(raw)
        if yes_price is None or no_price is None:
            raise ValidationError(f"Market {market_id} has no usable price")
        yes_price = clamp_price(yes_price)
        no_price = clamp_price(no_price)

        # Real YES quotes when the venue gives a sane pair
        yes_bid = _parse_float(raw.get("bestBid"))
        yes_ask = _parse_float(raw.get("bestAsk"))
        if not (yes_bid and yes_ask and 0 < yes_bid < yes_ask < 1):
            yes_bid = yes_price * (1 - QUOTE_SPREAD)
            yes_ask = yes_price * (1 + QUOTE_SPREAD)

        volume = _parse_float(raw.get("volume")) or 0
        events = raw.get("events") or []
        event = events[0] if isinstance(events, list) and events else {}
        if not isinstance(event, dict):
            event = {}
        if previous is not None and previous.previous is not None:
            previous = _without_history(previous)

        return MarketSnapshot(
            id=market_id,
            question=raw.get("question") or raw.get("title") or "Unknown Market",
            slug=event.get("slug") or raw.get("slug") or raw.get("market_slug") or "",
            yes_price=yes_price,
            no_price=no_price,
            yes_bid=yes_bid,
            yes_ask=yes_ask,
            no_bid=no_price * (1 - QUOTE_SPREAD),
            no_ask=no_price * (1 + QUOTE_SPREAD),
            volume=volume,
            volume24h=_parse_float(raw.get("volume24hr")) or volume,
            liquidity=_parse_float(raw.get("liquidity")) or _parse_float(raw.get("liquidityNum")) or 0,
            category=event.get("title") or raw.get("category") or raw.get("groupItemTitle") or "Other",
            clob_token_ids=tuple(str(t) for t in _parse_json_list(raw.get("clobTokenIds"))),
            active=raw.get("active", True) is not False,
            closed=raw.get("closed") is True,
            previous=previous,
        )

    @staticmethod
    def _parse_prices(raw: Dict[str, Any]):
        prices = _parse_json_list(raw.get("outcomePrices"))
        if len(prices) >= 2:
            p0 = _parse_float(prices[0])
            p1 = _parse_float(prices[1])
            if p0 is not None and p1 is not None and 0 <= p0 <= 1 and 0 <= p1 <= 1:
                return p0, p1

        # Fallback on best bid
        bid = _parse_float(raw.get("bestBid"))
        if bid is not None and 0 < bid < 1:
            return bid, 1 - bid
        return None, None

    async def fetch_markets(self, limit: Optional[int] = None) -> List[MarketSnapshot]:
        """
        Fetch, parse and tag the current market list.

        Raises NetworkError; malformed records are skipped.
        """
        raw_markets = await self.fetch_raw_markets(limit or config.api.market_limit)
        markets = []

        for raw in raw_markets:
            market_id = (raw.get("conditionId") or raw.get("id")) if isinstance(raw, dict) else None
            try:
                market = self.parse_market(raw, self._previous.get(str(market_id)))
            except ValidationError as e:
                logger.warning("Skipping market: %s", e)
                continue
            if market:
                markets.append(market)

        self._previous = {m.id: m for m in markets}
        return markets

    async def get_order_book(self, token_id: str) -> Optional[OrderBook]:
        """GET /orderbook?token_id=T. None when unavailable."""
        async with self._semaphore:
            try:
                async with self.session.get(
                    f"{self.base_url}/orderbook", params={"token_id": token_id}
                ) as response:
                    if response.status == 200:
                        data = await response.json()
                        return self._parse_order_book(token_id, data)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.debug("Order book unavailable for %s: %s", token_id, e)
        return None

    def _parse_order_book(self, token_id: str, data: Dict) -> OrderBook:
        """Parse raw order book data"""
        bids = []
        asks = []

        for bid in data.get("bids", []):
            try:
                bids.append(
                    OrderBookLevel(price=float(bid["price"]), size=float(bid["size"]))
                )
            except (KeyError, ValueError, TypeError):
                continue

        for ask in data.get("asks", []):
            try:
                asks.append(
                    OrderBookLevel(price=float(ask["price"]), size=float(ask["size"]))
                )
            except (KeyError, ValueError, TypeError):
                continue

        # Sort: bids descending (best bid first), asks ascending (best ask first)
        bids.sort(key=lambda x: x.price, reverse=True)
        asks.sort(key=lambda x: x.price)

        return OrderBook(token_id=token_id, bids=bids, asks=asks)

    async def get_quotes(self, market: MarketSnapshot) -> Quotes:
        """
        Best bid/ask for both sides from the order books, falling back to
        the snapshot's own quotes per missing value.
        """
        fallback = market.quotes
        yes_token = market.token_id(Side.YES)
        no_token = market.token_id(Side.NO)
        if not yes_token or not no_token:
            return fallback

        yes_book, no_book = await asyncio.gather(
            self.get_order_book(yes_token), self.get_order_book(no_token)
        )

        def pick(book: Optional[OrderBook], attr: str, default: float) -> float:
            value = getattr(book, attr) if book else None
            return value if value and 0 < value < 1 else default

        return Quotes(
            yes_bid=pick(yes_book, "best_bid", fallback.yes_bid),
            yes_ask=pick(yes_book, "best_ask", fallback.yes_ask),
            no_bid=pick(no_book, "best_bid", fallback.no_bid),
            no_ask=pick(no_book, "best_ask", fallback.no_ask),
        )


def _without_history(market: MarketSnapshot) -> MarketSnapshot:
    """Drop the back-reference so snapshots only ever look one poll back"""
    return replace(market, previous=None)

"""
Data models for market snapshots and trading opportunities
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Tuple


class Side(Enum):
    """Outcome token of a binary market"""
    YES = "YES"
    NO = "NO"

    @property
    def sign(self) -> int:
        """P&L direction on the YES-probability axis"""
        return 1 if self is Side.YES else -1


class Action(Enum):
    """What an opportunity proposes to do"""
    BUY_YES = "BUY_YES"
    BUY_NO = "BUY_NO"
    BUY_BOTH = "BUY_BOTH"  # YES + NO < $1
    SELL_BOTH = "SELL_BOTH"  # YES + NO > $1


class StrategyCode(Enum):
    """Toggleable detector codes"""
    ARBITRAGE = "A"
    VALUE = "B"
    MOMENTUM = "C"


@dataclass
class OrderBookLevel:
    """Single level in order book"""
    price: float
    size: float


@dataclass
class OrderBook:
    """Order book for a token"""
    token_id: str
    bids: List[OrderBookLevel] = field(default_factory=list)
    asks: List[OrderBookLevel] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def best_bid(self) -> Optional[float]:
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> Optional[float]:
        return self.asks[0].price if self.asks else None

    @property
    def spread(self) -> Optional[float]:
        if self.best_bid and self.best_ask:
            return self.best_ask - self.best_bid
        return None


@dataclass(frozen=True)
class Quotes:
    """Best bid/ask for both sides of a market"""
    yes_bid: float
    yes_ask: float
    no_bid: float
    no_ask: float

    def bid(self, side: Side) -> float:
        return self.yes_bid if side is Side.YES else self.no_bid

    def ask(self, side: Side) -> float:
        return self.yes_ask if side is Side.YES else self.no_ask


@dataclass(frozen=True)
class MarketSnapshot:
    """
    One binary market as seen in a single poll.

    Prices are clamped to [0.01, 0.99]. Bid/ask default to +/-1% of the
    price when the venue gives no real quotes. `previous` is the same
    market from the prior poll (without its own history), or None.
    """
    id: str
    question: str
    slug: str
    yes_price: float
    no_price: float
    yes_bid: float
    yes_ask: float
    no_bid: float
    no_ask: float
    volume: float = 0
    volume24h: float = 0
    liquidity: float = 0
    category: str = ""
    clob_token_ids: Tuple[str, ...] = ()
    active: bool = True
    closed: bool = False
    previous: Optional["MarketSnapshot"] = field(default=None, compare=False, repr=False)

    @property
    def url(self) -> str:
        return f"https://polymarket.com/event/{self.slug}" if self.slug else ""

    @property
    def price_sum(self) -> float:
        return self.yes_price + self.no_price

    @property
    def quotes(self) -> Quotes:
        return Quotes(self.yes_bid, self.yes_ask, self.no_bid, self.no_ask)

    def price(self, side: Side) -> float:
        return self.yes_price if side is Side.YES else self.no_price

    def token_id(self, side: Side) -> Optional[str]:
        index = 0 if side is Side.YES else 1
        if len(self.clob_token_ids) > index:
            return self.clob_token_ids[index]
        return None


@dataclass
class Opportunity:
    """A candidate trade produced by a detector. Recomputed every poll."""
    type: str  # e.g. ARB_BINARY, FAVORITE_NO, SCALP_LONG
    market: MarketSnapshot
    action: Action
    signal: str
    expected_profit: float  # Percent
    confidence: float  # 0..1
    position_size: Optional[float] = None  # Fraction of balance
    strategy: StrategyCode = StrategyCode.ARBITRAGE

    @property
    def market_id(self) -> str:
        return self.market.id

    def to_dict(self) -> dict:
        """Convert to dictionary for display/export"""
        return {
            "type": self.type,
            "strategy": self.strategy.value,
            "market_id": self.market.id,
            "question": self.market.question[:100],
            "action": self.action.value,
            "signal": self.signal,
            "expected_profit": self.expected_profit,
            "confidence": self.confidence,
            "position_size": self.position_size,
        }

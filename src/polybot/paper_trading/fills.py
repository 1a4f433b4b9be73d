"""
Synthetic fill simulation for resting limit orders.

There is no order matching here. A PENDING order fills when the market
quote crosses our limit, or when the market moves at all (volatility is
what brings a counterparty to a resting maker order). Swap FillPolicy for
something book-aware to get a real simulation.
"""
from dataclasses import dataclass
from datetime import datetime

from ..models import MarketSnapshot
from .models import Position


def yes_frame(price: float, side) -> float:
    """Express a side token price on the YES-probability axis"""
    return price if side.sign > 0 else 1 - price


def mark_price(market: MarketSnapshot, side) -> float:
    """Exit quote for a long on `side`: the side's ask, on the YES axis"""
    return yes_frame(market.quotes.ask(side), side)


@dataclass
class FillPolicy:
    tolerance: float = 0.005
    epsilon: float = 0.001
    timeout: float = 120

    def crossed(self, position: Position, mark: float) -> bool:
        """The opposite quote came within `tolerance` of our limit"""
        return position.side.sign * (mark - position.limit_price) <= (
            self.tolerance * yes_frame(position.limit_price, position.side)
        )

    def moved(self, position: Position, market: MarketSnapshot) -> bool:
        return abs(market.price(position.side) - position.reference_price) > self.epsilon

    def should_fill(self, position: Position, market: MarketSnapshot) -> bool:
        mark = mark_price(market, position.side)
        return self.crossed(position, mark) or self.moved(position, market)

    def expired(self, position: Position, now: datetime) -> bool:
        return position.age_seconds(now) > self.timeout

"""
Extreme-Price Value Detector
Buys the near-certain side of lopsided markets for a small yield
"""
from typing import Iterable, List, Optional

from .base import Detector
from ..models import Action, MarketSnapshot, Opportunity, Side, StrategyCode


class ExtremePriceDetector(Detector):
    """
    When one side trades at or below the threshold (default 5%) on a market
    with real volume, buy the other side.

    Confidence is 0.85 at the threshold and grows the further below it the
    cheap side sits, capped at `extreme_max_confidence`.
    """

    code = StrategyCode.VALUE

    @property
    def name(self) -> str:
        return "extreme_value"

    def scan(self, markets: Iterable) -> List[Opportunity]:
        opportunities = []
        for market in markets:
            for cheap in (Side.YES, Side.NO):
                opp = self._check(market, cheap)
                if opp:
                    opportunities.append(opp)
        return opportunities

    def _check(self, market: MarketSnapshot, cheap: Side) -> Optional[Opportunity]:
        s = self.settings
        price = market.price(cheap)
        if price > s.extreme_threshold or market.volume24h <= s.extreme_min_volume:
            return None

        buy = Side.NO if cheap is Side.YES else Side.YES
        comp = market.price(buy)
        yield_pct = (1 - comp) / comp * 100
        confidence = min(
            0.85 + 0.5 * (s.extreme_threshold - price) / s.extreme_threshold,
            s.extreme_max_confidence,
        )

        return Opportunity(
            type=f"FAVORITE_{buy.value}",
            market=market,
            action=Action.BUY_NO if buy is Side.NO else Action.BUY_YES,
            signal=f"Safe {buy.value}: {cheap.value}={price*100:.1f}% | Yield +{yield_pct:.1f}%",
            expected_profit=yield_pct,
            confidence=confidence,
            position_size=s.extreme_position_size,
            strategy=self.code,
        )

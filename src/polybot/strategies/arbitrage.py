"""
Complement Arbitrage Detector
Flags markets where YES + NO drifts away from $1.00
"""
from typing import Iterable, List

from .base import Detector
from ..models import Action, Opportunity, StrategyCode


class ComplementArbitrageDetector(Detector):
    """
    Binary complement arbitrage.

    Settlement pays exactly $1.00 to one outcome, so YES + NO should sum to 1.

    Example:
        YES: $0.40
        NO:  $0.45
        Sum: $0.85  -> BUY_BOTH, expected profit 15%

    Sums outside [floor, ceiling] are treated as bad data, not opportunity.
    """

    code = StrategyCode.ARBITRAGE

    @property
    def name(self) -> str:
        return "complement_arbitrage"

    def scan(self, markets: Iterable) -> List[Opportunity]:
        s = self.settings
        opportunities = []

        for market in markets:
            total = market.price_sum
            deviation = abs(1 - total)

            if s.arb_floor < total < s.arb_under_threshold:
                action = Action.BUY_BOTH
                kind = "ARB_BINARY"
                signal = f"Arb: YES+NO={total*100:.1f}% | +{deviation*100:.1f}%"
            elif s.arb_over_threshold < total < s.arb_ceiling:
                action = Action.SELL_BOTH
                kind = "ARB_OVERPRICED"
                signal = f"Overpriced: YES+NO={total*100:.1f}% | +{deviation*100:.1f}%"
            else:
                continue

            opportunities.append(
                Opportunity(
                    type=kind,
                    market=market,
                    action=action,
                    signal=signal,
                    expected_profit=deviation * 100,
                    confidence=min(0.5 + deviation * 10, 1.0),
                    position_size=s.arb_position_size,
                    strategy=self.code,
                )
            )

        return opportunities

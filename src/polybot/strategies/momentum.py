"""
Momentum / Scalp Detector
Reacts to price and volume changes between consecutive polls
"""
import math
from typing import Iterable, List

from .base import Detector
from ..models import Action, MarketSnapshot, Opportunity, Side, StrategyCode


def cheaper_side(market: MarketSnapshot) -> Side:
    """The side that just got cheaper, or the one below 0.5 without history"""
    previous = market.previous
    if previous is not None:
        delta = market.yes_price - previous.yes_price
        if delta > 0:
            return Side.NO
        if delta < 0:
            return Side.YES
    return Side.YES if market.yes_price < 0.5 else Side.NO


def _buy(side: Side) -> Action:
    return Action.BUY_YES if side is Side.YES else Action.BUY_NO


class MomentumDetector(Detector):
    """
    Three signals:
    - scalp: YES moved more than `momentum_threshold` since the last poll
    - volume spike: 24h volume grew more than `volume_spike_threshold`
    - high volume: no history yet, very active balanced market

    Every signal buys the side that got cheaper.
    """

    code = StrategyCode.MOMENTUM

    @property
    def name(self) -> str:
        return "momentum_scalp"

    def scan(self, markets: Iterable) -> List[Opportunity]:
        s = self.settings
        opportunities = []

        for market in markets:
            previous = market.previous
            side = cheaper_side(market)

            if previous is None:
                if (
                    market.volume24h > s.high_volume_threshold
                    and 0.25 < market.yes_price < 0.75
                ):
                    opportunities.append(
                        Opportunity(
                            type="HIGH_VOL_PLAY",
                            market=market,
                            action=_buy(side),
                            signal=f"${market.volume24h/1000:.0f}k vol | YES {market.yes_price*100:.0f}%",
                            expected_profit=2 + math.log10(market.volume24h) * 0.5,
                            confidence=min(market.volume24h / 200000, 0.75),
                            position_size=s.momentum_position_size,
                            strategy=self.code,
                        )
                    )
                continue

            delta = market.yes_price - previous.yes_price
            if abs(delta) > s.momentum_threshold and market.volume24h > s.momentum_min_volume:
                opportunities.append(
                    Opportunity(
                        type="SCALP_SHORT" if delta > 0 else "SCALP_LONG",
                        market=market,
                        action=_buy(side),
                        signal=f"Scalp YES {delta*100:+.2f}% -> buy {side.value}",
                        expected_profit=abs(delta) * 50,
                        confidence=min(abs(delta) * 20, 0.8),
                        position_size=s.momentum_position_size,
                        strategy=self.code,
                    )
                )

            if market.volume24h > s.volume_spike_min_volume:
                vol_change = (market.volume24h - previous.volume24h) / (previous.volume24h or 1)
                if vol_change > s.volume_spike_threshold:
                    opportunities.append(
                        Opportunity(
                            type="VOLUME_SPIKE",
                            market=market,
                            action=_buy(side),
                            signal=f"Vol +{vol_change*100:.0f}% | ${market.volume24h/1000:.0f}k",
                            expected_profit=3 + vol_change * 10,
                            confidence=min(vol_change * 2, 0.85),
                            position_size=s.momentum_position_size,
                            strategy=self.code,
                        )
                    )

        return opportunities

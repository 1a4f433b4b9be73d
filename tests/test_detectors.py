"""
Tests for the opportunity detectors.

Tests verify:
- Complement arbitrage thresholds and profit math
- Extreme-price value detection and confidence bounds
- Momentum signals with and without history
- Ordering, toggling and the queue cap
"""
import pytest

import sys
sys.path.insert(0, "src")

from polybot.config import DetectorConfig
from polybot.models import Action, StrategyCode
from polybot.strategies import (
    ComplementArbitrageDetector,
    ExtremePriceDetector,
    MomentumDetector,
    collect_opportunities,
)


class TestComplementArbitrage:
    """Tests for YES + NO deviation"""

    def test_underpriced_market_detected(self, make_market):
        """0.40 + 0.45 = 0.85 -> BUY_BOTH, ~15% expected profit"""
        market = make_market("0xarb", yes=0.40, no=0.45)

        opps = ComplementArbitrageDetector().detect([market])

        assert len(opps) == 1
        opp = opps[0]
        assert opp.type == "ARB_BINARY"
        assert opp.action == Action.BUY_BOTH
        assert opp.expected_profit == pytest.approx(15.0)
        assert 0 <= opp.confidence <= 1.0
        assert opp.strategy == StrategyCode.ARBITRAGE

    def test_overpriced_market_detected(self, make_market):
        """0.55 + 0.52 = 1.07 -> SELL_BOTH"""
        market = make_market("0xover", yes=0.55, no=0.52)

        opps = ComplementArbitrageDetector().detect([market])

        assert len(opps) == 1
        assert opps[0].action == Action.SELL_BOTH
        assert opps[0].expected_profit == pytest.approx(7.0)

    def test_fair_market_ignored(self, make_market):
        """0.50 + 0.50 = 1.00 -> nothing"""
        assert ComplementArbitrageDetector().detect([make_market(yes=0.5, no=0.5)]) == []

    def test_small_deviation_within_tolerance(self, make_market):
        """0.498 + 0.500 is inside the 0.995 band"""
        assert ComplementArbitrageDetector().detect([make_market(yes=0.498, no=0.500)]) == []

    def test_implausible_sum_treated_as_bad_data(self, make_market):
        """Sums below the floor or above the ceiling are not arbitrage"""
        markets = [
            make_market("0xlow", yes=0.30, no=0.40),
            make_market("0xhigh", yes=0.70, no=0.60),
        ]
        assert ComplementArbitrageDetector().detect(markets) == []

    def test_confidence_capped_at_one(self, make_market):
        opps = ComplementArbitrageDetector().detect([make_market(yes=0.40, no=0.45)])
        assert opps[0].confidence == 1.0

    def test_confidence_grows_with_deviation(self, make_market):
        small = make_market("0xsmall", yes=0.49, no=0.49)
        large = make_market("0xlarge", yes=0.46, no=0.47)

        opps = ComplementArbitrageDetector().detect([small, large])

        assert [o.market_id for o in opps] == ["0xlarge", "0xsmall"]
        assert opps[0].confidence > opps[1].confidence


class TestExtremePriceValue:
    """Tests for near-certain side buying"""

    def test_low_yes_buys_no(self, make_market):
        """YES at 4% with $20k volume -> BUY_NO with high confidence"""
        market = make_market("0xfav", yes=0.04, no=0.96, volume24h=20000)

        opps = ExtremePriceDetector().detect([market])

        assert len(opps) == 1
        opp = opps[0]
        assert opp.action == Action.BUY_NO
        assert opp.type == "FAVORITE_NO"
        assert 0.8 < opp.confidence <= 1.0
        assert opp.expected_profit == pytest.approx((1 - 0.96) / 0.96 * 100)

    def test_low_no_buys_yes(self, make_market):
        market = make_market("0xfav", yes=0.97, no=0.03, volume24h=50000)

        opps = ExtremePriceDetector().detect([market])

        assert len(opps) == 1
        assert opps[0].action == Action.BUY_YES

    def test_low_volume_ignored(self, make_market):
        market = make_market("0xthin", yes=0.04, no=0.96, volume24h=5000)
        assert ExtremePriceDetector().detect([market]) == []

    def test_price_above_threshold_ignored(self, make_market):
        market = make_market("0xmid", yes=0.08, no=0.92, volume24h=50000)
        assert ExtremePriceDetector().detect([market]) == []

    def test_confidence_capped(self, make_market):
        """Deeper below the threshold never exceeds the cap"""
        market = make_market("0xdeep", yes=0.01, no=0.99, volume24h=50000)

        opp = ExtremePriceDetector().detect([market])[0]

        assert opp.confidence == pytest.approx(0.95)

    def test_confidence_at_threshold(self, make_market):
        market = make_market("0xedge", yes=0.05, no=0.95, volume24h=50000)

        opp = ExtremePriceDetector().detect([market])[0]

        assert opp.confidence == pytest.approx(0.85)


class TestMomentum:
    """Tests for delta and volume signals"""

    def test_rising_yes_buys_no(self, make_market):
        previous = make_market("0xmom", yes=0.50, volume24h=20000)
        market = make_market("0xmom", yes=0.52, volume24h=20000, previous=previous)

        opps = MomentumDetector().detect([market])

        assert len(opps) == 1
        assert opps[0].action == Action.BUY_NO
        assert opps[0].confidence == pytest.approx(min(0.02 * 20, 0.8))

    def test_falling_yes_buys_yes(self, make_market):
        previous = make_market("0xmom", yes=0.50, volume24h=20000)
        market = make_market("0xmom", yes=0.48, volume24h=20000, previous=previous)

        opps = MomentumDetector().detect([market])

        assert opps[0].action == Action.BUY_YES

    def test_small_delta_no_signal(self, make_market):
        previous = make_market("0xflat", yes=0.500, volume24h=20000)
        market = make_market("0xflat", yes=0.503, volume24h=20000, previous=previous)

        assert MomentumDetector().detect([market]) == []

    def test_no_history_no_delta_signal(self, make_market):
        """Without a previous snapshot, quiet markets produce nothing"""
        market = make_market("0xnew", yes=0.60, volume24h=20000)
        assert MomentumDetector().detect([market]) == []

    def test_no_history_high_volume(self, make_market):
        """Very active balanced market, no history -> buy the side under 0.5"""
        market = make_market("0xbusy", yes=0.60, volume24h=150000)

        opps = MomentumDetector().detect([market])

        assert len(opps) == 1
        assert opps[0].type == "HIGH_VOL_PLAY"
        assert opps[0].action == Action.BUY_NO
        assert opps[0].confidence == pytest.approx(0.75)

    def test_volume_spike(self, make_market):
        previous = make_market("0xspike", yes=0.40, volume24h=60000)
        market = make_market("0xspike", yes=0.40, volume24h=80000, previous=previous)

        opps = MomentumDetector().detect([market])

        assert [o.type for o in opps] == ["VOLUME_SPIKE"]
        assert opps[0].action == Action.BUY_YES


class TestOpportunityQueue:
    """Tests for ordering, toggles and cap"""

    def test_sorted_by_confidence_stable(self, make_market):
        """Equal confidence keeps market order"""
        markets = [
            make_market(f"0xarb{i}", yes=0.40, no=0.45) for i in range(3)
        ]

        opps = ComplementArbitrageDetector().detect(markets)

        assert [o.market_id for o in opps] == ["0xarb0", "0xarb1", "0xarb2"]

    def test_concatenated_in_strategy_order(self, make_market):
        arb = make_market("0xarb", yes=0.40, no=0.45)
        fav = make_market("0xfav", yes=0.04, no=0.96)

        opps = collect_opportunities([fav, arb], {StrategyCode.ARBITRAGE, StrategyCode.VALUE})

        assert [o.strategy for o in opps] == [StrategyCode.ARBITRAGE, StrategyCode.VALUE]

    def test_disabled_strategy_skipped(self, make_market):
        arb = make_market("0xarb", yes=0.40, no=0.45)
        fav = make_market("0xfav", yes=0.04, no=0.96)

        opps = collect_opportunities([arb, fav], {StrategyCode.VALUE})

        assert [o.market_id for o in opps] == ["0xfav"]

    def test_no_strategies_no_queue(self, make_market):
        assert collect_opportunities([make_market(yes=0.40, no=0.45)], set()) == []

    def test_queue_capped(self, make_market):
        markets = [make_market(f"0xarb{i}", yes=0.40, no=0.45) for i in range(80)]

        opps = collect_opportunities(markets, {StrategyCode.ARBITRAGE}, cap=50)

        assert len(opps) == 50

    def test_custom_thresholds(self, make_market):
        settings = DetectorConfig(extreme_threshold=0.10)
        market = make_market("0xwide", yes=0.08, no=0.92, volume24h=50000)

        assert len(ExtremePriceDetector(settings).detect([market])) == 1

"""
Tests for Summary Chart Generation.
"""
import pytest
import tempfile
from pathlib import Path

import sys
sys.path.insert(0, "src")

from polybot.models import Side
from polybot.paper_trading.models import BotMode
from polybot.paper_trading.summary_chart import SummaryChart


def trade_round(engine, make_market, market_id, strategy, exit_yes):
    """Open a YES position at 0.50 and mark it once at exit_yes"""
    market = make_market(market_id, yes=0.50)
    q = market.quotes
    engine.open_position(engine.build_position(market, Side.YES, 10, strategy, q.yes_bid, q.yes_ask))
    engine.apply_snapshot([make_market(market_id, yes=exit_yes)])


class TestSummaryChartGeneration:
    """Tests for PNG summary chart generation"""

    def test_generate_chart_creates_file(self, engine, make_market):
        """save() creates a PNG file"""
        for i in range(5):
            trade_round(engine, make_market, f"0xtest{i}", "A", 0.52)

        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = Path(tmpdir) / "summary.png"

            chart = SummaryChart(engine)
            result = chart.save(str(filepath))

            assert filepath.exists()
            assert result == str(filepath)
            # File should be non-empty PNG
            assert filepath.stat().st_size > 1000

    def test_generate_chart_with_no_trades(self, engine):
        """Chart generation works with no trades"""
        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = Path(tmpdir) / "empty.png"

            SummaryChart(engine).save(str(filepath))

            assert filepath.exists()

    def test_title_shows_mode(self, engine):
        engine.account.mode = BotMode.LIVE
        assert "[LIVE]" in SummaryChart(engine)._get_title()


class TestSummaryChartMetrics:
    """Tests for metrics extraction"""

    def test_metrics_include_pnl(self, engine, make_market):
        trade_round(engine, make_market, "0xtest", "A", 0.52)

        chart = SummaryChart(engine)

        assert chart.metrics["initial_balance"] == 300
        assert chart.metrics["total_pnl"] > 0
        assert "return_percent" in chart.metrics

    def test_strategy_pnl(self, engine, make_market):
        trade_round(engine, make_market, "0xwin", "A", 0.52)
        trade_round(engine, make_market, "0xloss", "C", 0.45)

        pnl = SummaryChart(engine).strategy_pnl()

        assert pnl["A"] > 0
        assert pnl["C"] < 0

    def test_close_reasons(self, engine, make_market):
        trade_round(engine, make_market, "0xwin", "A", 0.52)
        trade_round(engine, make_market, "0xloss", "C", 0.45)
        trade_round(engine, make_market, "0xloss2", "C", 0.45)

        assert SummaryChart(engine).close_reasons() == {"TAKE_PROFIT": 1, "STOP_LOSS": 2}

    def test_snapshot_of_trades(self, engine, make_market):
        """Chart keeps the ledger as it was when built"""
        chart = SummaryChart(engine)
        trade_round(engine, make_market, "0xlater", "A", 0.52)

        assert chart.trades == []
        assert chart.metrics["total_trades"] == 0

"""
Summary Chart Generator - PNG output for a trading session.

Simple matplotlib-based chart generation.
No external UI dependencies.
"""
from collections import Counter, defaultdict
from typing import Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from .engine import PositionEngine


class SummaryChart:
    """
    Generates PNG summary chart from PositionEngine results.

    Usage:
        engine = PositionEngine()
        # ... open and close positions ...

        chart = SummaryChart(engine)
        chart.save("summary.png")
    """

    def __init__(self, engine: "PositionEngine"):
        self.engine = engine
        self.metrics = engine.get_status()
        self.trades = list(engine.trades)

    def save(self, filepath: str) -> str:
        """
        Save summary chart as PNG.

        Args:
            filepath: Output path (e.g., "summary.png")

        Returns:
            Saved file path
        """
        # Import matplotlib only when needed
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        fig, axes = plt.subplots(2, 2, figsize=(12, 8))
        fig.suptitle(self._get_title(), fontsize=14, fontweight='bold')

        self._draw_metrics_card(axes[0, 0])
        self._draw_equity_curve(axes[0, 1])
        self._draw_strategy_pnl(axes[1, 0])
        self._draw_close_reasons(axes[1, 1])

        plt.tight_layout()
        plt.savefig(filepath, dpi=150, bbox_inches='tight')
        plt.close(fig)

        return filepath

    def _get_title(self) -> str:
        mode = self.metrics.get("mode", "paper")
        return f"Polybot Session Summary [{mode.upper()}]"

    def strategy_pnl(self) -> Dict[str, float]:
        """Net P&L per strategy tag"""
        pnl: Dict[str, float] = defaultdict(float)
        for trade in self.trades:
            pnl[trade.strategy] += trade.profit
        return dict(pnl)

    def close_reasons(self) -> Dict[str, int]:
        return dict(Counter(t.close_reason.value for t in self.trades))

    def _draw_metrics_card(self, ax):
        """Draw key metrics as text card"""
        ax.axis('off')

        metrics_text = [
            f"Initial Balance: ${self.metrics['initial_balance']:,.2f}",
            f"Balance:         ${self.metrics['balance']:,.2f}",
            f"Open Positions:  {self.metrics['open_positions']}",
            "",
            f"Realized P&L:    ${self.metrics['realized_pnl']:+,.2f}",
            f"Return:          {self.metrics['return_percent']:+.2f}%",
            "",
            f"Trades:          {self.metrics['total_trades']}",
            f"Win Rate:        {self.metrics['win_rate']*100:.1f}%",
        ]

        ax.text(0.1, 0.95, "KEY METRICS", fontsize=12, fontweight='bold',
                transform=ax.transAxes, verticalalignment='top')

        for i, line in enumerate(metrics_text):
            ax.text(0.1, 0.82 - i * 0.085, line, fontsize=10,
                    transform=ax.transAxes, fontfamily='monospace')

    def _draw_equity_curve(self, ax):
        """Cumulative realized P&L over the kept ledger"""
        ax.set_title('Cumulative P&L', fontsize=12, fontweight='bold')
        ax.set_ylabel('USD')

        if not self.trades:
            ax.text(0.5, 0.5, "No trades", ha='center', va='center',
                    transform=ax.transAxes, color='gray')
            return

        running = 0.0
        curve = []
        for trade in self.trades:
            running += trade.profit
            curve.append(running)

        color = '#2ecc71' if running >= 0 else '#e74c3c'
        ax.plot(range(1, len(curve) + 1), curve, color=color, linewidth=1.5)
        ax.axhline(y=0, color='black', linewidth=0.5)
        ax.set_xlabel('Trade #')

    def _draw_strategy_pnl(self, ax):
        ax.set_title('P&L by Strategy', fontsize=12, fontweight='bold')
        pnl = self.strategy_pnl()
        if not pnl:
            ax.axis('off')
            return

        names = list(pnl.keys())
        values = [pnl[n] for n in names]
        colors = ['#2ecc71' if v >= 0 else '#e74c3c' for v in values]
        ax.barh(names, values, color=colors, height=0.5)
        ax.axvline(x=0, color='black', linewidth=0.5)
        ax.set_xlabel('USD')

    def _draw_close_reasons(self, ax):
        ax.set_title('Close Reasons', fontsize=12, fontweight='bold')
        reasons = self.close_reasons()
        if not reasons:
            ax.axis('off')
            return

        ax.pie(list(reasons.values()), labels=list(reasons.keys()),
               autopct='%1.0f%%', textprops={'fontsize': 9})

"""
Trading Dashboard - live view and controls for the bot with NiceGUI

Usage:
    polybot dashboard
    polybot dashboard --port 3000
"""
from typing import Optional

from nicegui import app, ui

from .alerts import AlertManager
from .bot import TradingBot
from .config import config
from .models import StrategyCode
from .paper_trading import BotMode
from .storage import LocalStore
from .sync import RemoteStateStore

STRATEGY_LABELS = {
    StrategyCode.ARBITRAGE: "A - Complement arbitrage",
    StrategyCode.VALUE: "B - Extreme-price value",
    StrategyCode.MOMENTUM: "C - Momentum / scalp",
}

OPPORTUNITY_COLUMNS = [
    {"name": "strategy", "label": "Strat", "field": "strategy"},
    {"name": "type", "label": "Type", "field": "type"},
    {"name": "question", "label": "Market", "field": "question", "align": "left"},
    {"name": "action", "label": "Action", "field": "action"},
    {"name": "profit", "label": "Exp. %", "field": "profit"},
    {"name": "confidence", "label": "Conf.", "field": "confidence"},
]

POSITION_COLUMNS = [
    {"name": "market", "label": "Market", "field": "market", "align": "left"},
    {"name": "side", "label": "Side", "field": "side"},
    {"name": "status", "label": "Order", "field": "status"},
    {"name": "entry", "label": "Entry", "field": "entry"},
    {"name": "current", "label": "Mark", "field": "current"},
    {"name": "size", "label": "Size", "field": "size"},
    {"name": "pnl", "label": "P&L", "field": "pnl"},
]

TRADE_COLUMNS = [
    {"name": "time", "label": "Time", "field": "time"},
    {"name": "strategy", "label": "Strat", "field": "strategy"},
    {"name": "market", "label": "Market", "field": "market", "align": "left"},
    {"name": "side", "label": "Side", "field": "side"},
    {"name": "reason", "label": "Exit", "field": "reason"},
    {"name": "profit", "label": "P&L", "field": "profit"},
]


class Dashboard:
    """NiceGUI dashboard bound to one TradingBot"""

    def __init__(self, bot: TradingBot):
        self.bot = bot

        # UI elements
        self.balance_label = None
        self.pnl_label = None
        self.unrealized_label = None
        self.trades_label = None
        self.win_rate_label = None
        self.status_indicator = None
        self.connection_label = None
        self.error_label = None
        self.start_btn = None
        self.stop_btn = None
        self.mode_select = None
        self.strategy_switches = {}
        self.opportunity_table = None
        self.position_table = None
        self.trade_table = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def startup(self):
        """Load state and start the background tasks"""
        await self.bot.load_state()
        self.bot.setup_tasks()
        for name in ("poll", "sync", "status"):
            self.bot.scheduler.start(name)
        if self.bot.can_dispatch:
            self.bot.scheduler.start("dispatch")

    async def shutdown(self):
        await self.bot.shutdown()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def build_ui(self):
        """Build the dashboard UI"""
        ui.dark_mode(True)
        account = self.bot.account

        with ui.header().classes("bg-slate-800 justify-between"):
            ui.label("Polybot").classes("text-xl font-bold")
            with ui.row().classes("gap-2 items-center"):
                self.connection_label = ui.label("OFFLINE").classes("text-sm text-gray-300")
                self.status_indicator = ui.label("STOPPED").classes(
                    "px-3 py-1 rounded bg-red-600 text-white text-sm"
                )

        with ui.row().classes("w-full gap-4 p-4"):
            # Left panel - Controls
            with ui.card().classes("w-72"):
                ui.label("Controls").classes("text-lg font-bold mb-2")

                self.mode_select = ui.select(
                    label="Mode",
                    options={"paper": "Paper", "live": "Live (real orders)"},
                    value=account.mode.value,
                    on_change=lambda e: self.bot.set_mode(e.value),
                ).classes("w-full")

                with ui.row().classes("gap-2 w-full"):
                    self.start_btn = ui.button("Start", on_click=self._start).classes(
                        "flex-1 bg-green-600"
                    )
                    self.stop_btn = ui.button("Stop", on_click=self._stop).classes(
                        "flex-1 bg-red-600"
                    )

                ui.separator()
                ui.label("Strategies").classes("text-sm text-gray-400")
                for code, label in STRATEGY_LABELS.items():
                    self.strategy_switches[code] = ui.switch(
                        label,
                        value=code in account.active_strategies,
                        on_change=lambda e, c=code: self._toggle(c, e.value),
                    )

                ui.separator()
                ui.button("Reset stats", on_click=self._reset).classes("w-full bg-slate-600")
                self.error_label = ui.label("").classes("text-xs text-red-400")

            # Center panel - Stats
            with ui.card().classes("flex-1"):
                ui.label("Performance").classes("text-lg font-bold mb-4")

                with ui.row().classes("gap-8 justify-center"):
                    with ui.column().classes("items-center"):
                        ui.label("Balance").classes("text-gray-400 text-sm")
                        self.balance_label = ui.label("$0.00").classes("text-2xl font-bold")

                    with ui.column().classes("items-center"):
                        ui.label("Realized P&L").classes("text-gray-400 text-sm")
                        self.pnl_label = ui.label("$0.00").classes(
                            "text-2xl font-bold text-green-500"
                        )

                    with ui.column().classes("items-center"):
                        ui.label("Unrealized").classes("text-gray-400 text-sm")
                        self.unrealized_label = ui.label("$0.00").classes("text-2xl font-bold")

                    with ui.column().classes("items-center"):
                        ui.label("Trades").classes("text-gray-400 text-sm")
                        self.trades_label = ui.label("0").classes("text-2xl font-bold")

                    with ui.column().classes("items-center"):
                        ui.label("Win Rate").classes("text-gray-400 text-sm")
                        self.win_rate_label = ui.label("0%").classes("text-2xl font-bold")

                ui.separator()
                ui.label("Opportunities").classes("text-md font-bold")
                self.opportunity_table = ui.table(
                    columns=OPPORTUNITY_COLUMNS, rows=[], row_key="key"
                ).classes("w-full")

        with ui.row().classes("w-full gap-4 px-4 pb-4"):
            with ui.card().classes("flex-1"):
                ui.label("Open Positions").classes("text-lg font-bold mb-2")
                self.position_table = ui.table(
                    columns=POSITION_COLUMNS, rows=[], row_key="id"
                ).classes("w-full")

            with ui.card().classes("flex-1"):
                ui.label("Recent Trades").classes("text-lg font-bold mb-2")
                self.trade_table = ui.table(
                    columns=TRADE_COLUMNS, rows=[], row_key="id"
                ).classes("w-full")

        ui.timer(1.0, self._update_ui)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def _update_ui(self):
        """Update all UI elements from the bot's current state"""
        bot = self.bot
        status = bot.engine.get_status()

        self.balance_label.text = f"${status['balance']:,.2f}"
        pnl = status["realized_pnl"]
        color = "text-green-500" if pnl >= 0 else "text-red-500"
        self.pnl_label.text = f"${pnl:+,.2f}"
        self.pnl_label.classes(remove="text-green-500 text-red-500", add=color)
        self.unrealized_label.text = f"${status['unrealized_pnl']:+,.2f}"
        self.trades_label.text = f"{status['total_trades']}"
        self.win_rate_label.text = f"{status['win_rate']*100:.0f}%"

        if bot.is_running:
            self.status_indicator.text = "RUNNING"
            self.status_indicator.classes(remove="bg-red-600", add="bg-green-600")
        else:
            self.status_indicator.text = "STOPPED"
            self.status_indicator.classes(remove="bg-green-600", add="bg-red-600")
        self.connection_label.text = "ONLINE" if bot.connected else "OFFLINE"
        self.error_label.text = bot.last_error or ""

        # Controls follow loaded or synced state
        account = bot.account
        for code, switch in self.strategy_switches.items():
            enabled = code in account.active_strategies
            if switch.value != enabled:
                switch.value = enabled
        if self.mode_select.value != account.mode.value:
            self.mode_select.value = account.mode.value

        self.opportunity_table.rows = [
            {
                "key": f"{i}-{o.market_id}",
                "strategy": o.strategy.value,
                "type": o.type,
                "question": o.market.question[:50],
                "action": o.action.value,
                "profit": f"{o.expected_profit:.1f}",
                "confidence": f"{o.confidence:.2f}",
            }
            for i, o in enumerate(bot.opportunities[:15])
        ]
        self.opportunity_table.update()

        self.position_table.rows = [
            {
                "id": p.id,
                "market": (p.market_slug or p.market_id)[:30],
                "side": p.side.value,
                "status": p.order_status.value,
                "entry": f"{p.entry_price:.3f}",
                "current": f"{p.current_price:.3f}" if p.current_price is not None else "-",
                "size": f"${p.size:.2f}",
                "pnl": f"${p.unrealized_pnl:+.2f}",
            }
            for p in bot.engine.open_positions
        ]
        self.position_table.update()

        self.trade_table.rows = [
            {
                "id": t.id,
                "time": t.timestamp.strftime("%H:%M:%S"),
                "strategy": t.strategy,
                "market": t.market[:30],
                "side": t.side.value,
                "reason": t.close_reason.value,
                "profit": f"${t.profit:+.2f}",
            }
            for t in reversed(bot.engine.trades[-20:])
        ]
        self.trade_table.update()

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def _start(self):
        if self.bot.account.mode is BotMode.LIVE:
            ui.notify("Live mode: real orders will be placed", type="warning")
        if not self.bot.start():
            ui.notify("Viewer role is read-only", type="negative")
        elif not self.bot.account.active_strategies:
            ui.notify("Enable at least one strategy to trade", type="info")

    def _stop(self):
        self.bot.stop()

    def _toggle(self, code: StrategyCode, enabled: bool):
        if (code in self.bot.account.active_strategies) != enabled:
            self.bot.toggle_strategy(code)
        if self.bot.is_running and self.bot.can_dispatch:
            self.bot.scheduler.start("dispatch")

    def _reset(self):
        self.bot.reset()
        ui.notify("Stats reset")


def run_dashboard(port: int = 8050, role: Optional[str] = None, enable_alerts: bool = True):
    """Run the dashboard"""
    bot = TradingBot(
        store=LocalStore(),
        alerts=AlertManager() if enable_alerts else None,
        remote=RemoteStateStore(),
        role=role,
    )
    dashboard = Dashboard(bot)
    dashboard.build_ui()
    app.on_startup(dashboard.startup)
    app.on_shutdown(dashboard.shutdown)

    print(f"\n  Dashboard starting at http://localhost:{port}")
    print(f"  Market data: {config.api.api_url}")
    print("  Press Ctrl+C to stop\n")

    ui.run(
        port=port,
        title="Polybot",
        reload=False,
        show=False,  # Don't auto-open browser
    )

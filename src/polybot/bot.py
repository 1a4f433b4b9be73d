"""
Trading bot - owns the engine and wires fetcher, detectors, dispatcher and sync
"""
import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Set, Union

from .alerts import AlertManager, format_status_alert, format_win_alert
from .api.markets import MarketClient
from .api.trading import TradingClient
from .config import Config, config
from .dispatcher import OrderDispatcher
from .errors import NetworkError, PersistenceError
from .models import MarketSnapshot, Opportunity, StrategyCode
from .paper_trading.engine import MarkResult, PositionEngine
from .paper_trading.models import BotMode, BotStatus, Trade
from .scheduler import Scheduler
from .storage import LocalStore
from .strategies import build_detectors, collect_opportunities
from .sync import RemoteStateStore, StateSync

logger = logging.getLogger(__name__)


class TradingBot:
    """
    Single owner of all mutable trading state.

    The engine's positions, ledger and balance change only through
    `poll()` (mark-to-market), the dispatcher's tick, sync restores and the
    explicit controls below. All of them run on one event loop and never
    hold state across an await.

    Usage:
        bot = TradingBot(store=LocalStore())
        await bot.load_state()
        bot.start()
        await bot.run()
    """

    def __init__(
        self,
        market_client: Optional[MarketClient] = None,
        trading_client: Optional[TradingClient] = None,
        engine: Optional[PositionEngine] = None,
        store: Optional[LocalStore] = None,
        alerts: Optional[AlertManager] = None,
        remote: Optional[RemoteStateStore] = None,
        settings: Optional[Config] = None,
        role: Optional[str] = None,
    ):
        self.settings = settings or config
        if role:
            self.settings = replace(self.settings, sync=replace(self.settings.sync, role=role))

        self.engine = engine or PositionEngine(self.settings.engine)
        self.market_client = market_client or MarketClient()
        self.trading_client = trading_client or TradingClient()
        self.store = store
        self.alerts = alerts
        self.detectors = build_detectors(self.settings.detectors)
        self.dispatcher = OrderDispatcher(
            self, self.market_client, self.trading_client, self.settings.dispatch
        )
        self.scheduler = Scheduler()
        self.sync: Optional[StateSync] = None
        if remote is not None and remote.enabled:
            self.sync = StateSync(self, remote, self.settings.sync)

        # Latest poll
        self.markets: List[MarketSnapshot] = []
        self.opportunities: List[Opportunity] = []
        self.last_poll: Optional[datetime] = None
        self.polls = 0

        # Connectivity / errors
        self.connected = False
        self.last_error: Optional[str] = None
        self.last_error_at: Optional[datetime] = None

        self._alert_tasks: Set[asyncio.Task] = set()

        self.engine.on_position_close = self._on_close
        self.engine.on_change = self._on_change

    # ------------------------------------------------------------------
    # State readers
    # ------------------------------------------------------------------

    @property
    def account(self):
        return self.engine.account

    @property
    def is_running(self) -> bool:
        return self.engine.account.is_running

    @property
    def read_only(self) -> bool:
        """Viewers mirror the writer's state and never trade"""
        return not self.settings.sync.is_writer

    @property
    def can_dispatch(self) -> bool:
        account = self.engine.account
        return account.is_running and bool(account.active_strategies) and not self.read_only

    def record_error(self, message: str):
        self.last_error = message
        self.last_error_at = datetime.now()

    # ------------------------------------------------------------------
    # Poll cycle
    # ------------------------------------------------------------------

    async def poll(self) -> Optional[MarkResult]:
        """Fetch, mark open positions, rebuild the opportunity queue"""
        try:
            markets = await self.market_client.fetch_markets(self.settings.api.market_limit)
        except NetworkError as e:
            # Keep prior markets and queue
            self.connected = False
            self.record_error(str(e))
            logger.warning("Market poll failed: %s", e)
            return None
        return self.apply_markets(markets)

    def apply_markets(self, markets: List[MarketSnapshot]) -> Optional[MarkResult]:
        self.connected = True
        self.markets = markets
        self.last_poll = datetime.now()
        self.polls += 1

        result = None
        if not self.read_only:
            result = self.engine.apply_snapshot(markets)

        self.opportunities = collect_opportunities(
            markets,
            self.engine.account.active_strategies,
            self.detectors,
            self.settings.detectors.max_opportunities,
        )
        logger.debug(
            "Poll %d: %d markets, %d opportunities", self.polls, len(markets), len(self.opportunities)
        )
        return result

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def start(self) -> bool:
        if self.read_only:
            logger.warning("Viewer role cannot start trading")
            return False
        self.engine.account.status = BotStatus.RUNNING
        if self.scheduler.get("dispatch"):
            self.scheduler.start("dispatch")
        self._persist()
        logger.info("Bot started (%s)", self.engine.account.mode.value)
        return True

    def stop(self):
        """Halt dispatch now; an order already in flight is dropped on return"""
        self.engine.account.status = BotStatus.STOPPED
        self.scheduler.stop("dispatch")
        self._persist()
        logger.info("Bot stopped")

    def toggle_strategy(self, code: Union[StrategyCode, str]) -> bool:
        """Flip a detector on/off. Returns whether it is now enabled."""
        code = StrategyCode(code)
        active = self.engine.account.active_strategies
        if code in active:
            active.discard(code)
        else:
            active.add(code)
        self._persist()
        return code in active

    def set_strategies(self, codes):
        """Replace the enabled detector set, e.g. "ABC" or [StrategyCode.VALUE]"""
        self.engine.account.active_strategies = {StrategyCode(c) for c in codes}
        self._persist()

    def set_mode(self, mode: Union[BotMode, str]):
        self.engine.account.mode = BotMode(mode)
        self._persist()
        logger.info("Mode set to %s", self.engine.account.mode.value)

    def reset(self):
        """Clear stats, ledger and positions; keep starting balance"""
        self.engine.reset()
        logger.info("Account reset to $%.2f", self.engine.account.balance)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def load_state(self) -> str:
        """
        Initialize from the remote store, else the local files, else
        defaults. Returns which one was used.
        """
        if self.sync is not None:
            try:
                state = await self.sync.store.load_state(self.settings.sync.state_key)
            except PersistenceError as e:
                logger.warning("Remote state unavailable: %s", e)
                self.record_error(str(e))
            else:
                if state is not None:
                    self.engine.restore(state["account"], state["positions"], state["trades"])
                    return "remote"

        if self.store is not None:
            account = self.store.load_account()
            positions = self.store.load_positions()
            trades = self.store.load_trades()
            if account is not None or positions or trades:
                self.engine.restore(account or self.engine.account, positions, trades)
                return "local"

        return "defaults"

    def _on_change(self, engine: PositionEngine):
        self._persist()

    def _persist(self):
        if self.store is None:
            return
        try:
            self.store.save_engine(self.engine)
        except PersistenceError as e:
            logger.warning("Local save failed: %s", e)
            self.record_error(str(e))

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def _on_close(self, trade: Trade):
        if trade.profit > 0 and self.alerts is not None:
            self._fire(format_win_alert(trade, self.engine.account.mode, self.engine.account.balance))

    def _fire(self, message: str):
        """Schedule an alert without waiting for it"""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.alerts.notify(message))
        self._alert_tasks.add(task)
        task.add_done_callback(self._alert_tasks.discard)

    async def report(self):
        """Console status box plus the periodic status alert"""
        self.engine.print_status()
        self.engine.print_recent_trades()
        if self.last_error:
            print(f"  ⚠️  Last error: {self.last_error}")
        if self.alerts is not None:
            await self.alerts.notify(
                format_status_alert(self.engine.get_status(), self.engine.account.mode)
            )

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def setup_tasks(self):
        s = self.settings
        self.scheduler.add("poll", s.dispatch.poll_interval, self.poll)
        self.scheduler.add("dispatch", s.dispatch.tick_interval, self.dispatcher.tick)
        if self.sync is not None:
            self.sync.register(self.scheduler)
        self.scheduler.add("status", s.alerts.status_interval, self.report, run_immediately=False)

    async def run(self, duration: Optional[float] = None):
        """Run until cancelled, or for `duration` seconds"""
        self._print_banner()
        self.setup_tasks()
        for name in ("poll", "sync", "status"):
            self.scheduler.start(name)
        if self.can_dispatch:
            self.scheduler.start("dispatch")

        try:
            if duration:
                await asyncio.sleep(duration)
            else:
                await asyncio.Event().wait()
        finally:
            await self.shutdown()

    async def shutdown(self):
        await self.scheduler.shutdown()
        if self._alert_tasks:
            await asyncio.gather(*self._alert_tasks, return_exceptions=True)
        if self.sync is not None and self.sync.is_writer:
            await self.sync.push()
        await self.close()

    async def close(self):
        await self.market_client.close()
        await self.trading_client.close()
        if self.alerts is not None:
            await self.alerts.close()
        if self.sync is not None:
            await self.sync.store.close()

    def _print_banner(self):
        s = self.settings
        account = self.engine.account
        strategies = ", ".join(sorted(c.value for c in account.active_strategies)) or "none"

        print("\n" + "=" * 64)
        print("🤖 Polybot - prediction market trading bot")
        print("=" * 64)
        print(f"   Mode:        {account.mode.value.upper()}")
        print(f"   Role:        {s.sync.role}{' (read-only)' if self.read_only else ''}")
        print(f"   Balance:     ${account.balance:,.2f}")
        print(f"   Strategies:  {strategies}")
        print(f"   Poll/Tick:   {s.dispatch.poll_interval:g}s / {s.dispatch.tick_interval:g}s")
        print(f"   Max Open:    {s.dispatch.max_open_positions}")
        print(f"   Sync:        {'Supabase' if self.sync else 'local only'}")
        print(f"   Alerts:      {'enabled' if self.alerts else 'disabled'}")
        print("=" * 64)
        print("\n⚡ Starting bot... (Ctrl+C to stop)\n")

"""Position Engine - paper position lifecycle, P&L and account bookkeeping"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..config import EngineConfig, config
from ..models import MarketSnapshot
from .fills import FillPolicy, mark_price, yes_frame
from .models import AccountState, CloseReason, OrderStatus, Position, Trade

logger = logging.getLogger(__name__)


def calculate_pnl(
    position: Position,
    exit_price: float,
    trading_fee: float,
    profit_fee: float,
) -> Tuple[float, float, float]:
    """
    P&L of closing `position` at `exit_price` (YES axis).

    Returns (gross, fees, net). Fees are a flat round-trip trading fee on
    the notional plus a venue fee on gross profit only, so net <= gross.
    """
    gross = position.side.sign * (exit_price - position.entry_price) * position.tokens
    fees = position.size * trading_fee * 2
    if gross > 0:
        fees += gross * profit_fee
    return gross, fees, gross - fees


@dataclass
class MarkResult:
    """What one mark-to-market pass did"""
    filled: List[Position] = field(default_factory=list)
    closed: List[Trade] = field(default_factory=list)
    cancelled: List[Position] = field(default_factory=list)
    skipped: int = 0  # Positions whose market was missing from the snapshot

    @property
    def changed(self) -> bool:
        return bool(self.filled or self.closed or self.cancelled)


class PositionEngine:
    """
    Owns the open-position set, the trade ledger and the account balance.

    - open_position() debits the notional
    - apply_snapshot() fills pending orders, marks filled positions to
      market and closes them on stop-loss / take-profit / timeout
    - closing credits notional + net P&L back and appends a Trade

    Invariant: balance == starting_balance + sum(net P&L of every close)
    - sum(size of open positions), for as long as nothing external resets it.

    Usage:
        engine = PositionEngine()
        engine.on_position_close = lambda trade: print(trade)
        engine.open_position(position)
        result = engine.apply_snapshot(markets)
    """

    def __init__(
        self,
        settings: Optional[EngineConfig] = None,
        account: Optional[AccountState] = None,
        fill_policy: Optional[FillPolicy] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings or config.engine
        self.account = account or AccountState(
            balance=self.settings.starting_balance,
            starting_balance=self.settings.starting_balance,
        )
        self.fill_policy = fill_policy or FillPolicy(
            tolerance=self.settings.fill_tolerance,
            epsilon=self.settings.fill_epsilon,
            timeout=self.settings.fill_timeout_seconds,
        )
        self.clock = clock

        # State
        self.positions: Dict[str, Position] = {}
        self.trades: List[Trade] = []  # Oldest first

        # Callbacks
        self.on_position_open: Optional[Callable[[Position], None]] = None
        self.on_position_close: Optional[Callable[[Trade], None]] = None
        self.on_change: Optional[Callable[["PositionEngine"], None]] = None

        # Stats
        self.orders_filled = 0
        self.orders_cancelled = 0

    # ------------------------------------------------------------------
    # Building positions
    # ------------------------------------------------------------------

    def build_position(
        self,
        market: MarketSnapshot,
        side,
        size: float,
        strategy: str,
        bid: float,
        ask: float,
        signal: str = "",
    ) -> Position:
        """
        Maker-style entry: rest a buy at the side's bid, take profit at the
        side's ask, stop a fixed percentage below the token price paid.
        """
        entry = yes_frame(bid, side)
        take_profit = yes_frame(ask, side)
        stop_loss = yes_frame(bid * (1 - self.settings.stop_loss_pct), side)

        return Position(
            id=str(uuid.uuid4())[:8],
            market_id=market.id,
            side=side,
            entry_price=entry,
            limit_price=entry,
            size=size,
            stop_loss=stop_loss,
            take_profit=take_profit,
            max_hold_time=self.settings.max_hold_seconds,
            opened_at=self.clock(),
            strategy=strategy,
            reference_price=market.price(side),
            current_price=entry,
            market_slug=market.slug,
            question=market.question[:50],
            signal=signal,
            token_id=market.token_id(side),
        )

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def open_position(self, position: Position) -> bool:
        """Commit a PENDING position and debit its notional"""
        if self.has_position(position.market_id):
            logger.debug("Already holding %s, not opening", position.market_id)
            return False
        if position.size <= 0 or position.size > self.account.balance:
            logger.debug("Size %.2f not affordable", position.size)
            return False

        self.positions[position.id] = position
        self.account.balance -= position.size
        self.account.open_positions = len(self.positions)

        logger.info(
            "Position opened: %s %s @ %.3f ($%.2f, %s)",
            position.market_slug[:20] or position.market_id,
            position.side.value,
            position.entry_price,
            position.size,
            position.strategy,
        )

        if self.on_position_open:
            self.on_position_open(position)
        self._changed()
        return True

    def apply_snapshot(
        self, markets: Iterable[MarketSnapshot], now: Optional[datetime] = None
    ) -> MarkResult:
        """Mark every open position against a fresh market list"""
        now = now or self.clock()
        by_id = {m.id: m for m in markets}
        result = MarkResult()

        for position in list(self.positions.values()):
            market = by_id.get(position.market_id)
            if market is None:
                # Delisted or missing this cycle: carry forward unchanged
                result.skipped += 1
                continue

            mark = mark_price(market, position.side)
            position.current_price = mark

            if position.is_pending:
                if self.fill_policy.should_fill(position, market):
                    position.order_status = OrderStatus.FILLED
                    position.filled_at = now
                    self.orders_filled += 1
                    result.filled.append(position)
                    logger.info(
                        "Order filled: %s @ %.3f",
                        position.market_slug[:20] or position.market_id,
                        position.limit_price,
                    )
                elif self.fill_policy.expired(position, now):
                    self._cancel(position)
                    result.cancelled.append(position)
                    continue
                else:
                    position.unrealized_pnl = 0
                    continue

            trade = self._mark(position, mark, now)
            if trade:
                result.closed.append(trade)

        if result.changed or self.positions:
            self._changed()
        return result

    def _mark(self, position: Position, mark: float, now: datetime) -> Optional[Trade]:
        gross, fees, net = calculate_pnl(
            position, mark, self.settings.trading_fee, self.settings.profit_fee
        )
        reason = self.exit_reason(position, mark, net, now)
        if reason is None:
            position.unrealized_pnl = net
            return None
        return self._close(position, mark, gross, fees, net, reason, now)

    @staticmethod
    def exit_reason(
        position: Position, price: float, net: float, now: datetime
    ) -> Optional[CloseReason]:
        """Stop-loss, then take-profit, then timeout. None = keep open."""
        sign = position.side.sign
        if sign * (price - position.stop_loss) <= 0:
            return CloseReason.STOP_LOSS
        if sign * (price - position.take_profit) >= 0:
            return CloseReason.TAKE_PROFIT
        if position.age_seconds(now) > position.max_hold_time:
            return CloseReason.TIMEOUT_WIN if net > 0 else CloseReason.TIMEOUT_LOSS
        return None

    def _close(
        self,
        position: Position,
        exit_price: float,
        gross: float,
        fees: float,
        net: float,
        reason: CloseReason,
        now: datetime,
    ) -> Trade:
        del self.positions[position.id]

        trade = Trade(
            id=str(uuid.uuid4())[:8],
            timestamp=now,
            strategy=position.strategy,
            market=position.market_slug or position.market_id,
            market_id=position.market_id,
            side=position.side,
            entry_price=position.cost_price,
            exit_price=yes_frame(exit_price, position.side),
            size=position.size,
            profit=net,
            close_reason=reason,
            gross_profit=gross,
            fees=fees,
            question=position.question,
        )
        self.trades.append(trade)
        if len(self.trades) > self.settings.max_trades:
            del self.trades[: len(self.trades) - self.settings.max_trades]

        account = self.account
        account.roll_day(now.date())
        account.balance += position.size + net
        account.total_pnl += net
        account.today_pnl += net
        account.total_trades += 1
        account.today_trades += 1
        if net > 0:
            account.wins += 1
        elif net < 0:
            account.losses += 1
        account.open_positions = len(self.positions)

        logger.info(
            "Position closed: %s | %s | P&L $%+.2f",
            trade.market[:20],
            reason.value,
            net,
        )

        if self.on_position_close:
            self.on_position_close(trade)
        return trade

    def _cancel(self, position: Position):
        """Unfilled order timed out: refund, no trade"""
        del self.positions[position.id]
        self.account.balance += position.size
        self.account.open_positions = len(self.positions)
        self.orders_cancelled += 1
        logger.info(
            "Order cancelled (timeout): %s",
            position.market_slug[:20] or position.market_id,
        )

    def reset(self, starting_balance: Optional[float] = None):
        """Clear stats, positions and ledger; mode, status and strategies stay"""
        old = self.account
        starting = starting_balance or old.starting_balance
        self.account = AccountState(
            balance=starting,
            starting_balance=starting,
            mode=old.mode,
            status=old.status,
            active_strategies=set(old.active_strategies),
        )
        self.positions = {}
        self.trades = []
        self.orders_filled = 0
        self.orders_cancelled = 0
        self._changed()

    def restore(
        self,
        account: AccountState,
        positions: Iterable[Position],
        trades: Iterable[Trade],
    ):
        """Replace state wholesale (persisted or remotely synced copy)"""
        self.account = account
        self.positions = {p.id: p for p in positions}
        self.trades = list(trades)[-self.settings.max_trades:]
        self.account.open_positions = len(self.positions)
        self._changed()

    def _changed(self):
        if self.on_change:
            self.on_change(self)

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def has_position(self, market_id: str) -> bool:
        return any(p.market_id == market_id for p in self.positions.values())

    @property
    def open_positions(self) -> List[Position]:
        return list(self.positions.values())

    @property
    def open_value(self) -> float:
        """Notional committed to open positions"""
        return sum(p.size for p in self.positions.values())

    @property
    def unrealized_pnl(self) -> float:
        return sum(p.unrealized_pnl for p in self.positions.values())

    @property
    def realized_pnl(self) -> float:
        return self.account.total_pnl

    @property
    def equity(self) -> float:
        return self.account.balance + self.open_value + self.unrealized_pnl

    def get_status(self) -> Dict:
        """Get current trading status"""
        account = self.account
        return {
            "mode": account.mode.value,
            "status": account.status.value,
            "initial_balance": account.starting_balance,
            "balance": account.balance,
            "equity": self.equity,
            "open_positions": len(self.positions),
            "open_value": self.open_value,
            "realized_pnl": self.realized_pnl,
            "unrealized_pnl": self.unrealized_pnl,
            "total_pnl": account.total_pnl,
            "today_pnl": account.today_pnl,
            "return_percent": account.return_percent,
            "total_trades": account.total_trades,
            "today_trades": account.today_trades,
            "wins": account.wins,
            "losses": account.losses,
            "win_rate": account.win_rate,
            "orders_filled": self.orders_filled,
            "orders_cancelled": self.orders_cancelled,
            "active_strategies": sorted(s.value for s in account.active_strategies),
        }

    def print_status(self):
        """Print formatted status"""
        s = self.get_status()

        print()
        print("=" * 64)
        print(f"  POLYBOT STATUS [{s['mode'].upper()}] - {s['status'].upper()}")
        print("=" * 64)
        print(f"  Balance: ${s['balance']:,.2f}  (Initial: ${s['initial_balance']:,.2f})")
        print(f"  Positions: {s['open_positions']} open (${s['open_value']:,.2f} committed)")
        print("-" * 64)
        print(f"  Realized P&L:   ${s['realized_pnl']:+,.2f}")
        print(f"  Unrealized P&L: ${s['unrealized_pnl']:+,.2f}")
        print(f"  Today P&L:      ${s['today_pnl']:+,.2f} ({s['today_trades']} trades)")
        print(f"  Return:         {s['return_percent']:+.2f}%")
        print("-" * 64)
        print(f"  Trades: {s['total_trades']} | Wins: {s['wins']} | Losses: {s['losses']}")
        print(f"  Win Rate: {s['win_rate']*100:.1f}%")
        print(f"  Strategies: {', '.join(s['active_strategies']) or 'none'}")
        print("=" * 64)
        print()

    def print_recent_trades(self, n: int = 5):
        """Print recent trades"""
        recent = self.trades[-n:] if self.trades else []

        if not recent:
            print("  No trades yet")
            return

        print("\n  Recent Trades:")
        for t in reversed(recent):
            time_str = t.timestamp.strftime("%H:%M:%S")
            print(
                f"    [{time_str}] {t.strategy} {t.side.value} {t.market[:20]} | "
                f"{t.close_reason.value} | ${t.profit:+.2f}"
            )

    def get_summary(self) -> Dict:
        """Get session summary for export"""
        status = self.get_status()
        return {
            "performance": {
                "initial_balance": status["initial_balance"],
                "final_balance": status["balance"],
                "total_pnl": status["total_pnl"],
                "return_percent": status["return_percent"],
                "win_rate": status["win_rate"],
            },
            "activity": {
                "total_trades": status["total_trades"],
                "wins": status["wins"],
                "losses": status["losses"],
                "orders_filled": status["orders_filled"],
                "orders_cancelled": status["orders_cancelled"],
                "open_positions": status["open_positions"],
            },
            "account": self.account.to_dict(),
            "positions": [p.to_dict() for p in self.positions.values()],
            "trades": [t.to_dict() for t in self.trades],
        }

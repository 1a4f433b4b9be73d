"""Data models for paper trading"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Set

from ..models import Side, StrategyCode


class OrderStatus(Enum):
    PENDING = "PENDING"  # Limit order resting, waiting for a simulated fill
    FILLED = "FILLED"  # Exit-eligible


class CloseReason(Enum):
    STOP_LOSS = "STOP_LOSS"
    TAKE_PROFIT = "TAKE_PROFIT"
    TIMEOUT_WIN = "TIMEOUT_WIN"
    TIMEOUT_LOSS = "TIMEOUT_LOSS"


class BotMode(Enum):
    PAPER = "paper"
    LIVE = "live"


class BotStatus(Enum):
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class Position:
    """
    Single-side position.

    entry/limit/stop/take-profit/current prices are on the YES-probability
    axis: a NO position bought at a NO bid of 0.40 has entry_price 0.60.
    `size` is the dollar notional committed at open.
    """
    id: str
    market_id: str
    side: Side
    entry_price: float
    limit_price: float
    size: float
    stop_loss: float
    take_profit: float
    max_hold_time: float  # Seconds
    opened_at: datetime
    strategy: str
    order_status: OrderStatus = OrderStatus.PENDING
    reference_price: float = 0  # Side token price when the order was placed
    current_price: Optional[float] = None
    unrealized_pnl: float = 0
    filled_at: Optional[datetime] = None
    market_slug: str = ""
    question: str = ""
    signal: str = ""
    token_id: Optional[str] = None

    @property
    def cost_price(self) -> float:
        """Price paid per token of the held side"""
        return self.entry_price if self.side is Side.YES else 1 - self.entry_price

    @property
    def tokens(self) -> float:
        return self.size / self.cost_price

    @property
    def is_pending(self) -> bool:
        return self.order_status is OrderStatus.PENDING

    def age_seconds(self, now: datetime) -> float:
        return (now - self.opened_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "marketId": self.market_id,
            "side": self.side.value,
            "entryPrice": self.entry_price,
            "limitPrice": self.limit_price,
            "size": self.size,
            "stopLoss": self.stop_loss,
            "takeProfit": self.take_profit,
            "maxHoldTime": self.max_hold_time,
            "openedAt": self.opened_at.isoformat(),
            "strategy": self.strategy,
            "orderStatus": self.order_status.value,
            "referencePrice": self.reference_price,
            "currentPrice": self.current_price,
            "unrealizedPnl": self.unrealized_pnl,
            "filledAt": self.filled_at.isoformat() if self.filled_at else None,
            "marketSlug": self.market_slug,
            "question": self.question,
            "signal": self.signal,
            "tokenId": self.token_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        filled_at = data.get("filledAt")
        return cls(
            id=str(data["id"]),
            market_id=str(data["marketId"]),
            side=Side(data["side"]),
            entry_price=float(data["entryPrice"]),
            limit_price=float(data.get("limitPrice", data["entryPrice"])),
            size=float(data["size"]),
            stop_loss=float(data["stopLoss"]),
            take_profit=float(data["takeProfit"]),
            max_hold_time=float(data.get("maxHoldTime", 60)),
            opened_at=datetime.fromisoformat(data["openedAt"]),
            strategy=data.get("strategy", ""),
            order_status=OrderStatus(data.get("orderStatus", "PENDING")),
            reference_price=float(data.get("referencePrice", 0)),
            current_price=data.get("currentPrice"),
            unrealized_pnl=float(data.get("unrealizedPnl", 0)),
            filled_at=datetime.fromisoformat(filled_at) if filled_at else None,
            market_slug=data.get("marketSlug", ""),
            question=data.get("question", ""),
            signal=data.get("signal", ""),
            token_id=data.get("tokenId"),
        )


@dataclass(frozen=True)
class Trade:
    """Closed position record. Prices are per token of the held side."""
    id: str
    timestamp: datetime
    strategy: str
    market: str  # Slug (or id when no slug)
    market_id: str
    side: Side
    entry_price: float
    exit_price: float
    size: float
    profit: float  # Net of fees
    close_reason: CloseReason
    gross_profit: float = 0
    fees: float = 0
    question: str = ""

    @property
    def is_win(self) -> bool:
        return self.profit > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "strategy": self.strategy,
            "market": self.market,
            "marketId": self.market_id,
            "side": self.side.value,
            "entryPrice": self.entry_price,
            "exitPrice": self.exit_price,
            "size": self.size,
            "profit": self.profit,
            "closeReason": self.close_reason.value,
            "grossProfit": self.gross_profit,
            "fees": self.fees,
            "question": self.question,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Trade":
        return cls(
            id=str(data["id"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            strategy=data.get("strategy", ""),
            market=data.get("market", ""),
            market_id=str(data.get("marketId", "")),
            side=Side(data["side"]),
            entry_price=float(data["entryPrice"]),
            exit_price=float(data["exitPrice"]),
            size=float(data["size"]),
            profit=float(data["profit"]),
            close_reason=CloseReason(data["closeReason"]),
            gross_profit=float(data.get("grossProfit", 0)),
            fees=float(data.get("fees", 0)),
            question=data.get("question", ""),
        )


@dataclass
class AccountState:
    """The single place balance changes"""
    balance: float = 300.0
    starting_balance: float = 300.0
    mode: BotMode = BotMode.PAPER
    status: BotStatus = BotStatus.STOPPED
    total_pnl: float = 0
    today_pnl: float = 0
    total_trades: int = 0
    today_trades: int = 0
    wins: int = 0
    losses: int = 0
    open_positions: int = 0
    active_strategies: Set[StrategyCode] = field(default_factory=set)
    day: date = field(default_factory=date.today)

    @property
    def is_running(self) -> bool:
        return self.status is BotStatus.RUNNING

    @property
    def win_rate(self) -> float:
        closed = self.wins + self.losses
        if closed == 0:
            return 0
        return self.wins / closed

    @property
    def return_percent(self) -> float:
        if self.starting_balance == 0:
            return 0
        return (self.total_pnl / self.starting_balance) * 100

    def roll_day(self, today: date):
        """Reset daily counters when the calendar day changes"""
        if today != self.day:
            self.day = today
            self.today_pnl = 0
            self.today_trades = 0

    def copy(self) -> "AccountState":
        return replace(self, active_strategies=set(self.active_strategies))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "status": self.status.value,
            "balance": self.balance,
            "startingBalance": self.starting_balance,
            "totalPnl": self.total_pnl,
            "todayPnl": self.today_pnl,
            "totalTrades": self.total_trades,
            "todayTrades": self.today_trades,
            "wins": self.wins,
            "losses": self.losses,
            "openPositions": self.open_positions,
            "activeStrategies": sorted(s.value for s in self.active_strategies),
            "day": self.day.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccountState":
        day = data.get("day")
        return cls(
            mode=BotMode(data.get("mode", "paper")),
            status=BotStatus(data.get("status", "stopped")),
            balance=float(data.get("balance", 300.0)),
            starting_balance=float(data.get("startingBalance", 300.0)),
            total_pnl=float(data.get("totalPnl", 0)),
            today_pnl=float(data.get("todayPnl", 0)),
            total_trades=int(data.get("totalTrades", 0)),
            today_trades=int(data.get("todayTrades", 0)),
            wins=int(data.get("wins", 0)),
            losses=int(data.get("losses", 0)),
            open_positions=int(data.get("openPositions", 0)),
            active_strategies={
                StrategyCode(code) for code in data.get("activeStrategies", [])
            },
            day=date.fromisoformat(day) if day else date.today(),
        )

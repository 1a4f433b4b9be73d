"""Paper trading: position engine, fill simulation, risk presets"""
from .engine import PositionEngine, MarkResult, calculate_pnl
from .fills import FillPolicy, mark_price, yes_frame
from .models import (
    AccountState,
    BotMode,
    BotStatus,
    CloseReason,
    OrderStatus,
    Position,
    Trade,
)
from .presets import TradingMode, ModeSettings, PRESETS, get_mode_comparison
from .summary_chart import SummaryChart

__all__ = [
    "PositionEngine",
    "MarkResult",
    "calculate_pnl",
    "FillPolicy",
    "mark_price",
    "yes_frame",
    "AccountState",
    "BotMode",
    "BotStatus",
    "CloseReason",
    "OrderStatus",
    "Position",
    "Trade",
    "TradingMode",
    "ModeSettings",
    "PRESETS",
    "get_mode_comparison",
    "SummaryChart",
]

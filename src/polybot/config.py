"""
Configuration settings for Polybot
"""
import os
from dataclasses import dataclass, field
from typing import Optional

# Load .env if available
from dotenv import load_dotenv

load_dotenv()


@dataclass
class APIConfig:
    """Backend endpoints configuration"""
    # Market-data proxy (markets, order books)
    api_url: str = field(
        default_factory=lambda: os.getenv("POLYBOT_API_URL", "http://localhost:8080/api")
    )
    # Order-signing backend (orders, wallet, notify)
    backend_url: str = field(
        default_factory=lambda: os.getenv("POLYBOT_BACKEND_URL", "http://localhost:3001")
    )
    timeout: int = 10  # Seconds before a call is treated as failed
    max_concurrent: int = 10  # Max concurrent API requests
    market_limit: int = 100  # Markets per poll


@dataclass
class DetectorConfig:
    """Opportunity detection thresholds"""
    # Strategy A - complement arbitrage
    arb_under_threshold: float = 0.995  # YES + NO below this = undervalued
    arb_over_threshold: float = 1.015  # YES + NO above this = overvalued
    arb_floor: float = 0.8  # Sums below this are bad data, not arbitrage
    arb_ceiling: float = 1.2
    arb_position_size: float = 0.05

    # Strategy B - extreme-price value
    extreme_threshold: float = 0.05  # Side price at/below this is "near certain loser"
    extreme_min_volume: float = 10000
    extreme_max_confidence: float = 0.95
    extreme_position_size: float = 0.08

    # Strategy C - momentum / scalp
    momentum_threshold: float = 0.005  # Min YES price delta between polls
    momentum_min_volume: float = 5000
    volume_spike_threshold: float = 0.1  # 10% growth of 24h volume between polls
    volume_spike_min_volume: float = 50000
    high_volume_threshold: float = 100000  # Used when no history exists
    momentum_position_size: float = 0.02

    # Combined queue
    max_opportunities: int = 50


@dataclass
class EngineConfig:
    """Position engine settings"""
    starting_balance: float = 300.0
    trading_fee: float = 0.005  # Per side, charged on entry and exit
    profit_fee: float = 0.02  # Venue fee on winning trades only
    stop_loss_pct: float = 0.03
    max_hold_seconds: float = 60
    fill_timeout_seconds: float = 120
    fill_tolerance: float = 0.005  # Quote within 0.5% of our limit = crossed
    fill_epsilon: float = 0.001  # Any move beyond this since entry = filled
    max_trades: int = 100  # Ledger cap


@dataclass
class DispatchConfig:
    """Order dispatch loop settings"""
    tick_interval: float = 1.0
    poll_interval: float = 5.0
    max_open_positions: int = 25
    default_position_pct: float = 0.05
    max_position_pct: float = 0.10  # Hard per-trade cap
    min_trade_size: float = 1.0


@dataclass
class SyncConfig:
    """State persistence settings"""
    supabase_url: Optional[str] = field(
        default_factory=lambda: os.getenv("SUPABASE_URL")
    )
    supabase_key: Optional[str] = field(
        default_factory=lambda: os.getenv("SUPABASE_KEY")
    )
    table: str = "bot_states"
    state_key: str = field(
        default_factory=lambda: os.getenv("POLYBOT_STATE_KEY", "polybot_shared")
    )
    role: str = field(default_factory=lambda: os.getenv("POLYBOT_ROLE", "admin"))
    state_dir: str = field(
        default_factory=lambda: os.getenv("POLYBOT_STATE_DIR", ".polybot")
    )
    write_interval: float = 30.0
    read_interval: float = 10.0
    max_remote_trades: int = 50

    @property
    def is_writer(self) -> bool:
        return self.role == "admin"


@dataclass
class AlertConfig:
    """Alert/notification settings"""
    notify_url: Optional[str] = field(
        default_factory=lambda: os.getenv("POLYBOT_NOTIFY_URL")
    )
    telegram_token: Optional[str] = field(
        default_factory=lambda: os.getenv("TELEGRAM_BOT_TOKEN")
    )
    telegram_chat_id: Optional[str] = field(
        default_factory=lambda: os.getenv("TELEGRAM_CHAT_ID")
    )
    status_interval: float = 300.0
    enabled: bool = True


@dataclass
class Config:
    """Main configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    detectors: DetectorConfig = field(default_factory=DetectorConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    debug: bool = False


# Global config instance
config = Config()

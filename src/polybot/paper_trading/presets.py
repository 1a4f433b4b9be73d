"""Preset risk modes for easy configuration"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Any

from ..config import Config


class TradingMode(Enum):
    """Risk presets"""
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


@dataclass
class ModeSettings:
    """Settings for a risk preset"""
    name: str
    max_position_pct: float  # Hard per-trade cap, fraction of balance
    default_position_pct: float  # When the opportunity does not size itself
    max_open_positions: int
    stop_loss_pct: float
    max_hold_seconds: float
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "max_position_pct": self.max_position_pct,
            "default_position_pct": self.default_position_pct,
            "max_open_positions": self.max_open_positions,
            "stop_loss_pct": self.stop_loss_pct,
            "max_hold_seconds": self.max_hold_seconds,
        }

    def apply(self, cfg: Config) -> Config:
        """Return a copy of `cfg` with this preset's knobs"""
        return replace(
            cfg,
            engine=replace(
                cfg.engine,
                stop_loss_pct=self.stop_loss_pct,
                max_hold_seconds=self.max_hold_seconds,
            ),
            dispatch=replace(
                cfg.dispatch,
                max_position_pct=self.max_position_pct,
                default_position_pct=self.default_position_pct,
                max_open_positions=self.max_open_positions,
            ),
        )


PRESETS: Dict[TradingMode, ModeSettings] = {
    TradingMode.CONSERVATIVE: ModeSettings(
        name="Conservative",
        max_position_pct=0.05,
        default_position_pct=0.02,
        max_open_positions=10,
        stop_loss_pct=0.02,
        max_hold_seconds=180,
        description="Small positions, tight stops, few concurrent markets",
    ),
    TradingMode.MODERATE: ModeSettings(
        name="Moderate",
        max_position_pct=0.10,
        default_position_pct=0.05,
        max_open_positions=25,
        stop_loss_pct=0.03,
        max_hold_seconds=60,
        description="Default scalping profile: 5% sizing, 3% stop, 60s holds",
    ),
    TradingMode.AGGRESSIVE: ModeSettings(
        name="Aggressive",
        max_position_pct=0.15,
        default_position_pct=0.08,
        max_open_positions=40,
        stop_loss_pct=0.05,
        max_hold_seconds=30,
        description="Bigger positions, wider stops, many concurrent markets",
    ),
}


def get_preset(mode: TradingMode) -> ModeSettings:
    """Get settings for a preset mode"""
    return PRESETS[mode]


def get_mode_comparison() -> str:
    """Return a formatted comparison of all modes"""
    lines = [
        "Risk Mode Comparison:",
        "-" * 70,
        f"{'Mode':<15} {'Max Size':<10} {'Default':<10} {'Stop':<8} {'Hold':<8} {'Max Open'}",
        "-" * 70,
    ]
    for mode, settings in PRESETS.items():
        lines.append(
            f"{settings.name:<15} {settings.max_position_pct*100:>5.0f}%     "
            f"{settings.default_position_pct*100:>5.0f}%     "
            f"{settings.stop_loss_pct*100:>4.0f}%   "
            f"{settings.max_hold_seconds:>4.0f}s   "
            f"{settings.max_open_positions}"
        )
    lines.append("-" * 70)
    return "\n".join(lines)

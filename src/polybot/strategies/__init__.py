"""Opportunity detectors"""
from typing import Iterable, List, Optional

from .base import Detector
from .arbitrage import ComplementArbitrageDetector
from .value import ExtremePriceDetector
from .momentum import MomentumDetector, cheaper_side
from ..config import DetectorConfig, config
from ..models import Opportunity, StrategyCode


def build_detectors(settings: Optional[DetectorConfig] = None) -> List[Detector]:
    """One detector per strategy code, in A, B, C order"""
    return [
        ComplementArbitrageDetector(settings),
        ExtremePriceDetector(settings),
        MomentumDetector(settings),
    ]


def collect_opportunities(
    markets: Iterable,
    active: Iterable[StrategyCode],
    detectors: Optional[List[Detector]] = None,
    cap: Optional[int] = None,
) -> List[Opportunity]:
    """Concatenate enabled detectors' results and cap the queue"""
    markets = list(markets)
    active = set(active)
    cap = cap if cap is not None else config.detectors.max_opportunities

    queue: List[Opportunity] = []
    for detector in detectors or build_detectors():
        if detector.code in active:
            queue.extend(detector.detect(markets))
    return queue[:cap]


__all__ = [
    "Detector",
    "ComplementArbitrageDetector",
    "ExtremePriceDetector",
    "MomentumDetector",
    "cheaper_side",
    "build_detectors",
    "collect_opportunities",
]

"""
Base detector interface
"""
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from ..config import DetectorConfig, config
from ..models import Opportunity, StrategyCode


class Detector(ABC):
    """
    Base class for opportunity detectors.

    Detectors are stateless: everything they need is in the snapshot list,
    including `MarketSnapshot.previous` for delta signals.
    """

    code: StrategyCode

    def __init__(self, settings: Optional[DetectorConfig] = None):
        self.settings = settings or config.detectors

    @property
    @abstractmethod
    def name(self) -> str:
        """Detector name"""
        pass

    @abstractmethod
    def scan(self, markets: Iterable) -> List[Opportunity]:
        """Unordered opportunities found in one snapshot list"""
        pass

    def detect(self, markets: Iterable) -> List[Opportunity]:
        """
        Opportunities sorted by confidence, highest first.
        Ties keep scan order (sorted() is stable).
        """
        return sorted(self.scan(markets), key=lambda o: o.confidence, reverse=True)

    def __call__(self, markets: Iterable) -> List[Opportunity]:
        return self.detect(markets)

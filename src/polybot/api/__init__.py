"""API clients for the market-data proxy and the trading backend"""
from .markets import MarketClient
from .trading import TradingClient, WalletInfo, OrderResult

__all__ = ["MarketClient", "TradingClient", "WalletInfo", "OrderResult"]

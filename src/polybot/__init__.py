"""
Polybot v1.0
============
Paper/live trading bot for binary prediction markets:
- Market snapshots with order-book quotes
- Complement arbitrage, extreme-price value and momentum detectors
- Position engine with simulated fills, stops, targets and timeouts
- Local + Supabase state sync, alerts, NiceGUI dashboard
"""

__version__ = "1.0.0"

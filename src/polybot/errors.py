"""
Error taxonomy for Polybot.

None of these are fatal to the trading loop: callers catch them at the
boundary of a cycle (poll, tick, sync) and keep the previous state.
"""


class PolybotError(Exception):
    """Base class for all Polybot errors"""


class NetworkError(PolybotError):
    """Market data or backend unreachable, timed out, or non-success status"""


class ValidationError(PolybotError):
    """Malformed market/opportunity payload; the record is skipped"""


class ExternalOrderError(PolybotError):
    """Live order placement or cancellation failed; the tick is aborted"""


class PersistenceError(PolybotError):
    """Loading or saving bot state failed; retried next sync cycle"""

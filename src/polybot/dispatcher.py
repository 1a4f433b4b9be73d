"""
Order Dispatch Loop - turns the opportunity queue into positions, one per tick
"""
import logging
from typing import Iterable, Optional

from .config import DispatchConfig, config
from .errors import ExternalOrderError
from .models import Action, Opportunity, Side
from .paper_trading.models import BotMode, Position

logger = logging.getLogger(__name__)


def entry_side(opportunity: Opportunity) -> Optional[Side]:
    """
    Which single leg to buy for an opportunity.
    SELL_BOTH has no single-leg long and returns None.
    """
    action = opportunity.action
    if action is Action.BUY_YES:
        return Side.YES
    if action is Action.BUY_NO:
        return Side.NO
    if action is Action.BUY_BOTH:
        market = opportunity.market
        return Side.YES if market.yes_price <= market.no_price else Side.NO
    return None


class OrderDispatcher:
    """
    Opens at most one position per tick from the bot's live opportunity queue.

    Holds a reference to the bot, never a copy of its state: balance,
    queue and open positions are read when the tick fires, and read again
    after every await before anything is committed.
    """

    def __init__(
        self,
        bot,
        market_client=None,
        trading_client=None,
        settings: Optional[DispatchConfig] = None,
    ):
        self.bot = bot
        self.market_client = market_client
        self.trading_client = trading_client
        self.settings = settings or config.dispatch

        self.ticks = 0
        self.orders_sent = 0
        self.orders_failed = 0

    def at_capacity(self) -> bool:
        return len(self.bot.engine.positions) >= self.settings.max_open_positions

    def select(self, opportunities: Iterable[Opportunity]) -> Optional[Opportunity]:
        """First enterable opportunity on a market we don't already hold"""
        engine = self.bot.engine
        for opp in opportunities:
            if entry_side(opp) is None:
                continue
            if engine.has_position(opp.market_id):
                continue
            return opp
        return None

    def trade_size(self, balance: float, opportunity: Opportunity) -> float:
        fraction = opportunity.position_size or self.settings.default_position_pct
        return min(balance * fraction, balance * self.settings.max_position_pct)

    async def tick(self) -> Optional[Position]:
        """One dispatch step. Returns the opened position, if any."""
        self.ticks += 1
        bot = self.bot
        if not bot.can_dispatch or self.at_capacity():
            return None

        opp = self.select(bot.opportunities)
        if opp is None:
            return None

        side = entry_side(opp)
        size = self.trade_size(bot.engine.account.balance, opp)
        if size < self.settings.min_trade_size:
            logger.debug("Trade size $%.2f below minimum, skipping", size)
            return None

        market = opp.market
        if self.market_client is not None:
            quotes = await self.market_client.get_quotes(market)
        else:
            quotes = market.quotes

        position = bot.engine.build_position(
            market,
            side,
            size,
            strategy=opp.strategy.value,
            bid=quotes.bid(side),
            ask=quotes.ask(side),
            signal=opp.signal,
        )

        if bot.engine.account.mode is BotMode.LIVE:
            if not self._commit_allowed(position):
                return None
            if self.trading_client is None:
                bot.record_error("Live mode without a trading backend")
                return None
            try:
                order = await self.trading_client.execute_live_trade(
                    market, side, quotes.bid(side), size
                )
            except ExternalOrderError as e:
                self.orders_failed += 1
                logger.warning("Live order failed, trade aborted: %s", e)
                bot.record_error(str(e))
                return None
            self.orders_sent += 1
            logger.info("Live order %s accepted for %s", order.order_id, market.id)

        if not self._commit_allowed(position):
            return None
        if not bot.engine.open_position(position):
            return None
        return position

    def _commit_allowed(self, position: Position) -> bool:
        """Re-read live state after a suspension point"""
        bot = self.bot
        engine = bot.engine
        if not bot.is_running:
            logger.info("Bot stopped while dispatching, dropping %s", position.market_id)
            return False
        if self.at_capacity():
            return False
        if engine.has_position(position.market_id):
            return False
        if position.size > engine.account.balance:
            logger.debug("Balance changed mid-tick, dropping %s", position.market_id)
            return False
        return True

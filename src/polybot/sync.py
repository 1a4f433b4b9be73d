"""
Periodic State Sync - mirror the engine's state through a shared remote row
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

import aiohttp

from .config import SyncConfig, config
from .errors import PersistenceError
from .paper_trading.models import AccountState, Position, Trade

logger = logging.getLogger(__name__)


class RemoteStateStore:
    """
    Supabase (PostgREST) table keyed by `user_id`.

    Row layout: user_id, bot_state, open_positions, trades, updated_at.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        settings: Optional[SyncConfig] = None,
        timeout: Optional[float] = None,
    ):
        self.settings = settings or config.sync
        self.url = (url or self.settings.supabase_url or "").rstrip("/")
        self.key = key or self.settings.supabase_key
        self.timeout = aiohttp.ClientTimeout(total=timeout or config.api.timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.key)

    @property
    def endpoint(self) -> str:
        return f"{self.url}/rest/v1/{self.settings.table}"

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "apikey": self.key or "",
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }

    async def __aenter__(self):
        self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._session:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    def build_payload(
        self,
        key: str,
        account: AccountState,
        positions: Iterable[Position],
        trades: Iterable[Trade],
    ) -> Dict[str, Any]:
        trades = list(trades)[-self.settings.max_remote_trades:]
        return {
            "user_id": key,
            "bot_state": account.to_dict(),
            "open_positions": [p.to_dict() for p in positions],
            "trades": [t.to_dict() for t in trades],
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

    async def save_state(
        self,
        key: str,
        account: AccountState,
        positions: Iterable[Position],
        trades: Iterable[Trade],
    ) -> bool:
        """Upsert the row for `key`. Raises PersistenceError."""
        if not self.enabled:
            return False

        payload = self.build_payload(key, account, positions, trades)
        headers = {**self.headers, "Prefer": "resolution=merge-duplicates"}
        try:
            async with self.session.post(
                self.endpoint,
                params={"on_conflict": "user_id"},
                json=payload,
                headers=headers,
            ) as response:
                if response.status not in (200, 201, 204):
                    detail = await response.text()
                    raise PersistenceError(f"State save failed ({response.status}): {detail}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PersistenceError(f"State store unreachable: {e}") from e
        return True

    async def load_state(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the row for `key` as {account, positions, trades}.
        None when there is no row. Raises PersistenceError.
        """
        if not self.enabled:
            return None

        try:
            async with self.session.get(
                self.endpoint,
                params={"user_id": f"eq.{key}", "select": "*"},
                headers=self.headers,
            ) as response:
                if response.status != 200:
                    raise PersistenceError(f"State load failed ({response.status})")
                rows = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PersistenceError(f"State store unreachable: {e}") from e

        if not rows:
            return None
        return self.parse_row(rows[0])

    @staticmethod
    def parse_row(row: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return {
                "account": AccountState.from_dict(row.get("bot_state") or {}),
                "positions": [Position.from_dict(p) for p in row.get("open_positions") or []],
                "trades": [Trade.from_dict(t) for t in row.get("trades") or []],
            }
        except (KeyError, ValueError, TypeError) as e:
            raise PersistenceError(f"Malformed state row: {e}") from e


class StateSync:
    """
    Role-dependent periodic sync for one bot.

    - writer (admin): push() every write_interval, last write wins
    - reader (viewer): pull() every read_interval and replace local state

    Both are best-effort: failures are logged and retried next cycle.
    """

    def __init__(self, bot, store: RemoteStateStore, settings: Optional[SyncConfig] = None):
        self.bot = bot
        self.store = store
        self.settings = settings or config.sync
        self.last_sync: Optional[datetime] = None
        self.failures = 0

    @property
    def is_writer(self) -> bool:
        return self.settings.is_writer

    @property
    def interval(self) -> float:
        return self.settings.write_interval if self.is_writer else self.settings.read_interval

    async def push(self) -> bool:
        engine = self.bot.engine
        try:
            ok = await self.store.save_state(
                self.settings.state_key,
                engine.account,
                engine.open_positions,
                engine.trades,
            )
        except PersistenceError as e:
            self._failed(e)
            return False
        if ok:
            self.last_sync = datetime.now()
        return ok

    async def pull(self) -> bool:
        try:
            state = await self.store.load_state(self.settings.state_key)
        except PersistenceError as e:
            self._failed(e)
            return False
        if state is None:
            return False

        self.bot.engine.restore(state["account"], state["positions"], state["trades"])
        self.last_sync = datetime.now()
        return True

    async def run_once(self) -> bool:
        return await (self.push() if self.is_writer else self.pull())

    def register(self, scheduler):
        scheduler.add("sync", self.interval, self.run_once, run_immediately=not self.is_writer)

    def _failed(self, error: Exception):
        self.failures += 1
        logger.warning("State sync failed: %s", error)
        self.bot.record_error(str(error))

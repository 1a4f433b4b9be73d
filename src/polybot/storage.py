"""
Local durable store - account, trades and open positions as JSON files
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional, Union

from .config import config
from .errors import PersistenceError
from .paper_trading.models import AccountState, Position, Trade

logger = logging.getLogger(__name__)


class LocalStore:
    """
    Three independent files under one directory. A missing or corrupt file
    only loses that piece; the others still load.
    """

    ACCOUNT_FILE = "account.json"
    TRADES_FILE = "trades.json"
    POSITIONS_FILE = "positions.json"

    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory or config.sync.state_dir)

    def _path(self, name: str) -> Path:
        return self.directory / name

    def _read(self, name: str) -> Optional[Any]:
        path = self._path(name)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e

    def _write(self, name: str, data: Any):
        path = self._path(name)
        tmp = path.with_suffix(".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, path)
        except OSError as e:
            raise PersistenceError(f"Cannot write {path}: {e}") from e

    # ------------------------------------------------------------------
    # Loading (each piece on its own)
    # ------------------------------------------------------------------

    def load_account(self) -> Optional[AccountState]:
        try:
            data = self._read(self.ACCOUNT_FILE)
            return AccountState.from_dict(data) if isinstance(data, dict) else None
        except (PersistenceError, KeyError, ValueError, TypeError) as e:
            logger.warning("Ignoring stored account: %s", e)
            return None

    def load_trades(self) -> List[Trade]:
        try:
            data = self._read(self.TRADES_FILE) or []
            return [Trade.from_dict(t) for t in data]
        except (PersistenceError, KeyError, ValueError, TypeError) as e:
            logger.warning("Ignoring stored trades: %s", e)
            return []

    def load_positions(self) -> List[Position]:
        try:
            data = self._read(self.POSITIONS_FILE) or []
            return [Position.from_dict(p) for p in data]
        except (PersistenceError, KeyError, ValueError, TypeError) as e:
            logger.warning("Ignoring stored positions: %s", e)
            return []

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    def save_account(self, account: AccountState):
        self._write(self.ACCOUNT_FILE, account.to_dict())

    def save_trades(self, trades: List[Trade]):
        self._write(self.TRADES_FILE, [t.to_dict() for t in trades])

    def save_positions(self, positions: List[Position]):
        self._write(self.POSITIONS_FILE, [p.to_dict() for p in positions])

    def save_engine(self, engine):
        """Persist everything a PositionEngine owns. Raises PersistenceError."""
        self.save_account(engine.account)
        self.save_trades(engine.trades)
        self.save_positions(engine.open_positions)

    def clear(self):
        for name in (self.ACCOUNT_FILE, self.TRADES_FILE, self.POSITIONS_FILE):
            path = self._path(name)
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise PersistenceError(f"Cannot remove {path}: {e}") from e

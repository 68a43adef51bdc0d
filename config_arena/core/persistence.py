"""
Persistence layer for the rating ledger.

Provides JSON file-based storage for ExperimentHistory, plus an in-memory
store with the same interface for tests and throwaway runs.

Storage structure:
    .config-arena/
    ├── ratings.json        # ExperimentHistory document
    └── ratings.json.lock   # Single-writer lock

Every write goes to a temporary file that replaces the document in one
step, and a rating update holds the lock for the whole read-modify-write
cycle, so concurrent experiment runs cannot lose each other's updates.
"""

import os
import json
import copy
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from filelock import FileLock

from ..errors import LedgerIOError
from ..rating.ledger import ExperimentHistory

logger = logging.getLogger(__name__)

STORE_DIR_ENV = 'CONFIG_ARENA_DIR'
DEFAULT_STORE_DIR = '.config-arena'
RATINGS_FILENAME = 'ratings.json'


def default_store_dir() -> Path:
    """Ledger directory from $CONFIG_ARENA_DIR, else .config-arena."""
    return Path(os.environ.get(STORE_DIR_ENV, DEFAULT_STORE_DIR))


class BaseHistoryStore:
    """
    Shared load/save/transaction logic.

    Subclasses provide _locked(), _read_document() and _write_document().
    """

    def __init__(self, history_limit: Optional[int] = None):
        if history_limit is not None and history_limit < 0:
            raise ValueError(f"history_limit must be >= 0, got {history_limit}")
        self.history_limit = history_limit

    def _locked(self):
        raise NotImplementedError

    def _read_document(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def _write_document(self, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def _read(self) -> ExperimentHistory:
        data = self._read_document()
        if data is None:
            return ExperimentHistory()
        return ExperimentHistory.from_dict(data)

    def _write(self, history: ExperimentHistory) -> None:
        data = history.to_dict()
        overflow = 0
        if self.history_limit is not None:
            overflow = max(0, len(history.experiments) - self.history_limit)
            data['experiments'] = data['experiments'][overflow:]
        data['revision'] = history.revision + 1
        data['last_updated'] = datetime.now().isoformat()
        self._write_document(data)

        # Caller's history only changes once the document is on disk
        del history.experiments[:overflow]
        history.revision = data['revision']
        history.last_updated = data['last_updated']

    def load(self) -> ExperimentHistory:
        """Load the history (an empty history if nothing has been saved yet)."""
        with self._locked():
            return self._read()

    def save(self, history: ExperimentHistory) -> None:
        """Replace the persisted history with this one."""
        with self._locked():
            self._write(history)

    @contextmanager
    def transaction(self) -> Iterator[ExperimentHistory]:
        """
        Hold the lock across load, in-memory mutation, and save.

        The history is written back only if the block exits normally.
        """
        with self._locked():
            history = self._read()
            yield history
            self._write(history)

    def clear(self) -> None:
        """Write an empty history."""
        self.save(ExperimentHistory())


class HistoryStore(BaseHistoryStore):
    """
    File-based storage for the rating ledger.

    Args:
        base_path: Directory holding the ledger (default: $CONFIG_ARENA_DIR
            or .config-arena)
        filename: Ledger file name inside base_path
        history_limit: Keep only this many most recent experiment records
        lock_timeout: Seconds to wait for the writer lock (-1 waits forever)
    """

    def __init__(
        self,
        base_path: Optional[Union[str, Path]] = None,
        filename: str = RATINGS_FILENAME,
        history_limit: Optional[int] = None,
        lock_timeout: float = -1,
    ):
        super().__init__(history_limit)
        self.base_path = Path(base_path) if base_path is not None else default_store_dir()
        self.path = self.base_path / filename
        self._lock = FileLock(str(self.path) + '.lock', timeout=lock_timeout)

    def _ensure_dir(self) -> None:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LedgerIOError(self.base_path, "Cannot create ledger directory") from e

    @contextmanager
    def _locked(self):
        self._ensure_dir()
        with self._lock:
            yield

    def _read_document(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            raise LedgerIOError(self.path, "Cannot read rating ledger") from e

    def _write_document(self, data: Dict[str, Any]) -> None:
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        try:
            tmp_path.write_text(json.dumps(data, indent=2, default=str), encoding='utf-8')
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise LedgerIOError(self.path, "Cannot write rating ledger") from e
        logger.debug("Saved ledger revision %s to %s", data['revision'], self.path)

    def __repr__(self) -> str:
        return f"HistoryStore(path={str(self.path)!r})"


class MemoryHistoryStore(BaseHistoryStore):
    """In-process store; each load returns an independent copy."""

    def __init__(self, history_limit: Optional[int] = None):
        super().__init__(history_limit)
        self._document: Optional[Dict[str, Any]] = None
        self._lock = threading.RLock()

    def _locked(self):
        return self._lock

    def _read_document(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._document)

    def _write_document(self, data: Dict[str, Any]) -> None:
        self._document = json.loads(json.dumps(data, default=str))

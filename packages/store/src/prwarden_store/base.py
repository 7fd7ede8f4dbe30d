"""Abstract store interface.

Any storage backend (local JSON files, SQLite, Gist, or a transactional
database for concurrent runs) implements this interface. The CLI depends on
BaseStore, not on a concrete backend, so backends are swappable without
touching CLI code.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from prwarden_store.models import StateReadError

if TYPE_CHECKING:
    from prwarden_store.models import StateKey, StateRecord

logger = logging.getLogger(__name__)


class BaseStore(ABC):
    """Key-value persistence for review state, one record per pull request.

    No locking is done here: callers must not run two reviews of the same
    pull request at the same time.
    """

    def load(self, key: StateKey) -> StateRecord | None:
        """Return the stored record, or None if missing, empty or corrupt.

        A corrupt record is not an error for the caller: it simply falls back
        to a first review.
        """
        try:
            return self._read(key)
        except StateReadError as e:
            logger.warning("Ignoring unreadable state for %s/%s#%d: %s", key.owner, key.repo, key.number, e)
            return None

    @abstractmethod
    def _read(self, key: StateKey) -> StateRecord | None:
        """Return the record, None if there is none; raise StateReadError if it is corrupt."""

    @abstractmethod
    def save(self, key: StateKey, record: StateRecord) -> None:
        """Replace the whole record for key."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional: subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """

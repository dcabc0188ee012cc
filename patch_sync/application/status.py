"""Process-wide holder of the live sync status."""

import dataclasses
import threading
from typing import Optional

from .domain import SyncStatus


class StatusBoard:
    """
    Owns the current SyncStatus snapshot.

    Writers swap in a new frozen snapshot under a lock; readers take the
    current reference without locking, so a poller can never block the
    download loop or be blocked by it.
    """

    def __init__(self, initial: Optional[SyncStatus] = None):
        self._lock = threading.Lock()
        self._snapshot = initial or SyncStatus()

    def snapshot(self) -> SyncStatus:
        """Returns the current status. Never blocks, never triggers a sync."""
        return self._snapshot

    def update(self, **changes) -> SyncStatus:
        """Publishes a copy of the current status with `changes` applied."""
        with self._lock:
            self._snapshot = dataclasses.replace(self._snapshot, **changes)
            return self._snapshot

"""Snapshot-based undo/redo history.

Every discrete editing action records the state it is about to change;
continuous gestures (drag, resize) record once at gesture start so the
whole gesture undoes atomically.

Index invariant: ``entries[index]`` is the last committed pre-mutation
state. After an undo, ``entries[index + 1]`` is the state on screen, so the
redo target is ``entries[index + 2]``.
"""

import logging
from typing import Optional

from vello.models import HistorySnapshot

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class History:
    """Bounded buffer of history snapshots with a cursor."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        """Initialize an empty history.

        Args:
            limit: Maximum number of snapshots retained. Oldest are evicted first.
        """
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self.entries: list[HistorySnapshot] = []
        self.index = -1

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def can_undo(self) -> bool:
        return self.index >= 0

    @property
    def can_redo(self) -> bool:
        return self.index + 2 < len(self.entries)

    def push(self, snapshot: HistorySnapshot) -> None:
        """Record a snapshot taken just before a mutation.

        Discards any redo branch beyond the cursor.
        """
        del self.entries[self.index + 1 :]
        self.entries.append(snapshot)
        self.index = len(self.entries) - 1
        self._evict()
        logger.debug("History push: %d entries, index %d", len(self.entries), self.index)

    def undo(self, current: HistorySnapshot) -> Optional[HistorySnapshot]:
        """Step back one entry.

        Args:
            current: Snapshot of the state on screen. Recorded when the
                cursor is at the newest entry so that redo can return to it.

        Returns:
            The snapshot to restore, or None if there is nothing to undo.
        """
        if self.index < 0:
            return None

        snapshot = self.entries[self.index]
        if self.index == len(self.entries) - 1:
            self.entries.append(current)
        self.index -= 1
        self._evict()
        logger.debug("History undo: index %d of %d", self.index, len(self.entries))
        return snapshot

    def redo(self) -> Optional[HistorySnapshot]:
        """Step forward one entry.

        Returns:
            The snapshot to restore, or None if there is nothing to redo.
        """
        if not self.can_redo:
            return None

        snapshot = self.entries[self.index + 2]
        self.index += 1
        logger.debug("History redo: index %d of %d", self.index, len(self.entries))
        return snapshot

    def clear(self) -> None:
        """Drop all entries."""
        self.entries.clear()
        self.index = -1

    def _evict(self) -> None:
        while len(self.entries) > self.limit:
            self.entries.pop(0)
            self.index = max(self.index - 1, -1)

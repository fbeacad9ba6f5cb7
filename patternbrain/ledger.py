from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterator, Optional, Tuple

from .models import Move

logger = logging.getLogger(__name__)


class MoveLedger:
    """Bounded, ordered record of player moves; oldest moves fall off first."""

    def __init__(self, max_history: int = 1000):
        self.max_history = int(max_history)
        self._moves: Deque[Move] = deque(maxlen=self.max_history)

    def record(self, move: Move) -> Optional[Move]:
        """Append `move`; returns the move evicted to make room, if any."""
        evicted = self._moves[0] if len(self._moves) == self.max_history else None
        self._moves.append(move)
        if evicted is not None:
            logger.debug("Ledger full (%d), evicted move at %s", self.max_history, evicted.position)
        return evicted

    def query(self, limit: Optional[int] = None) -> Tuple[Move, ...]:
        if limit is None:
            return tuple(self._moves)
        if limit <= 0:
            return ()
        n = len(self._moves)
        if limit >= n:
            return tuple(self._moves)
        return tuple(self._moves[i] for i in range(n - limit, n))

    def window(self, size: int) -> Tuple[Move, ...]:
        """The trailing `size` moves the analyzers work on."""
        return self.query(size)

    def last(self) -> Optional[Move]:
        return self._moves[-1] if self._moves else None

    def clear(self) -> None:
        self._moves.clear()

    def __len__(self) -> int:
        return len(self._moves)

    def __iter__(self) -> Iterator[Move]:
        return iter(tuple(self._moves))

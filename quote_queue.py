# quote_queue.py
from typing import Optional, Sequence

from shuffle import Shuffle, fisher_yates
from sources.base import Quote


class QuoteCursor:
    """
    Walks a shuffled permutation of the quote list, one quote per advance.
    Once the last quote was handed out, the next advance reshuffles the full
    list and starts a new cycle at index 0.

    The boundary between two cycles is not guarded: the last quote of one
    cycle may come up first in the next.
    """

    def __init__(self, shuffle: Shuffle = fisher_yates):
        self._shuffle = shuffle
        self.queue: list[Quote] = []
        self.index = 0
        self.cycle = 0

    def _reshuffle(self, quotes: Sequence[Quote]) -> Optional[Quote]:
        self.queue = list(self._shuffle(quotes))
        self.index = 0
        self.cycle += 1
        return self.queue[0] if self.queue else None

    def start(self, quotes: Sequence[Quote]) -> Optional[Quote]:
        self.cycle = 0
        return self._reshuffle(quotes)

    def advance(self, source: Sequence[Quote]) -> Optional[Quote]:
        """Returns the next quote, or None if there is nothing to show."""
        if not self.queue:
            return None
        if self.index + 1 < len(self.queue):
            self.index += 1
            return self.queue[self.index]
        return self._reshuffle(source)

    def current(self) -> Optional[Quote]:
        if not self.queue:
            return None
        return self.queue[self.index]

    @property
    def remaining(self) -> int:
        return max(0, len(self.queue) - self.index - 1)

"""
book.py

Opening book: the best first guess per game size.

Computing an opening move means scoring every code against the complete
hypothesis space, which is expensive, so each size is computed once and
reused. The first caller for a new size computes it while holding the
lock; concurrent callers for any size block until it is stored.
"""

import threading
from typing import Callable, Dict, Optional

from .game import Code, GameSize

# Known optimal openings
DEFAULT_OPENINGS = {
    GameSize(4, 6): Code((0, 0, 1, 1)),
    GameSize(5, 6): Code((0, 0, 1, 2, 3)),
}


class OpeningBook:
    def __init__(self, seed: Optional[Dict[GameSize, Code]] = None, verbose: bool = False):
        self._lock = threading.Lock()
        self._moves: Dict[GameSize, Code] = dict(DEFAULT_OPENINGS if seed is None else seed)
        self.verbose = verbose

    def get(self, size: GameSize, compute: Callable[[], Code]) -> Code:
        """Return the opening for `size`, calling compute() only on first use."""
        with self._lock:
            move = self._moves.get(size)
            if move is None:
                if self.verbose:
                    print(f"[book] calculating initial move for size {tuple(size)}")
                move = Code(compute())
                self._moves[size] = move
                if self.verbose:
                    print(f"[book] game of size {tuple(size)}, initial move: {move}")
            return move

    def clear(self) -> None:
        with self._lock:
            self._moves.clear()

    def __contains__(self, size) -> bool:
        with self._lock:
            return size in self._moves

    def __len__(self) -> int:
        with self._lock:
            return len(self._moves)


# Shared by every solver that isn't handed a book of its own.
OPENING_BOOK = OpeningBook()

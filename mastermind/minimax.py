"""
minimax.py

Deterministic minimax code-breaker.

S is the set of codes still consistent with every feedback seen so far; P
is the complete set of codes, any of which may be guessed. Each round the
solver scores every p in P by the size of the largest feedback bucket it
would split S into (the worst case left over after guessing p), and picks
a guess that makes that worst case as small as possible:

  1. keep the candidates with the minimum worst case,
  2. prefer the ones that are still in S (they might win outright),
  3. among those, take the lexicographically smallest code with the
     smallest worst case.

For 4 positions and 6 colors this never needs more than 5 guesses.
"""

from collections import defaultdict
from contextlib import nullcontext
from typing import Dict, List, NamedTuple, Optional

from .book import OPENING_BOOK, OpeningBook
from .config import CONFIG
from .game import Code, Feedback, Game
from .parallel import Limiter, chunked
from .space import (
    CodeSet,
    HitMap,
    all_possible_codes,
    count_hits,
    max_hits,
    select_with_result,
    sorted_codes,
)

Scores = Dict[int, List[Code]]


class RoundRecord(NamedTuple):
    guess: Code
    feedback: Feedback
    remaining_before: int
    remaining_after: int
    hits: HitMap


# =========================
# Scoring helpers
# =========================


def _score_chunk(chunk, hypotheses: CodeSet, colors: int, positions: int):
    """Worker: (worst case, code) for every code in `chunk`."""
    out = []
    for code in chunk:
        _, worst = max_hits(count_hits(hypotheses, code, colors, positions))
        out.append((worst, code))
    return out


def best_score(scores: Scores) -> List[Code]:
    """The group of codes with the smallest worst case."""
    return scores[min(scores)]


def select_guesses(hypotheses: CodeSet, codes: List[Code]) -> List[Code]:
    """Codes that are also in S, unless there are none, in which case all of them."""
    in_s = []
    not_in_s = []
    for code in codes:
        if str(code) in hypotheses:
            in_s.append(code)
        else:
            not_in_s.append(code)
    if not in_s:
        return not_in_s
    return in_s


# =========================
# Solver
# =========================


class MinimaxSolver:
    def __init__(
        self,
        game: Game,
        book: Optional[OpeningBook] = None,
        limiter_size: int = CONFIG["limiter_size"],
        workers: int = CONFIG["workers"],
        backend: str = CONFIG["parallel_backend"],
        chunk_size: int = CONFIG["score_chunk_size"],
        verbose: bool = CONFIG["debug"],
    ):
        self.game = game
        self.book = book if book is not None else OPENING_BOOK
        self.limiter_size = limiter_size
        self.workers = workers
        self.backend = backend
        self.chunk_size = chunk_size
        self.verbose = verbose
        self.history: List[RoundRecord] = []
        self._limiter: Optional[Limiter] = None

        self.initial_move = self.book.get(game.size, self._compute_initial_move)
        game.reset()

    @property
    def rounds(self) -> int:
        return len(self.history)

    def _compute_initial_move(self) -> Code:
        S, P = all_possible_codes(self.game.positions, self.game.colors)
        return self.next_guess(S, P)

    # ------------- Public -------------

    def solve(self) -> Code:
        """Play until the game reports a win; returns the winning code."""
        S, P = all_possible_codes(self.game.positions, self.game.colors)
        self.history = []

        with self._new_limiter() as self._limiter:
            try:
                return self._play(S, P, self.initial_move)
            finally:
                self._limiter = None

    def _play(self, S: CodeSet, P: List[Code], guess: Code) -> Code:
        positions = self.game.positions
        colors = self.game.colors

        while True:
            result = self.game.scored_guess(guess)
            if self.game.is_win(result):
                return guess

            before = len(S)
            S, hits = select_with_result(S, guess, result, colors, positions)
            self.history.append(RoundRecord(guess, result, before, len(S), hits))

            if self.verbose:
                print(
                    f"[minimax] move {len(self.history)}: {guess} -> {result} | "
                    f"S {before} -> {len(S)}"
                )

            if not S:
                raise RuntimeError(
                    f"no code is consistent with feedback {result} for guess {guess}"
                )

            guess = self.next_guess(S, P)

    def next_guess(self, S: CodeSet, P: List[Code]) -> Code:
        # with two or fewer left, guessing either wins or identifies the other
        if len(S) <= 2:
            return sorted_codes(S.values())[0]

        scores = self.score(S, P)
        best_guesses = best_score(scores)
        potential = select_guesses(S, best_guesses)
        return self.best_guess_of_set(S, potential)

    def score(self, S: CodeSet, P: List[Code]) -> Scores:
        """
        Group every code in P by its worst case against S.

        Keys are the size of the largest set S could shrink to after guessing
        the code; values are the codes with that worst case.
        """
        guesses: Scores = defaultdict(list)
        snapshot = dict(S)

        def merge(chunk_scores):
            for worst, code in chunk_scores:
                guesses[worst].append(code)

        with self._evaluator() as limiter:
            for chunk in chunked(P, self.chunk_size):
                limiter.go(
                    _score_chunk,
                    list(chunk),
                    snapshot,
                    self.game.colors,
                    self.game.positions,
                    on_result=merge,
                )
            limiter.wait()

        return dict(guesses)

    def _new_limiter(self) -> Limiter:
        return Limiter(self.limiter_size, self.workers, self.backend)

    def _evaluator(self):
        # reuse the pool of a running solve(); otherwise a one-off limiter
        if self._limiter is not None:
            return nullcontext(self._limiter)
        return self._new_limiter()

    def best_guess_of_set(self, S: CodeSet, codes: List[Code]) -> Code:
        """
        The code in `codes` whose largest feedback bucket over S is smallest.

        Ties go to the lexicographically smallest code.
        """
        min_max = -1
        codes_for_max: Scores = defaultdict(list)
        for code in codes:
            _, worst = max_hits(count_hits(S, code, self.game.colors, self.game.positions))
            codes_for_max[worst].append(code)
            if min_max < 0 or worst < min_max:
                min_max = worst

        return sorted_codes(codes_for_max[min_max])[0]
